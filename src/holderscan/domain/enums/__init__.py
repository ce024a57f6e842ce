from holderscan.domain.enums.output import OutputFormat
from holderscan.domain.enums.status import ScanStatus, SkipReason

__all__ = [
    "OutputFormat",
    "ScanStatus",
    "SkipReason",
]
