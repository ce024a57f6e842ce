from enum import Enum


class ScanStatus(str, Enum):
    """Outcome of scanning one token."""

    OK = "OK"
    FAILED = "FAILED"


class SkipReason(str, Enum):
    """Why a raw log was left out of the replay."""

    TOO_FEW_TOPICS = "TOO_FEW_TOPICS"
    FOREIGN_EVENT = "FOREIGN_EVENT"  # topic 0 is not the Transfer signature
    REMOVED = "REMOVED"  # dropped by a chain reorg
