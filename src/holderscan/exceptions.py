"""Exception hierarchy for holder scans."""


class HolderScanError(Exception):
    """Base class for all holderscan errors."""


class ConfigError(HolderScanError):
    """Unreadable or malformed configuration, token list or ABI."""


class ExternalServiceError(HolderScanError):
    """The ledger node could not be reached or returned an error."""


class LogRangeTooLargeError(HolderScanError):
    """The node refused a log query because the block range returns too many results."""

    def __init__(self, message: str, from_block: int | None = None, to_block: int | None = None) -> None:
        super().__init__(message)
        self.from_block = from_block
        self.to_block = to_block


class SchemaMismatchError(HolderScanError):
    """A log payload does not match the transfer event schema.

    Fatal: decoded amounts can no longer be trusted once the ABI and the
    deployed contract disagree.
    """
