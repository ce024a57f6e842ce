"""Domain types for token holder scans."""

from pydantic import BaseModel

from holderscan.domain.enums import ScanStatus


class TokenSpec(BaseModel, frozen=True):
    """One entry of the token list."""

    address: str  # checksum hex
    decimals: int | None = None  # None = use the configured default


class HolderBalance(BaseModel):
    """An address with a strictly positive balance at the end of replay."""

    address: str
    balance: int  # smallest units
    display: str  # balance scaled by 10**decimals, exact


class ScanStats(BaseModel):
    logs: int = 0
    transfers: int = 0
    skipped: dict[str, int] = {}  # SkipReason value -> count
    duplicates: int = 0
    accounts: int = 0
    negative_accounts: int = 0
    ledger_sum: int = 0  # zero for a consistent replay


class TokenScanResult(BaseModel):
    """Outcome of scanning one token over one block range."""

    token_address: str
    status: ScanStatus
    from_block: int
    to_block: int
    decimals: int
    holders: list[HolderBalance] = []
    stats: ScanStats = ScanStats()
    error: str | None = None
