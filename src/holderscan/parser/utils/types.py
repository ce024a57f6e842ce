"""Core data types for log decoding."""

from pydantic import BaseModel, Field


def _hex_int(raw: str | int | None) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, int):
        return raw
    return int(raw, 16) if raw.startswith("0x") else int(raw)


class RawLogEntry(BaseModel):
    """One event record as returned by eth_getLogs (topics and data still hex encoded)."""

    address: str = ""  # contract that emitted
    topics: list[str] = []
    data: str = "0x"
    block_number: int | None = None
    tx_hash: str | None = None
    log_index: int | None = None
    removed: bool = False

    @classmethod
    def from_rpc(cls, log: dict) -> "RawLogEntry":
        """Build from a JSON-RPC log object (camelCase keys, hex quantities)."""
        return cls(
            address=log.get("address", ""),
            topics=list(log.get("topics") or []),
            data=log.get("data") or "0x",
            block_number=_hex_int(log.get("blockNumber")),
            tx_hash=log.get("transactionHash"),
            log_index=_hex_int(log.get("logIndex")),
            removed=bool(log.get("removed", False)),
        )


class TransferEvent(BaseModel, frozen=True):
    """A decoded token movement of `value` smallest units from one address to another."""

    from_address: str  # checksum hex
    to_address: str  # checksum hex
    value: int = Field(ge=0)
    block_number: int | None = None
    tx_hash: str | None = None
    log_index: int | None = None

    @property
    def key(self) -> tuple[str, int] | None:
        """(tx_hash, log_index) identifying the on-chain log, when known."""
        if self.tx_hash is None or self.log_index is None:
            return None
        return (self.tx_hash.lower(), self.log_index)
