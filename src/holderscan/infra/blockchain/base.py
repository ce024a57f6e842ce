"""Abstract source of raw event logs."""

from abc import ABC, abstractmethod

from holderscan.parser.utils.types import RawLogEntry


class LogSource(ABC):
    """Strategy interface for the filtered log query the replay consumes."""

    @abstractmethod
    async def get_logs(
        self,
        address: str,
        from_block: int,
        to_block: int,
        topics: list[str] | None = None,
    ) -> list[RawLogEntry]:
        """All logs emitted by `address` in the inclusive block range."""

    @abstractmethod
    async def get_block_number(self) -> int:
        """Current chain head."""
