from typing import Literal

from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings

from holderscan.exceptions import ConfigError

DEFAULT_FROM_BLOCK = 17081000
DEFAULT_TO_BLOCK = 17081327
MAX_DECIMALS = 77  # 10**77 still fits in a uint256


class ScanConfig(BaseModel, frozen=True):
    """Everything one scan needs, passed explicitly instead of module globals."""

    rpc_url: str
    from_block: int
    to_block: int | Literal["latest"]
    decimals: int = 18
    log_chunk_size: int = 2000
    dedupe_events: bool = False

    @model_validator(mode="after")
    def _check_range(self) -> "ScanConfig":
        if self.from_block < 0:
            raise ValueError("from_block must be >= 0")
        if isinstance(self.to_block, int) and self.to_block < self.from_block:
            raise ValueError(f"to_block {self.to_block} is before from_block {self.from_block}")
        if self.log_chunk_size < 1:
            raise ValueError("log_chunk_size must be >= 1")
        if not 0 <= self.decimals <= MAX_DECIMALS:
            raise ValueError(f"decimals must be between 0 and {MAX_DECIMALS}")
        return self


class Settings(BaseSettings):
    rpc_url: str = "https://rpc.ankr.com/eth"
    from_block: int = DEFAULT_FROM_BLOCK
    to_block: int | Literal["latest"] = DEFAULT_TO_BLOCK
    token_list_path: str = "tokens.json"
    abi_path: str | None = None  # None = built-in ERC-20 Transfer schema
    decimals: int = 18
    rpc_rate_per_second: float = 5.0
    rpc_timeout: float = 30.0
    log_chunk_size: int = 2000
    dedupe_events: bool = False
    continue_on_error: bool = False
    max_concurrency: int = 1
    log_level: str = "INFO"

    def scan_config(self) -> ScanConfig:
        try:
            return ScanConfig(
                rpc_url=self.rpc_url,
                from_block=self.from_block,
                to_block=self.to_block,
                decimals=self.decimals,
                log_chunk_size=self.log_chunk_size,
                dedupe_events=self.dedupe_events,
            )
        except ValueError as e:
            raise ConfigError(f"Invalid scan configuration: {e}") from e

    class Config:
        env_prefix = "HOLDERSCAN_"
        env_file = ".env"

