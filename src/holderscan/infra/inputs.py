"""Token list and ABI file readers. Any problem here is a fatal ConfigError."""

import json
import logging
from pathlib import Path
from typing import Any

from eth_utils import is_address, is_checksum_address, to_checksum_address

from holderscan.config import MAX_DECIMALS
from holderscan.domain.models.scan import TokenSpec
from holderscan.exceptions import ConfigError
from holderscan.parser.abi import TransferSchema

logger = logging.getLogger(__name__)


def _read_json(path: str | Path, what: str) -> Any:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {what} {path}: {e}") from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{what.capitalize()} {path} is not valid JSON: {e}") from e


def _is_mixed_case(address: str) -> bool:
    hex_part = address[2:] if address[:2].lower() == "0x" else address
    return hex_part != hex_part.lower() and hex_part != hex_part.upper()


def _token_spec(entry: Any, position: int) -> TokenSpec:
    if isinstance(entry, str):
        address, decimals = entry, None
    elif isinstance(entry, dict):
        address, decimals = entry.get("address"), entry.get("decimals")
    else:
        raise ConfigError(f"Token list entry {position} must be a string or object, got {type(entry).__name__}")

    if not isinstance(address, str) or not is_address(address):
        raise ConfigError(f"Token list entry {position} is not a valid address: {address!r}")
    if _is_mixed_case(address) and not is_checksum_address(address):
        raise ConfigError(f"Token list entry {position} has a bad EIP-55 checksum: {address}")
    if decimals is not None and (
        not isinstance(decimals, int) or isinstance(decimals, bool) or not 0 <= decimals <= MAX_DECIMALS
    ):
        raise ConfigError(f"Token list entry {position} has invalid decimals: {decimals!r}")
    return TokenSpec(address=to_checksum_address(address), decimals=decimals)


def read_token_list(path: str | Path) -> list[TokenSpec]:
    """Read an ordered JSON array of token addresses (or {"address", "decimals"} objects)."""
    data = _read_json(path, "token list")
    if not isinstance(data, list):
        raise ConfigError(f"Token list {path} must be a JSON array")
    tokens = [_token_spec(entry, i) for i, entry in enumerate(data)]
    logger.info("Loaded %d tokens from %s", len(tokens), path)
    return tokens


def read_abi(path: str | Path) -> list[dict]:
    """Read a contract ABI; accepts a bare array or a build artifact with an "abi" key."""
    data = _read_json(path, "ABI file")
    if isinstance(data, dict) and "abi" in data:
        data = data["abi"]
    if not isinstance(data, list):
        raise ConfigError(f"ABI file {path} must contain a JSON array")
    return data


def load_transfer_schema(abi_path: str | Path | None) -> TransferSchema:
    """Transfer schema from an ABI file, or the standard ERC-20 layout when no file is given."""
    if abi_path is None:
        return TransferSchema.erc20()
    return TransferSchema.from_abi(read_abi(abi_path))
