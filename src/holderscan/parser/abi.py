"""Transfer event schema derived from a contract ABI."""

import logging

from eth_utils import encode_hex, keccak
from pydantic import BaseModel

from holderscan.exceptions import ConfigError

logger = logging.getLogger(__name__)

TRANSFER_EVENT_NAME = "Transfer"

ERC20_TRANSFER_ABI: dict = {
    "anonymous": False,
    "inputs": [
        {"indexed": True, "name": "from", "type": "address"},
        {"indexed": True, "name": "to", "type": "address"},
        {"indexed": False, "name": "value", "type": "uint256"},
    ],
    "name": TRANSFER_EVENT_NAME,
    "type": "event",
}


def _canonical_type(abi_type: str) -> str:
    if abi_type == "uint":
        return "uint256"
    if abi_type == "int":
        return "int256"
    return abi_type


def _is_uint(abi_type: str) -> bool:
    if not abi_type.startswith("uint") or "[" in abi_type:
        return False
    bits = abi_type[4:]
    return bits.isdigit() and 8 <= int(bits) <= 256 and int(bits) % 8 == 0


class TransferSchema(BaseModel, frozen=True):
    """Field layout of the token's Transfer event.

    Topics 1 and 2 hold the indexed `from`/`to` addresses; the data payload
    holds exactly one unsigned integer, the transferred value.
    """

    signature: str  # e.g. "Transfer(address,address,uint256)"
    topic: str  # keccak(signature), 0x-prefixed lowercase
    value_type: str  # e.g. "uint256"

    @classmethod
    def erc20(cls) -> "TransferSchema":
        return cls.from_event_abi(ERC20_TRANSFER_ABI)

    @classmethod
    def from_event_abi(cls, event: dict) -> "TransferSchema":
        """Validate one ABI event entry and build the schema. Raises ConfigError if unusable."""
        inputs = event.get("inputs")
        if not isinstance(inputs, list):
            raise ConfigError("Transfer event has no inputs list")
        if event.get("anonymous"):
            raise ConfigError("Anonymous Transfer events carry no signature topic")

        for i in inputs:
            if not isinstance(i, dict) or not isinstance(i.get("type"), str):
                raise ConfigError(f"Malformed Transfer event input: {i!r}")
        types = [_canonical_type(i["type"]) for i in inputs]
        indexed = [_canonical_type(i["type"]) for i in inputs if i.get("indexed")]
        data = [_canonical_type(i["type"]) for i in inputs if not i.get("indexed")]

        if indexed != ["address", "address"]:
            raise ConfigError(f"Transfer event must index exactly (address, address), got {indexed}")
        if len(data) != 1 or not _is_uint(data[0]):
            raise ConfigError(f"Transfer event payload must be a single unsigned integer, got {data}")

        signature = f"{TRANSFER_EVENT_NAME}({','.join(types)})"
        return cls(
            signature=signature,
            topic=encode_hex(keccak(text=signature)),
            value_type=data[0],
        )

    @classmethod
    def from_abi(cls, abi: list[dict]) -> "TransferSchema":
        """Find the Transfer event in a full contract ABI."""
        candidates = [
            entry for entry in abi
            if isinstance(entry, dict)
            and entry.get("type") == "event"
            and entry.get("name") == TRANSFER_EVENT_NAME
        ]
        if not candidates:
            raise ConfigError("ABI does not declare a Transfer event")

        errors: list[str] = []
        for entry in candidates:
            try:
                schema = cls.from_event_abi(entry)
            except ConfigError as e:
                errors.append(str(e))
                continue
            logger.debug("Using transfer schema %s (topic %s)", schema.signature, schema.topic)
            return schema

        raise ConfigError(f"No usable Transfer event in ABI: {'; '.join(errors)}")
