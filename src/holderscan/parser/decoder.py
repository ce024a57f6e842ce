"""TransferDecoder — raw log entry -> TransferEvent, skip, or fatal schema mismatch."""

import binascii
import logging
from collections.abc import Callable, Iterable, Iterator

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex, to_checksum_address

from holderscan.domain.enums import SkipReason
from holderscan.exceptions import SchemaMismatchError
from holderscan.parser.abi import TransferSchema
from holderscan.parser.utils.types import RawLogEntry, TransferEvent

logger = logging.getLogger(__name__)

MIN_TOPICS = 3  # signature, from, to
WORD_SIZE = 32


def _hex_bytes(value: str, what: str, log: RawLogEntry) -> bytes:
    try:
        return decode_hex(value)
    except (binascii.Error, ValueError, TypeError) as e:
        raise SchemaMismatchError(f"{what} of log {_describe(log)} is not valid hex: {value!r}") from e


def _describe(log: RawLogEntry) -> str:
    if log.tx_hash is not None:
        return f"{log.tx_hash}#{log.log_index}"
    return f"at block {log.block_number}"


class TransferDecoder:
    """Stateless decoder for one token's Transfer logs.

    Every call builds its own result; a decoder can be shared between
    concurrent scans.
    """

    def __init__(self, schema: TransferSchema | None = None) -> None:
        self._schema = schema if schema is not None else TransferSchema.erc20()

    @property
    def schema(self) -> TransferSchema:
        return self._schema

    def skip_reason(self, log: RawLogEntry) -> SkipReason | None:
        """Why this log is not a transfer record, or None if it should be decoded."""
        if log.removed:
            return SkipReason.REMOVED
        if len(log.topics) < MIN_TOPICS:
            return SkipReason.TOO_FEW_TOPICS
        if log.topics[0].lower() != self._schema.topic:
            return SkipReason.FOREIGN_EVENT
        return None

    def decode(self, log: RawLogEntry) -> TransferEvent | None:
        """Decode a log. Returns None for non-transfer records, raises SchemaMismatchError on bad payloads."""
        if self.skip_reason(log) is not None:
            return None

        from_address = self._decode_address(log, 1)
        to_address = self._decode_address(log, 2)

        data = _hex_bytes(log.data, "data", log)
        if len(data) != WORD_SIZE:
            raise SchemaMismatchError(
                f"Transfer payload of log {_describe(log)} is {len(data)} bytes, "
                f"expected {WORD_SIZE} for ({self._schema.value_type})"
            )
        try:
            (value,) = abi_decode([self._schema.value_type], data)
        except DecodingError as e:
            raise SchemaMismatchError(
                f"Transfer payload of log {_describe(log)} does not decode as {self._schema.value_type}: {e}"
            ) from e

        return TransferEvent(
            from_address=from_address,
            to_address=to_address,
            value=value,
            block_number=log.block_number,
            tx_hash=log.tx_hash,
            log_index=log.log_index,
        )

    def _decode_address(self, log: RawLogEntry, index: int) -> str:
        """Addresses are right-aligned in a 32-byte topic; the 12 leading bytes must be zero."""
        raw = _hex_bytes(log.topics[index], f"topic {index}", log)
        if len(raw) != WORD_SIZE:
            raise SchemaMismatchError(
                f"Topic {index} of log {_describe(log)} is {len(raw)} bytes, expected {WORD_SIZE}"
            )
        try:
            (address,) = abi_decode(["address"], raw)
        except DecodingError as e:
            raise SchemaMismatchError(
                f"Topic {index} of log {_describe(log)} is not a padded address: {e}"
            ) from e
        return to_checksum_address(address)


def decode_logs(
    decoder: TransferDecoder,
    logs: Iterable[RawLogEntry],
    on_skip: Callable[[RawLogEntry, SkipReason], None] | None = None,
) -> Iterator[TransferEvent]:
    """Lazily decode a batch of logs, dropping non-transfer records.

    `on_skip` is called for each dropped log with the reason. Schema
    mismatches propagate and end the iteration.
    """
    for log in logs:
        reason = decoder.skip_reason(log)
        if reason is not None:
            logger.debug("Skipping log %s: %s", _describe(log), reason.value)
            if on_skip is not None:
                on_skip(log, reason)
            continue
        event = decoder.decode(log)
        if event is not None:
            yield event
