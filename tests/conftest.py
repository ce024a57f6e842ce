import pytest

from holderscan.parser.abi import TransferSchema
from holderscan.parser.utils.types import RawLogEntry

TRANSFER_TOPIC = TransferSchema.erc20().topic


def address_topic(address: str) -> str:
    """Left-pad a 20-byte address into a 32-byte topic."""
    return "0x" + "00" * 12 + address[2:].lower()


def uint_word(value: int) -> str:
    return "0x" + f"{value:064x}"


@pytest.fixture()
def make_log():
    """Factory for eth_getLogs-style Transfer records."""

    def _make(
        sender: str,
        receiver: str,
        value: int,
        *,
        tx_hash: str | None = None,
        log_index: int | None = None,
        block_number: int = 17081000,
        topic0: str = TRANSFER_TOPIC,
        data: str | None = None,
        removed: bool = False,
    ) -> RawLogEntry:
        return RawLogEntry(
            address="0x6b175474e89094c44da98b954eedeac495271d0f",
            topics=[topic0, address_topic(sender), address_topic(receiver)],
            data=uint_word(value) if data is None else data,
            block_number=block_number,
            tx_hash=tx_hash,
            log_index=log_index,
            removed=removed,
        )

    return _make


@pytest.fixture()
def make_rpc_log(make_log):
    """Same as make_log but as the raw JSON-RPC dict."""

    def _make(sender: str, receiver: str, value: int, *, tx_hash: str = "0x01", log_index: int = 0) -> dict:
        entry = make_log(sender, receiver, value, tx_hash=tx_hash, log_index=log_index)
        return {
            "address": entry.address,
            "topics": entry.topics,
            "data": entry.data,
            "blockNumber": hex(entry.block_number),
            "transactionHash": tx_hash,
            "logIndex": hex(log_index),
            "removed": False,
        }

    return _make
