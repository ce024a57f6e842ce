"""BalanceLedger — replays Transfer events into per-address balances."""

import logging
from collections.abc import Iterable

from holderscan.accounting.units import format_units
from holderscan.parser.utils.types import TransferEvent

logger = logging.getLogger(__name__)


class BalanceLedger:
    """Signed running balance per address for a single token.

    Every apply debits the sender and credits the receiver by the same
    amount, so the sum over all entries stays zero and the final state does
    not depend on the order events arrive in.

    Balances can go negative when the scanned block range starts after an
    address was first funded. Those entries are kept (so later credits net
    out correctly) but never reported as holders.

    Replay trusts the log source to deliver each event once: applying the
    same event twice doubles its effect. Pass ``dedupe=True`` to drop events
    whose (tx_hash, log_index) key was already applied.
    """

    def __init__(self, decimals: int = 18, dedupe: bool = False) -> None:
        self._balances: dict[str, int] = {}
        self._decimals = decimals
        self._dedupe = dedupe
        self._seen: set[tuple[str, int]] = set()
        self.applied = 0
        self.duplicates = 0

    @property
    def decimals(self) -> int:
        return self._decimals

    def apply(self, event: TransferEvent) -> bool:
        """Move `event.value` from sender to receiver. Returns False if dropped as a duplicate."""
        if self._dedupe:
            key = event.key
            if key is not None:
                if key in self._seen:
                    self.duplicates += 1
                    logger.debug("Dropping duplicate transfer %s#%d", key[0], key[1])
                    return False
                self._seen.add(key)

        self._balances.setdefault(event.from_address, 0)
        self._balances.setdefault(event.to_address, 0)
        self._balances[event.from_address] -= event.value
        self._balances[event.to_address] += event.value
        self.applied += 1
        return True

    def apply_all(self, events: Iterable[TransferEvent]) -> int:
        """Consume an event stream. Returns how many events were applied."""
        count = 0
        for event in events:
            if self.apply(event):
                count += 1
        return count

    def balance_of(self, address: str) -> int:
        return self._balances.get(address, 0)

    def snapshot(self) -> dict[str, int]:
        """Holders only: addresses with a strictly positive balance."""
        return {addr: bal for addr, bal in self._balances.items() if bal > 0}

    def negative_balances(self) -> dict[str, int]:
        """Accounts that sent more than they received in range, i.e. the block range is incomplete."""
        return {addr: bal for addr, bal in self._balances.items() if bal < 0}

    def total(self) -> int:
        """Sum of all balances. Non-zero means events were mis-decoded."""
        return sum(self._balances.values())

    def report(self, balance: int) -> str:
        """Human-readable decimal string for a smallest-unit amount."""
        return format_units(balance, self._decimals)

    def __len__(self) -> int:
        return len(self._balances)

    def __contains__(self, address: object) -> bool:
        return address in self._balances
