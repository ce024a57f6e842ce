"""HolderScanService — fetch -> decode -> replay -> snapshot for each token."""

import asyncio
import logging
from collections import Counter
from collections.abc import Callable, Iterable, Iterator
from contextlib import AbstractAsyncContextManager

from holderscan.accounting.ledger import BalanceLedger
from holderscan.config import ScanConfig
from holderscan.domain.enums import ScanStatus
from holderscan.domain.models.scan import HolderBalance, ScanStats, TokenScanResult, TokenSpec
from holderscan.exceptions import ConfigError, HolderScanError
from holderscan.infra.blockchain.base import LogSource
from holderscan.parser.decoder import TransferDecoder, decode_logs
from holderscan.parser.utils.types import RawLogEntry

logger = logging.getLogger(__name__)

LogSourceFactory = Callable[[], AbstractAsyncContextManager[LogSource]]


def replay(logs: Iterable[RawLogEntry], decoder: TransferDecoder, ledger: BalanceLedger) -> ScanStats:
    """Apply every transfer in `logs` to `ledger`. Raises SchemaMismatchError on undecodable payloads."""
    seen = 0

    def _counted() -> Iterator[RawLogEntry]:
        nonlocal seen
        for log in logs:
            seen += 1
            yield log

    skipped: Counter[str] = Counter()
    transfers = ledger.apply_all(
        decode_logs(decoder, _counted(), on_skip=lambda _log, reason: skipped.update([reason.value]))
    )
    return ScanStats(
        logs=seen,
        transfers=transfers,
        skipped=dict(skipped),
        duplicates=ledger.duplicates,
        accounts=len(ledger),
        negative_accounts=len(ledger.negative_balances()),
        ledger_sum=ledger.total(),
    )


def holders_of(ledger: BalanceLedger) -> list[HolderBalance]:
    """Positive balances, largest first (ties by address)."""
    snapshot = ledger.snapshot()
    return [
        HolderBalance(address=addr, balance=bal, display=ledger.report(bal))
        for addr, bal in sorted(snapshot.items(), key=lambda kv: (-kv[1], kv[0]))
    ]


class HolderScanService:
    """Scans a list of tokens over one block range.

    Each token gets its own BalanceLedger. With max_concurrency > 1 each
    token also gets its own log source from `source_factory`, so nothing
    mutable is shared between concurrent scans.
    """

    def __init__(
        self,
        config: ScanConfig,
        decoder: TransferDecoder,
        source_factory: LogSourceFactory,
        continue_on_error: bool = False,
        max_concurrency: int = 1,
    ) -> None:
        self._config = config
        self._decoder = decoder
        self._source_factory = source_factory
        self._continue_on_error = continue_on_error
        self._max_concurrency = max(1, max_concurrency)

    async def scan_token(self, source: LogSource, token: TokenSpec, to_block: int) -> TokenScanResult:
        """Run the full pipeline for one token. Errors propagate to the caller."""
        from_block = self._config.from_block
        decimals = token.decimals if token.decimals is not None else self._config.decimals
        logger.info("Scanning %s over blocks %d-%d", token.address, from_block, to_block)

        logs = await source.get_logs(
            token.address, from_block, to_block, topics=[self._decoder.schema.topic]
        )

        ledger = BalanceLedger(decimals=decimals, dedupe=self._config.dedupe_events)
        stats = replay(logs, self._decoder, ledger)

        if stats.negative_accounts:
            logger.warning(
                "%s: %d accounts end with a negative balance; blocks %d-%d miss earlier transfers",
                token.address, stats.negative_accounts, from_block, to_block,
            )
        if stats.duplicates:
            logger.warning("%s: dropped %d duplicate transfer logs", token.address, stats.duplicates)
        if stats.ledger_sum != 0:
            logger.error("%s: ledger does not balance (sum=%d)", token.address, stats.ledger_sum)

        holders = holders_of(ledger)
        logger.info(
            "%s: %d logs, %d transfers, %d holders",
            token.address, stats.logs, stats.transfers, len(holders),
        )
        return TokenScanResult(
            token_address=token.address,
            status=ScanStatus.OK,
            from_block=from_block,
            to_block=to_block,
            decimals=decimals,
            holders=holders,
            stats=stats,
        )

    async def scan_all(self, tokens: list[TokenSpec]) -> list[TokenScanResult]:
        """Scan every token in order. Stops at the first failure unless continue_on_error is set."""
        if self._max_concurrency == 1:
            results: list[TokenScanResult] = []
            async with self._source_factory() as source:
                to_block = await self._resolve_to_block(source)
                for token in tokens:
                    results.append(await self._scan_guarded(source, token, to_block))
            return results

        async with self._source_factory() as source:
            to_block = await self._resolve_to_block(source)

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _bounded(token: TokenSpec) -> TokenScanResult:
            async with semaphore:
                async with self._source_factory() as own_source:
                    return await self._scan_guarded(own_source, token, to_block)

        return list(await asyncio.gather(*(_bounded(t) for t in tokens)))

    async def _resolve_to_block(self, source: LogSource) -> int:
        if self._config.to_block != "latest":
            return self._config.to_block
        head = await source.get_block_number()
        if head < self._config.from_block:
            raise ConfigError(f"Chain head {head} is before from_block {self._config.from_block}")
        logger.info("Resolved 'latest' to block %d", head)
        return head

    async def _scan_guarded(self, source: LogSource, token: TokenSpec, to_block: int) -> TokenScanResult:
        try:
            return await self.scan_token(source, token, to_block)
        except HolderScanError as e:
            if not self._continue_on_error:
                raise
            logger.error("Scan of %s failed: %s", token.address, e)
            return TokenScanResult(
                token_address=token.address,
                status=ScanStatus.FAILED,
                from_block=self._config.from_block,
                to_block=to_block,
                decimals=token.decimals if token.decimals is not None else self._config.decimals,
                error=str(e),
            )
