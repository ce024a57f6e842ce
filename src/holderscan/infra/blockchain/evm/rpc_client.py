"""EVM JSON-RPC client — eth_getLogs with chunked block ranges."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from holderscan.exceptions import ExternalServiceError, LogRangeTooLargeError
from holderscan.infra.blockchain.base import LogSource
from holderscan.infra.http.rate_limited_client import RateLimitedClient
from holderscan.parser.utils.types import RawLogEntry

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 2000  # blocks per eth_getLogs call

# Providers word "too many results" differently; -32005 is the Infura/Geth code.
RANGE_TOO_LARGE_CODES = {-32005}
RANGE_TOO_LARGE_MARKERS = (
    "more than",
    "too many",
    "block range",
    "response size exceeded",
    "limit exceeded",
)


def _is_range_too_large(error: dict) -> bool:
    if error.get("code") in RANGE_TOO_LARGE_CODES:
        return True
    message = str(error.get("message", "")).lower()
    return any(marker in message for marker in RANGE_TOO_LARGE_MARKERS)


class EVMRPCClient(LogSource):
    """Minimal EVM JSON-RPC client for log retrieval."""

    def __init__(
        self,
        rpc_url: str,
        http_client: RateLimitedClient,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        self._rpc_url = rpc_url
        self._http = http_client
        self._chunk_size = chunk_size

    @retry(
        retry=retry_if_exception_type(ExternalServiceError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _call(self, method: str, params: list) -> dict | list | str | None:
        """Execute a JSON-RPC call and return the result field."""
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params,
        }
        resp = await self._http.post(self._rpc_url, json=payload)
        if resp.status_code >= 400:
            raise ExternalServiceError(f"RPC HTTP {resp.status_code} ({method})")

        try:
            data = resp.json()
        except ValueError as e:
            raise ExternalServiceError(f"RPC returned non-JSON body ({method})") from e

        if not isinstance(data, dict):
            raise ExternalServiceError(f"Unexpected RPC response shape ({method}): {type(data).__name__}")

        if "error" in data:
            error = data["error"] if isinstance(data["error"], dict) else {"message": str(data["error"])}
            msg = error.get("message", str(error))
            if method == "eth_getLogs" and _is_range_too_large(error):
                raise LogRangeTooLargeError(f"RPC rejected log range: {msg}")
            raise ExternalServiceError(f"RPC error ({method}): {msg}")

        return data.get("result")

    async def get_block_number(self) -> int:
        result = await self._call("eth_blockNumber", [])
        if not isinstance(result, str):
            raise ExternalServiceError(f"Malformed eth_blockNumber result: {result!r}")
        return int(result, 16)

    async def get_logs(
        self,
        address: str,
        from_block: int,
        to_block: int,
        topics: list[str] | None = None,
    ) -> list[RawLogEntry]:
        """Fetch logs in fixed-size block chunks, splitting any chunk the node refuses."""
        logs: list[RawLogEntry] = []
        start = from_block
        while start <= to_block:
            end = min(start + self._chunk_size - 1, to_block)
            batch = await self._fetch_with_split(address, start, end, topics)
            logger.debug("Fetched %d logs for %s in blocks %d-%d", len(batch), address, start, end)
            logs.extend(batch)
            start = end + 1
        return logs

    async def _fetch_with_split(
        self,
        address: str,
        from_block: int,
        to_block: int,
        topics: list[str] | None,
    ) -> list[RawLogEntry]:
        """Recursive fetch that halves the range on 'too many results'."""
        query: dict = {
            "address": address,
            "fromBlock": hex(from_block),
            "toBlock": hex(to_block),
        }
        if topics is not None:
            query["topics"] = topics

        try:
            result = await self._call("eth_getLogs", [query])
        except LogRangeTooLargeError as e:
            if from_block == to_block:
                raise LogRangeTooLargeError(
                    f"Cannot split block {from_block} further for {address}: {e}",
                    from_block,
                    to_block,
                ) from e
            mid_block = (from_block + to_block) // 2
            logger.info(
                "Splitting eth_getLogs range [%d, %d] at %d for %s",
                from_block, to_block, mid_block, address,
            )
            first_half = await self._fetch_with_split(address, from_block, mid_block, topics)
            second_half = await self._fetch_with_split(address, mid_block + 1, to_block, topics)
            return first_half + second_half

        if result is None:
            return []
        if not isinstance(result, list):
            raise ExternalServiceError(f"Malformed eth_getLogs result: {type(result).__name__}")
        return [RawLogEntry.from_rpc(entry) for entry in result]


@asynccontextmanager
async def open_rpc_client(
    rpc_url: str,
    rate_per_second: float = 5.0,
    timeout: float = 30.0,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> AsyncIterator[EVMRPCClient]:
    """An EVMRPCClient with its own HTTP connection pool, closed on exit."""
    async with RateLimitedClient(rate_per_second=rate_per_second, timeout=timeout) as http:
        yield EVMRPCClient(rpc_url=rpc_url, http_client=http, chunk_size=chunk_size)
