import asyncio
import time

import httpx

from holderscan.exceptions import ExternalServiceError

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


class RateLimitedClient:
    """Async JSON POST client with interval-based rate limiting.

    Transport failures surface as ExternalServiceError so callers retry on a
    single exception type. A rate of 0 disables throttling.
    """

    def __init__(self, rate_per_second: float = 5.0, timeout: float = 30.0) -> None:
        self._min_interval = 1.0 / rate_per_second if rate_per_second > 0 else 0.0
        self._last_request_time = 0.0
        self._lock = asyncio.Lock()
        self._client = httpx.AsyncClient(timeout=timeout, headers=JSON_HEADERS)

    async def _wait_for_slot(self) -> None:
        if not self._min_interval:
            return
        async with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_request_time
            if elapsed < self._min_interval:
                await asyncio.sleep(self._min_interval - elapsed)
            self._last_request_time = time.monotonic()

    async def post(self, url: str, json: dict | list | None = None) -> httpx.Response:
        await self._wait_for_slot()
        try:
            return await self._client.post(url, json=json)
        except httpx.TransportError as e:
            raise ExternalServiceError(f"POST {url} failed: {e!r}") from e

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RateLimitedClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
