import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence
from aiohttp import ClientError, ClientSession

from devreport.common.exceptions import (
    RateLimitedError,
    RetriesExhausted,
    ServerError,
    TransportError,
)
from devreport.common.rate_limiter import TokenBucketLimiter

logger = logging.getLogger(__name__)

QueryParams = Sequence[tuple[str, str]] | dict[str, str]


@dataclass
class TransportResponse:
    status: int
    body: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.body)


class RateLimitedTransport:
    """Sends requests through a shared token bucket, retrying 429/5xx and
    network failures with exponential backoff.

    Every attempt, retries included, consumes one limiter token.
    """

    def __init__(
        self,
        *,
        session: ClientSession,
        limiter: TokenBucketLimiter,
        max_retries: int = 5,
        retry_backoff: float = 2.0,
    ):
        self.session = session
        self.limiter = limiter
        self.max_retries = max(0, max_retries)
        self.retry_backoff = retry_backoff

    async def _backoff(self, attempt: int) -> None:
        wait_time = self.retry_backoff * (2 ** (attempt - 1))
        logger.warning(f"Retrying in {wait_time} seconds (attempt {attempt + 1})...")
        await asyncio.sleep(wait_time)

    async def send(
        self,
        method: str,
        url: str,
        params: QueryParams | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> TransportResponse:
        last_error: Exception | None = None
        attempts = 0

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                await self._backoff(attempt)

            await self.limiter.acquire(cancel_event)
            attempts += 1

            try:
                async with self.session.request(method, url, params=params) as response:
                    body = await response.text()
                    headers = dict(response.headers)
                    status = response.status
            except (ClientError, asyncio.TimeoutError) as e:
                logger.warning(f"Request to {url} failed: {e!r}")
                last_error = TransportError(url, e)
                continue

            if status == 429:
                logger.warning(f"Rate limit exceeded for {url}")
                last_error = RateLimitedError(url, headers.get("Retry-After"))
                continue

            if status >= 500:
                logger.warning(f"Server error {status} for {url}")
                last_error = ServerError(url, status, body)
                continue

            return TransportResponse(status=status, body=body, headers=headers)

        logger.error(f"Failed to make request to {url} after {attempts} attempts.")
        raise RetriesExhausted(url, attempts, last_error)
