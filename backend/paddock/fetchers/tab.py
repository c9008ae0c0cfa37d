"""TAB NZ JSON feed client."""

from datetime import date
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from paddock.config import Settings
from paddock.errors import DEFAULT_RATE_LIMIT_RETRY_AFTER, ETLError
from paddock.fetchers.base import DataFetcher
from paddock.fetchers.rate_limit import RateLimiter
from paddock.logging_config import get_logger
from paddock.parsers.fields import to_int

logger = get_logger(__name__)


def _is_server_error(response: httpx.Response) -> bool:
    return response.status_code >= 500


def _last_outcome(retry_state):
    # Hand the final response (or exception) back instead of a RetryError.
    return retry_state.outcome.result()


def parse_retry_after(value: str | None) -> int:
    """Seconds from a Retry-After header; HTTP dates and garbage give the default."""
    seconds = to_int(value) if value and value.strip().isdigit() else None
    if seconds is None or seconds <= 0:
        return DEFAULT_RATE_LIMIT_RETRY_AFTER
    return seconds


class TabClient(DataFetcher):
    """
    Thin client for the TAB schedule and results endpoints.

    Transport failures and 5xx responses are retried here with exponential
    backoff. Whatever still fails is raised as an ``ETLError``:

    * 404 and other non-2xx -> api_error
    * 429 -> rate_limit_error carrying Retry-After (default 60s)
    * 5xx after retries -> api_error
    * connection/timeout -> network_error
    * non-JSON body -> parse_error
    """

    def __init__(
        self,
        settings: Settings | None = None,
        rate_limiter: RateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_wait: float = 0.1,
    ):
        super().__init__(settings, rate_limiter, transport)
        self.retries = self.settings.feed_retries
        self.retry_wait = retry_wait

    def schedule_url(self, race_date: date) -> str:
        return f"{self.base_url}/schedule/{race_date.isoformat()}"

    def results_url(self, race_date: date, meeting_number: int) -> str:
        return f"{self.base_url}/results/{race_date.isoformat()}/{meeting_number}"

    async def fetch_schedule(self, race_date: date) -> dict[str, Any]:
        """GET /schedule/{date}."""
        return await self._get_json(self.schedule_url(race_date), {"date": race_date.isoformat()})

    async def fetch_meeting_results(self, race_date: date, meeting_number: int) -> dict[str, Any]:
        """GET /results/{date}/{meeting_number}."""
        return await self._get_json(
            self.results_url(race_date, meeting_number),
            {"date": race_date.isoformat(), "meeting_number": meeting_number},
        )

    async def health_check(self) -> bool:
        """Fetch today's schedule; raises ETLError when the feed is unusable."""
        await self.fetch_schedule(date.today())
        return True

    async def _send(self, url: str) -> httpx.Response:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(httpx.TransportError) | retry_if_result(_is_server_error),
            stop=stop_after_attempt(self.retries + 1),
            wait=wait_exponential(multiplier=self.retry_wait),
            retry_error_callback=_last_outcome,
            reraise=True,
        )
        return await retrying(self._limited_get, url)

    async def _limited_get(self, url: str) -> httpx.Response:
        # Every attempt, retries included, draws from the shared bucket.
        async with self.rate_limiter:
            return await self.client.get(url)

    async def _get_json(self, url: str, context: dict[str, Any]) -> dict[str, Any]:
        context = {"url": url, **context}

        try:
            response = await self._send(url)
        except httpx.TimeoutException as e:
            raise ETLError.network_error("Request to feed timed out", {**context, "error": repr(e)}) from e
        except httpx.TransportError as e:
            raise ETLError.network_error("Could not reach feed", {**context, "error": repr(e)}) from e

        status = response.status_code
        if status == 429:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            logger.warning(
                "Feed rate limit hit",
                extra={"url": url, "retry_after": retry_after},
            )
            raise ETLError.rate_limit_error(
                "Feed rate limit exceeded", retry_after, {**context, "status": status}
            )
        if status == 404:
            raise ETLError.api_error("Feed resource not found", {**context, "status": status})
        if status >= 500:
            raise ETLError.api_error("Feed server error", {**context, "status": status})
        if not response.is_success:
            raise ETLError.api_error("Unexpected feed response", {**context, "status": status})

        try:
            payload = response.json()
        except ValueError as e:
            raise ETLError.parse_error("Feed returned invalid JSON", {**context, "error": repr(e)}) from e

        if not isinstance(payload, dict):
            raise ETLError.parse_error(
                "Feed returned unexpected JSON", {**context, "type": type(payload).__name__}
            )
        return payload
