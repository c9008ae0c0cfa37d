"""Base feed fetcher."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any

import httpx

from paddock.config import Settings, get_settings
from paddock.fetchers.rate_limit import RateLimiter, get_shared_rate_limiter


class DataFetcher(ABC):
    """Base class for external feed fetchers.

    Owns the HTTP client and the rate limiter. Pass ``transport`` to route
    requests somewhere other than the network.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        rate_limiter: RateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.feed_base_url.rstrip("/")
        self.rate_limiter = rate_limiter or get_shared_rate_limiter()
        self.client = httpx.AsyncClient(
            headers={
                "User-Agent": self.settings.user_agent,
                "Accept": "application/json",
            },
            timeout=self.settings.feed_timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @abstractmethod
    async def fetch_schedule(self, race_date: date) -> dict[str, Any]:
        """Fetch the day's schedule: meetings with their races."""
        pass

    @abstractmethod
    async def fetch_meeting_results(self, race_date: date, meeting_number: int) -> dict[str, Any]:
        """Fetch final results for one meeting."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check that the feed is reachable."""
        pass
