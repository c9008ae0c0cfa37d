"""External data fetchers."""

from paddock.fetchers.base import DataFetcher
from paddock.fetchers.rate_limit import RateLimiter, get_shared_rate_limiter
from paddock.fetchers.tab import TabClient

__all__ = [
    "DataFetcher",
    "RateLimiter",
    "TabClient",
    "get_shared_rate_limiter",
]
