"""Tests for the TAB feed client."""

import time
from datetime import date

import httpx
import pytest

from paddock.errors import DEFAULT_RATE_LIMIT_RETRY_AFTER, ErrorKind, ETLError
from paddock.fetchers.rate_limit import RateLimiter
from paddock.fetchers.tab import TabClient, parse_retry_after

from tests.fixtures.factories import make_meeting, make_schedule

RACE_DATE = date(2025, 9, 6)


def make_client(settings, rate_limiter, handler) -> TabClient:
    return TabClient(
        settings,
        rate_limiter=rate_limiter,
        transport=httpx.MockTransport(handler),
        retry_wait=0,
    )


class CountingHandler:
    """MockTransport handler returning canned responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses[min(len(self.requests), len(self.responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response


class TestParseRetryAfter:
    """Tests for parse_retry_after."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("120", 120),
            (" 5 ", 5),
            (None, DEFAULT_RATE_LIMIT_RETRY_AFTER),
            ("", DEFAULT_RATE_LIMIT_RETRY_AFTER),
            ("0", DEFAULT_RATE_LIMIT_RETRY_AFTER),
            ("soon", DEFAULT_RATE_LIMIT_RETRY_AFTER),
            ("Wed, 21 Oct 2015 07:28:00 GMT", DEFAULT_RATE_LIMIT_RETRY_AFTER),
        ],
    )
    def test_parse(self, value, expected):
        assert parse_retry_after(value) == expected


class TestTabClientUrls:
    """Tests for endpoint URLs."""

    def test_urls(self, settings, rate_limiter):
        client = make_client(settings, rate_limiter, CountingHandler(httpx.Response(200, json={})))

        assert client.schedule_url(RACE_DATE) == "https://feed.test/schedule/2025-09-06"
        assert client.results_url(RACE_DATE, 3) == "https://feed.test/results/2025-09-06/3"

    def test_trailing_slash_stripped(self, settings, rate_limiter):
        settings.feed_base_url = "https://feed.test/"
        client = make_client(settings, rate_limiter, CountingHandler(httpx.Response(200, json={})))

        assert client.schedule_url(RACE_DATE) == "https://feed.test/schedule/2025-09-06"


class TestTabClientFetch:
    """Tests for response handling."""

    @pytest.mark.asyncio
    async def test_fetch_schedule(self, settings, rate_limiter):
        schedule = make_schedule(make_meeting())
        handler = CountingHandler(httpx.Response(200, json=schedule))

        async with make_client(settings, rate_limiter, handler) as client:
            payload = await client.fetch_schedule(RACE_DATE)

        assert payload == schedule
        request = handler.requests[0]
        assert str(request.url) == "https://feed.test/schedule/2025-09-06"
        assert request.headers["Accept"] == "application/json"
        assert request.headers["User-Agent"] == settings.user_agent

    @pytest.mark.asyncio
    async def test_fetch_meeting_results(self, settings, rate_limiter):
        handler = CountingHandler(httpx.Response(200, json={"meetings": []}))

        async with make_client(settings, rate_limiter, handler) as client:
            payload = await client.fetch_meeting_results(RACE_DATE, 2)

        assert payload == {"meetings": []}
        assert handler.requests[0].url.path == "/results/2025-09-06/2"

    @pytest.mark.asyncio
    async def test_not_found_is_api_error(self, settings, rate_limiter):
        handler = CountingHandler(httpx.Response(404))

        async with make_client(settings, rate_limiter, handler) as client:
            with pytest.raises(ETLError) as exc_info:
                await client.fetch_meeting_results(RACE_DATE, 9)

        assert exc_info.value.kind is ErrorKind.API
        assert exc_info.value.context["status"] == 404
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_rate_limited_with_retry_after(self, settings, rate_limiter):
        handler = CountingHandler(httpx.Response(429, headers={"Retry-After": "30"}))

        async with make_client(settings, rate_limiter, handler) as client:
            with pytest.raises(ETLError) as exc_info:
                await client.fetch_schedule(RACE_DATE)

        assert exc_info.value.kind is ErrorKind.RATE_LIMIT
        assert exc_info.value.retry_after == 30
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_rate_limited_without_retry_after(self, settings, rate_limiter):
        handler = CountingHandler(httpx.Response(429))

        async with make_client(settings, rate_limiter, handler) as client:
            with pytest.raises(ETLError) as exc_info:
                await client.fetch_schedule(RACE_DATE)

        assert exc_info.value.retry_after == DEFAULT_RATE_LIMIT_RETRY_AFTER

    @pytest.mark.asyncio
    async def test_server_error_retried_then_succeeds(self, settings, rate_limiter):
        handler = CountingHandler(
            httpx.Response(503),
            httpx.Response(200, json={"meetings": []}),
        )

        async with make_client(settings, rate_limiter, handler) as client:
            payload = await client.fetch_schedule(RACE_DATE)

        assert payload == {"meetings": []}
        assert len(handler.requests) == 2

    @pytest.mark.asyncio
    async def test_server_error_exhausts_retries(self, settings, rate_limiter):
        """feed_retries=2 means three attempts before giving up."""
        handler = CountingHandler(httpx.Response(500))

        async with make_client(settings, rate_limiter, handler) as client:
            with pytest.raises(ETLError) as exc_info:
                await client.fetch_schedule(RACE_DATE)

        assert exc_info.value.kind is ErrorKind.API
        assert exc_info.value.context["status"] == 500
        assert len(handler.requests) == 3

    @pytest.mark.asyncio
    async def test_retries_are_rate_limited(self, settings):
        """Each retried request waits for its own token from the shared limiter."""
        limiter = RateLimiter(rate_per_second=20, capacity=1, max_in_flight=1)
        sent_at: list[float] = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent_at.append(time.monotonic())
            return httpx.Response(503)

        async with make_client(settings, limiter, handler) as client:
            with pytest.raises(ETLError):
                await client.fetch_schedule(RACE_DATE)

        assert len(sent_at) == 3
        gaps = [later - earlier for earlier, later in zip(sent_at, sent_at[1:])]
        assert all(gap >= 0.04 for gap in gaps)

    @pytest.mark.asyncio
    async def test_connection_error_is_network_error(self, settings, rate_limiter):
        handler = CountingHandler(httpx.ConnectError("refused"))

        async with make_client(settings, rate_limiter, handler) as client:
            with pytest.raises(ETLError) as exc_info:
                await client.fetch_schedule(RACE_DATE)

        assert exc_info.value.kind is ErrorKind.NETWORK
        assert exc_info.value.retryable
        assert len(handler.requests) == 3

    @pytest.mark.asyncio
    async def test_timeout_is_network_error(self, settings, rate_limiter):
        handler = CountingHandler(httpx.ReadTimeout("slow"))

        async with make_client(settings, rate_limiter, handler) as client:
            with pytest.raises(ETLError) as exc_info:
                await client.fetch_schedule(RACE_DATE)

        assert exc_info.value.kind is ErrorKind.NETWORK

    @pytest.mark.asyncio
    async def test_connection_recovers(self, settings, rate_limiter):
        handler = CountingHandler(
            httpx.ConnectError("refused"),
            httpx.Response(200, json={"meetings": []}),
        )

        async with make_client(settings, rate_limiter, handler) as client:
            assert await client.fetch_schedule(RACE_DATE) == {"meetings": []}

    @pytest.mark.asyncio
    async def test_invalid_json_is_parse_error(self, settings, rate_limiter):
        handler = CountingHandler(httpx.Response(200, content=b"<html>maintenance</html>"))

        async with make_client(settings, rate_limiter, handler) as client:
            with pytest.raises(ETLError) as exc_info:
                await client.fetch_schedule(RACE_DATE)

        assert exc_info.value.kind is ErrorKind.PARSE
        assert not exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_non_object_json_is_parse_error(self, settings, rate_limiter):
        handler = CountingHandler(httpx.Response(200, json=[1, 2, 3]))

        async with make_client(settings, rate_limiter, handler) as client:
            with pytest.raises(ETLError) as exc_info:
                await client.fetch_schedule(RACE_DATE)

        assert exc_info.value.kind is ErrorKind.PARSE

    @pytest.mark.asyncio
    async def test_health_check(self, settings, rate_limiter):
        handler = CountingHandler(httpx.Response(200, json={"meetings": []}))

        async with make_client(settings, rate_limiter, handler) as client:
            assert await client.health_check() is True

        assert handler.requests[0].url.path.startswith("/schedule/")
