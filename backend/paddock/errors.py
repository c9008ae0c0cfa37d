"""
ETL error taxonomy.

Every failure that crosses a module boundary in the pipeline is an
``ETLError`` with one of a closed set of kinds. The kind alone decides
whether a retry can help; ``decide`` turns an error plus the job's attempt
counter into the action the job system should take.
"""

import enum
import random
from dataclasses import dataclass
from typing import Any

import httpx
from sqlalchemy.exc import SQLAlchemyError

MAX_RETRY_DELAY_MS = 300_000
MAX_JITTER_MS = 1000
DEFAULT_RATE_LIMIT_RETRY_AFTER = 60
DEFAULT_DATABASE_RETRY_AFTER = 30
DEFAULT_NETWORK_RETRY_AFTER = 60
# Base used by the job system when an error carries no hint of its own.
DEFAULT_JOB_BACKOFF = 15


def backoff_delay(retry_after: int, attempt: int, rng: random.Random | None = None) -> int:
    """min(retry_after * 1000 * 2**attempt + jitter, MAX_RETRY_DELAY_MS) in ms."""
    jitter = (rng or random).uniform(0, MAX_JITTER_MS)
    # Cap the exponent so huge attempt counts stay cheap; the result is capped anyway.
    exponent = min(max(attempt, 0), 64)
    return int(min(retry_after * 1000 * (2 ** exponent) + jitter, MAX_RETRY_DELAY_MS))


class ErrorKind(str, enum.Enum):
    """Failure kinds."""

    API = "api_error"
    PARSE = "parse_error"
    VALIDATION = "validation_error"
    DATABASE = "database_error"
    RATE_LIMIT = "rate_limit_error"
    NETWORK = "network_error"


RETRYABLE_KINDS = frozenset({
    ErrorKind.API,
    ErrorKind.NETWORK,
    ErrorKind.DATABASE,
    ErrorKind.RATE_LIMIT,
})


class ETLError(Exception):
    """Structured pipeline error with kind, context and retry hint."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        context: dict[str, Any] | None = None,
        retry_after: int | None = None,
    ):
        self.kind = ErrorKind(kind)
        self.message = message
        self.context = dict(context or {})
        self.retry_after = retry_after
        super().__init__(message)

    # Factories

    @classmethod
    def api_error(
        cls, message: str, context: dict[str, Any] | None = None, retry_after: int | None = None
    ) -> "ETLError":
        return cls(ErrorKind.API, message, context, retry_after)

    @classmethod
    def parse_error(cls, message: str, context: dict[str, Any] | None = None) -> "ETLError":
        return cls(ErrorKind.PARSE, message, context)

    @classmethod
    def validation_error(cls, message: str, context: dict[str, Any] | None = None) -> "ETLError":
        return cls(ErrorKind.VALIDATION, message, context)

    @classmethod
    def database_error(cls, message: str, context: dict[str, Any] | None = None) -> "ETLError":
        return cls(ErrorKind.DATABASE, message, context, DEFAULT_DATABASE_RETRY_AFTER)

    @classmethod
    def rate_limit_error(
        cls,
        message: str,
        retry_after: int = DEFAULT_RATE_LIMIT_RETRY_AFTER,
        context: dict[str, Any] | None = None,
    ) -> "ETLError":
        return cls(ErrorKind.RATE_LIMIT, message, context, retry_after)

    @classmethod
    def network_error(cls, message: str, context: dict[str, Any] | None = None) -> "ETLError":
        return cls(ErrorKind.NETWORK, message, context, DEFAULT_NETWORK_RETRY_AFTER)

    # Policy

    @property
    def retryable(self) -> bool:
        """Whether running the same work again can succeed."""
        return self.kind in RETRYABLE_KINDS

    def retry_delay(self, attempt: int, rng: random.Random | None = None) -> int:
        """
        Exponential backoff in milliseconds for the given attempt.

        Returns 0 when the error carries no retry hint. The result never
        exceeds MAX_RETRY_DELAY_MS.
        """
        if self.retry_after is None:
            return 0
        return backoff_delay(self.retry_after, attempt, rng)

    def format_for_logging(self) -> dict[str, Any]:
        """Flatten the error into logging extras."""
        return {
            "error_type": self.kind.value,
            "error_message": self.message,
            "error_context": self.context,
            "retry_after": self.retry_after,
            "retryable": self.retryable,
        }

    def __str__(self) -> str:
        base_message = f"[{self.kind.value}] {self.message}"
        if not self.context:
            return base_message
        return f"{base_message} | Context: {self.context!r}"

    def __repr__(self) -> str:
        return f"<ETLError(kind={self.kind.value}, message={self.message!r})>"


def classify_exception(exc: BaseException, context: dict[str, Any] | None = None) -> ETLError:
    """Map an arbitrary exception onto the taxonomy."""
    if isinstance(exc, ETLError):
        return exc

    ctx = {"error": repr(exc), **(context or {})}
    if isinstance(exc, SQLAlchemyError):
        return ETLError.database_error("Database operation failed", ctx)
    if isinstance(exc, httpx.TransportError):
        return ETLError.network_error("Network failure talking to feed", ctx)
    if isinstance(exc, httpx.HTTPStatusError):
        return ETLError.api_error("Feed returned an error status", ctx)
    if isinstance(exc, (ValueError, KeyError, TypeError)):
        return ETLError.parse_error("Failed to parse feed data", ctx)
    return ETLError.api_error("Unexpected failure", ctx)


class JobAction(str, enum.Enum):
    """What the job system should do with a failed unit of work."""

    RETRY = "retry"
    SNOOZE = "snooze"
    DISCARD = "discard"


@dataclass(frozen=True)
class Decision:
    """Outcome of ``decide``."""

    action: JobAction
    delay_ms: int = 0


def decide(
    error: ETLError,
    attempt: int,
    max_attempts: int,
    rng: random.Random | None = None,
) -> Decision:
    """
    Map a classified error onto a job action.

    Non-retryable kinds are discarded straight away. Rate limits are snoozed
    for the server's hint without consuming an attempt. Everything else is
    retried with backoff until ``max_attempts`` is reached.
    """
    if not error.retryable:
        return Decision(JobAction.DISCARD)

    if error.kind is ErrorKind.RATE_LIMIT:
        retry_after = error.retry_after or DEFAULT_RATE_LIMIT_RETRY_AFTER
        return Decision(JobAction.SNOOZE, retry_after * 1000)

    if attempt >= max_attempts:
        return Decision(JobAction.DISCARD)

    retry_after = error.retry_after if error.retry_after is not None else DEFAULT_JOB_BACKOFF
    return Decision(JobAction.RETRY, backoff_delay(retry_after, attempt, rng))
