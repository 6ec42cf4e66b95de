"""
Processing Outcomes

What a processing function can tell the engine about a record.

A processing function may return one of the outcome variants, or raise
SkipRecord / FailRecord from anywhere below it. Returning anything else
(including None) means success; raising anything else is a retryable failure.

    async def on_process(record: QueueRecord):
        if not upstream.ready():
            return Skip(delay_ms=30_000)
        if record.data.get("version") != 2:
            raise FailRecord("unsupported payload version")
        await upstream.send(record.data)
"""

import math
import traceback
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Success:
    """The record was handled and will not be seen again."""


@dataclass(frozen=True)
class Skip:
    """
    Defer the record without consuming retry budget.

    Raises:
        TypeError: If delay_ms is not a number
        ValueError: If delay_ms is NaN or infinite
    """
    delay_ms: float = 0

    def __post_init__(self):
        if isinstance(self.delay_ms, bool) or not isinstance(self.delay_ms, (int, float)):
            raise TypeError(f"delay_ms must be a number, got {self.delay_ms!r}")
        if not math.isfinite(self.delay_ms):
            raise ValueError(f"delay_ms must be finite, got {self.delay_ms!r}")


@dataclass(frozen=True)
class Fail:
    """Give up on the record now and hand it to the failure handler."""
    reason: Any


@dataclass(frozen=True)
class Retryable:
    """The attempt failed; retry after backoff until the budget runs out."""
    error: Any


Outcome = Union[Success, Skip, Fail, Retryable]

_OUTCOME_TYPES = (Success, Skip, Fail, Retryable)


class SkipRecord(Exception):
    """Raise to defer the current record, optionally for delay_ms milliseconds."""

    def __init__(self, delay_ms: float = 0):
        self.outcome = Skip(delay_ms=delay_ms)
        super().__init__(f"Record skipped for {delay_ms}ms")


class FailRecord(Exception):
    """Raise to fail the current record immediately, bypassing retries."""

    def __init__(self, reason: Any):
        super().__init__(reason)
        self.outcome = Fail(reason=reason)


def classify_error(error: BaseException) -> Outcome:
    """
    Map an exception raised by a processing function to an outcome.

    Only the two signal types are recognised; everything else is retryable.
    """
    if isinstance(error, (SkipRecord, FailRecord)):
        return error.outcome
    return Retryable(error=error)


def resolve_outcome(result: Any) -> Outcome:
    """Map a processing function's return value to an outcome."""
    if isinstance(result, _OUTCOME_TYPES):
        return result
    return Success()


def describe_error(error: Any) -> str:
    """
    Text stored as a record's failure_reason.

    Exceptions render as their full traceback; any other value as str().
    """
    if isinstance(error, BaseException):
        return "".join(traceback.format_exception(error)).rstrip()
    return str(error)
