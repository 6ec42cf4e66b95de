"""
Message Queue System

Durable retry queue on MongoDB with:
- Batch selection of eligible records
- Retry logic with exponential backoff
- Skip and immediate-fail outcomes
- Failure notification once a record is given up on
- Cleanup of old processed records
"""

from mongo_queue.message_queue.backoff import compute_backoff_ms
from mongo_queue.message_queue.engine import RetryQueue
from mongo_queue.message_queue.options import QueueOptions
from mongo_queue.message_queue.outcomes import (
    Fail,
    FailRecord,
    Outcome,
    Retryable,
    Skip,
    SkipRecord,
    Success,
    classify_error,
    describe_error,
    resolve_outcome,
)
from mongo_queue.message_queue.worker import QueueWorker

__all__ = [
    "RetryQueue",
    "QueueOptions",
    "QueueWorker",
    "Outcome",
    "Success",
    "Skip",
    "Fail",
    "Retryable",
    "SkipRecord",
    "FailRecord",
    "classify_error",
    "describe_error",
    "resolve_outcome",
    "compute_backoff_ms",
]
