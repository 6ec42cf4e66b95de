"""
mongo-queue
Use MongoDB as a persistent retry queue.
"""
from mongo_queue.message_queue import (
    Fail,
    FailRecord,
    QueueOptions,
    QueueWorker,
    Retryable,
    RetryQueue,
    Skip,
    SkipRecord,
    Success,
)
from mongo_queue.models import QueueRecord, QueueStats, RecordStatus

__all__ = [
    "RetryQueue",
    "QueueOptions",
    "QueueWorker",
    "QueueRecord",
    "QueueStats",
    "RecordStatus",
    "Success",
    "Skip",
    "Fail",
    "Retryable",
    "SkipRecord",
    "FailRecord",
]
