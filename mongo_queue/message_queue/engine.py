"""
Retry Queue Engine

Durable at-least-once queue on a MongoDB collection.

Producers enqueue() payloads. A driver calls process_next_batch() on a
schedule; each eligible record is handed to on_process and its outcome
written back to the store:

    received/failed/skipped --success--> processed --cleanup()--> deleted
                            --skip-----> skipped (available again after delay)
                            --error----> failed  (available again after backoff)
                            --fail-----> notified (via on_failure)
    failed, budget used up  ----------> notified (via on_failure)

Records are handled one at a time. Two batch calls running at once may select
the same records; callers that need a single runner must serialize the calls.
"""

import datetime as dt
import inspect
from typing import Any, Callable, Optional
from motor.motor_asyncio import AsyncIOMotorCollection
from loguru import logger

from mongo_queue.message_queue.backoff import compute_backoff_ms
from mongo_queue.message_queue.options import QueueOptions
from mongo_queue.message_queue.outcomes import (
    Fail,
    Outcome,
    Retryable,
    Skip,
    classify_error,
    describe_error,
    resolve_outcome,
)
from mongo_queue.models.record import QueueRecord, QueueStats, RecordStatus
from mongo_queue.repositories.connection import db_manager
from mongo_queue.repositories.records import QueueRecordRepository
from mongo_queue.utils.observability import log_queue_event


def _utcnow() -> dt.datetime:
    # BSON dates hold milliseconds
    now = dt.datetime.now(dt.UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


async def _call(func: Callable[[QueueRecord], Any], record: QueueRecord) -> Any:
    result = func(record)
    if inspect.isawaitable(result):
        result = await result
    return result


class RetryQueue:
    """
    Queue engine bound to one collection.

    Attributes:
        options: Immutable queue configuration

    Usage:
        queue = RetryQueue(QueueOptions(
            collection_name="uploads",
            batch_size=20,
            retry_limit=5,
            max_record_age_ms=24 * 60 * 60 * 1000,
            on_process=upload,
            on_failure=alert,
            backoff_ms=1000,
        ))

        await queue.enqueue({"file": "a.csv"})
        await queue.process_next_batch()
        await queue.cleanup()
    """

    def __init__(
        self,
        options: QueueOptions,
        collection: Optional[AsyncIOMotorCollection] = None,
    ):
        """
        Initialize the engine.

        Args:
            options: Queue configuration
            collection: Collection to use; defaults to the named collection on db_manager,
                resolved on each operation so reconnects are picked up
        """
        self.options = options
        self._repository = QueueRecordRepository(collection) if collection is not None else None

    @property
    def repository(self) -> QueueRecordRepository:
        if self._repository is not None:
            return self._repository
        return QueueRecordRepository(db_manager.get_collection(self.options.collection_name))

    async def enqueue(self, payload: Any) -> QueueRecord:
        """
        Add a payload to the queue, available for processing immediately.

        Args:
            payload: Any BSON-serializable value

        Returns:
            The stored record, including its storage_key
        """
        now = _utcnow()
        record = QueueRecord(
            status=RecordStatus.RECEIVED,
            received_date=now,
            available_at=now,
            data=payload,
        )

        repository = self.repository
        created = await repository.create(record)

        log_queue_event(
            "received",
            record_id=created.id,
            level="DEBUG",
            collection=self.options.collection_name,
        )
        # A processor may already have moved it on; fall back to what was written
        stored = await repository.find_by_key(created.storage_key)
        return stored if stored is not None else created

    async def process_next_batch(self) -> None:
        """
        Process up to batch_size eligible records, one after another.

        Errors from on_process and on_failure are recorded on the record and
        never raised. Store errors propagate and abort the rest of the batch;
        records already handled keep their written state.
        """
        repository = self.repository
        condition = self.options.condition() if self.options.condition else None

        batch = await repository.find_eligible(
            _utcnow(),
            limit=self.options.batch_size,
            condition=condition,
        )

        if not batch:
            logger.debug(f"No eligible records in {self.options.collection_name}")
            return

        logger.info(
            f"Processing batch of {len(batch)} records from {self.options.collection_name}"
        )

        for record in batch:
            await self._process_record(repository, record)

    async def cleanup(self) -> int:
        """
        Delete processed records older than max_record_age_ms.

        Records in any other status are kept regardless of age.

        Returns:
            Number of deleted records
        """
        cutoff = _utcnow() - dt.timedelta(milliseconds=self.options.max_record_age_ms)
        deleted = await self.repository.delete_processed_before(cutoff)

        logger.info(
            f"Cleaned up {deleted} processed records from {self.options.collection_name}"
        )
        return deleted

    async def get_stats(self) -> QueueStats:
        """
        Get current record counts per status.

        Returns:
            Queue statistics
        """
        counts = await self.repository.count_by_status()
        per_status = {status.value: counts.get(status.value, 0) for status in RecordStatus}
        return QueueStats(**per_status, total=sum(counts.values()))

    def is_exhausted(self, record: QueueRecord) -> bool:
        """True once a record has used its whole retry budget. Never true for a negative limit."""
        retry_limit = self.options.retry_limit
        return (
            retry_limit >= 0
            and record.retry_count is not None
            and record.retry_count >= retry_limit
        )

    async def _process_record(self, repository: QueueRecordRepository, record: QueueRecord) -> None:
        # A flagged record got here because its last notification attempt failed
        if self.is_exhausted(record) or record.immediate_failure:
            await self._notify(repository, record)
            return

        outcome = await self._run(record)

        if isinstance(outcome, Skip):
            await self._skip(repository, record, outcome)
        elif isinstance(outcome, Fail):
            await self._fail_immediately(repository, record, outcome)
        elif isinstance(outcome, Retryable):
            await self._retry(repository, record, outcome)
        else:
            await repository.mark_processed(record, _utcnow())
            log_queue_event(
                "processed",
                record_id=record.id,
                collection=self.options.collection_name,
                retry_count=record.retry_count or 0,
            )

    async def _run(self, record: QueueRecord) -> Outcome:
        try:
            result = await _call(self.options.on_process, record)
        except Exception as e:
            return classify_error(e)
        return resolve_outcome(result)

    async def _skip(self, repository: QueueRecordRepository, record: QueueRecord, outcome: Skip) -> None:
        now = _utcnow()
        try:
            delay_ms = max(outcome.delay_ms, 0)
            available_at = now + dt.timedelta(milliseconds=delay_ms)
        except (TypeError, ValueError, OverflowError) as e:
            # An unusable delay counts as a failed attempt
            await self._retry(repository, record, Retryable(error=e))
            return

        await repository.mark_skipped(record, now, available_at=available_at)

        log_queue_event(
            "skipped",
            record_id=record.id,
            collection=self.options.collection_name,
            delay_ms=delay_ms,
        )

    async def _retry(self, repository: QueueRecordRepository, record: QueueRecord, outcome: Retryable) -> None:
        retry_count = (record.retry_count or 0) + 1
        delay_ms = compute_backoff_ms(
            retry_count,
            self.options.retry_limit,
            self.options.backoff_ms,
            self.options.backoff_coefficient,
        )
        now = _utcnow()

        await repository.mark_failed(
            record,
            now,
            reason=describe_error(outcome.error),
            available_at=now + dt.timedelta(milliseconds=delay_ms),
        )

        log_queue_event(
            "failed",
            record_id=record.id,
            level="WARNING",
            collection=self.options.collection_name,
            retry_count=retry_count,
            delay_ms=round(delay_ms, 2),
            error=str(outcome.error),
        )

    async def _fail_immediately(self, repository: QueueRecordRepository, record: QueueRecord, outcome: Fail) -> None:
        reason = describe_error(outcome.reason) if outcome.reason is not None else None
        await repository.mark_immediate_failure(record, reason)

        flagged = record.model_copy(update={"immediate_failure": True, "failure_reason": reason})
        await self._notify(repository, flagged)

    async def _notify(self, repository: QueueRecordRepository, record: QueueRecord) -> None:
        try:
            await _call(self.options.on_failure, record)
        except Exception:
            # Status is left as-is, so the next batch routes the record here again
            logger.exception(
                f"Failure handler raised for record {record.id} in {self.options.collection_name}"
            )
            return

        await repository.mark_notified(record, _utcnow())

        log_queue_event(
            "notified",
            record_id=record.id,
            level="WARNING",
            collection=self.options.collection_name,
            retry_count=record.retry_count or 0,
            immediate_failure=bool(record.immediate_failure),
        )
