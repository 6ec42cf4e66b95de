"""
Queue Record Repository
The store primitives the queue engine issues: insert, batch find,
per-record transitions and bulk deletion.
"""
from typing import Any, Dict, List, Optional
from motor.motor_asyncio import AsyncIOMotorCollection
import datetime as dt

from .base import BaseRepository
from ..models.record import QueueRecord, RecordStatus, PENDING_STATUSES
from ..utils.observability import logger


class QueueRecordRepository(BaseRepository[QueueRecord]):
    """
    Repository for QueueRecord persistence.
    Each transition is a single update_one, so it is atomic per record.
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        """Initialize the repository over one queue collection."""
        super().__init__(collection, QueueRecord)

    async def find_eligible(
        self,
        now: dt.datetime,
        limit: int,
        condition: Optional[Dict[str, Any]] = None
    ) -> List[QueueRecord]:
        """
        Retrieve up to `limit` records that may be processed now.

        Args:
            now: Records whose available_at is after this are excluded
            limit: Batch size
            condition: Extra MongoDB filter intersected with the base query

        Returns:
            Eligible records in the store's natural order
        """
        query: Dict[str, Any] = {
            "status": {"$in": [status.value for status in PENDING_STATUSES]},
            "available_at": {"$lte": now},
        }
        if condition:
            query = {"$and": [query, condition]}

        return await self.find_many(query, limit=limit)

    async def mark_processed(self, record: QueueRecord, now: dt.datetime) -> None:
        await self.update_by_key(record.storage_key, {
            "$set": {
                "status": RecordStatus.PROCESSED.value,
                "processed_date": now,
            },
            "$unset": {
                "failure_reason": "",
                "retry_count": "",
                "available_at": "",
            },
        })

    async def mark_failed(
        self,
        record: QueueRecord,
        now: dt.datetime,
        reason: str,
        available_at: dt.datetime
    ) -> None:
        """Record a retryable failure and consume one unit of retry budget."""
        await self.update_by_key(record.storage_key, {
            "$set": {
                "status": RecordStatus.FAILED.value,
                "processed_date": now,
                "failure_reason": reason,
                "available_at": available_at,
            },
            "$inc": {"retry_count": 1},
        })

    async def mark_skipped(
        self,
        record: QueueRecord,
        now: dt.datetime,
        available_at: dt.datetime
    ) -> None:
        await self.update_by_key(record.storage_key, {
            "$set": {
                "status": RecordStatus.SKIPPED.value,
                "processed_date": now,
                "available_at": available_at,
            },
        })

    async def mark_immediate_failure(self, record: QueueRecord, reason: Optional[str]) -> None:
        await self.update_by_key(record.storage_key, {
            "$set": {
                "immediate_failure": True,
                "failure_reason": reason,
            },
        })

    async def mark_notified(self, record: QueueRecord, now: dt.datetime) -> None:
        await self.update_by_key(record.storage_key, {
            "$set": {
                "status": RecordStatus.NOTIFIED.value,
                "processed_date": now,
            },
        })

    async def delete_processed_before(self, cutoff: dt.datetime) -> int:
        """
        Delete every processed record whose processed_date is at or before cutoff.

        Returns:
            Number of deleted records
        """
        result = await self.collection.delete_many({
            "status": RecordStatus.PROCESSED.value,
            "processed_date": {"$lte": cutoff},
        })

        logger.debug(
            f"Deleted processed records from {self.collection_name}",
            extra={"count": result.deleted_count, "cutoff": cutoff.isoformat()}
        )

        return result.deleted_count

    async def count_by_status(self) -> Dict[str, int]:
        """
        Count records per status with a single aggregation.

        Returns:
            Mapping of status value to count (statuses with no records omitted)
        """
        pipeline = [{"$group": {"_id": "$status", "count": {"$sum": 1}}}]
        cursor = self.collection.aggregate(pipeline)
        rows = await cursor.to_list(length=None)

        return {row["_id"]: row["count"] for row in rows}
