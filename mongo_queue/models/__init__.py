from mongo_queue.models.base import MongoBaseModel, PyObjectId
from mongo_queue.models.record import (
    QueueRecord,
    QueueStats,
    RecordStatus,
    PENDING_STATUSES,
)

__all__ = [
    "MongoBaseModel",
    "PyObjectId",
    "QueueRecord",
    "QueueStats",
    "RecordStatus",
    "PENDING_STATUSES",
]
