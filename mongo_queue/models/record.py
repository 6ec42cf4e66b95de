import datetime as dt
import uuid
from enum import StrEnum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field
from mongo_queue.models.base import MongoBaseModel


class RecordStatus(StrEnum):
    RECEIVED = "received"
    PROCESSED = "processed"
    FAILED = "failed"
    SKIPPED = "skipped"
    NOTIFIED = "notified"


# Statuses a batch may select from
PENDING_STATUSES = (RecordStatus.RECEIVED, RecordStatus.FAILED, RecordStatus.SKIPPED)


class QueueRecord(MongoBaseModel):
    """
    A single unit of queued work.
    Everything the engine knows about a record's progress lives on the document,
    so any process can pick up where another left off.
    """
    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    status: RecordStatus = RecordStatus.RECEIVED
    received_date: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.UTC))
    available_at: Optional[dt.datetime] = None
    processed_date: Optional[dt.datetime] = None

    # Only present while failed records await a retry
    retry_count: Optional[int] = Field(None, ge=0)
    failure_reason: Optional[str] = None
    immediate_failure: Optional[bool] = None

    data: Any = None


class QueueStats(BaseModel):
    """
    Record counts per status for one collection.

    Attributes:
        received: Records never attempted
        processed: Successfully processed records awaiting cleanup
        failed: Records waiting for a retry
        skipped: Records deferred by the processing function
        notified: Records delivered to the failure handler
        total: All records in the collection
    """
    received: int = 0
    processed: int = 0
    failed: int = 0
    skipped: int = 0
    notified: int = 0
    total: int = 0
