"""
Queue Options

Validated, immutable configuration consumed once when a RetryQueue is built.
"""

from typing import Any, Callable, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

from mongo_queue.config import get_settings
from mongo_queue.models.record import QueueRecord


class QueueOptions(BaseModel):
    """
    Options for one queue collection.

    Attributes:
        collection_name: MongoDB collection holding the records
        batch_size: Maximum records handled per process_next_batch() call
        retry_limit: Retryable failures allowed before notification (negative for unlimited)
        max_record_age_ms: Age after which cleanup() deletes processed records
        on_process: Called once per eligible record, sync or async
        on_failure: Called once per record that will not be processed further, sync or async
        backoff_ms: Base unit of the retry delay
        backoff_coefficient: Exponent of the retry delay
        condition: Called once per batch; returns a MongoDB filter that narrows selection
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    collection_name: str = Field(..., min_length=1)
    batch_size: int = Field(..., gt=0)
    retry_limit: int
    max_record_age_ms: float = Field(..., ge=0)
    on_process: Callable[[QueueRecord], Any]
    on_failure: Callable[[QueueRecord], Any]
    backoff_ms: float = Field(0, ge=0)
    backoff_coefficient: float = Field(1.5, ge=0)
    condition: Optional[Callable[[], Dict[str, Any]]] = None

    @classmethod
    def from_settings(
        cls,
        on_process: Callable[[QueueRecord], Any],
        on_failure: Callable[[QueueRecord], Any],
        **overrides: Any
    ) -> "QueueOptions":
        """
        Build options from the QUEUE_* settings, with keyword overrides.

        Example:
            >>> options = QueueOptions.from_settings(
            ...     on_process=upload,
            ...     on_failure=alert,
            ...     collection_name="uploads",
            ... )
        """
        settings = get_settings()
        values: Dict[str, Any] = {
            "collection_name": settings.queue_collection_name,
            "batch_size": settings.queue_batch_size,
            "retry_limit": settings.queue_retry_limit,
            "max_record_age_ms": settings.queue_max_record_age_ms,
            "backoff_ms": settings.queue_backoff_ms,
            "backoff_coefficient": settings.queue_backoff_coefficient,
        }
        values.update(overrides)
        return cls(on_process=on_process, on_failure=on_failure, **values)
