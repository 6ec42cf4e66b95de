"""
Generic Repository Base Class
Shared plumbing for async operations on a single MongoDB collection.
"""
from typing import Generic, TypeVar, Type, Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorCollection
from bson import ObjectId

from ..models.base import MongoBaseModel
from ..utils.observability import logger

# Generic type for domain models
T = TypeVar("T", bound=MongoBaseModel)


class BaseRepository(Generic[T]):
    """
    Generic async repository for one MongoDB collection.

    Usage:
        class QueueRecordRepository(BaseRepository[QueueRecord]):
            def __init__(self, collection: AsyncIOMotorCollection):
                super().__init__(collection, QueueRecord)
    """

    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        model_class: Type[T]
    ):
        """
        Initialize repository with a collection handle and model type.

        Args:
            collection: Motor collection, usually from db_manager.get_collection()
            model_class: Pydantic model class for type safety
        """
        self.collection = collection
        self.model_class = model_class
        self.collection_name = collection.name

    async def create(self, document: T) -> T:
        """
        Insert a new document into the collection.

        Args:
            document: Domain model instance to persist

        Returns:
            The created document with `storage_key` populated

        Raises:
            pymongo.errors.DuplicateKeyError: If unique constraint violated
        """
        doc_dict = document.model_dump(by_alias=True, exclude={"storage_key"})
        # Unset fields stay absent from the document; nested values are stored as given
        doc_dict = {k: v for k, v in doc_dict.items() if v is not None}

        result = await self.collection.insert_one(doc_dict)

        logger.debug(
            f"Created document in {self.collection_name}",
            extra={"document_id": str(result.inserted_id)}
        )

        document.storage_key = str(result.inserted_id)
        return document

    async def find_by_key(self, storage_key: str) -> Optional[T]:
        """
        Retrieve a document by its MongoDB ObjectId.

        Args:
            storage_key: String representation of ObjectId

        Returns:
            Domain model instance or None if not found
        """
        doc = await self.collection.find_one({"_id": ObjectId(storage_key)})

        if doc is None:
            return None

        return self._to_model(doc)

    async def find_many(
        self,
        filter_dict: Dict[str, Any],
        limit: int = 100,
    ) -> List[T]:
        """
        Retrieve documents matching the filter, in the store's natural order.

        Args:
            filter_dict: MongoDB query filter
            limit: Maximum number of documents to return

        Returns:
            List of domain model instances
        """
        cursor = self.collection.find(filter_dict).limit(limit)
        docs = await cursor.to_list(length=limit)

        return [self._to_model(doc) for doc in docs]

    async def update_by_key(self, storage_key: str, update: Dict[str, Any]) -> None:
        """
        Apply an update document ($set / $unset / $inc) to one document.

        Raises:
            RuntimeError: If the document no longer exists
        """
        result = await self.collection.update_one(
            {"_id": ObjectId(storage_key)},
            update
        )

        if result.matched_count == 0:
            raise RuntimeError(f"Document with key {storage_key} not found")

    def _to_model(self, doc: Dict[str, Any]) -> T:
        """
        Convert MongoDB document to Pydantic model instance.

        Args:
            doc: Raw MongoDB document dict

        Returns:
            Domain model instance
        """
        # Convert ObjectId to string for Pydantic validation
        if "_id" in doc:
            doc["_id"] = str(doc["_id"])

        return self.model_class.model_validate(doc)
