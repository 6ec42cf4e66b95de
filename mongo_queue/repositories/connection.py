"""
MongoDB Connection Management
Singleton Motor client with connection pooling and cached collection handles.
"""
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from typing import Dict, Optional
from ..config import settings
from ..utils.observability import logger


class DatabaseManager:
    """
    Singleton MongoDB client manager with async Motor.
    Handles connection lifecycle, pooling, and graceful shutdown.
    """

    _instance: Optional["DatabaseManager"] = None
    _client: Optional[AsyncIOMotorClient] = None
    _database: Optional[AsyncIOMotorDatabase] = None
    _collections: Dict[str, AsyncIOMotorCollection]

    def __new__(cls) -> "DatabaseManager":
        """Enforce singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._collections = {}
        return cls._instance

    async def connect(self) -> None:
        """
        Initialize MongoDB connection with configured pool settings.
        Idempotent - safe to call multiple times.
        """
        if self._client:
            try:
                await self._client.admin.command("ping")
                logger.debug("Reusing healthy MongoDB connection")
                return
            except Exception:
                logger.warning("Event loop closed or connection lost. Rebuilding client...")
                self._reset()

        logger.info(
            f"Connecting to MongoDB at {settings.mongodb_uri}",
            extra={
                "database": settings.mongodb_database,
                "max_pool_size": settings.mongodb_max_pool_size,
                "environment": settings.environment
            }
        )
        self._client = AsyncIOMotorClient(
            settings.mongodb_uri,
            maxPoolSize=settings.mongodb_max_pool_size,
            minPoolSize=settings.mongodb_min_pool_size,
            serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
            tz_aware=True,  # Dates come back comparable with dt.datetime.now(dt.UTC)
        )

        self._database = self._client[settings.mongodb_database]
        self._collections = {}

    async def disconnect(self) -> None:
        """
        Close MongoDB connection and cleanup resources.
        Idempotent - safe to call multiple times.
        """
        if self._client is None:
            logger.debug("MongoDB client already disconnected")
            return

        logger.info("Closing MongoDB connection")
        self._client.close()
        self._reset()
        logger.info("MongoDB connection closed")

    def _reset(self) -> None:
        self._client = None
        self._database = None
        self._collections = {}

    @property
    def database(self) -> AsyncIOMotorDatabase:
        """
        Get the database instance.
        Raises RuntimeError if not connected.
        """
        if self._database is None:
            raise RuntimeError(
                "Database not connected. Call await db_manager.connect() first."
            )
        return self._database

    @property
    def client(self) -> AsyncIOMotorClient:
        """
        Get the Motor client instance.
        Raises RuntimeError if not connected.
        """
        if self._client is None:
            raise RuntimeError(
                "Database client not connected. Call await db_manager.connect() first."
            )
        return self._client

    def get_collection(self, name: str) -> AsyncIOMotorCollection:
        """
        Get a handle to the named collection, cached for the connection's lifetime.
        Raises RuntimeError if not connected.
        """
        database = self.database
        collection = self._collections.get(name)
        if collection is None:
            collection = database[name]
            self._collections[name] = collection
        return collection

    async def create_indexes(self, collection_name: str) -> None:
        """
        Create the indexes a queue collection needs for batch selection and cleanup.
        Should be called during application startup.
        """
        collection = self.get_collection(collection_name)

        logger.info(f"Creating MongoDB indexes for {collection_name}")

        await collection.create_index("id", unique=True, name="idx_record_id_unique")
        # Batch selection: status IN (...) AND available_at <= now
        await collection.create_index(
            [("status", 1), ("available_at", 1)],
            name="idx_status_available"
        )
        # Cleanup: status == processed AND processed_date <= cutoff
        await collection.create_index(
            [("status", 1), ("processed_date", 1)],
            name="idx_status_processed"
        )

        logger.info("MongoDB indexes created successfully")


# Singleton instance
db_manager = DatabaseManager()
