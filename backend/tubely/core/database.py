"""
Tubely MongoDB Database Client Module

Async MongoDB connection management for the video metadata store, built on
Motor. It provides:
- Connection pooling with configurable pool size
- A ping check when the connection opens
- An accessor for the videos collection
- Index creation for owner lookups
- Startup/shutdown lifecycle management for FastAPI integration
"""

import logging

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo.errors import PyMongoError

from tubely.config import Settings, get_settings


logger = logging.getLogger(__name__)

VIDEOS_COLLECTION = "videos"


class DatabaseClient:
    """
    Async MongoDB client wrapper with connection pooling and lifecycle management.

    Attributes:
        _settings: Settings instance containing MongoDB configuration
        _client: Motor async MongoDB client instance
        _database: Motor async database instance

    Example usage:
        ```python
        db_client = DatabaseClient(get_settings())
        await db_client.connect()
        videos = db_client.get_videos_collection()
        await db_client.close()
        ```
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._db_name = settings.mongodb_db_name
        self._client: AsyncIOMotorClient | None = None
        self._database: AsyncIOMotorDatabase | None = None

    async def connect(self) -> bool:
        """
        Open the connection pool and verify it with a ping.

        Returns:
            bool: True if the server answered, False otherwise. Errors are
            logged rather than raised.
        """
        self._client = AsyncIOMotorClient(
            self._settings.mongodb_uri,
            minPoolSize=self._settings.mongodb_min_pool_size,
            maxPoolSize=self._settings.mongodb_max_pool_size,
            serverSelectionTimeoutMS=5000,
            uuidRepresentation="standard",
        )
        self._database = self._client[self._db_name]

        try:
            await self._client.admin.command("ping")
        except PyMongoError:
            logger.exception(f"Failed to connect to MongoDB database: {self._db_name}")
            return False

        logger.info(
            f"Connected to MongoDB database: {self._db_name} with pool size "
            f"{self._settings.mongodb_min_pool_size}-{self._settings.mongodb_max_pool_size}"
        )
        return True

    async def close(self) -> None:
        """Close the client. Safe to call when not connected."""
        if self._client is None:
            logger.warning("MongoDB close called but no active connection exists")
            return

        self._client.close()
        self._client = None
        self._database = None
        logger.info(f"MongoDB connection closed for database: {self._db_name}")

    def get_database(self) -> AsyncIOMotorDatabase:
        """
        Raises:
            RuntimeError: If not connected to MongoDB.
        """
        if self._database is None:
            raise RuntimeError(
                "MongoDB database not available. Call connect() first or check connection status."
            )
        return self._database

    def get_videos_collection(self) -> AsyncIOMotorCollection:
        """
        Get the videos collection holding video metadata records.

        Raises:
            RuntimeError: If not connected to MongoDB.
        """
        return self.get_database()[VIDEOS_COLLECTION]

    async def create_indexes(self) -> None:
        """Create the owner and owner-by-date indexes on the videos collection."""
        videos = self.get_videos_collection()
        await videos.create_index("user_id")
        await videos.create_index([("user_id", 1), ("created_at", -1)])
        logger.info(f"Created indexes on {VIDEOS_COLLECTION} collection")


class _DatabaseClientContainer:
    """Container for the database client singleton."""

    client: DatabaseClient | None = None


_container = _DatabaseClientContainer()


async def init_db(settings: Settings | None = None) -> DatabaseClient:
    """
    Initialize the global database client during application startup.

    Raises:
        RuntimeError: If MongoDB cannot be reached.
    """
    if _container.client is not None:
        logger.warning("Database client already initialized, returning existing instance")
        return _container.client

    client = DatabaseClient(settings or get_settings())
    if not await client.connect():
        await client.close()
        raise RuntimeError(
            "Failed to establish MongoDB connection. "
            "Check mongodb_uri configuration and server availability."
        )

    await client.create_indexes()
    _container.client = client
    logger.info("MongoDB database client initialization complete")
    return client


async def close_db() -> None:
    """Close the global database client during application shutdown."""
    if _container.client is None:
        logger.warning("close_db called but no database client exists")
        return

    await _container.client.close()
    _container.client = None


def get_db_client() -> DatabaseClient:
    """
    Get the global database client.

    Raises:
        RuntimeError: If init_db() has not run.
    """
    if _container.client is None:
        raise RuntimeError(
            "Database client not initialized. Call init_db() first during application startup."
        )
    return _container.client
