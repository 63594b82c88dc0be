# folio_bot/database/mongo_db.py
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, OperationFailure
from pymongo.write_concern import WriteConcern

from folio_bot import config

db_logger = logging.getLogger(__name__)


class MongoDB:
    """
    Owns the Motor client for the process.
    Stores receive the database object returned by init_db().
    """
    _client: Optional[AsyncIOMotorClient] = None
    _db: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    async def connect(cls, uri: str, db_name: str) -> AsyncIOMotorDatabase:
        """
        Establishes the asynchronous connection to MongoDB.
        Raises ConnectionFailure or OperationFailure when the server is unreachable or rejects us.
        """
        if cls._client is not None and cls._db is not None:
            try:
                await cls._client.admin.command("ping")
                db_logger.debug("Existing MongoDB connection is healthy.")
                return cls._db
            except ConnectionFailure as e:
                db_logger.warning(f"Existing MongoDB connection appears unhealthy: {e}. Reconnecting.")
                await cls.close()

        db_logger.info("Attempting to connect to MongoDB...")
        try:
            # Every store call is bounded by these; a timeout surfaces as a PyMongoError
            cls._client = AsyncIOMotorClient(
                uri,
                serverSelectionTimeoutMS=config.MONGO_TIMEOUT_MS,
                connectTimeoutMS=config.MONGO_TIMEOUT_MS,
                socketTimeoutMS=config.MONGO_TIMEOUT_MS,
                tz_aware=True,
                uuidRepresentation="standard",
            )
            # Majority write concern is also what multi-document transactions need
            cls._db = cls._client.get_database(db_name, write_concern=WriteConcern(w="majority"))
            await cls._db.list_collection_names()
            db_logger.info(f"Successfully connected to MongoDB database: '{db_name}'")
            return cls._db
        except (ConnectionFailure, OperationFailure) as e:
            db_logger.critical(f"Failed to connect to MongoDB: {e}", exc_info=True)
            cls._client = None
            cls._db = None
            raise

    @classmethod
    async def close(cls) -> None:
        if cls._client:
            db_logger.info("Closing MongoDB connection...")
            # MotorClient.close() is synchronous
            cls._client.close()
            cls._client = None
            cls._db = None
            db_logger.info("MongoDB connection closed.")


async def ensure_indexes(db) -> None:
    """Secondary indexes. Every collection is keyed by its natural id in _id."""
    await db[config.MEDIA_COLLECTION].create_index([("created_at", DESCENDING)])
    await db[config.AUDIT_LOG_COLLECTION].create_index([("timestamp", DESCENDING)])
    await db[config.AUDIT_LOG_COLLECTION].create_index([("action", ASCENDING)])
    db_logger.info("Database indexes ensured.")


async def init_db(uri: str, db_name: str) -> AsyncIOMotorDatabase:
    db = await MongoDB.connect(uri, db_name)
    await ensure_indexes(db)
    return db
