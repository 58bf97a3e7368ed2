"""
Database Infrastructure
=======================

Manages the MongoDB client lifecycle and collection access.

Uses PyMongo's asyncio client. The client is process-wide and created lazily
on first use, so the same code path works under uvicorn (lifespan) and under
serverless adapters where lifespan events are disabled.
"""

from typing import Optional

from pymongo import ASCENDING, AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

from src.config import settings
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

# Global client
_client: Optional[AsyncMongoClient] = None


def init_database(uri: Optional[str] = None) -> AsyncMongoClient:
    """
    Initialize the MongoDB client.

    Idempotent: returns the existing client when one is already open.
    No network I/O happens here; PyMongo connects on first operation.

    Returns:
        AsyncMongoClient: The process-wide client
    """
    global _client

    if _client is None:
        _client = AsyncMongoClient(
            uri or settings.mongodb_uri,
            serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
            tz_aware=True,
            appname=settings.app_name,
        )
        logger.info("MongoDB client created")
    return _client


def get_client() -> AsyncMongoClient:
    """Get the client, creating it on first use."""
    return _client if _client is not None else init_database()


def get_database() -> AsyncDatabase:
    """
    Get the application database.

    Uses the database named in the connection URI, falling back to
    ``settings.mongodb_database``.
    """
    return get_client().get_default_database(default=settings.mongodb_database)


def get_collection(name: str) -> AsyncCollection:
    """Get a collection of the application database."""
    return get_database()[name]


async def close_database() -> None:
    """
    Close the client and release its connection pool.

    Should be called during application shutdown.
    """
    global _client

    if _client is not None:
        await _client.close()
        _client = None
        logger.info("MongoDB client closed")


async def ping_database() -> bool:
    """Return True when the server answers a ping."""
    try:
        await get_client().admin.command("ping")
        return True
    except Exception as e:
        logger.warning("MongoDB ping failed", extra={"error": str(e)})
        return False


async def create_indexes() -> None:
    """
    Create the indexes the ticket collections rely on.

    - tickets.ticketId is unique
    - ticket_messages is read per ticket in timestamp order
    """
    db = get_database()
    await db[settings.tickets_collection].create_index(
        [("ticketId", ASCENDING)], unique=True, name="ticketId_unique"
    )
    await db[settings.ticket_messages_collection].create_index(
        [("ticketId", ASCENDING), ("timestamp", ASCENDING)], name="ticketId_timestamp"
    )
