"""
Scoped MongoDB client for the query catalogue.
"""

import logging
import re
from contextlib import asynccontextmanager
from typing import AsyncIterator

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

# Setup logger for this module
logger = logging.getLogger(__name__)

DEFAULT_SERVER_SELECTION_TIMEOUT_MS = 5000

_CREDENTIALS = re.compile(r"//[^@/]*@")


class InvalidConnectionError(ValueError):
    """Raised when the MongoDB URL or client options are rejected before connecting"""


def mask_url(mongodb_url: str) -> str:
    """Replace the credentials of a MongoDB URL with ***"""
    return _CREDENTIALS.sub("//***@", mongodb_url)


@asynccontextmanager
async def open_database(
        mongodb_url: str,
        database_name: str,
        server_selection_timeout_ms: int = DEFAULT_SERVER_SELECTION_TIMEOUT_MS
) -> AsyncIterator[AsyncIOMotorDatabase]:
    """
    Connect to MongoDB and yield the database handle, closing the client on exit

    A failed connectivity check is logged but not raised: the handle is still yielded and every
    query run through it will report a connection failure of its own.

    Args:
        mongodb_url: MongoDB connection URL
        database_name: Name of the database holding the catalogue collections
        server_selection_timeout_ms: How long the driver waits for a usable server

    Raises:
        InvalidConnectionError: If the driver rejects the URL or options, so no client exists
    """
    logger.info("Connecting to MongoDB database %s (url: %s)", database_name,
                mask_url(mongodb_url))

    # The driver parses the URL in the constructor
    try:
        mongodb_client = AsyncIOMotorClient(mongodb_url,
                                            serverSelectionTimeoutMS=server_selection_timeout_ms)
    except (PyMongoError, ValueError) as e:
        logger.error("Database connection error: %s", e)
        raise InvalidConnectionError(f"Invalid MongoDB connection settings: {e}") from e

    try:
        try:
            await mongodb_client.admin.command("ping")
            logger.info("Database connected")
        except PyMongoError as e:
            logger.error("Database connection error: %s", e)

        yield mongodb_client[database_name]
    finally:
        mongodb_client.close()
        logger.info("MongoDB connection closed")
