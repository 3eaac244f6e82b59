"""
Message Store Backend - Document Store Client Management
========================================================

What:  Creates the shared MongoDB client, verifies it, and hands the messages
       collection to request handlers.
How:   One pymongo AsyncMongoClient is created in the application lifespan and
       stored on `app.state`; a FastAPI dependency reads the collection back
       for each request.
Who:   `connect_store`/`close_store` are called by main.lifespan;
       `get_collection` is injected into route handlers via Depends().

Concurrency:
    AsyncMongoClient owns its own connection pool and is safe to share between
    concurrent requests. It is the only shared resource in the process.
"""

import asyncio
import logging
from typing import Tuple

from fastapi import Request
from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from message_store.config import Settings
from message_store.exceptions import StoreError

logger = logging.getLogger(__name__)


async def connect_store(settings: Settings) -> Tuple[AsyncMongoClient, AsyncCollection]:
    """
    Connect to MongoDB, ping it, and return the client and messages collection.

    Raises:
        StoreError: The server did not answer the ping within the store timeout.
            Startup fails loudly rather than serving requests against a dead store.
    """
    client: AsyncMongoClient = AsyncMongoClient(
        settings.mongo_url,
        tz_aware=True,  # Timestamps come back as aware UTC datetimes
        serverSelectionTimeoutMS=settings.mongo_server_selection_timeout_ms,
    )
    try:
        await ping(client, settings.store_timeout_seconds)
    except StoreError:
        await client.close()
        raise

    collection = client[settings.mongo_database][settings.mongo_collection]
    logger.info(
        "Connected to MongoDB (database=%s, collection=%s)",
        settings.mongo_database,
        settings.mongo_collection,
    )
    return client, collection


async def ping(client: AsyncMongoClient, timeout: float) -> None:
    """
    Round-trip a `ping` command to the server.

    Raises:
        StoreError: Ping failed or took longer than ``timeout`` seconds.
    """
    try:
        await asyncio.wait_for(client.admin.command("ping"), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise StoreError(
            message="Failed to ping MongoDB",
            context={"error_type": "timeout", "timeout": timeout},
        ) from e
    except PyMongoError as e:
        raise StoreError(
            message="Failed to ping MongoDB",
            context={"error_type": type(e).__name__, "detail": str(e)},
        ) from e


async def close_store(client: AsyncMongoClient) -> None:
    """Close all pooled connections. Called during application shutdown."""
    await client.close()


# ── Request Dependency ────────────────────────────────────────────────────
def get_collection(request: Request) -> AsyncCollection:
    """
    FastAPI dependency returning the shared messages collection.

    Tests override this with `app.dependency_overrides[get_collection]`.

    Raises:
        StoreError: The lifespan never connected (store unavailable).
    """
    collection = getattr(request.app.state, "collection", None)
    if collection is None:
        raise StoreError(
            message="Document store is not connected",
            context={"error_type": "not_connected"},
        )
    return collection
