"""
Message Store Backend - Message Service (Repository Operations)
===============================================================

What:  The five message verbs: list, get, insert, replace, delete.
How:   Validates identifiers, issues exactly one collection call per operation
       under a fixed deadline, and translates results into response models or
       application exceptions.
Who:   Called by route handlers in routes/messages.py.

Error Translation:
    malformed id                    → ValidationError (store never touched)
    None / matched_count == 0       → NotFoundError
    asyncio timeout / PyMongoError  → StoreError

Atomicity:
    Replace and delete locate and mutate the record in a single store call
    (replace_one, find_one_and_delete). There is no read-then-write window.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Dict, List, TypeVar

from pymongo.errors import PyMongoError

from message_store.exceptions import NotFoundError, StoreError
from message_store.identifiers import parse_message_id
from message_store.schemas.message import (
    MessageCreate,
    MessageReplace,
    MessageResponse,
)

T = TypeVar("T")

DEFAULT_STORE_TIMEOUT = 5.0


def utcnow() -> datetime:
    """
    Current UTC time rounded up to whole milliseconds.

    MongoDB stores datetimes at millisecond precision, so the value returned by
    replace equals what a later read gives back. Rounding up keeps it at or
    after the moment of the call.
    """
    now = datetime.now(timezone.utc)
    remainder = now.microsecond % 1000
    if remainder:
        now += timedelta(microseconds=1000 - remainder)
    return now


class MessageService:
    """
    Repository operations over one MongoDB collection.

    The service is constructed per request from the shared collection handle
    and keeps no state between requests.

    Args:
        collection: pymongo AsyncCollection (or any object with the same methods)
        timeout: Seconds allowed for each store round trip
    """

    def __init__(
        self,
        collection: Any,
        timeout: float = DEFAULT_STORE_TIMEOUT,
    ):
        self.collection = collection
        self.timeout = timeout

    async def _call(self, awaitable: Awaitable[T], failure: str, **context: Any) -> T:
        """
        Await one store call under the per-call deadline.

        On expiry asyncio.wait_for cancels the in-flight call.

        Raises:
            StoreError: The call timed out or the driver raised.
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise StoreError(
                message=failure,
                context={"error_type": "timeout", "timeout": self.timeout, **context},
            ) from e
        except PyMongoError as e:
            raise StoreError(
                message=failure,
                context={"error_type": type(e).__name__, "detail": str(e), **context},
            ) from e

    async def list_messages(self) -> List[MessageResponse]:
        """
        Return every message in the store's natural order.

        An empty collection yields an empty list, never an error.
        """
        documents: List[Dict[str, Any]] = await self._call(
            self.collection.find({}).to_list(length=None),
            "Failed to retrieve messages",
        )
        return [MessageResponse.from_document(doc) for doc in documents]

    async def get_message(self, message_id: str) -> MessageResponse:
        """
        Fetch one message by its hex identifier.

        Raises:
            ValidationError: ``message_id`` is malformed
            NotFoundError: No record has that identifier
            StoreError: Store call failed or timed out
        """
        object_id = parse_message_id(message_id)
        document = await self._call(
            self.collection.find_one({"_id": object_id}),
            "Failed to find message",
            message_id=message_id,
        )
        if document is None:
            raise NotFoundError(resource="Message", resource_id=message_id)
        return MessageResponse.from_document(document)

    async def create_message(self, candidate: MessageCreate) -> str:
        """
        Insert a new message and return the identifier the store assigned.

        The timestamp is set to the current time, the same as on replace.

        Raises:
            StoreError: Write failed or timed out
        """
        document = candidate.to_document(timestamp=utcnow())
        result = await self._call(
            self.collection.insert_one(document),
            "Failed to insert message",
        )
        return str(result.inserted_id)

    async def replace_message(
        self, message_id: str, replacement: MessageReplace
    ) -> MessageResponse:
        """
        Overwrite every field of an existing message except its identifier.

        The identifier is always the path identifier and the timestamp is
        always the current time; neither can be supplied by the client.

        Returns:
            The record as written, so callers need no follow-up read.

        Raises:
            ValidationError: ``message_id`` is malformed
            NotFoundError: No record matched
            StoreError: Store call failed or timed out
        """
        object_id = parse_message_id(message_id)
        document = replacement.to_document(timestamp=utcnow())
        result = await self._call(
            self.collection.replace_one({"_id": object_id}, document),
            "Failed to update message",
            message_id=message_id,
        )
        if result.matched_count == 0:
            raise NotFoundError(resource="Message", resource_id=message_id)
        return MessageResponse.from_document({"_id": object_id, **document})

    async def delete_message(self, message_id: str) -> MessageResponse:
        """
        Delete a message and return its last known state.

        Raises:
            ValidationError: ``message_id`` is malformed
            NotFoundError: No record matched
            StoreError: Store call failed or timed out
        """
        object_id = parse_message_id(message_id)
        document = await self._call(
            self.collection.find_one_and_delete({"_id": object_id}),
            "Failed to delete message",
            message_id=message_id,
        )
        if document is None:
            raise NotFoundError(resource="Message", resource_id=message_id)
        return MessageResponse.from_document(document)
