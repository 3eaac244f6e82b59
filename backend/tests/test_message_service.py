"""
Message Store Backend - Message Service Unit Tests
==================================================

What:  Tests for MessageService (list, get, create, replace, delete).
How:   Uses a mock collection (no real MongoDB).

What we test:
    ✅ Malformed ids fail before the store is touched
    ✅ Absent records raise NotFoundError
    ✅ Driver errors and timeouts raise StoreError
    ✅ Replace stamps the time and ignores a client-supplied id
    ✅ Empty store lists as []
"""

import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from message_store.exceptions import NotFoundError, StoreError, ValidationError
from message_store.schemas.message import MessageCreate, MessageReplace
from message_store.services.message_service import MessageService, utcnow

MISSING_ID = "64bd837566b7829eaa7ea650"


class TestUtcnow:

    def test_whole_milliseconds_not_before_now(self):
        """Stored timestamps lose sub-millisecond digits, so none are produced."""
        before = datetime.now(timezone.utc)

        stamp = utcnow()

        assert stamp.microsecond % 1000 == 0
        assert stamp >= before
        assert stamp.tzinfo is not None


class TestMessageServiceList:
    """Tests for list_messages."""

    @pytest.mark.asyncio
    async def test_list_empty_store(self, mock_collection):
        """Empty collection is an empty list, not an error."""
        result = await MessageService(mock_collection).list_messages()

        assert result == []
        mock_collection.find.assert_called_once_with({})

    @pytest.mark.asyncio
    async def test_list_maps_documents(self, mock_collection):
        oid = ObjectId()
        stamp = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
        mock_collection.find.return_value.to_list.return_value = [
            {"_id": oid, "recipient": "Alice", "sender": "Bob", "content": "Hi", "timestamp": stamp},
        ]

        result = await MessageService(mock_collection).list_messages()

        assert len(result) == 1
        assert result[0].id == str(oid)
        assert result[0].recipient == "Alice"
        assert result[0].timestamp == stamp

    @pytest.mark.asyncio
    async def test_list_driver_failure(self, mock_collection):
        mock_collection.find.return_value.to_list.side_effect = ServerSelectionTimeoutError("no servers")

        with pytest.raises(StoreError, match="Failed to retrieve messages"):
            await MessageService(mock_collection).list_messages()


class TestMessageServiceGet:
    """Tests for get_message."""

    @pytest.mark.asyncio
    async def test_get_found(self, mock_collection):
        oid = ObjectId()
        mock_collection.find_one.return_value = {
            "_id": oid, "recipient": "Alice", "sender": "Bob", "content": "Hi",
        }

        result = await MessageService(mock_collection).get_message(str(oid))

        assert result.id == str(oid)
        assert result.content == "Hi"
        mock_collection.find_one.assert_awaited_once_with({"_id": oid})

    @pytest.mark.asyncio
    async def test_get_not_found(self, mock_collection):
        with pytest.raises(NotFoundError) as exc_info:
            await MessageService(mock_collection).get_message(MISSING_ID)

        assert exc_info.value.message == "Message not found"

    @pytest.mark.asyncio
    async def test_get_invalid_id_skips_store(self, mock_collection):
        with pytest.raises(ValidationError, match="Invalid message ID"):
            await MessageService(mock_collection).get_message("not-a-valid-id")

        mock_collection.find_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_timeout_is_store_error(self, mock_collection):
        """A store call exceeding the deadline is cancelled and reported as StoreError."""
        cancelled = asyncio.Event()

        async def slow_find_one(filter):
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        mock_collection.find_one.side_effect = slow_find_one

        with pytest.raises(StoreError) as exc_info:
            await MessageService(mock_collection, timeout=0.01).get_message(MISSING_ID)

        assert exc_info.value.message == "Failed to find message"
        assert exc_info.value.context["error_type"] == "timeout"
        assert cancelled.is_set()


class TestMessageServiceCreate:
    """Tests for create_message."""

    @pytest.mark.asyncio
    async def test_create_returns_store_id(self, mock_collection, sample_message_data):
        oid = ObjectId()
        mock_collection.insert_one.return_value = SimpleNamespace(inserted_id=oid)
        before = datetime.now(timezone.utc)

        result = await MessageService(mock_collection).create_message(
            MessageCreate(**sample_message_data)
        )

        assert result == str(oid)
        document = mock_collection.insert_one.await_args.args[0]
        assert "_id" not in document or document["_id"] == oid
        assert document["recipient"] == "Alice"
        assert document["timestamp"] >= before

    @pytest.mark.asyncio
    async def test_create_driver_failure(self, mock_collection, sample_message_data):
        mock_collection.insert_one.side_effect = ServerSelectionTimeoutError("no servers")

        with pytest.raises(StoreError, match="Failed to insert message"):
            await MessageService(mock_collection).create_message(
                MessageCreate(**sample_message_data)
            )


class TestMessageServiceReplace:
    """Tests for replace_message."""

    @pytest.mark.asyncio
    async def test_replace_sets_timestamp_and_path_id(self, mock_collection):
        oid = ObjectId()
        other = ObjectId()
        mock_collection.replace_one.return_value = SimpleNamespace(matched_count=1)
        body = MessageReplace.model_validate({
            "id": str(other),
            "recipient": "Alice",
            "sender": "Bob",
            "content": "Hello, Bob!",
            "timestamp": "2000-01-01T00:00:00Z",
        })
        before = datetime.now(timezone.utc)

        result = await MessageService(mock_collection).replace_message(str(oid), body)

        assert result.id == str(oid)
        assert result.content == "Hello, Bob!"
        assert result.timestamp >= before
        filter, document = mock_collection.replace_one.await_args.args
        assert filter == {"_id": oid}
        assert "_id" not in document
        assert "id" not in document
        assert document["timestamp"] >= before
        assert document["timestamp"].microsecond % 1000 == 0
        assert result.timestamp == document["timestamp"]

    @pytest.mark.asyncio
    async def test_replace_zero_matched_is_not_found(self, mock_collection):
        mock_collection.replace_one.return_value = SimpleNamespace(matched_count=0)
        body = MessageReplace(recipient="A", sender="B", content="C")

        with pytest.raises(NotFoundError):
            await MessageService(mock_collection).replace_message(MISSING_ID, body)

    @pytest.mark.asyncio
    async def test_replace_invalid_id_skips_store(self, mock_collection):
        body = MessageReplace(recipient="A", sender="B", content="C")

        with pytest.raises(ValidationError):
            await MessageService(mock_collection).replace_message("xyz", body)

        mock_collection.replace_one.assert_not_called()


class TestMessageServiceDelete:
    """Tests for delete_message."""

    @pytest.mark.asyncio
    async def test_delete_returns_last_state(self, mock_collection):
        oid = ObjectId()
        mock_collection.find_one_and_delete.return_value = {
            "_id": oid, "recipient": "Alice", "sender": "Bob", "content": "Hi",
        }

        result = await MessageService(mock_collection).delete_message(str(oid))

        assert result.id == str(oid)
        assert result.sender == "Bob"
        mock_collection.find_one_and_delete.assert_awaited_once_with({"_id": oid})

    @pytest.mark.asyncio
    async def test_delete_not_found(self, mock_collection):
        with pytest.raises(NotFoundError):
            await MessageService(mock_collection).delete_message(MISSING_ID)

    @pytest.mark.asyncio
    async def test_delete_invalid_id_skips_store(self, mock_collection):
        with pytest.raises(ValidationError):
            await MessageService(mock_collection).delete_message("not-a-valid-id")

        mock_collection.find_one_and_delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_driver_failure(self, mock_collection):
        mock_collection.find_one_and_delete.side_effect = ServerSelectionTimeoutError("down")

        with pytest.raises(StoreError, match="Failed to delete message"):
            await MessageService(mock_collection).delete_message(MISSING_ID)
