"""
Message Store Backend - Pydantic Request/Response Schemas
=========================================================

What:  Pydantic models defining the API contract for message records.
How:   FastAPI uses these models to validate request bodies, serialize
       responses and generate the OpenAPI document.
When:  Validated on every request (input) and serialized on every response (output).

Stored document shape (MongoDB):
    {
        "_id": ObjectId("64bd837566b7829eaa7ea650"),
        "recipient": "Alice",
        "sender": "Bob",
        "content": "Hi",
        "timestamp": ISODate("2024-01-15T12:00:00Z")
    }

API shape: the same fields with `_id` rendered as the hex string `id`.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models - What clients send
# ══════════════════════════════════════════════════════════════════════════


class MessageFields(BaseModel):
    """
    Client-supplied message fields.

    Unknown keys (including `id` and `timestamp`) are ignored: the store owns
    the identifier and the server owns the timestamp.
    """
    recipient: str = Field(description="Who the message is addressed to")
    sender: str = Field(description="Who sent the message")
    content: str = Field(description="Message body")

    def to_document(self, timestamp: datetime) -> Dict[str, Any]:
        """Build the stored document (without `_id`) stamped with ``timestamp``."""
        return {
            "recipient": self.recipient,
            "sender": self.sender,
            "content": self.content,
            "timestamp": timestamp,
        }


class MessageCreate(MessageFields):
    """Body of POST /messages."""


class MessageReplace(MessageFields):
    """Body of PATCH /messages/{id}. Replaces every field except `id`."""


# ══════════════════════════════════════════════════════════════════════════
# Response Models - What the API returns
# ══════════════════════════════════════════════════════════════════════════


class MessageResponse(BaseModel):
    """Full representation of a stored message."""
    id: str = Field(description="Store-assigned identifier (24 hex characters)")
    recipient: str = Field(default="", description="Who the message is addressed to")
    sender: str = Field(default="", description="Who sent the message")
    content: str = Field(default="", description="Message body")
    timestamp: Optional[datetime] = Field(
        default=None,
        description="Last time the server wrote this record (UTC ISO 8601)",
    )

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "MessageResponse":
        """
        Build a response from a raw MongoDB document.

        Documents written by other clients may lack fields; those fall back to
        the field defaults instead of failing the whole request.
        """
        return cls(
            id=str(document["_id"]),
            recipient=document.get("recipient", ""),
            sender=document.get("sender", ""),
            content=document.get("content", ""),
            timestamp=document.get("timestamp"),
        )


class MessageUpdateResponse(BaseModel):
    """
    Response of PATCH /messages/{id}.

    Serialized as {"message": ..., "updatedMessage": {...}}.
    """
    message: str = Field(default="Message updated successfully")
    updated_message: MessageResponse = Field(alias="updatedMessage")

    model_config = {"populate_by_name": True}


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Error body shared by every failing endpoint.

    Example:
        {"error": "Message not found", "request_id": "a1b2c3d4"}
    """
    error: str = Field(description="Human-readable error description")
    details: Optional[List[Dict[str, Any]]] = Field(
        default=None, description="Per-field problems for invalid request bodies"
    )
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and store status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Store connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
