"""
Message Store Backend - Custom Exception Hierarchy
==================================================

What:  Application-specific exceptions for the failure classes of a request.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return JSON error responses with the matching HTTP status code.
Who:   Raised by identifier validation and the message service.
When:  During request processing; a failure never outlives its request.

Exception Hierarchy:
    MessageStoreError (base)  → 500 Internal Server Error
    ├── ValidationError       → 400 Bad Request (malformed id or body)
    ├── NotFoundError         → 404 Not Found
    └── StoreError            → 500 Internal Server Error (incl. timeout)
"""

from typing import Any, Dict, Optional


class MessageStoreError(Exception):
    """
    Base exception for all Message Store application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(MessageStoreError):
    """
    Raised when client input fails validation.

    When:    Path identifier is not a 24-character hex token, or the request
             body is missing required fields.
    HTTP:    400 Bad Request

    Example response:
        {"error": "Invalid message ID", "request_id": "a1b2c3d4"}
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(MessageStoreError):
    """
    Raised when the targeted record does not exist at the time of the operation.

    HTTP:    404 Not Found

    The store reports absence as None (find_one, find_one_and_delete) or as a
    zero matched count (replace_one); the service layer turns both into this.
    Listing an empty collection is never a NotFoundError.
    """

    def __init__(
        self,
        resource: str = "Message",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource_id = resource_id


class StoreError(MessageStoreError):
    """
    Raised when a document store operation fails or exceeds its deadline.

    HTTP:    500 Internal Server Error

    The message names the failed operation ("Failed to insert message").
    Driver details (server addresses, error codes) go into context and
    are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
