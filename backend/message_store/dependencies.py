"""
Message Store Backend - Request Dependencies
============================================

What:  FastAPI dependencies that hand per-request collaborators to route handlers.
How:   The logger is created once by create_app() and kept on `app.state`;
       the service is built per request around the shared collection.
"""

import logging

from fastapi import Depends, Request
from pymongo.asynchronous.collection import AsyncCollection

from message_store.config import settings
from message_store.database import get_collection
from message_store.services.message_service import MessageService


def get_logger(request: Request) -> logging.Logger:
    """Return the logger injected into the application at creation time."""
    return request.app.state.logger


def get_message_service(
    collection: AsyncCollection = Depends(get_collection),
) -> MessageService:
    """Build the repository operations for this request."""
    return MessageService(collection, timeout=settings.store_timeout_seconds)
