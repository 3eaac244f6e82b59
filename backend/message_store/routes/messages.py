"""
Message Store Backend - Message Route Handlers
==============================================

What:  The five /messages endpoints.
How:   Each handler logs the request path, makes exactly one MessageService
       call, logs a one-line outcome and returns the result. Failures are
       raised as application exceptions and rendered by the global handlers
       in main.py (400 / 404 / 500).

Examples:
    curl -i http://localhost:8080/messages
    curl -i http://localhost:8080/messages/64bd837566b7829eaa7ea650
    curl -i -X POST -H "Content-Type: application/json" \\
        -d '{"recipient":"Alice","sender":"Bob","content":"Hello, Alice!"}' \\
        http://localhost:8080/messages
    curl -i -X PATCH -H "Content-Type: application/json" \\
        -d '{"recipient":"Alice","sender":"Bob","content":"Hello, Bob!"}' \\
        http://localhost:8080/messages/64bd83ba66b7829eaa7ea651
    curl -i -X DELETE http://localhost:8080/messages/64bd85a4caedb30692d69de0
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request

from message_store.dependencies import get_logger, get_message_service
from message_store.schemas.message import (
    ErrorResponse,
    MessageCreate,
    MessageReplace,
    MessageResponse,
    MessageUpdateResponse,
)
from message_store.services.message_service import MessageService

router = APIRouter(tags=["Messages"])

_INVALID = {400: {"description": "Malformed identifier or body", "model": ErrorResponse}}
_NOT_FOUND = {404: {"description": "Message not found", "model": ErrorResponse}}
_SERVER = {500: {"description": "Store failure or timeout", "model": ErrorResponse}}


@router.get(
    "/messages",
    response_model=List[MessageResponse],
    responses={**_SERVER},
    summary="List all messages",
)
async def list_messages(
    request: Request,
    service: MessageService = Depends(get_message_service),
    logger: logging.Logger = Depends(get_logger),
) -> List[MessageResponse]:
    """Every stored message, in the store's natural order. Empty store → []."""
    logger.info(request.url.path)
    messages = await service.list_messages()
    logger.info("Messages retrieved (%d)", len(messages))
    return messages


@router.get(
    "/messages/{message_id}",
    response_model=MessageResponse,
    responses={**_INVALID, **_NOT_FOUND, **_SERVER},
    summary="Get a single message by ID",
)
async def get_message(
    message_id: str,
    request: Request,
    service: MessageService = Depends(get_message_service),
    logger: logging.Logger = Depends(get_logger),
) -> MessageResponse:
    logger.info(request.url.path)
    message = await service.get_message(message_id)
    logger.info("Message %s fetched", message_id)
    return message


@router.post(
    "/messages",
    response_model=str,
    responses={**_INVALID, **_SERVER},
    summary="Store a new message",
    description="Returns the identifier assigned by the store as a bare JSON string.",
)
async def send_message(
    body: MessageCreate,
    request: Request,
    service: MessageService = Depends(get_message_service),
    logger: logging.Logger = Depends(get_logger),
) -> str:
    logger.info(request.url.path)
    message_id = await service.create_message(body)
    logger.info("Message %s sent", message_id)
    return message_id


@router.patch(
    "/messages/{message_id}",
    response_model=MessageUpdateResponse,
    responses={**_INVALID, **_NOT_FOUND, **_SERVER},
    summary="Replace a message",
    description=(
        "Overwrites recipient, sender and content. The timestamp is reset to the "
        "current time and any `id` in the body is ignored."
    ),
)
async def update_message(
    message_id: str,
    body: MessageReplace,
    request: Request,
    service: MessageService = Depends(get_message_service),
    logger: logging.Logger = Depends(get_logger),
) -> MessageUpdateResponse:
    logger.info(request.url.path)
    updated = await service.replace_message(message_id, body)
    logger.info("Message %s updated", message_id)
    return MessageUpdateResponse(updated_message=updated)


@router.delete(
    "/messages/{message_id}",
    response_model=MessageResponse,
    responses={**_INVALID, **_NOT_FOUND, **_SERVER},
    summary="Delete a message",
    description="Returns the deleted record as it was just before deletion.",
)
async def delete_message(
    message_id: str,
    request: Request,
    service: MessageService = Depends(get_message_service),
    logger: logging.Logger = Depends(get_logger),
) -> MessageResponse:
    logger.info(request.url.path)
    deleted = await service.delete_message(message_id)
    logger.info("Message %s deleted", message_id)
    return deleted
