"""
Message Store Backend - FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn message_store.main:app) or by run().
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────┐ ┌──────────────────┐  │
    │  │  Req ID  │→│  Logging    │→│  CORS            │  │
    │  └──────────┘ └─────────────┘ └──────────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌───────────────────────────┐ ┌─────────────────┐  │
    │  │ GET/POST/PATCH/DELETE     │ │ GET /health     │  │
    │  │ /messages[/{id}]          │ │                 │  │
    │  └───────────────────────────┘ └─────────────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ Validation→400 │ NotFound→404 │ Store→500    │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Connect to MongoDB and ping it (startup fails if unreachable)
    3. Expose the messages collection on app.state

    Shutdown:
    1. Close the MongoDB client (all pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from message_store import __version__
from message_store.config import settings
from message_store.database import close_store, connect_store
from message_store.exceptions import (
    MessageStoreError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from message_store.middleware.logging import RequestLoggingMiddleware
from message_store.middleware.request_id import request_id_var, RequestIDMiddleware
from message_store.routes import health, messages


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before the store connection is attempted.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Containers capture stdout
        ],
        force=True,
    )

    # These log every connection and heartbeat at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Open the shared store client on startup and close it on shutdown.

    A store that cannot be reached at startup aborts the process: the
    StoreError propagates out of the lifespan and uvicorn exits.
    """
    logger: logging.Logger = app.state.logger

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Message Store Backend starting up...")

    try:
        client, collection = await connect_store(settings)
    except StoreError as e:
        logger.critical("Error setting up MongoDB: %s | Context: %s", e.message, e.context)
        raise
    app.state.mongo_client = client
    app.state.collection = collection
    logger.info("Setup Complete: MongoDB")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield  # Application runs here

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Message Store Backend shutting down...")
    app.state.collection = None
    await close_store(client)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(message: str, **extra) -> dict:
    body = {"error": message}
    body.update(extra)
    body["request_id"] = request_id_var.get("")
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and JSON error bodies.

    Handler hierarchy:
        ValidationError         → 400 Bad Request
        RequestValidationError  → 400 Bad Request (malformed or incomplete body)
        NotFoundError           → 404 Not Found
        StoreError              → 500 Internal Server Error (incl. timeout)
        MessageStoreError       → 500 Internal Server Error
        Exception (fallback)    → 500 Internal Server Error

    Every failure is scoped to its request: it is logged at WARNING or ERROR
    and the server keeps serving.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        request.app.state.logger.warning(
            "%s %s: %s", request.method, request.url.path, exc.message
        )
        return JSONResponse(status_code=400, content=_error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Body missing, not JSON, or missing required fields."""
        details = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        request.app.state.logger.warning(
            "%s %s: Invalid message data %s", request.method, request.url.path, details
        )
        return JSONResponse(
            status_code=400,
            content=_error_body("Invalid message data", details=details),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        request.app.state.logger.warning(
            "%s %s: %s", request.method, request.url.path, exc.message
        )
        return JSONResponse(status_code=404, content=_error_body(exc.message))

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        """Driver details are logged server-side only."""
        request.app.state.logger.error(
            "%s %s: %s | Context: %s",
            request.method,
            request.url.path,
            exc.message,
            exc.context,
        )
        return JSONResponse(status_code=500, content=_error_body(exc.message))

    @app.exception_handler(MessageStoreError)
    async def handle_app_error(request: Request, exc: MessageStoreError):
        request.app.state.logger.error(
            "%s %s: %s | Context: %s",
            request.method,
            request.url.path,
            exc.message,
            exc.context,
        )
        return JSONResponse(status_code=500, content=_error_body(exc.message))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Stack trace is logged server-side only."""
        request.app.state.logger.error(
            "%s %s: Unexpected error: %s",
            request.method,
            request.url.path,
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body("An unexpected error occurred"),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(logger: Optional[logging.Logger] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        logger: Logger handed to every handler through app.state.
            Defaults to the "message_store" logger; tests pass their own.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="Message Store API",
        description="Create, read, replace and delete messages stored in MongoDB.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.logger = logger or logging.getLogger("message_store")
    app.state.collection = None

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → CORS → route

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(messages.router)
    app.include_router(health.router)

    return app


def run() -> None:
    """Console entry point: serve the app on the configured host and port."""
    uvicorn.run(
        "message_store.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `message_store.main:app` to be importable
app = create_app()
