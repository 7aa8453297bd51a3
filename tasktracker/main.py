"""tasktracker - personal task management REST API."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tasktracker.core.config import constants, settings
from tasktracker.core.db_client import DatabaseError, RecordNotFoundError, close_connection, init_db
from tasktracker.core.errors import (
    AuthenticationError,
    InvalidRequestError,
    TaskForbiddenError,
    TaskNotFoundError,
    classify_error,
)
from tasktracker.core.logging import configure_logfire, instrument_fastapi
from tasktracker.core.redis_client import redis_client
from tasktracker.interface.auth_router import router as auth_router
from tasktracker.interface.task_router import router as task_router


logger = logging.getLogger(__name__)


def validate_startup_configuration() -> None:
    """Fail fast when required credentials are missing."""
    logger.info("startup_validation_begin")
    try:
        settings.require_credential("secret_key", "Token signing")
    except ValueError as e:
        logger.error("startup_validation_failed", extra={"error": str(e)})
        print(f"\n❌ Startup validation failed: {e}\n", file=sys.stderr)  # noqa: T201
        sys.exit(1)
    logger.info("startup_validation_complete", extra={"status": "ok"})


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Configure logging first so validation logs are captured
    configure_logfire()
    validate_startup_configuration()

    await init_db()
    logger.info("Database initialized")
    yield
    await close_connection()
    await redis_client.close()


app = FastAPI(
    title="tasktracker",
    description="Personal task management API",
    version="0.1.0",
    lifespan=lifespan,
)

instrument_fastapi(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


def _error_response(exc: Exception) -> JSONResponse:
    error = classify_error(exc)
    return JSONResponse(status_code=error.status_code, content=error.to_body())


@app.exception_handler(RequestValidationError)
async def handle_request_validation(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report body and query validation failures as a single readable message."""
    messages = [str(error.get("msg", "")).removeprefix("Value error, ") for error in exc.errors()]
    return JSONResponse(
        status_code=constants.HTTP_BAD_REQUEST,
        content={"success": False, "code": "ERR_VALIDATION", "message": ", ".join(messages) or "Invalid request"},
    )


@app.exception_handler(AuthenticationError)
@app.exception_handler(InvalidRequestError)
@app.exception_handler(RecordNotFoundError)
@app.exception_handler(TaskForbiddenError)
@app.exception_handler(TaskNotFoundError)
async def handle_client_error(request: Request, exc: Exception) -> JSONResponse:
    """Convert service-layer failures into client errors."""
    logger.info(
        "request_rejected",
        extra={"path": request.url.path, "error_type": type(exc).__name__},
    )
    return _error_response(exc)


@app.exception_handler(DatabaseError)
@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and return a generic server error."""
    logger.exception("request_failed", extra={"path": request.url.path, "error_type": type(exc).__name__})
    return _error_response(exc)


app.include_router(auth_router)
app.include_router(task_router)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(
        content={"status": "healthy", "redis": redis_client.get_health_status()},
        status_code=constants.HTTP_OK,
    )
