"""Error taxonomy and classification into safe client-facing responses."""

from enum import Enum

from pydantic import BaseModel

from tasktracker.core.config import Constants
from tasktracker.core.db_client import RecordNotFoundError


class TaskNotFoundError(KeyError):
    """The referenced task does not exist."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Task not found"


class TaskForbiddenError(PermissionError):
    """The task exists but belongs to someone else."""


class AuthenticationError(Exception):
    """Credentials or bearer token could not be verified."""


class InvalidRequestError(ValueError):
    """The request is well-formed but cannot be honoured (e.g. duplicate email)."""


class ErrorCategory(Enum):
    """Categories of errors surfaced at the request boundary."""

    VALIDATION = "validation"
    AUTHENTICATION_FAILED = "authentication_failed"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_VALIDATION = "ERR_VALIDATION"
    ERR_AUTHENTICATION_FAILED = "ERR_AUTHENTICATION_FAILED"
    ERR_PERMISSION_DENIED = "ERR_PERMISSION_DENIED"
    ERR_NOT_FOUND = "ERR_NOT_FOUND"
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response safe to send to the client."""

    code: str
    message: str
    status_code: int
    category: ErrorCategory

    def to_body(self) -> dict[str, object]:
        """Return the JSON envelope used for error responses."""
        return {"success": False, "code": self.code, "message": self.message}


def classify_error(exception: Exception) -> ErrorResponse:
    """Map an exception raised by a service to a client-facing error.

    Only the domain exception types are client errors. A bare KeyError,
    PermissionError or ValueError from anywhere else is a bug and gets the
    generic 500; details belong in the server log only.
    """
    if isinstance(exception, TaskNotFoundError | RecordNotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_NOT_FOUND,
            message=str(exception) if isinstance(exception, TaskNotFoundError) else "Task not found",
            status_code=Constants.HTTP_NOT_FOUND,
            category=ErrorCategory.NOT_FOUND,
        )

    if isinstance(exception, TaskForbiddenError):
        return ErrorResponse(
            code=ErrorCode.ERR_PERMISSION_DENIED,
            message="Not authorized",
            status_code=Constants.HTTP_FORBIDDEN,
            category=ErrorCategory.PERMISSION_DENIED,
        )

    if isinstance(exception, AuthenticationError):
        return ErrorResponse(
            code=ErrorCode.ERR_AUTHENTICATION_FAILED,
            message=str(exception) or "Not authorized",
            status_code=Constants.HTTP_UNAUTHORIZED,
            category=ErrorCategory.AUTHENTICATION_FAILED,
        )

    if isinstance(exception, InvalidRequestError):
        return ErrorResponse(
            code=ErrorCode.ERR_VALIDATION,
            message=str(exception) or "Invalid request",
            status_code=Constants.HTTP_BAD_REQUEST,
            category=ErrorCategory.VALIDATION,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="Server Error",
        status_code=Constants.HTTP_SERVER_ERROR,
        category=ErrorCategory.UNKNOWN,
    )
