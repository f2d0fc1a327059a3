"""Application exception classes and handlers."""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


# --- Validation (400) ---


class InputValidationError(AppException):
    """Input has the wrong shape or is out of range. Raised before any write."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="VALIDATION_ERROR", status_code=400)


# --- Authentication (401) ---


class AuthenticationError(AppException):
    """Base authentication error."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message=message, code="AUTHENTICATION_ERROR", status_code=401)


# --- Policy (403) ---


class HistoryDisabledError(AppException):
    """The user's settings forbid persisting chat history.

    Not a failure of the surrounding chat turn: callers catch it and still
    return the generated reply.
    """

    def __init__(self) -> None:
        super().__init__(
            message="Chat history saving is disabled",
            code="HISTORY_DISABLED",
            status_code=403,
        )


# --- Not Found (404) ---


class SessionNotFoundError(AppException):
    """Session is absent or belongs to another user."""

    def __init__(self) -> None:
        super().__init__(
            message="Chat session not found",
            code="SESSION_NOT_FOUND",
            status_code=404,
        )


class AudioNotFoundError(AppException):
    """Rendered audio file does not exist."""

    def __init__(self) -> None:
        super().__init__(
            message="Audio file not found",
            code="AUDIO_NOT_FOUND",
            status_code=404,
        )


# --- Upstream (502) ---


class UpstreamError(AppException):
    """An external AI or speech provider failed."""

    def __init__(self, service: str, detail: str = "") -> None:
        message = f"{service} provider request failed"
        if detail:
            message = f"{message}: {detail}"
        self.service = service
        super().__init__(message=message, code="UPSTREAM_ERROR", status_code=502)


# --- Exception Handlers ---


def error_body(message: str, code: str) -> dict:
    """Build the error envelope."""
    return {"success": False, "error": message, "code": code}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Central exception handler for AppException."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.code),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Map FastAPI request validation failures into the error envelope."""
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content=error_body(details or "Invalid request", "VALIDATION_ERROR"),
    )
