"""ASGI authentication middleware."""

import json
from typing import Any

import jwt
import structlog
from starlette.types import ASGIApp, Receive, Scope, Send

from app.core.config import settings
from app.core.exceptions import error_body

logger = structlog.get_logger()

PUBLIC_PATHS: set[str] = {
    "",
    "/",
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
}


class AuthMiddleware:
    """Pure ASGI middleware that verifies Bearer access tokens.

    Tokens are issued by the identity provider; ``sub`` carries the integer
    user id that scopes every history operation.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("method", "") == "OPTIONS":
            await self.app(scope, receive, send)
            return

        path = scope["path"]
        normalized = path.rstrip("/") or "/"
        if normalized in PUBLIC_PATHS or path.startswith(("/docs", "/redoc")):
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        auth_header = headers.get(b"authorization", b"").decode()
        if not auth_header.startswith("Bearer "):
            await self._send_error(
                send, 401, "MISSING_TOKEN", "Authorization header required"
            )
            return

        try:
            payload: dict[str, Any] = jwt.decode(
                auth_header[7:],
                settings.auth.secret_key.get_secret_value(),
                algorithms=[settings.auth.algorithm],
            )
            user_id = int(payload["sub"])
        except jwt.ExpiredSignatureError:
            await self._send_error(send, 401, "TOKEN_EXPIRED", "Token has expired")
            return
        except (jwt.InvalidTokenError, KeyError, TypeError, ValueError):
            logger.info("Rejected access token", path=path)
            await self._send_error(send, 401, "INVALID_TOKEN", "Invalid token")
            return

        if payload.get("type", "access") != "access":
            await self._send_error(send, 401, "INVALID_TOKEN", "Invalid token type")
            return

        scope.setdefault("state", {})
        scope["state"]["user_id"] = user_id
        await self.app(scope, receive, send)

    @staticmethod
    async def _send_error(send: Send, status: int, code: str, message: str) -> None:
        """Send a JSON error envelope directly."""
        body = json.dumps(error_body(message, code)).encode()
        await send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": [
                    [b"content-type", b"application/json"],
                    [b"content-length", str(len(body)).encode()],
                ],
            }
        )
        await send({"type": "http.response.body", "body": body})
