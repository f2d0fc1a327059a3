"""Request rate limiting for endpoints that call paid upstream providers."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request


def user_or_remote_address(request: Request) -> str:
    """Limit per authenticated user, falling back to the client address."""
    user_id = getattr(request.state, "user_id", None)
    if user_id is not None:
        return f"user:{user_id}"
    return get_remote_address(request)


limiter = Limiter(key_func=user_or_remote_address)
