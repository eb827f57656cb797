"""
Dependency injection for FastAPI routes.
"""

import math
from typing import Annotated

from fastapi import Depends, Request

from scriptsnip.config import CREATE_RATE_MESSAGE
from scriptsnip.db import ScriptStore

from .errors import RateLimitExceeded
from .services.rate_limiter import RateLimiter


def get_store(request: Request) -> ScriptStore:
    """Get the store created at application startup."""
    return request.app.state.store


def get_create_limiter(request: Request) -> RateLimiter:
    """Get the limiter guarding script creation."""
    return request.app.state.create_limiter


def client_key(request: Request) -> str:
    """Rate-limit key for the calling client (its IP address)."""
    return request.client.host if request.client else "unknown"


async def limit_script_creation(
    request: Request,
    limiter: Annotated[RateLimiter, Depends(get_create_limiter)],
) -> None:
    """Reject the request once the client has used up its creation quota."""
    retry_after = await limiter.hit(client_key(request))
    if retry_after:
        raise RateLimitExceeded(CREATE_RATE_MESSAGE, retry_after=math.ceil(retry_after))


# Type aliases for dependency injection
Store = Annotated[ScriptStore, Depends(get_store)]
CreateRateLimit = Depends(limit_script_creation)
