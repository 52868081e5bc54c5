"""Rate limiting configuration using SlowAPI."""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

# Action submissions come from agents and external producers; cap bursts per caller
ACTION_SUBMISSION_LIMIT = "60/minute"

# Create limiter with IP-based key function
limiter = Limiter(key_func=get_remote_address)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Custom handler for rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many action submissions. Please try again later."},
    )
