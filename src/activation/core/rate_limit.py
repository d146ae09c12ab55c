"""Rate limiting for activation transitions.

Attempt caps inside the activation flow are per flow instance; abuse
prevention across instances is this layer's job. Storage is in-memory
(per process).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from src.activation.core.config import get_settings
from src.activation.core.logging import get_logger

logger = get_logger(__name__)


def get_rate_limit_key(request: Request) -> str:
    """Rate limit key from client IP only.

    Never include user-controlled headers: rotating them would create
    unlimited buckets.
    """
    return get_remote_address(request) or "unknown"


def transition_limit() -> str:
    """Limit string applied to transition endpoints, read per request."""
    return get_settings().rate_limit_transitions


def create_limiter() -> Limiter:
    """Create the rate limiter. Disabled in the testing environment."""
    settings = get_settings()

    if settings.app_env == "testing":
        logger.info("Rate limiter disabled (testing environment)")
        return Limiter(key_func=get_rate_limit_key, enabled=False)

    logger.info("Rate limiter using in-memory backend (not distributed)")
    return Limiter(key_func=get_rate_limit_key)


limiter = create_limiter()
