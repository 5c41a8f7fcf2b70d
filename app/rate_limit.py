"""Shared rate limiter, keyed by signed-in user where possible.

Enrichment endpoints call a paid provider, so they get a tighter limit
(settings.rate_limit_enrichment) than the default. Storage is Redis when
CACHE_BACKEND=redis and the server answers a ping, in-memory otherwise
(limits are then per worker).
"""

import os

from loguru import logger
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from .config import settings


def user_or_ip(request: Request) -> str:
    """Rate-limit key: session user id, else client address."""
    uid = request.session.get("user_id") if "session" in request.scope else None
    return f"user:{uid}" if uid else get_remote_address(request)


def _resolve_storage() -> str | None:
    if os.environ.get("TESTING"):
        return None
    if settings.cache_backend != "redis" or not settings.redis_url:
        return None
    try:
        import redis as redis_lib

        r = redis_lib.from_url(settings.redis_url, socket_connect_timeout=2)
        r.ping()
        logger.info("Rate limiter using Redis at {}", settings.redis_url)
        return settings.redis_url
    except Exception as e:
        logger.warning("Redis unavailable ({}), rate limiter falling back to memory", e)
        return None


limiter = Limiter(
    key_func=user_or_ip,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
    storage_uri=_resolve_storage() or "memory://",
)
