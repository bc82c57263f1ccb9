"""Rate limiting for the takedown API.

Anonymous intake gets its own, tighter per-IP limit; everything else
shares RATE_LIMIT_API. Storage is Redis when REDIS_URL is reachable so
limits hold across workers.
"""

import logging
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from notice_engine.core.config import settings

logger = logging.getLogger(__name__)

IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")
MEMORY_STORAGE = "memory://"

PUBLIC_INTAKE_LIMIT = f"{max(settings.RATE_LIMIT_PUBLIC_INTAKE, 1)}/minute"


def _default_limits() -> list[str]:
    if IS_TESTING or settings.RATE_LIMIT_API <= 0:
        return []
    return [f"{settings.RATE_LIMIT_API}/minute"]


def _storage_uri() -> str:
    if IS_TESTING or not settings.REDIS_URL:
        return MEMORY_STORAGE
    try:
        import redis

        redis.from_url(settings.REDIS_URL, socket_connect_timeout=1).ping()
    except Exception as e:
        logger.warning("Redis unavailable for rate limiting, using in-memory: %s", e)
        return MEMORY_STORAGE
    return settings.REDIS_URL


def build_limiter() -> Limiter:
    return Limiter(
        key_func=get_remote_address,
        storage_uri=_storage_uri(),
        default_limits=_default_limits(),
        enabled=not IS_TESTING,
    )


limiter = build_limiter()
