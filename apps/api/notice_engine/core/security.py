"""Security utilities for JWT session tokens."""

from datetime import datetime, timedelta, timezone

import jwt

from notice_engine.core.config import settings


def create_session_token(user_id: str, role: str) -> str:
    """
    Create signed session JWT.

    Always signs with current secret (JWT_SECRET). The operator directory
    lives upstream; the token carries the operator id and role only.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_session_token(token: str) -> dict:
    """
    Decode and verify session JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore
