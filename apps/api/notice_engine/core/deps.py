"""FastAPI dependencies for authentication, authorization, database access
and external collaborators."""

from typing import Generator

import jwt
from fastapi import Depends, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from notice_engine.core.clock import Clock, system_clock
from notice_engine.core.security import decode_session_token
from notice_engine.db.enums import Role
from notice_engine.db.session import SessionLocal
from notice_engine.schemas.auth import OperatorSession, TokenPayload
from notice_engine.services import content_store, fingerprint_service, notification_service, risk_assessment

# Cookie name (Bearer header also accepted for service-to-service calls)
COOKIE_NAME = "notice_session"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_clock() -> Clock:
    return system_clock


def get_risk_assessor() -> risk_assessment.RiskAssessor:
    return risk_assessment.get_risk_assessor()


def get_content_store() -> content_store.ContentStore:
    return content_store.get_content_store()


def get_notifier() -> notification_service.Notifier:
    return notification_service.get_notifier()


def get_fingerprint_scanner() -> fingerprint_service.FingerprintScanner | None:
    return fingerprint_service.get_fingerprint_scanner()


def _extract_token(request: Request) -> str | None:
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return None


def get_current_session(request: Request) -> OperatorSession:
    """
    Get session context (operator id and role) from the session token.

    Raises:
        HTTPException 401: Not authenticated / invalid token
        HTTPException 403: Unknown role
    """
    token = _extract_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = TokenPayload.model_validate(decode_session_token(token))
    except (jwt.InvalidTokenError, ValidationError):
        raise HTTPException(status_code=401, detail="Invalid session")

    # Validate role is a known enum value - return 403 not 500
    if not Role.has_value(payload.role):
        raise HTTPException(
            status_code=403,
            detail=f"Unknown role '{payload.role}'. Contact administrator.",
        )

    return OperatorSession(user_id=payload.sub, role=Role(payload.role))


def require_roles(allowed_roles):
    """
    Dependency factory for role-based authorization.

    Uses enum values (not strings) to prevent drift.

    Usage:
        @router.post("/admin", dependencies=[Depends(require_roles([Role.ADMIN]))])
    """
    def dependency(session: OperatorSession = Depends(get_current_session)) -> OperatorSession:
        if session.role not in allowed_roles:
            raise HTTPException(
                status_code=403,
                detail=f"Role '{session.role.value}' not authorized for this action",
            )
        return session
    return dependency
