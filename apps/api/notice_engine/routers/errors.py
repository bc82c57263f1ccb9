"""Translate takedown service errors into HTTP responses."""

from fastapi import HTTPException

from notice_engine.services.errors import (
    AuthorizationDenied,
    ExternalServiceUnavailable,
    NoticeNotFound,
    StateTransitionRejected,
    StrikeNotFound,
    TakedownServiceError,
    ValidationIncomplete,
)
from notice_engine.services.trusted_flagger_service import DuplicateFlaggerError


def to_http_exception(exc: TakedownServiceError) -> HTTPException:
    if isinstance(exc, NoticeNotFound):
        return HTTPException(status_code=404, detail="Notice not found")
    if isinstance(exc, StrikeNotFound):
        return HTTPException(status_code=404, detail="Strike not found")
    if isinstance(exc, StateTransitionRejected):
        return HTTPException(
            status_code=409,
            detail={
                "message": str(exc),
                "from_status": exc.from_status,
                "to_status": exc.to_status,
            },
        )
    if isinstance(exc, ValidationIncomplete):
        return HTTPException(
            status_code=422,
            detail={"message": str(exc), "missing": exc.missing},
        )
    if isinstance(exc, AuthorizationDenied):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, DuplicateFlaggerError):
        return HTTPException(status_code=409, detail="Trusted flagger already registered")
    if isinstance(exc, ExternalServiceUnavailable):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=503, detail=str(exc))
