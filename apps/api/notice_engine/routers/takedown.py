"""Takedown router - public intake, status lookup and disputes."""

from fastapi import APIRouter, Depends, Path, Query, Request
from sqlalchemy.orm import Session

from notice_engine.core.clock import Clock
from notice_engine.core.deps import (
    get_clock,
    get_content_store,
    get_db,
    get_fingerprint_scanner,
    get_notifier,
    get_risk_assessor,
    require_roles,
)
from notice_engine.core.rate_limit import PUBLIC_INTAKE_LIMIT, limiter
from notice_engine.db.enums import ROLES_CAN_DISPUTE
from notice_engine.routers.errors import to_http_exception
from notice_engine.schemas.auth import OperatorSession
from notice_engine.schemas.takedown import (
    AppealCreate,
    AppealRead,
    CounterNoticeRead,
    CounterNoticeSubmit,
    NoticeReceipt,
    NoticeStatusRead,
    NoticeSubmit,
    OwnerNoticeItem,
)
from notice_engine.services import takedown_service
from notice_engine.services.content_store import ContentStore
from notice_engine.services.errors import TakedownServiceError
from notice_engine.services.fingerprint_service import FingerprintScanner
from notice_engine.services.notification_service import Notifier
from notice_engine.services.risk_assessment import RiskAssessor

TICKET_ID_PATTERN = r"^TDN-\d{4}-[A-Z0-9]{6}$"

router = APIRouter(prefix="/takedown", tags=["Takedown"])


@router.post("/notices", response_model=NoticeReceipt, status_code=201)
@limiter.limit(PUBLIC_INTAKE_LIMIT)
def submit_notice(
    request: Request,
    payload: NoticeSubmit,
    db: Session = Depends(get_db),
    assessor: RiskAssessor = Depends(get_risk_assessor),
    notifier: Notifier = Depends(get_notifier),
    content_store: ContentStore = Depends(get_content_store),
    scanner: FingerprintScanner | None = Depends(get_fingerprint_scanner),
    clock: Clock = Depends(get_clock),
) -> NoticeReceipt:
    """
    Submit a takedown notice (public).

    Always issues a ticket; missing statutory elements are reported back
    as remediation items rather than rejected.
    """
    try:
        result = takedown_service.submit_notice(
            db,
            payload.model_dump(exclude_none=True),
            assessor=assessor,
            notifier=notifier,
            content_store=content_store,
            scanner=scanner,
            submitter_ip=request.client.host if request.client else None,
            clock=clock,
        )
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc

    message = f"Your notice has been received and assigned ticket {result.ticket_id}."
    if result.needs_remediation:
        message += " Some required elements are missing; please supply them to avoid delays."
    return NoticeReceipt(
        ticket_id=result.ticket_id,
        status=result.status,
        priority=result.priority,
        jurisdiction=result.jurisdiction,
        legal_framework=result.legal_framework,
        sla_deadline=result.sla_deadline,
        needs_remediation=result.needs_remediation,
        missing_elements=result.missing_elements,
        message=message,
    )


@router.get("/notices/{ticket_id}/status", response_model=NoticeStatusRead)
def get_notice_status(
    ticket_id: str = Path(..., pattern=TICKET_ID_PATTERN),
    claimant_email: str = Query(..., min_length=3),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> NoticeStatusRead:
    """Check a notice's status (public; claimant email must match)."""
    try:
        view = takedown_service.get_notice_status(db, ticket_id, claimant_email, clock)
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc
    return NoticeStatusRead.model_validate(view)


@router.get("/my/notices", response_model=list[OwnerNoticeItem])
def list_my_notices(
    status: str | None = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_DISPUTE)),
) -> list[OwnerNoticeItem]:
    """Notices filed against the caller's own content, newest first."""
    return takedown_service.list_notices_for_owner(db, session.user_id, status, limit, offset)


@router.post(
    "/notices/{ticket_id}/counter-notice",
    response_model=CounterNoticeRead,
    status_code=201,
)
def submit_counter_notice(
    ticket_id: str,
    payload: CounterNoticeSubmit,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_DISPUTE)),
) -> CounterNoticeRead:
    """File a §512(g) counter-notice against a notice on your content."""
    try:
        counter = takedown_service.submit_counter_notice(
            db,
            ticket_id,
            payload.model_dump(),
            session.user_id,
            session.role,
            notifier=notifier,
            clock=clock,
        )
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc
    return counter


@router.post("/notices/{ticket_id}/appeals", response_model=AppealRead, status_code=201)
def file_appeal(
    ticket_id: str,
    payload: AppealCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_DISPUTE)),
) -> AppealRead:
    """Request second-level review of an open notice."""
    try:
        return takedown_service.file_appeal(
            db,
            ticket_id,
            payload.appeal_type,
            payload.reason,
            session.user_id,
            session.role,
            clock=clock,
        )
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc
