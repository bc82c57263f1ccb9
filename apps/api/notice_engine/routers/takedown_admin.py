"""Takedown admin router - operator queue, enforcement, resolution and registry."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from notice_engine.core.clock import Clock
from notice_engine.core.deps import (
    get_clock,
    get_content_store,
    get_db,
    get_fingerprint_scanner,
    get_notifier,
    require_roles,
)
from notice_engine.db.enums import ROLES_CAN_RESOLVE, ROLES_CAN_REVIEW
from notice_engine.routers.errors import to_http_exception
from notice_engine.schemas.auth import OperatorSession
from notice_engine.schemas.takedown import (
    AppealRead,
    AppealResolve,
    AuditEventRead,
    ChainVerificationRead,
    ComplianceMetrics,
    ContentActionRequest,
    CounterNoticeRead,
    CounterNoticeResolve,
    JurisdictionRuleRead,
    NoActionRequest,
    NoteCreate,
    NoticeDetailRead,
    NoticeQueueItem,
    NoticeRead,
    NoticeResolve,
    OperatorNote,
    PriorityEscalate,
    RepeatInfringerRead,
    ScanRead,
    ScanRequest,
    StrikeExpiryResult,
    StrikeRead,
    StrikeStatusUpdate,
    TriageAssign,
    TrustedFlaggerCreate,
    TrustedFlaggerRead,
    TrustedFlaggerUpdate,
)
from notice_engine.services import (
    audit_service,
    counter_notice_service,
    fingerprint_service,
    jurisdiction_service,
    repeat_infringer_service,
    takedown_service,
    trusted_flagger_service,
)
from notice_engine.services.content_store import ContentStore
from notice_engine.services.errors import TakedownServiceError
from notice_engine.services.fingerprint_service import FingerprintScanner
from notice_engine.services.notification_service import Notifier
from notice_engine.services.sla_service import is_overdue_sla

router = APIRouter(prefix="/takedown/admin", tags=["Takedown Admin"])


def _queue_item(notice, clock: Clock) -> NoticeQueueItem:
    return NoticeQueueItem(
        ticket_id=notice.ticket_id,
        status=notice.status,
        priority=notice.priority,
        jurisdiction=notice.jurisdiction,
        sla_deadline=notice.sla_deadline,
        assigned_to=notice.assigned_to,
        is_overdue=is_overdue_sla(notice.sla_deadline, notice.status, clock),
    )


# =============================================================================
# Queue
# =============================================================================


@router.get("/notices", response_model=list[NoticeQueueItem])
def list_notices(
    status: str | None = None,
    jurisdiction: str | None = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> list[NoticeQueueItem]:
    """List notices ordered by SLA deadline."""
    notices = takedown_service.list_notices(db, status, jurisdiction, limit, offset)
    return [_queue_item(n, clock) for n in notices]


@router.get("/notices/overdue", response_model=list[NoticeQueueItem])
def list_overdue_notices(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> list[NoticeQueueItem]:
    """Open notices past their SLA deadline, most overdue first."""
    return [_queue_item(n, clock) for n in takedown_service.list_overdue_notices(db, clock)]


@router.get("/notices/{ticket_id}", response_model=NoticeDetailRead)
def get_notice_detail(
    ticket_id: str,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> NoticeDetailRead:
    """Notice with audit trail, counter-notice, appeals and scans."""
    try:
        detail = takedown_service.get_notice_detail(db, ticket_id, clock)
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc
    return NoticeDetailRead.model_validate(detail)


@router.get("/notices/{ticket_id}/audit/verify", response_model=ChainVerificationRead)
def verify_audit_chain(
    ticket_id: str,
    db: Session = Depends(get_db),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> ChainVerificationRead:
    """Recompute the notice's audit hash chain."""
    notice = takedown_service.get_notice(db, ticket_id)
    if notice is None:
        raise HTTPException(status_code=404, detail="Notice not found")
    return ChainVerificationRead.model_validate(audit_service.verify_chain(db, notice))


# =============================================================================
# Workflow
# =============================================================================


@router.post("/notices/{ticket_id}/triage", response_model=NoticeRead)
def assign_for_triage(
    ticket_id: str,
    payload: TriageAssign,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> NoticeRead:
    try:
        return takedown_service.assign_for_triage(
            db, ticket_id, payload.assignee_id, session.user_id, payload.notes, clock
        )
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("/notices/{ticket_id}/action", response_model=NoticeRead)
def take_action(
    ticket_id: str,
    payload: ContentActionRequest,
    db: Session = Depends(get_db),
    content_store: ContentStore = Depends(get_content_store),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> NoticeRead:
    """Remove, disable or geo-block the targeted content."""
    try:
        return takedown_service.take_action(
            db,
            ticket_id,
            payload.action,
            session.user_id,
            content_store=content_store,
            notes=payload.notes,
            regions=payload.regions,
            clock=clock,
        )
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("/notices/{ticket_id}/notify", response_model=NoticeRead)
def notify_content_owner(
    ticket_id: str,
    payload: OperatorNote,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> NoticeRead:
    try:
        return takedown_service.notify_content_owner(
            db, ticket_id, session.user_id, notifier=notifier, notes=payload.notes, clock=clock
        )
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("/notices/{ticket_id}/counter-notice-window", response_model=NoticeRead)
def open_counter_notice_window(
    ticket_id: str,
    payload: OperatorNote,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> NoticeRead:
    try:
        return takedown_service.open_counter_notice_window(
            db, ticket_id, session.user_id, payload.notes, clock
        )
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("/notices/{ticket_id}/no-action", response_model=NoticeRead)
def record_no_action(
    ticket_id: str,
    payload: NoActionRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> NoticeRead:
    try:
        return takedown_service.record_no_action(db, ticket_id, session.user_id, payload.notes, clock)
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("/notices/{ticket_id}/notes", response_model=AuditEventRead, status_code=201)
def add_note(
    ticket_id: str,
    payload: NoteCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> AuditEventRead:
    try:
        return takedown_service.add_note(db, ticket_id, session.user_id, payload.note, clock)
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("/notices/{ticket_id}/escalate", response_model=NoticeRead)
def escalate_priority(
    ticket_id: str,
    payload: PriorityEscalate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_RESOLVE)),
) -> NoticeRead:
    """Raise priority; the SLA deadline is recomputed from receipt time."""
    try:
        return takedown_service.escalate_priority(
            db, ticket_id, payload.priority, session.user_id, payload.notes, clock
        )
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc


# =============================================================================
# Resolution
# =============================================================================


@router.post("/notices/{ticket_id}/resolve", response_model=NoticeRead)
def resolve_notice(
    ticket_id: str,
    payload: NoticeResolve,
    db: Session = Depends(get_db),
    content_store: ContentStore = Depends(get_content_store),
    notifier: Notifier = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_RESOLVE)),
) -> NoticeRead:
    """Close a notice as upheld, reversed or withdrawn (admin only)."""
    try:
        return takedown_service.admin_resolve(
            db,
            ticket_id,
            payload.outcome,
            session.user_id,
            content_store=content_store,
            notifier=notifier,
            notes=payload.notes,
            clock=clock,
        )
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("/notices/{ticket_id}/counter-notice/resolve", response_model=NoticeRead)
def resolve_counter_notice(
    ticket_id: str,
    payload: CounterNoticeResolve,
    db: Session = Depends(get_db),
    content_store: ContentStore = Depends(get_content_store),
    notifier: Notifier = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_RESOLVE)),
) -> NoticeRead:
    try:
        return takedown_service.resolve_counter_notice(
            db,
            ticket_id,
            payload.decision,
            session.user_id,
            content_store=content_store,
            notifier=notifier,
            notes=payload.notes,
            clock=clock,
        )
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc


@router.get("/counter-notices/reinstatement-due", response_model=list[CounterNoticeRead])
def list_reinstatement_due(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> list[CounterNoticeRead]:
    """Counter-notices whose waiting period has elapsed without a decision."""
    return counter_notice_service.list_reinstatement_due(db, clock)


@router.post("/appeals/{appeal_id}/resolve", response_model=AppealRead)
def resolve_appeal(
    appeal_id: UUID,
    payload: AppealResolve,
    db: Session = Depends(get_db),
    content_store: ContentStore = Depends(get_content_store),
    notifier: Notifier = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_RESOLVE)),
) -> AppealRead:
    try:
        return takedown_service.resolve_appeal(
            db,
            appeal_id,
            payload.decision,
            session.user_id,
            content_store=content_store,
            notifier=notifier,
            notes=payload.notes,
            clock=clock,
        )
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc


# =============================================================================
# Scans, registry, reporting
# =============================================================================


@router.post("/scans", response_model=ScanRead, status_code=201)
def trigger_scan(
    payload: ScanRequest,
    db: Session = Depends(get_db),
    scanner: FingerprintScanner | None = Depends(get_fingerprint_scanner),
    content_store: ContentStore = Depends(get_content_store),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> ScanRead:
    """Run a fingerprint scan, optionally against an existing notice."""
    if scanner is None:
        raise HTTPException(status_code=503, detail="Fingerprint scanning is not configured")
    notice = None
    if payload.ticket_id:
        notice = takedown_service.get_notice(db, payload.ticket_id)
        if notice is None:
            raise HTTPException(status_code=404, detail="Notice not found")
    try:
        record = fingerprint_service.scan_content(
            db,
            scanner,
            content_store,
            payload.content_id,
            payload.content_type.value,
            notice=notice,
            clock=clock,
        )
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc
    db.commit()
    db.refresh(record)
    return record


@router.get("/scans", response_model=list[ScanRead])
def list_scans(
    content_id: str | None = None,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> list[ScanRead]:
    return fingerprint_service.list_scans(db, content_id=content_id, limit=limit)


@router.get("/repeat-infringers", response_model=list[RepeatInfringerRead])
def list_repeat_infringers(
    termination_eligible: bool = False,
    db: Session = Depends(get_db),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> list[RepeatInfringerRead]:
    return repeat_infringer_service.list_records(db, termination_eligible)


@router.get("/repeat-infringers/{artist_id}", response_model=RepeatInfringerRead)
def get_repeat_infringer(
    artist_id: str,
    db: Session = Depends(get_db),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> RepeatInfringerRead:
    record = repeat_infringer_service.get_record(db, artist_id)
    if record is None:
        raise HTTPException(status_code=404, detail="No strikes recorded for this artist")
    return record


@router.get("/repeat-infringers/{artist_id}/strikes", response_model=list[StrikeRead])
def list_strikes(
    artist_id: str,
    db: Session = Depends(get_db),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> list[StrikeRead]:
    """Full strike ledger for an artist, including expired and overridden strikes."""
    return repeat_infringer_service.list_strikes(db, artist_id)


@router.post("/strikes/{strike_id}/status", response_model=StrikeRead)
def change_strike_status(
    strike_id: UUID,
    payload: StrikeStatusUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_RESOLVE)),
) -> StrikeRead:
    """Reverse or pardon a strike (admin only)."""
    try:
        return repeat_infringer_service.change_strike_status(
            db, strike_id, payload.status, session.user_id, payload.reason, clock
        )
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("/strikes/expire", response_model=StrikeExpiryResult)
def expire_strikes(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_RESOLVE)),
) -> StrikeExpiryResult:
    return StrikeExpiryResult(expired=repeat_infringer_service.expire_strikes(db, clock))


@router.get("/trusted-flaggers", response_model=list[TrustedFlaggerRead])
def list_trusted_flaggers(
    active_only: bool = False,
    db: Session = Depends(get_db),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_RESOLVE)),
) -> list[TrustedFlaggerRead]:
    return trusted_flagger_service.list_flaggers(db, active_only)


@router.post("/trusted-flaggers", response_model=TrustedFlaggerRead, status_code=201)
def add_trusted_flagger(
    payload: TrustedFlaggerCreate,
    db: Session = Depends(get_db),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_RESOLVE)),
) -> TrustedFlaggerRead:
    try:
        return trusted_flagger_service.add_flagger(
            db,
            organization_name=payload.organization_name,
            contact_email=payload.contact_email,
            trust_level=payload.trust_level,
            dsa_certified=payload.dsa_certified,
        )
    except TakedownServiceError as exc:
        raise to_http_exception(exc) from exc


@router.patch("/trusted-flaggers/{flagger_id}", response_model=TrustedFlaggerRead)
def update_trusted_flagger(
    flagger_id: UUID,
    payload: TrustedFlaggerUpdate,
    db: Session = Depends(get_db),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_RESOLVE)),
) -> TrustedFlaggerRead:
    flagger = trusted_flagger_service.get_flagger(db, flagger_id)
    if flagger is None:
        raise HTTPException(status_code=404, detail="Trusted flagger not found")
    return trusted_flagger_service.set_active(db, flagger, payload.is_active)


@router.get("/metrics", response_model=ComplianceMetrics)
def get_compliance_metrics(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    session: OperatorSession = Depends(require_roles(ROLES_CAN_REVIEW)),
) -> ComplianceMetrics:
    return takedown_service.get_compliance_metrics(db, clock)


@router.get("/jurisdiction-rules", response_model=list[JurisdictionRuleRead])
def list_jurisdiction_rules(
    session: OperatorSession = Depends(require_roles(ROLES_CAN_RESOLVE)),
) -> list[JurisdictionRuleRead]:
    """Frameworks, SLA hours and required elements applied per jurisdiction."""
    return [
        JurisdictionRuleRead.model_validate(rule, from_attributes=True)
        for rule in jurisdiction_service.list_rules()
    ]
