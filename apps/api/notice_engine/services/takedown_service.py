"""Takedown service - intake, enforcement, disputes and resolution.

Every mutating operation loads its notice with SELECT ... FOR UPDATE so
concurrent writers on one notice are serialized; the loser re-reads the
new status and is rejected by the lifecycle guard.
"""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notice_engine.core.clock import Clock, system_clock
from notice_engine.core.config import settings
from notice_engine.core.structured_logging import build_log_context
from notice_engine.db.enums import (
    AppealStatus,
    AppealType,
    ContentActionKind,
    CounterNoticeDecision,
    CounterNoticeStatus,
    NoticePriority,
    NoticeStatus,
    Role,
    ScanAutoAction,
    ScanStatus,
    TakedownActionType,
)
from notice_engine.db.models import (
    CounterNotice,
    FingerprintScan,
    RepeatInfringer,
    TakedownAction,
    TakedownAppeal,
    TakedownNotice,
    TrustedFlagger,
)
from notice_engine.services import (
    audit_service,
    counter_notice_service,
    fingerprint_service,
    lifecycle,
    notification_service,
    repeat_infringer_service,
    trusted_flagger_service,
)
from notice_engine.services.content_store import ContentStore
from notice_engine.services.errors import (
    AuthorizationDenied,
    NoticeNotFound,
    StateTransitionRejected,
    TakedownServiceError,
)
from notice_engine.services.fingerprint_service import FingerprintScanner
from notice_engine.services.notification_service import Notifier
from notice_engine.services.risk_assessment import RiskAssessor, assess_notice
from notice_engine.services.sla_service import (
    TERMINAL_STATUSES,
    calculate_counter_notice_deadline,
    calculate_sla_deadline,
    determine_priority,
    escalated_deadline,
    is_overdue_sla,
    priority_rank,
)
from notice_engine.services.statutory_validator import (
    get_default_framework,
    requires_canadian_forwarding,
    validate,
)

logger = logging.getLogger(__name__)

TICKET_ALPHABET = string.ascii_uppercase + string.digits
TICKET_SUFFIX_LENGTH = 6

# Notice columns accepted verbatim from the intake payload
INTAKE_FIELDS = (
    "content_type",
    "content_id",
    "infringing_content_url",
    "additional_urls",
    "content_owner_id",
    "claimant_name",
    "claimant_email",
    "claimant_phone",
    "claimant_address",
    "claimant_company",
    "is_rights_holder",
    "authorized_agent_for",
    "copyrighted_work_title",
    "copyrighted_work_description",
    "copyrighted_work_url",
    "copyright_registration_number",
    "isrc_code",
    "upc_code",
    "infringement_description",
    "infringement_type",
    "good_faith_statement",
    "accuracy_statement",
    "perjury_statement",
    "electronic_signature",
)

CONTENT_ACTION_EVENTS = {
    ContentActionKind.REMOVE.value: TakedownActionType.CONTENT_REMOVED,
    ContentActionKind.DISABLE.value: TakedownActionType.CONTENT_DISABLED,
    ContentActionKind.GEO_BLOCK.value: TakedownActionType.CONTENT_GEO_BLOCKED,
}

RESOLUTION_OUTCOMES = frozenset(
    {
        NoticeStatus.RESOLVED_UPHELD.value,
        NoticeStatus.RESOLVED_REVERSED.value,
        NoticeStatus.WITHDRAWN.value,
    }
)


# =============================================================================
# Result types
# =============================================================================


@dataclass
class IntakeResult:
    ticket_id: str
    notice_id: UUID
    status: str
    priority: str
    jurisdiction: str
    legal_framework: str
    sla_deadline: datetime
    needs_remediation: bool
    missing_elements: list[str] = field(default_factory=list)


@dataclass
class NoticeStatusView:
    ticket_id: str
    status: str
    priority: str
    jurisdiction: str
    sla_deadline: datetime
    is_overdue: bool
    counter_notice_deadline: datetime | None
    needs_remediation: bool
    created_at: datetime


@dataclass
class NoticeDetail:
    notice: TakedownNotice
    is_overdue: bool
    actions: list[TakedownAction]
    counter_notice: CounterNotice | None
    appeals: list[TakedownAppeal]
    scans: list[FingerprintScan]
    chain_valid: bool


# =============================================================================
# Helpers
# =============================================================================


def generate_ticket_id(clock: Clock = system_clock) -> str:
    """TDN-YYYY-XXXXXX with a cryptographically random suffix."""
    suffix = "".join(secrets.choice(TICKET_ALPHABET) for _ in range(TICKET_SUFFIX_LENGTH))
    return f"TDN-{clock.now().year}-{suffix}"


def get_notice(db: Session, ticket_id: str) -> TakedownNotice | None:
    return db.execute(
        select(TakedownNotice).where(TakedownNotice.ticket_id == ticket_id)
    ).scalar_one_or_none()


def _lock_notice(db: Session, ticket_id: str) -> TakedownNotice:
    notice = db.execute(
        select(TakedownNotice)
        .where(TakedownNotice.ticket_id == ticket_id)
        .with_for_update()
    ).scalar_one_or_none()
    if notice is None:
        raise NoticeNotFound(ticket_id)
    return notice


def _require_open(notice: TakedownNotice, to_status: str = NoticeStatus.WITHDRAWN.value) -> None:
    if notice.status in TERMINAL_STATUSES:
        raise StateTransitionRejected(
            notice.status, to_status, f"Notice {notice.ticket_id} is closed ({notice.status})"
        )


def _check_party(notice: TakedownNotice, user_id: str, role: Role | str) -> None:
    """Artists may only dispute notices against their own content."""
    if Role(role) == Role.ADMIN:
        return
    if notice.content_owner_id is None or notice.content_owner_id != user_id:
        raise AuthorizationDenied("Only the content owner can dispute this notice")


def _to_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


# =============================================================================
# Intake
# =============================================================================


def submit_notice(
    db: Session,
    fields: dict[str, Any],
    *,
    assessor: RiskAssessor,
    notifier: Notifier,
    content_store: ContentStore | None = None,
    scanner: FingerprintScanner | None = None,
    submitter_ip: str | None = None,
    clock: Clock = system_clock,
    ticket_id_factory=generate_ticket_id,
) -> IntakeResult:
    """
    Accept a takedown notice. Always issues a ticket.

    Statutory gaps are recorded as remediation flags, assessment outages
    fall back to the default assessment, and scan failures are recorded as
    failed scans; none of them fail the submission.
    """
    fields = {k: _to_value(v) for k, v in fields.items()}
    jurisdiction = fields.get("jurisdiction") or "US"
    framework = fields.get("legal_framework") or get_default_framework(jurisdiction)

    validation = validate(fields, framework)

    flagger = trusted_flagger_service.get_active_flagger(db, fields.get("claimant_email"))
    flagger_id = flagger.id if flagger else None
    trust_level = flagger.trust_level if flagger else None

    assessment = assess_notice(assessor, {**fields, "jurisdiction": jurisdiction})
    priority = determine_priority(assessment.suggested_priority, trust_level)
    sla_deadline = calculate_sla_deadline(jurisdiction, priority, clock)

    columns = {name: fields[name] for name in INTAKE_FIELDS if fields.get(name) is not None}
    columns.setdefault("content_type", "other")

    notice = None
    max_attempts = max(1, settings.TICKET_ID_MAX_ATTEMPTS)
    for attempt in range(1, max_attempts + 1):
        now = clock.now()
        candidate = TakedownNotice(
            ticket_id=ticket_id_factory(clock),
            jurisdiction=jurisdiction,
            legal_framework=framework,
            priority=priority,
            status=NoticeStatus.SUBMITTED.value,
            sla_deadline=sla_deadline,
            trust_level=trust_level,
            trusted_flagger_id=flagger_id,
            needs_remediation=not validation.valid,
            missing_elements=validation.missing or None,
            risk_level=assessment.risk_level,
            ai_suggested_priority=assessment.suggested_priority,
            assessment_notes=assessment.notes,
            submitter_ip=submitter_ip,
            created_at=now,
            updated_at=now,
            **columns,
        )
        try:
            # Savepoint: a collision undoes only this insert
            with db.begin_nested():
                db.add(candidate)
        except IntegrityError:
            # Unique constraint on ticket_id is authoritative; regenerate
            logger.warning(
                "Ticket id collision, regenerating",
                extra={"attempt": attempt, "max_attempts": max_attempts},
            )
            continue
        notice = candidate
        break

    if notice is None:
        raise TakedownServiceError(f"Could not allocate a unique ticket id after {max_attempts} attempts")

    log_context = build_log_context(ticket_id=notice.ticket_id, jurisdiction=jurisdiction)

    audit_service.log_action(
        db,
        notice,
        TakedownActionType.NOTICE_RECEIVED,
        notes=f"Ticket {notice.ticket_id} created. Assessment: {assessment.risk_level} risk. Priority: {priority}.",
        details={
            "risk_level": assessment.risk_level,
            "ai_suggested_priority": assessment.suggested_priority,
            "priority": priority,
            "trusted_flagger": flagger_id is not None,
            "sla_deadline": sla_deadline.isoformat(),
        },
        clock=clock,
    )
    if validation.valid:
        audit_service.log_action(
            db, notice, TakedownActionType.INTAKE_VALIDATED,
            details={"legal_framework": framework}, clock=clock,
        )
    else:
        audit_service.log_action(
            db,
            notice,
            TakedownActionType.INTAKE_FLAGGED,
            notes="Missing statutory elements; remediation required",
            details={"legal_framework": framework, "missing": validation.missing},
            clock=clock,
        )

    if flagger is not None:
        flagger.total_notices += 1

    if scanner is not None and content_store is not None and notice.content_id:
        fingerprint_service.scan_content(
            db,
            scanner,
            content_store,
            notice.content_id,
            notice.content_type,
            notice=notice,
            clock=clock,
        )

    if requires_canadian_forwarding(jurisdiction) and lifecycle.can_transition(
        notice.status, NoticeStatus.NOTIFIED
    ):
        lifecycle.transition(
            db,
            notice,
            NoticeStatus.NOTIFIED,
            TakedownActionType.NOTICE_FORWARDED,
            notes="Canada notice-and-notice: notice forwarded to the subscriber (Copyright Act ss. 41.25-41.26)",
            clock=clock,
        )
        notification_service.notify(
            notifier,
            "notice_forwarded",
            notice.content_owner_id,
            {"ticket_id": notice.ticket_id, "infringing_content_url": notice.infringing_content_url},
        )

    delivered = notification_service.notify(
        notifier,
        "notice_receipt",
        notice.claimant_email,
        {
            "ticket_id": notice.ticket_id,
            "sla_deadline": sla_deadline.isoformat(),
            "missing_elements": validation.missing,
        },
    )
    audit_service.log_action(
        db,
        notice,
        TakedownActionType.RECEIPT_SENT_TO_CLAIMANT,
        details={"delivered": delivered},
        clock=clock,
    )

    db.commit()
    db.refresh(notice)
    logger.info("Takedown notice received", extra={**log_context, "priority": priority})

    return IntakeResult(
        ticket_id=notice.ticket_id,
        notice_id=notice.id,
        status=notice.status,
        priority=notice.priority,
        jurisdiction=notice.jurisdiction,
        legal_framework=notice.legal_framework,
        sla_deadline=notice.sla_deadline,
        needs_remediation=notice.needs_remediation,
        missing_elements=list(notice.missing_elements or []),
    )


# =============================================================================
# Status & queues
# =============================================================================


def get_notice_status(
    db: Session,
    ticket_id: str,
    claimant_email: str | None = None,
    clock: Clock = system_clock,
) -> NoticeStatusView:
    """
    Public status lookup.

    When claimant_email is given it must match the notice; a mismatch is
    reported as not found so ticket ids cannot be enumerated.
    """
    notice = get_notice(db, ticket_id)
    if notice is None:
        raise NoticeNotFound(ticket_id)
    if claimant_email is not None:
        stored = (notice.claimant_email or "").strip().lower()
        if stored != claimant_email.strip().lower():
            raise NoticeNotFound(ticket_id)
    return NoticeStatusView(
        ticket_id=notice.ticket_id,
        status=notice.status,
        priority=notice.priority,
        jurisdiction=notice.jurisdiction,
        sla_deadline=notice.sla_deadline,
        is_overdue=is_overdue_sla(notice.sla_deadline, notice.status, clock),
        counter_notice_deadline=notice.counter_notice_deadline,
        needs_remediation=notice.needs_remediation,
        created_at=notice.created_at,
    )


def list_notices(
    db: Session,
    status: str | None = None,
    jurisdiction: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[TakedownNotice]:
    query = select(TakedownNotice).order_by(TakedownNotice.sla_deadline.asc())
    if status:
        query = query.where(TakedownNotice.status == status)
    if jurisdiction:
        query = query.where(TakedownNotice.jurisdiction == jurisdiction)
    return list(db.execute(query.limit(limit).offset(offset)).scalars())


def list_notices_for_owner(
    db: Session,
    content_owner_id: str,
    status: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[TakedownNotice]:
    """Notices filed against one content owner, newest first."""
    query = (
        select(TakedownNotice)
        .where(TakedownNotice.content_owner_id == content_owner_id)
        .order_by(TakedownNotice.created_at.desc(), TakedownNotice.ticket_id.asc())
    )
    if status:
        query = query.where(TakedownNotice.status == status)
    return list(db.execute(query.limit(limit).offset(offset)).scalars())


def list_overdue_notices(db: Session, clock: Clock = system_clock) -> list[TakedownNotice]:
    """Open notices past their SLA deadline, most overdue first."""
    candidates = db.execute(
        select(TakedownNotice)
        .where(
            TakedownNotice.status.notin_(TERMINAL_STATUSES),
            TakedownNotice.sla_deadline < clock.now(),
        )
        .order_by(TakedownNotice.sla_deadline.asc())
    ).scalars()
    return [n for n in candidates if is_overdue_sla(n.sla_deadline, n.status, clock)]


# =============================================================================
# Operator workflow
# =============================================================================


def assign_for_triage(
    db: Session,
    ticket_id: str,
    assignee_id: str,
    operator_id: str,
    notes: str | None = None,
    clock: Clock = system_clock,
) -> TakedownNotice:
    notice = _lock_notice(db, ticket_id)
    details = {"assigned_to": assignee_id, "previous_assignee": notice.assigned_to}
    if notice.status == NoticeStatus.TRIAGE.value:
        # Reassignment within triage is not a status change
        notice.assigned_to = assignee_id
        audit_service.log_action(
            db, notice, TakedownActionType.TRIAGE_ASSIGNED,
            performed_by=operator_id, notes=notes, details=details, clock=clock,
        )
    else:
        lifecycle.transition(
            db,
            notice,
            NoticeStatus.TRIAGE,
            TakedownActionType.TRIAGE_ASSIGNED,
            performed_by=operator_id,
            notes=notes,
            details=details,
            clock=clock,
        )
        notice.assigned_to = assignee_id
    db.commit()
    db.refresh(notice)
    return notice


def take_action(
    db: Session,
    ticket_id: str,
    action: ContentActionKind | str,
    operator_id: str,
    *,
    content_store: ContentStore,
    notes: str | None = None,
    regions: list[str] | None = None,
    clock: Clock = system_clock,
) -> TakedownNotice:
    """
    Apply a direct enforcement action (remove, disable, geo-block).

    Rejected for notice-and-notice jurisdictions, which only forward.
    The content store is called only after the transition guard passes.
    """
    action = ContentActionKind(action).value
    notice = _lock_notice(db, ticket_id)
    if requires_canadian_forwarding(notice.jurisdiction):
        raise StateTransitionRejected(
            notice.status,
            NoticeStatus.ACTION_TAKEN.value,
            "Direct takedown is not permitted under notice-and-notice; forward instead",
        )
    lifecycle.assert_transition(notice, NoticeStatus.ACTION_TAKEN)

    if notice.content_id:
        if action == ContentActionKind.REMOVE.value:
            content_store.remove(notice.content_id, notice.content_type)
        elif action == ContentActionKind.DISABLE.value:
            content_store.disable(notice.content_id, notice.content_type)
        else:
            content_store.geo_block(notice.content_id, notice.content_type, regions or [])

    deadline = calculate_counter_notice_deadline(settings.COUNTER_NOTICE_BUSINESS_DAYS, clock)
    notice.action_type = action
    notice.action_taken_at = clock.now()
    notice.action_taken_by = operator_id
    notice.counter_notice_deadline = deadline
    details: dict[str, Any] = {"counter_notice_deadline": deadline.isoformat()}
    if regions:
        details["regions"] = regions
    lifecycle.transition(
        db,
        notice,
        NoticeStatus.ACTION_TAKEN,
        CONTENT_ACTION_EVENTS[action],
        performed_by=operator_id,
        notes=notes,
        details=details,
        clock=clock,
    )
    db.commit()
    db.refresh(notice)
    logger.info(
        "Takedown action applied",
        extra={**build_log_context(ticket_id=ticket_id, operator_id=operator_id), "action": action},
    )
    return notice


def notify_content_owner(
    db: Session,
    ticket_id: str,
    operator_id: str | None,
    *,
    notifier: Notifier,
    notes: str | None = None,
    clock: Clock = system_clock,
) -> TakedownNotice:
    notice = _lock_notice(db, ticket_id)
    lifecycle.transition(
        db,
        notice,
        NoticeStatus.NOTIFIED,
        TakedownActionType.TAKEDOWN_NOTICE_SENT_TO_ARTIST,
        performed_by=operator_id,
        notes=notes,
        clock=clock,
    )
    payload = {"ticket_id": notice.ticket_id, "action_type": notice.action_type}
    if notice.counter_notice_deadline is not None:
        payload["counter_notice_deadline"] = notice.counter_notice_deadline.isoformat()
    notification_service.notify(notifier, "takedown_notice", notice.content_owner_id, payload)
    db.commit()
    db.refresh(notice)
    return notice


def open_counter_notice_window(
    db: Session,
    ticket_id: str,
    operator_id: str | None,
    notes: str | None = None,
    clock: Clock = system_clock,
) -> TakedownNotice:
    notice = _lock_notice(db, ticket_id)
    lifecycle.assert_transition(notice, NoticeStatus.COUNTER_NOTICE_WINDOW)
    if notice.counter_notice_deadline is None:
        notice.counter_notice_deadline = calculate_counter_notice_deadline(
            settings.COUNTER_NOTICE_BUSINESS_DAYS, clock
        )
    lifecycle.transition(
        db,
        notice,
        NoticeStatus.COUNTER_NOTICE_WINDOW,
        TakedownActionType.COUNTER_NOTICE_WINDOW_OPENED,
        performed_by=operator_id,
        notes=notes,
        details={"counter_notice_deadline": notice.counter_notice_deadline.isoformat()},
        clock=clock,
    )
    db.commit()
    db.refresh(notice)
    return notice


def record_no_action(
    db: Session,
    ticket_id: str,
    operator_id: str,
    notes: str,
    clock: Clock = system_clock,
) -> TakedownNotice:
    """Record a reviewer's decision that no enforcement is warranted.

    The notice stays open until an admin resolves it.
    """
    notice = _lock_notice(db, ticket_id)
    _require_open(notice)
    audit_service.log_action(
        db, notice, TakedownActionType.NO_ACTION,
        performed_by=operator_id, notes=notes, clock=clock,
    )
    db.commit()
    db.refresh(notice)
    return notice


def add_note(
    db: Session,
    ticket_id: str,
    operator_id: str,
    note: str,
    clock: Clock = system_clock,
) -> TakedownAction:
    notice = _lock_notice(db, ticket_id)
    entry = audit_service.log_action(
        db, notice, TakedownActionType.ADMIN_NOTE_ADDED,
        performed_by=operator_id, notes=note, clock=clock,
    )
    db.commit()
    db.refresh(entry)
    return entry


def escalate_priority(
    db: Session,
    ticket_id: str,
    new_priority: NoticePriority | str,
    operator_id: str,
    notes: str | None = None,
    clock: Clock = system_clock,
) -> TakedownNotice:
    """
    Raise priority and recompute the SLA deadline from the original receipt time.

    The only path that rewrites sla_deadline; always audited. Lowering
    priority would loosen a deadline already communicated, so it is rejected.
    """
    new_priority = NoticePriority(new_priority).value
    notice = _lock_notice(db, ticket_id)
    _require_open(notice)
    if notice.priority == new_priority:
        return notice
    if priority_rank(new_priority) < priority_rank(notice.priority):
        raise StateTransitionRejected(
            notice.status,
            notice.status,
            f"Priority can only be raised, not lowered from {notice.priority} to {new_priority}",
        )

    old_priority = notice.priority
    old_deadline = notice.sla_deadline
    notice.priority = new_priority
    notice.sla_deadline = escalated_deadline(notice.created_at, notice.jurisdiction, new_priority)
    audit_service.log_action(
        db,
        notice,
        TakedownActionType.PRIORITY_CHANGED,
        performed_by=operator_id,
        notes=notes,
        details={
            "from_priority": old_priority,
            "to_priority": new_priority,
            "from_sla_deadline": old_deadline.isoformat(),
            "to_sla_deadline": notice.sla_deadline.isoformat(),
        },
        clock=clock,
    )
    db.commit()
    db.refresh(notice)
    return notice


# =============================================================================
# Resolution
# =============================================================================


def _resolve_locked(
    db: Session,
    notice: TakedownNotice,
    outcome: str,
    operator_id: str,
    notes: str | None,
    content_store: ContentStore,
    notifier: Notifier,
    clock: Clock,
    details: dict[str, Any] | None = None,
) -> TakedownNotice:
    if outcome not in RESOLUTION_OUTCOMES:
        raise ValueError(f"Unknown resolution outcome: {outcome}")
    if not lifecycle.can_resolve_notice(notice.status):
        raise StateTransitionRejected(notice.status, outcome)

    reinstate = (
        outcome == NoticeStatus.RESOLVED_REVERSED.value
        and notice.action_type is not None
        and notice.content_id is not None
    )
    if reinstate:
        # Before any mutation so a content store failure leaves the notice untouched
        content_store.reinstate(notice.content_id, notice.content_type)

    action_type = (
        TakedownActionType.NOTICE_WITHDRAWN
        if outcome == NoticeStatus.WITHDRAWN.value
        else TakedownActionType.NOTICE_RESOLVED
    )
    lifecycle.transition(
        db,
        notice,
        outcome,
        action_type,
        performed_by=operator_id,
        notes=notes,
        details=details,
        clock=clock,
    )
    if reinstate:
        audit_service.log_action(
            db, notice, TakedownActionType.CONTENT_REINSTATED,
            performed_by=operator_id,
            notes="Content reinstated following reversal",
            clock=clock,
        )

    counter = counter_notice_service.get_counter_notice(db, notice)
    if counter is not None and counter.status == CounterNoticeStatus.SUBMITTED.value:
        if outcome == NoticeStatus.RESOLVED_REVERSED.value:
            counter.status = CounterNoticeStatus.CONTENT_REINSTATED.value
            counter.decided_at = clock.now()
        elif outcome == NoticeStatus.RESOLVED_UPHELD.value:
            counter.status = CounterNoticeStatus.KEPT_DOWN.value
            counter.decided_at = clock.now()

    if outcome == NoticeStatus.RESOLVED_UPHELD.value and notice.content_owner_id:
        repeat_infringer_service.record_strike(db, notice.content_owner_id, notice, clock)

    notification_service.notify(
        notifier,
        "notice_resolved",
        notice.claimant_email,
        {"ticket_id": notice.ticket_id, "outcome": outcome},
    )
    return notice


def admin_resolve(
    db: Session,
    ticket_id: str,
    outcome: NoticeStatus | str,
    operator_id: str,
    *,
    content_store: ContentStore,
    notifier: Notifier,
    notes: str | None = None,
    clock: Clock = system_clock,
) -> TakedownNotice:
    """Close a notice as upheld, reversed or withdrawn."""
    notice = _lock_notice(db, ticket_id)
    _resolve_locked(
        db, notice, _to_value(outcome), operator_id, notes, content_store, notifier, clock
    )
    db.commit()
    db.refresh(notice)
    logger.info(
        "Takedown notice resolved",
        extra={**build_log_context(ticket_id=ticket_id, operator_id=operator_id, status=notice.status)},
    )
    return notice


# =============================================================================
# Counter-notices
# =============================================================================


def submit_counter_notice(
    db: Session,
    ticket_id: str,
    elements: dict[str, Any],
    submitted_by: str,
    role: Role | str,
    *,
    notifier: Notifier,
    clock: Clock = system_clock,
) -> CounterNotice:
    notice = _lock_notice(db, ticket_id)
    _check_party(notice, submitted_by, role)
    counter = counter_notice_service.submit_counter_notice(
        db, notice, elements, submitted_by, notifier, clock
    )
    db.commit()
    db.refresh(counter)
    return counter


def resolve_counter_notice(
    db: Session,
    ticket_id: str,
    decision: CounterNoticeDecision | str,
    operator_id: str,
    *,
    content_store: ContentStore,
    notifier: Notifier,
    notes: str | None = None,
    clock: Clock = system_clock,
) -> TakedownNotice:
    """Reinstate (reversed) or keep the content down (upheld, claimant filed suit)."""
    decision = CounterNoticeDecision(decision).value
    notice = _lock_notice(db, ticket_id)
    counter = counter_notice_service.get_counter_notice(db, notice)
    if counter is None or notice.status != NoticeStatus.COUNTER_NOTICE_RECEIVED.value:
        raise StateTransitionRejected(
            notice.status,
            NoticeStatus.RESOLVED_REVERSED.value,
            "No pending counter-notice for this notice",
        )
    outcome = (
        NoticeStatus.RESOLVED_REVERSED.value
        if decision == CounterNoticeDecision.REINSTATE.value
        else NoticeStatus.RESOLVED_UPHELD.value
    )
    _resolve_locked(
        db, notice, outcome, operator_id, notes, content_store, notifier, clock,
        details={"counter_notice_id": str(counter.id), "decision": decision},
    )
    db.commit()
    db.refresh(notice)
    return notice


# =============================================================================
# Appeals
# =============================================================================


def file_appeal(
    db: Session,
    ticket_id: str,
    appeal_type: AppealType | str,
    reason: str,
    submitted_by: str,
    role: Role | str,
    clock: Clock = system_clock,
) -> TakedownAppeal:
    appeal_type = AppealType(appeal_type).value
    notice = _lock_notice(db, ticket_id)
    _require_open(notice)
    if appeal_type == AppealType.ARTIST_APPEAL.value:
        _check_party(notice, submitted_by, role)
    elif Role(role) != Role.ADMIN:
        # Claimant appeals arrive through compliance staff
        raise AuthorizationDenied("Claimant appeals must be filed by an admin")

    appeal = TakedownAppeal(
        notice_id=notice.id,
        appeal_type=appeal_type,
        submitted_by=submitted_by,
        reason=reason,
        status=AppealStatus.SUBMITTED.value,
        created_at=clock.now(),
    )
    db.add(appeal)
    db.flush()
    audit_service.log_action(
        db,
        notice,
        TakedownActionType.APPEAL_RECEIVED,
        performed_by=submitted_by,
        notes=reason,
        details={"appeal_id": str(appeal.id), "appeal_type": appeal_type},
        clock=clock,
    )
    db.commit()
    db.refresh(appeal)
    return appeal


def resolve_appeal(
    db: Session,
    appeal_id: UUID,
    decision: AppealStatus | str,
    operator_id: str,
    *,
    content_store: ContentStore,
    notifier: Notifier,
    notes: str | None = None,
    clock: Clock = system_clock,
) -> TakedownAppeal:
    """
    Decide an appeal.

    approved sides with the appellant, denied against; escalated records the
    decision without changing the notice status.
    """
    decision = AppealStatus(decision).value
    if decision == AppealStatus.SUBMITTED.value:
        raise ValueError("An appeal decision cannot be 'submitted'")

    appeal = db.get(TakedownAppeal, appeal_id)
    if appeal is None:
        raise NoticeNotFound(f"Appeal {appeal_id}")
    notice = db.execute(
        select(TakedownNotice).where(TakedownNotice.id == appeal.notice_id).with_for_update()
    ).scalar_one()
    if appeal.status not in (AppealStatus.SUBMITTED.value, AppealStatus.ESCALATED.value):
        raise StateTransitionRejected(notice.status, notice.status, "Appeal already decided")

    outcome = None
    if decision != AppealStatus.ESCALATED.value:
        artist_wins = (decision == AppealStatus.APPROVED.value) == (
            appeal.appeal_type == AppealType.ARTIST_APPEAL.value
        )
        outcome = (
            NoticeStatus.RESOLVED_REVERSED.value if artist_wins else NoticeStatus.RESOLVED_UPHELD.value
        )
        if not lifecycle.can_resolve_notice(notice.status):
            raise StateTransitionRejected(notice.status, outcome)

    audit_service.log_action(
        db,
        notice,
        TakedownActionType.APPEAL_DECISION_MADE,
        performed_by=operator_id,
        notes=notes,
        details={"appeal_id": str(appeal.id), "decision": decision},
        clock=clock,
    )
    appeal.status = decision
    appeal.decision_notes = notes
    appeal.decided_by = operator_id
    appeal.decided_at = clock.now()
    if outcome is not None:
        _resolve_locked(
            db, notice, outcome, operator_id, notes, content_store, notifier, clock,
            details={"appeal_id": str(appeal.id)},
        )
    db.commit()
    db.refresh(appeal)
    return appeal


# =============================================================================
# Reporting
# =============================================================================


def get_notice_detail(db: Session, ticket_id: str, clock: Clock = system_clock) -> NoticeDetail:
    notice = get_notice(db, ticket_id)
    if notice is None:
        raise NoticeNotFound(ticket_id)
    appeals = list(
        db.execute(
            select(TakedownAppeal)
            .where(TakedownAppeal.notice_id == notice.id)
            .order_by(TakedownAppeal.created_at.asc())
        ).scalars()
    )
    return NoticeDetail(
        notice=notice,
        is_overdue=is_overdue_sla(notice.sla_deadline, notice.status, clock),
        actions=audit_service.list_actions(db, notice),
        counter_notice=counter_notice_service.get_counter_notice(db, notice),
        appeals=appeals,
        scans=fingerprint_service.list_scans(db, notice_id=notice.id),
        chain_valid=audit_service.verify_chain(db, notice).valid,
    )


def _count(db: Session, *conditions, model=TakedownNotice) -> int:
    query = select(func.count()).select_from(model)
    if conditions:
        query = query.where(*conditions)
    return db.execute(query).scalar_one()


def get_compliance_metrics(db: Session, clock: Clock = system_clock) -> dict[str, Any]:
    now = clock.now()
    open_filter = TakedownNotice.status.notin_(TERMINAL_STATUSES)

    by_status = dict(
        db.execute(
            select(TakedownNotice.status, func.count()).group_by(TakedownNotice.status)
        ).all()
    )
    by_jurisdiction = dict(
        db.execute(
            select(TakedownNotice.jurisdiction, func.count()).group_by(TakedownNotice.jurisdiction)
        ).all()
    )
    by_content_type = dict(
        db.execute(
            select(TakedownNotice.content_type, func.count()).group_by(TakedownNotice.content_type)
        ).all()
    )

    return {
        "total": _count(db),
        "last_30_days": _count(db, TakedownNotice.created_at >= now - timedelta(days=30)),
        "open": _count(db, open_filter),
        "overdue_sla": _count(db, open_filter, TakedownNotice.sla_deadline < now),
        "needs_remediation": _count(db, open_filter, TakedownNotice.needs_remediation.is_(True)),
        "by_status": by_status,
        "by_jurisdiction": by_jurisdiction,
        "by_content_type": by_content_type,
        "scans": {
            "total": _count(db, model=FingerprintScan),
            "matched": _count(db, FingerprintScan.match_found.is_(True), model=FingerprintScan),
            "blocked": _count(
                db,
                FingerprintScan.auto_action_taken == ScanAutoAction.UPLOAD_BLOCKED.value,
                model=FingerprintScan,
            ),
            "failed": _count(
                db, FingerprintScan.scan_status == ScanStatus.FAILED.value, model=FingerprintScan
            ),
        },
        "active_trusted_flaggers": _count(db, TrustedFlagger.is_active.is_(True), model=TrustedFlagger),
        "termination_eligible_artists": _count(
            db, RepeatInfringer.termination_eligible.is_(True), model=RepeatInfringer
        ),
    }
