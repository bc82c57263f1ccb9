"""Counter-notice (reinstatement appeal) handling."""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notice_engine.core.clock import Clock, system_clock
from notice_engine.core.config import settings
from notice_engine.db.enums import CounterNoticeStatus, NoticeStatus, TakedownActionType
from notice_engine.db.models import CounterNotice, TakedownNotice
from notice_engine.services import audit_service, lifecycle, notification_service
from notice_engine.services.errors import StateTransitionRejected
from notice_engine.services.notification_service import Notifier
from notice_engine.services.sla_service import calculate_counter_notice_deadline
from notice_engine.services.statutory_validator import (
    COUNTER_NOTICE_ELEMENTS,
    validate_counter_notice_elements,
)

logger = logging.getLogger(__name__)

# Re-exported so callers only need this module for eligibility checks
can_submit_counter_notice = lifecycle.can_submit_counter_notice
can_resolve_notice = lifecycle.can_resolve_notice

OPTIONAL_EVIDENCE = ("fair_use_argument", "license_evidence", "original_work_evidence")


def submit_counter_notice(
    db: Session,
    notice: TakedownNotice,
    elements: dict[str, Any],
    submitted_by: str,
    notifier: Notifier,
    clock: Clock = system_clock,
) -> CounterNotice:
    """
    File a counter-notice against a locked notice.

    Raises:
        StateTransitionRejected: notice not in an eligible status, or one was already filed
        ValidationIncomplete: §512(g)(3) elements missing
    """
    if not can_submit_counter_notice(notice.status):
        raise StateTransitionRejected(
            notice.status,
            NoticeStatus.COUNTER_NOTICE_RECEIVED.value,
            f"Counter-notice not accepted while notice is {notice.status}",
        )
    validate_counter_notice_elements(elements).raise_if_incomplete()

    existing = db.execute(
        select(CounterNotice.id).where(CounterNotice.notice_id == notice.id)
    ).scalar_one_or_none()
    if existing is not None:
        raise StateTransitionRejected(
            notice.status,
            NoticeStatus.COUNTER_NOTICE_RECEIVED.value,
            "A counter-notice has already been filed for this notice",
        )

    now = clock.now()
    reinstate_after = calculate_counter_notice_deadline(
        settings.COUNTER_NOTICE_BUSINESS_DAYS, clock
    )
    counter = CounterNotice(
        notice_id=notice.id,
        submitted_by=submitted_by,
        submitted_at=now,
        reinstate_after=reinstate_after,
        status=CounterNoticeStatus.SUBMITTED.value,
        **{name: elements[name] for name in COUNTER_NOTICE_ELEMENTS},
        **{name: elements.get(name) for name in OPTIONAL_EVIDENCE},
    )
    try:
        with db.begin_nested():
            db.add(counter)
    except IntegrityError as exc:
        # Lost a race with a concurrent filing
        raise StateTransitionRejected(
            notice.status,
            NoticeStatus.COUNTER_NOTICE_RECEIVED.value,
            "A counter-notice has already been filed for this notice",
        ) from exc

    notice.counter_notice_deadline = reinstate_after
    lifecycle.transition(
        db,
        notice,
        NoticeStatus.COUNTER_NOTICE_RECEIVED,
        TakedownActionType.COUNTER_NOTICE_RECEIVED,
        performed_by=submitted_by,
        details={
            "counter_notice_id": str(counter.id),
            "reinstate_after": reinstate_after.isoformat(),
        },
        clock=clock,
    )

    notification_service.notify(
        notifier,
        "counter_notice_received",
        notice.claimant_email,
        {"ticket_id": notice.ticket_id, "reinstate_after": reinstate_after.isoformat()},
    )
    audit_service.log_action(
        db,
        notice,
        TakedownActionType.CLAIMANT_NOTIFIED_OF_COUNTER,
        details={"counter_notice_id": str(counter.id)},
        clock=clock,
    )
    return counter


def get_counter_notice(db: Session, notice: TakedownNotice) -> CounterNotice | None:
    return db.execute(
        select(CounterNotice).where(CounterNotice.notice_id == notice.id)
    ).scalar_one_or_none()


def list_reinstatement_due(db: Session, clock: Clock = system_clock) -> list[CounterNotice]:
    """Counter-notices whose waiting period has passed with the notice still open.

    Nothing transitions automatically; an admin decides each one.
    """
    return list(
        db.execute(
            select(CounterNotice)
            .join(TakedownNotice, TakedownNotice.id == CounterNotice.notice_id)
            .where(
                TakedownNotice.status == NoticeStatus.COUNTER_NOTICE_RECEIVED.value,
                CounterNotice.status == CounterNoticeStatus.SUBMITTED.value,
                CounterNotice.reinstate_after <= clock.now(),
            )
            .order_by(CounterNotice.reinstate_after.asc())
        ).scalars()
    )
