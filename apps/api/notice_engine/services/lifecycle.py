"""Notice lifecycle state machine.

TRANSITIONS is the single source of truth for allowed status moves;
counter-notice eligibility and resolution guards read from it too.
"""

import logging
from typing import Any

from sqlalchemy.orm import Session

from notice_engine.core.clock import Clock, system_clock
from notice_engine.db.enums import NoticeStatus, TakedownActionType
from notice_engine.db.models import TakedownAction, TakedownNotice
from notice_engine.services import audit_service
from notice_engine.services.errors import StateTransitionRejected
from notice_engine.services.sla_service import TERMINAL_STATUSES

logger = logging.getLogger(__name__)

S = NoticeStatus

_CLOSING = frozenset({S.RESOLVED_UPHELD.value, S.RESOLVED_REVERSED.value, S.WITHDRAWN.value})

TRANSITIONS: dict[str, frozenset[str]] = {
    S.SUBMITTED.value: frozenset(
        {S.TRIAGE.value, S.ACTION_TAKEN.value, S.NOTIFIED.value}
    ) | _CLOSING,
    S.TRIAGE.value: frozenset({S.ACTION_TAKEN.value, S.NOTIFIED.value}) | _CLOSING,
    S.ACTION_TAKEN.value: frozenset(
        {S.NOTIFIED.value, S.COUNTER_NOTICE_WINDOW.value, S.COUNTER_NOTICE_RECEIVED.value}
    ) | _CLOSING,
    S.NOTIFIED.value: frozenset(
        {S.COUNTER_NOTICE_WINDOW.value, S.COUNTER_NOTICE_RECEIVED.value}
    ) | _CLOSING,
    S.COUNTER_NOTICE_WINDOW.value: frozenset({S.COUNTER_NOTICE_RECEIVED.value}) | _CLOSING,
    S.COUNTER_NOTICE_RECEIVED.value: _CLOSING,
    S.RESOLVED_UPHELD.value: frozenset(),
    S.RESOLVED_REVERSED.value: frozenset(),
    S.WITHDRAWN.value: frozenset(),
}

# States from which a counter-notice may be filed
COUNTER_NOTICE_ELIGIBLE = frozenset(
    status
    for status, targets in TRANSITIONS.items()
    if S.COUNTER_NOTICE_RECEIVED.value in targets
)


def _value(status) -> str:
    return status.value if isinstance(status, NoticeStatus) else status


def allowed_targets(from_status: str | NoticeStatus) -> frozenset[str]:
    return TRANSITIONS.get(_value(from_status), frozenset())


def can_transition(from_status: str | NoticeStatus, to_status: str | NoticeStatus) -> bool:
    return _value(to_status) in allowed_targets(from_status)


def can_submit_counter_notice(status: str | NoticeStatus) -> bool:
    """Only once content has been acted on and before the matter closes."""
    return _value(status) in COUNTER_NOTICE_ELIGIBLE


def can_resolve_notice(status: str | NoticeStatus) -> bool:
    return _value(status) in TRANSITIONS and _value(status) not in TERMINAL_STATUSES


def assert_transition(notice: TakedownNotice, to_status: str | NoticeStatus) -> None:
    if not can_transition(notice.status, to_status):
        raise StateTransitionRejected(notice.status, _value(to_status))


def transition(
    db: Session,
    notice: TakedownNotice,
    to_status: str | NoticeStatus,
    action_type: TakedownActionType,
    performed_by: str | None = None,
    notes: str | None = None,
    details: dict[str, Any] | None = None,
    clock: Clock = system_clock,
) -> TakedownAction:
    """
    Move a notice to a new status and record exactly one audit event.

    The guard runs before anything is touched, so a rejected move leaves
    both the notice and its audit trail unchanged. Caller commits.
    """
    from_status = notice.status
    assert_transition(notice, to_status)

    notice.status = _value(to_status)
    if notice.status in TERMINAL_STATUSES:
        notice.resolved_at = clock.now()

    event_details = {"from_status": from_status, "to_status": notice.status}
    if details:
        event_details.update(details)
    entry = audit_service.log_action(
        db,
        notice,
        action_type,
        performed_by=performed_by,
        notes=notes,
        details=event_details,
        clock=clock,
    )
    logger.info(
        "Notice status changed",
        extra={
            "ticket_id": notice.ticket_id,
            "from_status": from_status,
            "to_status": notice.status,
        },
    )
    return entry
