"""SLA deadline and priority math.

Pure functions: everything reads "now" from an injected Clock and never
touches the database.
"""

from datetime import datetime, timedelta

from notice_engine.core.clock import Clock, system_clock
from notice_engine.db.enums import NoticePriority, NoticeStatus, TrustLevel

# Hours to act, by priority then jurisdiction. EU is fastest, WW slowest.
SLA_MATRIX: dict[str, dict[str, int]] = {
    NoticePriority.URGENT.value: {"US": 24, "EU": 12, "UK": 24, "CA": 48, "AU": 48, "WW": 72},
    NoticePriority.HIGH.value: {"US": 48, "EU": 24, "UK": 48, "CA": 72, "AU": 72, "WW": 96},
    NoticePriority.NORMAL.value: {"US": 72, "EU": 48, "UK": 72, "CA": 96, "AU": 96, "WW": 120},
    NoticePriority.LOW.value: {"US": 168, "EU": 96, "UK": 168, "CA": 168, "AU": 168, "WW": 240},
}

DEFAULT_SLA_HOURS = 72

# Ascending; escalation may only move up this order
PRIORITY_ORDER: tuple[str, ...] = (
    NoticePriority.LOW.value,
    NoticePriority.NORMAL.value,
    NoticePriority.HIGH.value,
    NoticePriority.URGENT.value,
)

TERMINAL_STATUSES = frozenset(
    {
        NoticeStatus.RESOLVED_UPHELD.value,
        NoticeStatus.RESOLVED_REVERSED.value,
        NoticeStatus.WITHDRAWN.value,
    }
)


def _value(x) -> str | None:
    return x.value if hasattr(x, "value") else x


def is_terminal(status: str | NoticeStatus) -> bool:
    return _value(status) in TERMINAL_STATUSES


def priority_rank(priority: str | NoticePriority) -> int:
    return PRIORITY_ORDER.index(_value(priority))


def sla_hours(jurisdiction: str | None, priority: str | None) -> int:
    """Hours allowed for a (jurisdiction, priority) pair; unknown pairs get 72."""
    row = SLA_MATRIX.get(_value(priority))
    if row is None:
        return DEFAULT_SLA_HOURS
    return row.get(_value(jurisdiction), DEFAULT_SLA_HOURS)


def calculate_sla_deadline(
    jurisdiction: str | None,
    priority: str | None,
    clock: Clock = system_clock,
) -> datetime:
    return clock.now() + timedelta(hours=sla_hours(jurisdiction, priority))


def escalated_deadline(created_at: datetime, jurisdiction: str, priority: str) -> datetime:
    """Deadline for a new priority, measured from the original receipt time."""
    return created_at + timedelta(hours=sla_hours(jurisdiction, priority))


def determine_priority(ai_suggested_priority: str | None, trust_level: str | None) -> str:
    """
    Final priority for a new notice.

    Trust level overrides outright (premium -> urgent, elevated -> high);
    otherwise the suggested priority passes through unchanged.
    """
    level = _value(trust_level)
    if level == TrustLevel.PREMIUM.value:
        return NoticePriority.URGENT.value
    if level == TrustLevel.ELEVATED.value:
        return NoticePriority.HIGH.value
    return _value(ai_suggested_priority) or NoticePriority.NORMAL.value


def is_overdue_sla(
    deadline: datetime | None,
    status: str | NoticeStatus,
    clock: Clock = system_clock,
) -> bool:
    """Read-time overdue check. Closed notices are never overdue."""
    if deadline is None:
        return False
    if is_terminal(status):
        return False
    return deadline < clock.now()


def calculate_counter_notice_deadline(
    business_days: int = 10,
    clock: Clock = system_clock,
) -> datetime:
    """
    Walk forward one UTC calendar day at a time, counting Mon-Fri only,
    until `business_days` have been counted. Never lands on a weekend.
    """
    current = clock.now()
    counted = 0
    while counted < business_days:
        current = current + timedelta(days=1)
        if current.weekday() < 5:
            counted += 1
    return current
