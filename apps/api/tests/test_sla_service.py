"""Tests for SLA deadline and priority math - unit tests only."""

from datetime import datetime, timedelta, timezone

import pytest

from notice_engine.core.clock import FrozenClock
from notice_engine.services import sla_service


T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)  # Monday


EXPECTED_SLA_HOURS = {
    "urgent": {"US": 24, "EU": 12, "UK": 24, "CA": 48, "AU": 48, "WW": 72},
    "high": {"US": 48, "EU": 24, "UK": 48, "CA": 72, "AU": 72, "WW": 96},
    "normal": {"US": 72, "EU": 48, "UK": 72, "CA": 96, "AU": 96, "WW": 120},
    "low": {"US": 168, "EU": 96, "UK": 168, "CA": 168, "AU": 168, "WW": 240},
}


@pytest.mark.parametrize(
    "jurisdiction,priority,hours",
    [
        (jurisdiction, priority, hours)
        for priority, row in EXPECTED_SLA_HOURS.items()
        for jurisdiction, hours in row.items()
    ],
)
def test_sla_deadline_from_matrix(jurisdiction, priority, hours):
    clock = FrozenClock(T0)
    deadline = sla_service.calculate_sla_deadline(jurisdiction, priority, clock)
    assert deadline == T0 + timedelta(hours=hours)


def test_unknown_pair_falls_back_to_default():
    clock = FrozenClock(T0)
    assert sla_service.calculate_sla_deadline("XX", "normal", clock) == T0 + timedelta(hours=72)
    assert sla_service.calculate_sla_deadline("US", "whenever", clock) == T0 + timedelta(hours=72)


def test_eu_is_always_fastest():
    for row in sla_service.SLA_MATRIX.values():
        assert row["EU"] == min(row.values())


def test_matrix_covers_every_pair():
    assert sla_service.SLA_MATRIX == EXPECTED_SLA_HOURS


def test_worldwide_is_always_slowest():
    for priority, row in sla_service.SLA_MATRIX.items():
        assert row["WW"] == max(row.values()), priority


def test_priority_order():
    ranks = [sla_service.priority_rank(p) for p in ("low", "normal", "high", "urgent")]
    assert ranks == sorted(ranks)
    assert len(set(ranks)) == 4


def test_priority_trust_level_overrides():
    assert sla_service.determine_priority("low", "premium") == "urgent"
    assert sla_service.determine_priority("low", "elevated") == "high"
    assert sla_service.determine_priority("low", "standard") == "low"
    assert sla_service.determine_priority("high", None) == "high"
    assert sla_service.determine_priority(None, None) == "normal"


def test_overdue_only_for_open_notices():
    clock = FrozenClock(T0)
    past = T0 - timedelta(minutes=1)
    assert sla_service.is_overdue_sla(past, "triage", clock) is True
    assert sla_service.is_overdue_sla(past, "resolved_upheld", clock) is False
    assert sla_service.is_overdue_sla(past, "withdrawn", clock) is False
    assert sla_service.is_overdue_sla(T0 + timedelta(hours=1), "submitted", clock) is False
    assert sla_service.is_overdue_sla(None, "submitted", clock) is False


def test_overdue_flips_when_clock_advances():
    clock = FrozenClock(T0)
    deadline = sla_service.calculate_sla_deadline("EU", "urgent", clock)
    assert not sla_service.is_overdue_sla(deadline, "submitted", clock)
    clock.advance(hours=12, seconds=1)
    assert sla_service.is_overdue_sla(deadline, "submitted", clock)


def test_counter_notice_deadline_skips_weekends():
    # Monday + 10 business days = Monday two weeks later
    clock = FrozenClock(T0)
    deadline = sla_service.calculate_counter_notice_deadline(10, clock)
    assert deadline == T0 + timedelta(days=14)
    assert deadline.weekday() == 0


def test_counter_notice_deadline_from_friday_never_lands_on_weekend():
    friday = datetime(2026, 3, 6, 17, 0, tzinfo=timezone.utc)
    deadline = sla_service.calculate_counter_notice_deadline(1, FrozenClock(friday))
    assert deadline.weekday() == 0
    assert deadline == friday + timedelta(days=3)


def test_counter_notice_deadline_from_saturday():
    saturday = datetime(2026, 3, 7, 12, 0, tzinfo=timezone.utc)
    deadline = sla_service.calculate_counter_notice_deadline(10, FrozenClock(saturday))
    assert deadline.weekday() < 5
    # Mon..Fri twice
    assert deadline == datetime(2026, 3, 20, 12, 0, tzinfo=timezone.utc)


def test_escalated_deadline_measured_from_receipt():
    created = T0 - timedelta(hours=30)
    assert sla_service.escalated_deadline(created, "US", "urgent") == created + timedelta(hours=24)


@pytest.mark.parametrize("business_days", [1, 5, 10, 15])
@pytest.mark.parametrize("start_offset", range(7))
def test_counter_notice_deadline_every_start_day(start_offset, business_days):
    start = T0 + timedelta(days=start_offset)
    deadline = sla_service.calculate_counter_notice_deadline(business_days, FrozenClock(start))

    assert deadline.weekday() < 5
    assert deadline.time() == start.time()
    elapsed = (deadline - start).days
    assert business_days <= elapsed <= business_days + 6
    counted = sum(
        1 for d in range(1, elapsed + 1) if (start + timedelta(days=d)).weekday() < 5
    )
    assert counted == business_days
