"""Counter-notice and appeal flow tests."""

from datetime import timedelta

import pytest

from notice_engine.db.models import CounterNotice
from notice_engine.services import (
    audit_service,
    counter_notice_service,
    repeat_infringer_service,
    takedown_service,
)
from notice_engine.services.errors import (
    AuthorizationDenied,
    StateTransitionRejected,
    ValidationIncomplete,
)

from conftest import T0, counter_elements


def _file_counter(harness, ticket, user="artist-1", role="artist", **overrides):
    return takedown_service.submit_counter_notice(
        harness.db, ticket, counter_elements(**overrides), user, role,
        notifier=harness.notifier, clock=harness.clock,
    )


@pytest.fixture
def acted_ticket(harness):
    ticket = harness.submit().ticket_id
    harness.act(ticket)
    return ticket


# =============================================================================
# Counter-notices
# =============================================================================


def test_counter_notice_accepted_after_action(harness, acted_ticket):
    harness.clock.advance(days=1)  # Tuesday
    counter = _file_counter(harness, acted_ticket)

    assert counter.status == "submitted"
    assert counter.submitted_by == "artist-1"
    assert counter.original_work_evidence == "Session files dated 2023"
    assert counter.reinstate_after == T0 + timedelta(days=15)

    notice = harness.notice(acted_ticket)
    assert notice.status == "counter_notice_received"
    assert notice.counter_notice_deadline == counter.reinstate_after
    actions = [a.action_type for a in audit_service.list_actions(harness.db, notice)]
    assert actions[-2:] == ["counter_notice_received", "claimant_notified_of_counter"]
    assert harness.notifier.sent[-1][0:2] == ("counter_notice_received", "jane@label.example")


def test_counter_notice_before_action_rejected(harness):
    ticket = harness.submit().ticket_id
    with pytest.raises(StateTransitionRejected):
        _file_counter(harness, ticket)
    assert counter_notice_service.get_counter_notice(harness.db, harness.notice(ticket)) is None


def test_counter_notice_after_resolution_rejected(harness, acted_ticket):
    harness.resolve(acted_ticket, "resolved_upheld")
    with pytest.raises(StateTransitionRejected):
        _file_counter(harness, acted_ticket)


def test_second_counter_notice_rejected(harness, acted_ticket):
    _file_counter(harness, acted_ticket)
    with pytest.raises(StateTransitionRejected):
        _file_counter(harness, acted_ticket)


def test_concurrent_counter_notice_loses_cleanly(harness, acted_ticket, monkeypatch):
    notice = harness.notice(acted_ticket)
    # Another session filed first; its row is not visible to our existence check
    harness.db.add(
        CounterNotice(
            notice_id=notice.id,
            submitted_by="artist-1",
            submitted_at=harness.clock.now(),
            reinstate_after=harness.clock.now() + timedelta(days=14),
            status="submitted",
            **counter_elements(),
        )
    )
    harness.db.commit()

    class _NotYetVisible:
        def scalar_one_or_none(self):
            return None

    real_execute = harness.db.execute
    calls = []

    def execute(statement, *args, **kwargs):
        calls.append(statement)
        if len(calls) == 1:
            return _NotYetVisible()
        return real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(harness.db, "execute", execute)
    with pytest.raises(StateTransitionRejected, match="already been filed"):
        counter_notice_service.submit_counter_notice(
            harness.db, notice, counter_elements(), "artist-1", harness.notifier, harness.clock
        )
    monkeypatch.undo()

    assert harness.notice(acted_ticket).status == "action_taken"
    assert audit_service.verify_chain(harness.db, notice).valid


def test_incomplete_counter_notice_rejected(harness, acted_ticket):
    with pytest.raises(ValidationIncomplete) as exc_info:
        _file_counter(harness, acted_ticket, consent_to_service=False, address="")
    assert exc_info.value.missing == ["consent_to_service", "address"]
    assert harness.notice(acted_ticket).status == "action_taken"


def test_only_content_owner_may_dispute(harness, acted_ticket):
    with pytest.raises(AuthorizationDenied):
        _file_counter(harness, acted_ticket, user="artist-2")
    # Admins may file on an artist's behalf
    counter = _file_counter(harness, acted_ticket, user="admin-1", role="admin")
    assert counter.submitted_by == "admin-1"


def test_counter_notice_from_notified_and_window(harness):
    for step in ("notified", "counter_notice_window"):
        ticket = harness.submit(content_id=f"track-{step}").ticket_id
        harness.act(ticket)
        takedown_service.notify_content_owner(
            harness.db, ticket, "reviewer-1", notifier=harness.notifier, clock=harness.clock
        )
        if step == "counter_notice_window":
            takedown_service.open_counter_notice_window(harness.db, ticket, "reviewer-1", clock=harness.clock)
        _file_counter(harness, ticket)
        assert harness.notice(ticket).status == "counter_notice_received"


def test_reinstate_decision(harness, acted_ticket):
    _file_counter(harness, acted_ticket)
    notice = takedown_service.resolve_counter_notice(
        harness.db, acted_ticket, "reinstate", "admin-1",
        content_store=harness.content_store, notifier=harness.notifier, clock=harness.clock,
    )

    assert notice.status == "resolved_reversed"
    assert harness.content_store.calls[-1] == ("reinstate", "track-123", "track")
    counter = counter_notice_service.get_counter_notice(harness.db, notice)
    assert counter.status == "content_reinstated"
    assert counter.decided_at == T0
    assert repeat_infringer_service.get_record(harness.db, "artist-1") is None
    assert audit_service.verify_chain(harness.db, notice).valid


def test_keep_down_decision_issues_strike(harness, acted_ticket):
    _file_counter(harness, acted_ticket)
    notice = takedown_service.resolve_counter_notice(
        harness.db, acted_ticket, "keep_down", "admin-1",
        content_store=harness.content_store, notifier=harness.notifier, clock=harness.clock,
    )

    assert notice.status == "resolved_upheld"
    counter = counter_notice_service.get_counter_notice(harness.db, notice)
    assert counter.status == "kept_down"
    assert repeat_infringer_service.get_record(harness.db, "artist-1").strike_count == 1


def test_counter_decision_without_counter_notice_rejected(harness, acted_ticket):
    with pytest.raises(StateTransitionRejected):
        takedown_service.resolve_counter_notice(
            harness.db, acted_ticket, "reinstate", "admin-1",
            content_store=harness.content_store, notifier=harness.notifier, clock=harness.clock,
        )


def test_reinstatement_due_after_waiting_period(harness, acted_ticket):
    _file_counter(harness, acted_ticket)
    assert counter_notice_service.list_reinstatement_due(harness.db, harness.clock) == []

    harness.clock.advance(days=14)
    due = counter_notice_service.list_reinstatement_due(harness.db, harness.clock)
    assert [c.notice.ticket_id for c in due] == [acted_ticket]
    # Listing never changes state
    assert harness.notice(acted_ticket).status == "counter_notice_received"


# =============================================================================
# Appeals
# =============================================================================


def test_artist_appeal_approved_reverses(harness, acted_ticket):
    appeal = takedown_service.file_appeal(
        harness.db, acted_ticket, "artist_appeal", "This is my own recording.", "artist-1", "artist",
        clock=harness.clock,
    )
    assert appeal.status == "submitted"

    decided = takedown_service.resolve_appeal(
        harness.db, appeal.id, "approved", "admin-1",
        content_store=harness.content_store, notifier=harness.notifier, clock=harness.clock,
    )
    assert decided.status == "approved"
    assert decided.decided_by == "admin-1"
    assert harness.notice(acted_ticket).status == "resolved_reversed"
    assert harness.content_store.calls[-1][0] == "reinstate"


def test_claimant_appeal_approved_upholds(harness, acted_ticket):
    appeal = takedown_service.file_appeal(
        harness.db, acted_ticket, "claimant_appeal", "Claimant asks for review.", "admin-1", "admin",
        clock=harness.clock,
    )
    takedown_service.resolve_appeal(
        harness.db, appeal.id, "approved", "admin-1",
        content_store=harness.content_store, notifier=harness.notifier, clock=harness.clock,
    )
    assert harness.notice(acted_ticket).status == "resolved_upheld"


def test_claimant_appeal_requires_admin(harness, acted_ticket):
    with pytest.raises(AuthorizationDenied):
        takedown_service.file_appeal(
            harness.db, acted_ticket, "claimant_appeal", "Please review again.", "artist-1", "artist",
            clock=harness.clock,
        )


def test_escalated_appeal_keeps_notice_open(harness, acted_ticket):
    appeal = takedown_service.file_appeal(
        harness.db, acted_ticket, "artist_appeal", "This is my own recording.", "artist-1", "artist",
        clock=harness.clock,
    )
    decided = takedown_service.resolve_appeal(
        harness.db, appeal.id, "escalated", "admin-1",
        content_store=harness.content_store, notifier=harness.notifier, clock=harness.clock,
    )
    assert decided.status == "escalated"
    assert harness.notice(acted_ticket).status == "action_taken"

    # Escalated appeals can still be decided
    takedown_service.resolve_appeal(
        harness.db, appeal.id, "denied", "admin-1",
        content_store=harness.content_store, notifier=harness.notifier, clock=harness.clock,
    )
    assert harness.notice(acted_ticket).status == "resolved_upheld"
    with pytest.raises(StateTransitionRejected):
        takedown_service.resolve_appeal(
            harness.db, appeal.id, "approved", "admin-1",
            content_store=harness.content_store, notifier=harness.notifier, clock=harness.clock,
        )


def test_appeal_on_closed_notice_rejected(harness, acted_ticket):
    harness.resolve(acted_ticket, "withdrawn")
    with pytest.raises(StateTransitionRejected):
        takedown_service.file_appeal(
            harness.db, acted_ticket, "artist_appeal", "This is my own recording.", "artist-1", "artist",
            clock=harness.clock,
        )
