"""Tests for the operations CLI."""

import pytest
from click.testing import CliRunner
from sqlalchemy import text

from notice_engine import cli as cli_module
from notice_engine.core.security import decode_session_token


@pytest.fixture
def runner(db, monkeypatch):
    """CliRunner whose commands share the test session's database."""
    monkeypatch.setattr(cli_module, "SessionLocal", lambda: db)
    # Commands close their session; keep the fixture's usable
    monkeypatch.setattr(db, "close", lambda: None)
    return CliRunner()


def test_list_overdue_empty(runner):
    result = runner.invoke(cli_module.cli, ["list-overdue"])
    assert result.exit_code == 0
    assert "No overdue notices" in result.output


def test_list_overdue_shows_late_notices(runner, harness):
    harness.clock.advance(days=-2000)  # Received long ago
    ticket = harness.submit().ticket_id

    result = runner.invoke(cli_module.cli, ["list-overdue"])
    assert result.exit_code == 0
    assert ticket in result.output
    assert "1 overdue" in result.output


def test_verify_audit_chain(runner, harness):
    ticket = harness.submit().ticket_id

    result = runner.invoke(cli_module.cli, ["verify-audit-chain", ticket])
    assert result.exit_code == 0
    assert "intact (3 events)" in result.output

    harness.db.execute(text("UPDATE takedown_actions SET performed_by = 'intruder'"))
    harness.db.commit()
    result = runner.invoke(cli_module.cli, ["verify-audit-chain", ticket])
    assert result.exit_code == 1
    assert "broken" in result.output


def test_verify_audit_chain_unknown_ticket(runner):
    result = runner.invoke(cli_module.cli, ["verify-audit-chain", "TDN-2026-ZZZZZZ"])
    assert result.exit_code == 2


def test_add_trusted_flagger(runner):
    args = ["add-trusted-flagger", "--organization", "Label Co", "--email", "legal@label.example",
            "--trust-level", "premium", "--dsa-certified"]
    result = runner.invoke(cli_module.cli, args)
    assert result.exit_code == 0
    assert "Registered Label Co (premium)" in result.output

    result = runner.invoke(cli_module.cli, args)
    assert "already exists" in result.output


def test_list_reinstatement_due(runner):
    result = runner.invoke(cli_module.cli, ["list-reinstatement-due"])
    assert result.exit_code == 0
    assert "0 awaiting decision" in result.output


def test_issue_token(runner):
    result = runner.invoke(cli_module.cli, ["issue-token", "--user-id", "svc-1", "--role", "reviewer"])
    assert result.exit_code == 0
    payload = decode_session_token(result.output.strip())
    assert payload["sub"] == "svc-1"
    assert payload["role"] == "reviewer"


def test_expire_strikes(runner, harness):
    harness.clock.advance(days=-2000)  # Struck long ago
    ticket = harness.submit().ticket_id
    harness.act(ticket)
    harness.resolve(ticket, "resolved_upheld")

    result = runner.invoke(cli_module.cli, ["expire-strikes"])
    assert result.exit_code == 0
    assert "Expired 1 strike(s)" in result.output

    result = runner.invoke(cli_module.cli, ["expire-strikes"])
    assert "Expired 0 strike(s)" in result.output
