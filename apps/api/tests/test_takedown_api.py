"""Takedown API tests - public intake, auth, operator workflow and disputes."""

import pytest
from httpx import AsyncClient

from notice_engine.core.deps import COOKIE_NAME
from notice_engine.core.security import create_session_token

from conftest import counter_elements, dmca_payload


async def _submit(client: AsyncClient, **overrides) -> str:
    response = await client.post("/takedown/notices", json=dmca_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()["ticket_id"]


# =============================================================================
# Public intake & status
# =============================================================================


@pytest.mark.asyncio
async def test_submit_notice_returns_receipt(client):
    response = await client.post("/takedown/notices", json=dmca_payload())

    assert response.status_code == 201
    data = response.json()
    assert data["ticket_id"].startswith("TDN-2026-")
    assert data["status"] == "submitted"
    assert data["legal_framework"] == "DMCA_512"
    assert data["needs_remediation"] is False
    assert data["ticket_id"] in data["message"]


@pytest.mark.asyncio
async def test_incomplete_notice_still_gets_ticket(client):
    payload = dmca_payload()
    for key in ("perjury_statement", "electronic_signature", "claimant_address"):
        payload.pop(key)
    response = await client.post("/takedown/notices", json=payload)

    assert response.status_code == 201
    data = response.json()
    assert data["needs_remediation"] is True
    assert data["missing_elements"] == ["claimant_address", "perjury_statement", "electronic_signature"]
    assert "missing" in data["message"]


@pytest.mark.asyncio
async def test_eu_notice_without_url_is_flagged_not_rejected(client):
    payload = dmca_payload(jurisdiction="EU")
    payload.pop("infringing_content_url")
    response = await client.post("/takedown/notices", json=payload)

    assert response.status_code == 201
    data = response.json()
    assert data["legal_framework"] == "DSA_ART16"
    assert data["needs_remediation"] is True
    assert data["missing_elements"] == ["infringing_content_url"]


@pytest.mark.asyncio
async def test_empty_submission_still_gets_ticket(client):
    response = await client.post("/takedown/notices", json={})

    assert response.status_code == 201
    data = response.json()
    assert data["ticket_id"].startswith("TDN-2026-")
    assert data["legal_framework"] == "DMCA_512"
    assert data["needs_remediation"] is True
    assert len(data["missing_elements"]) == 9


@pytest.mark.asyncio
async def test_malformed_submission_rejected(client):
    response = await client.post("/takedown/notices", json=dmca_payload(claimant_email="not-an-email"))
    assert response.status_code == 422
    response = await client.post("/takedown/notices", json=dmca_payload(jurisdiction="XX"))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_status_lookup(client):
    ticket = await _submit(client)

    response = await client.get(
        f"/takedown/notices/{ticket}/status", params={"claimant_email": "jane@label.example"}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "submitted"
    assert response.json()["is_overdue"] is False

    response = await client.get(
        f"/takedown/notices/{ticket}/status", params={"claimant_email": "mallory@evil.example"}
    )
    assert response.status_code == 404

    response = await client.get(f"/takedown/notices/{ticket}/status")
    assert response.status_code == 422

    response = await client.get(
        "/takedown/notices/not-a-ticket/status", params={"claimant_email": "jane@label.example"}
    )
    assert response.status_code == 422


# =============================================================================
# Authentication & authorization
# =============================================================================


@pytest.mark.asyncio
async def test_admin_routes_require_session(client):
    response = await client.get("/takedown/admin/notices")
    assert response.status_code == 401

    response = await client.get(
        "/takedown/admin/notices", headers={"Authorization": "Bearer garbage"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unknown_role_is_forbidden(client):
    token = create_session_token("x-1", "superuser")
    response = await client.get("/takedown/admin/notices", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_session_cookie_accepted(client):
    token = create_session_token("reviewer-1", "reviewer")
    response = await client.get("/takedown/admin/notices", headers={"Cookie": f"{COOKIE_NAME}={token}"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_artist_cannot_work_queue(client, artist_headers):
    response = await client.get("/takedown/admin/notices", headers=artist_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_reviewer_cannot_resolve(client, reviewer_headers, admin_headers):
    ticket = await _submit(client)

    response = await client.post(
        f"/takedown/admin/notices/{ticket}/resolve",
        json={"outcome": "resolved_upheld"},
        headers=reviewer_headers,
    )
    assert response.status_code == 403

    response = await client.post(
        f"/takedown/admin/notices/{ticket}/resolve",
        json={"outcome": "resolved_upheld", "notes": "Verified ownership"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "resolved_upheld"
    assert response.json()["resolved_at"] is not None


# =============================================================================
# Operator workflow
# =============================================================================


@pytest.mark.asyncio
async def test_queue_triage_and_action(client, reviewer_headers, content_store):
    ticket = await _submit(client)

    response = await client.get("/takedown/admin/notices", headers=reviewer_headers)
    assert [item["ticket_id"] for item in response.json()] == [ticket]

    response = await client.post(
        f"/takedown/admin/notices/{ticket}/triage",
        json={"assignee_id": "reviewer-1"},
        headers=reviewer_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "triage"

    response = await client.post(
        f"/takedown/admin/notices/{ticket}/action",
        json={"action": "remove", "notes": "Exact copy"},
        headers=reviewer_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "action_taken"
    assert data["action_type"] == "remove"
    assert data["counter_notice_deadline"] is not None
    assert content_store.calls == [("remove", "track-123", "track")]


@pytest.mark.asyncio
async def test_invalid_transition_returns_409(client, reviewer_headers, admin_headers):
    ticket = await _submit(client)
    await client.post(
        f"/takedown/admin/notices/{ticket}/resolve", json={"outcome": "withdrawn"}, headers=admin_headers
    )

    response = await client.post(
        f"/takedown/admin/notices/{ticket}/action", json={"action": "disable"}, headers=reviewer_headers
    )
    assert response.status_code == 409
    assert response.json()["detail"]["from_status"] == "withdrawn"
    assert response.json()["detail"]["to_status"] == "action_taken"


@pytest.mark.asyncio
async def test_unknown_ticket_returns_404(client, reviewer_headers):
    response = await client.post(
        "/takedown/admin/notices/TDN-2026-ZZZZZZ/action", json={"action": "disable"}, headers=reviewer_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_detail_notes_and_chain(client, reviewer_headers):
    ticket = await _submit(client)

    response = await client.post(
        f"/takedown/admin/notices/{ticket}/notes", json={"note": "Spoke with label"}, headers=reviewer_headers
    )
    assert response.status_code == 201
    assert response.json()["performed_by"] == "reviewer-1"

    response = await client.get(f"/takedown/admin/notices/{ticket}", headers=reviewer_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["chain_valid"] is True
    assert data["notice"]["ticket_id"] == ticket
    assert [a["action_type"] for a in data["actions"]] == [
        "notice_received",
        "intake_validated",
        "receipt_sent_to_claimant",
        "admin_note_added",
    ]

    response = await client.get(f"/takedown/admin/notices/{ticket}/audit/verify", headers=reviewer_headers)
    assert response.json() == {"valid": True, "checked": 4, "broken_at": None}


@pytest.mark.asyncio
async def test_escalation_is_admin_only(client, clock, reviewer_headers, admin_headers):
    ticket = await _submit(client)
    clock.advance(hours=30)

    response = await client.post(
        f"/takedown/admin/notices/{ticket}/escalate", json={"priority": "urgent"}, headers=reviewer_headers
    )
    assert response.status_code == 403

    response = await client.post(
        f"/takedown/admin/notices/{ticket}/escalate", json={"priority": "urgent"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["priority"] == "urgent"

    response = await client.get("/takedown/admin/notices/overdue", headers=reviewer_headers)
    assert [item["ticket_id"] for item in response.json()] == [ticket]
    assert response.json()[0]["is_overdue"] is True


@pytest.mark.asyncio
async def test_priority_cannot_be_lowered(client, admin_headers):
    ticket = await _submit(client)
    response = await client.post(
        f"/takedown/admin/notices/{ticket}/escalate", json={"priority": "low"}, headers=admin_headers
    )
    assert response.status_code == 409
    assert "only be raised" in response.json()["detail"]["message"]

    response = await client.get(f"/takedown/admin/notices/{ticket}", headers=admin_headers)
    assert response.json()["notice"]["priority"] == "normal"


# =============================================================================
# Disputes
# =============================================================================


@pytest.mark.asyncio
async def test_counter_notice_round_trip(client, reviewer_headers, artist_headers, admin_headers, content_store):
    ticket = await _submit(client)
    await client.post(
        f"/takedown/admin/notices/{ticket}/action", json={"action": "disable"}, headers=reviewer_headers
    )

    response = await client.post(
        f"/takedown/notices/{ticket}/counter-notice", json=counter_elements(), headers=artist_headers
    )
    assert response.status_code == 201
    assert response.json()["status"] == "submitted"

    response = await client.get("/takedown/admin/counter-notices/reinstatement-due", headers=reviewer_headers)
    assert response.json() == []

    response = await client.post(
        f"/takedown/admin/notices/{ticket}/counter-notice/resolve",
        json={"decision": "reinstate"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "resolved_reversed"
    assert content_store.calls[-1] == ("reinstate", "track-123", "track")


@pytest.mark.asyncio
async def test_counter_notice_validation_and_ownership(client, reviewer_headers, artist_headers):
    ticket = await _submit(client)
    await client.post(
        f"/takedown/admin/notices/{ticket}/action", json={"action": "disable"}, headers=reviewer_headers
    )

    response = await client.post(
        f"/takedown/notices/{ticket}/counter-notice",
        json=counter_elements(consent_to_jurisdiction=False),
        headers=artist_headers,
    )
    assert response.status_code == 422
    assert response.json()["detail"]["missing"] == ["consent_to_jurisdiction"]

    stranger = {"Authorization": f"Bearer {create_session_token('artist-2', 'artist')}"}
    response = await client.post(
        f"/takedown/notices/{ticket}/counter-notice", json=counter_elements(), headers=stranger
    )
    assert response.status_code == 403

    response = await client.post(
        f"/takedown/notices/{ticket}/counter-notice", json=counter_elements(), headers=reviewer_headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_appeal_flow(client, artist_headers, admin_headers):
    ticket = await _submit(client)

    response = await client.post(
        f"/takedown/notices/{ticket}/appeals",
        json={"appeal_type": "artist_appeal", "reason": "I wrote and recorded this song."},
        headers=artist_headers,
    )
    assert response.status_code == 201
    appeal_id = response.json()["id"]

    response = await client.post(
        f"/takedown/admin/appeals/{appeal_id}/resolve",
        json={"decision": "denied", "notes": "Claimant holds registration"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "denied"

    response = await client.get(f"/takedown/admin/notices/{ticket}", headers=admin_headers)
    assert response.json()["notice"]["status"] == "resolved_upheld"
    assert response.json()["appeals"][0]["decided_by"] == "admin-1"

    response = await client.get("/takedown/admin/repeat-infringers/artist-1", headers=admin_headers)
    assert response.json()["strike_count"] == 1


@pytest.mark.asyncio
async def test_artist_lists_notices_on_own_content(client, artist_headers, reviewer_headers):
    mine = await _submit(client)
    await _submit(client, content_id="track-9", content_owner_id="artist-2")

    response = await client.get("/takedown/my/notices", headers=artist_headers)
    assert response.status_code == 200
    items = response.json()
    assert [item["ticket_id"] for item in items] == [mine]
    assert items[0]["claimant_name"] == "Jane Rights"
    assert "claimant_email" not in items[0]

    response = await client.get("/takedown/my/notices?status=withdrawn", headers=artist_headers)
    assert response.json() == []

    response = await client.get("/takedown/my/notices", headers=reviewer_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_strike_pardon(client, reviewer_headers, admin_headers):
    ticket = await _submit(client)
    await client.post(
        f"/takedown/admin/notices/{ticket}/action", json={"action": "disable"}, headers=reviewer_headers
    )
    await client.post(
        f"/takedown/admin/notices/{ticket}/resolve", json={"outcome": "resolved_upheld"}, headers=admin_headers
    )

    response = await client.get("/takedown/admin/repeat-infringers/artist-1/strikes", headers=reviewer_headers)
    assert response.status_code == 200
    strike = response.json()[0]
    assert strike["status"] == "active"
    assert strike["expires_at"] is not None

    body = {"status": "pardoned", "reason": "First offence"}
    url = f"/takedown/admin/strikes/{strike['id']}/status"
    response = await client.post(url, json=body, headers=reviewer_headers)
    assert response.status_code == 403

    response = await client.post(url, json=body, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "pardoned"
    assert response.json()["status_changed_by"] == "admin-1"

    response = await client.post(url, json=body, headers=admin_headers)
    assert response.status_code == 409

    response = await client.get("/takedown/admin/repeat-infringers/artist-1", headers=admin_headers)
    assert response.json()["strike_count"] == 0
    assert response.json()["total_strikes"] == 1


@pytest.mark.asyncio
async def test_strike_admin_inputs(client, admin_headers):
    url = "/takedown/admin/strikes/00000000-0000-0000-0000-000000000000/status"
    response = await client.post(url, json={"status": "pardoned", "reason": "n/a"}, headers=admin_headers)
    assert response.status_code == 404

    response = await client.post(url, json={"status": "active", "reason": "n/a"}, headers=admin_headers)
    assert response.status_code == 422

    response = await client.post("/takedown/admin/strikes/expire", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"expired": 0}


# =============================================================================
# Registry, scans, metrics
# =============================================================================


@pytest.mark.asyncio
async def test_trusted_flagger_registry(client, admin_headers, reviewer_headers):
    body = {"organization_name": "Label Co", "contact_email": "jane@label.example", "trust_level": "premium"}

    response = await client.post("/takedown/admin/trusted-flaggers", json=body, headers=reviewer_headers)
    assert response.status_code == 403

    response = await client.post("/takedown/admin/trusted-flaggers", json=body, headers=admin_headers)
    assert response.status_code == 201
    flagger_id = response.json()["id"]

    response = await client.post("/takedown/admin/trusted-flaggers", json=body, headers=admin_headers)
    assert response.status_code == 409

    response = await client.post("/takedown/notices", json=dmca_payload())
    assert response.json()["priority"] == "urgent"

    response = await client.patch(
        f"/takedown/admin/trusted-flaggers/{flagger_id}", json={"is_active": False}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["is_active"] is False
    assert response.json()["total_notices"] == 1


@pytest.mark.asyncio
async def test_scan_requires_configured_scanner(client, reviewer_headers):
    response = await client.post(
        "/takedown/admin/scans", json={"content_id": "track-1", "content_type": "track"}, headers=reviewer_headers
    )
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_metrics(client, reviewer_headers):
    await _submit(client)
    await _submit(client, jurisdiction="CA")

    response = await client.get("/takedown/admin/metrics", headers=reviewer_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["by_status"] == {"submitted": 1, "notified": 1}
    assert data["termination_eligible_artists"] == 0


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_jurisdiction_rules(client, admin_headers, reviewer_headers):
    response = await client.get("/takedown/admin/jurisdiction-rules", headers=reviewer_headers)
    assert response.status_code == 403

    response = await client.get("/takedown/admin/jurisdiction-rules", headers=admin_headers)
    assert response.status_code == 200
    rules = {rule["jurisdiction"]: rule for rule in response.json()}
    assert list(rules) == ["US", "EU", "UK", "CA", "AU", "WW"]
    assert rules["EU"]["legal_framework"] == "DSA_ART16"
    assert rules["EU"]["sla_hours"]["urgent"] == 12
    assert "infringing_content_url" in rules["EU"]["required_elements"]
    assert rules["CA"]["requires_forwarding"] is True
    assert rules["CA"]["counter_notice_business_days"] is None
    assert rules["WW"]["legal_framework"] == "WIPO_GLOBAL"
