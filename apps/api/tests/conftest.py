"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, schema created and dropped per test
- Frozen clock for deterministic deadline math
- Fake collaborators (risk assessor, content store, notifier, scanner)
- JWT token minting and HTTPX AsyncClient for API tests
"""
import os

# Must be set before notice_engine modules read settings
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["TESTING"] = "1"
os.environ["ENV"] = "test"
os.environ["JWT_SECRET"] = "test-session-secret-0123456789abcdef"
os.environ["RISK_ASSESSMENT_API_KEY"] = ""
os.environ["FINGERPRINT_SCAN_URL"] = ""
os.environ["CONTENT_STORE_URL"] = ""
os.environ["NOTIFICATION_WEBHOOK_URL"] = ""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Generator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from notice_engine.core.clock import FrozenClock
from notice_engine.core.deps import (
    get_clock,
    get_content_store,
    get_db,
    get_fingerprint_scanner,
    get_notifier,
    get_risk_assessor,
)
from notice_engine.core.security import create_session_token
from notice_engine.db.base import Base
from notice_engine.db.enums import Role
from notice_engine.db.session import SessionLocal, engine
from notice_engine.main import app
from notice_engine.services import takedown_service
from notice_engine.services.content_store import ContentStore
from notice_engine.services.errors import ExternalServiceUnavailable
from notice_engine.services.fingerprint_service import FingerprintScanner, ScanResult
from notice_engine.services.notification_service import Notifier
from notice_engine.services.risk_assessment import RiskAssessment, RiskAssessor

# Monday 09:00 UTC
T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


# =============================================================================
# Fakes
# =============================================================================


class FakeAssessor(RiskAssessor):
    def __init__(self, result: RiskAssessment | None = None, error: Exception | None = None):
        self.result = result or RiskAssessment(
            is_valid=True, risk_level="low", suggested_priority="normal", notes="ok"
        )
        self.error = error
        self.calls: list[str] = []

    def assess(self, text: str) -> RiskAssessment:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.result


class FakeContentStore(ContentStore):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[tuple] = []

    def _record(self, *call):
        if self.fail:
            raise ExternalServiceUnavailable("content store down")
        self.calls.append(call)

    def disable(self, content_id, content_type):
        self._record("disable", content_id, content_type)

    def remove(self, content_id, content_type):
        self._record("remove", content_id, content_type)

    def geo_block(self, content_id, content_type, regions):
        self._record("geo_block", content_id, content_type, tuple(regions))

    def reinstate(self, content_id, content_type):
        self._record("reinstate", content_id, content_type)


class FakeNotifier(Notifier):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, str | None, dict]] = []

    def send(self, event, recipient, payload):
        if self.fail:
            raise ConnectionError("smtp unreachable")
        self.sent.append((event, recipient, payload))

    def events(self) -> list[str]:
        return [e for e, _, _ in self.sent]


class FakeScanner(FingerprintScanner):
    def __init__(self, result: ScanResult | None = None, error: Exception | None = None):
        self.result = result or ScanResult(match_found=False, confidence_score=0.0, provider="fake")
        self.error = error
        self.calls: list[str] = []

    def scan(self, content_id: str) -> ScanResult:
        self.calls.append(content_id)
        if self.error is not None:
            raise self.error
        return self.result


# =============================================================================
# Core fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema per test; app code may commit freely."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(T0)


@pytest.fixture
def assessor() -> FakeAssessor:
    return FakeAssessor()


@pytest.fixture
def content_store() -> FakeContentStore:
    return FakeContentStore()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


def dmca_payload(**overrides: Any) -> dict[str, Any]:
    """A complete DMCA §512(c)(3) notice."""
    payload = {
        "jurisdiction": "US",
        "content_type": "track",
        "content_id": "track-123",
        "infringing_content_url": "https://music.example/tracks/123",
        "content_owner_id": "artist-1",
        "claimant_name": "Jane Rights",
        "claimant_email": "jane@label.example",
        "claimant_address": "1 Music Row, Nashville, TN 37203",
        "copyrighted_work_title": "Original Song",
        "copyrighted_work_description": "Studio recording released in 2024",
        "infringement_description": "Full unlicensed copy of the master recording uploaded as a track.",
        "infringement_type": "reproduction",
        "good_faith_statement": True,
        "accuracy_statement": True,
        "perjury_statement": True,
        "electronic_signature": "Jane Rights",
    }
    payload.update(overrides)
    return payload


def counter_elements(**overrides: Any) -> dict[str, Any]:
    """A complete §512(g)(3) counter-notice."""
    elements = {
        "identification_of_removed_content": "track-123 at https://music.example/tracks/123",
        "good_faith_belief": True,
        "consent_to_jurisdiction": True,
        "consent_to_service": True,
        "electronic_signature": "Artist One",
        "address": "22 Studio Lane, Austin, TX 78701",
        "original_work_evidence": "Session files dated 2023",
    }
    elements.update(overrides)
    return elements


@dataclass
class Harness:
    """Bundles a session, clock and fakes for service-level tests."""
    db: Session
    clock: FrozenClock
    assessor: FakeAssessor
    content_store: FakeContentStore
    notifier: FakeNotifier
    scanner: FakeScanner | None = None

    def submit(self, **overrides: Any) -> takedown_service.IntakeResult:
        return takedown_service.submit_notice(
            self.db,
            dmca_payload(**overrides),
            assessor=self.assessor,
            notifier=self.notifier,
            content_store=self.content_store,
            scanner=self.scanner,
            clock=self.clock,
        )

    def notice(self, ticket_id: str):
        notice = takedown_service.get_notice(self.db, ticket_id)
        self.db.refresh(notice)
        return notice

    def act(self, ticket_id: str, action: str = "disable", operator: str = "reviewer-1"):
        return takedown_service.take_action(
            self.db, ticket_id, action, operator,
            content_store=self.content_store, clock=self.clock,
        )

    def resolve(self, ticket_id: str, outcome: str, operator: str = "admin-1"):
        return takedown_service.admin_resolve(
            self.db, ticket_id, outcome, operator,
            content_store=self.content_store, notifier=self.notifier, clock=self.clock,
        )


@pytest.fixture
def harness(db, clock, assessor, content_store, notifier) -> Harness:
    return Harness(
        db=db, clock=clock, assessor=assessor, content_store=content_store, notifier=notifier
    )


# =============================================================================
# Auth / client fixtures
# =============================================================================


def auth_headers(user_id: str, role: Role) -> dict[str, str]:
    token = create_session_token(user_id, role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return auth_headers("admin-1", Role.ADMIN)


@pytest.fixture
def reviewer_headers() -> dict[str, str]:
    return auth_headers("reviewer-1", Role.REVIEWER)


@pytest.fixture
def artist_headers() -> dict[str, str]:
    return auth_headers("artist-1", Role.ARTIST)


@pytest.fixture(scope="function")
async def client(
    db: Session,
    clock: FrozenClock,
    assessor: FakeAssessor,
    content_store: FakeContentStore,
    notifier: FakeNotifier,
) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient with the database, clock and collaborators overridden."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_risk_assessor] = lambda: assessor
    app.dependency_overrides[get_content_store] = lambda: content_store
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_fingerprint_scanner] = lambda: None

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
