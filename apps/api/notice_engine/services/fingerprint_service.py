"""Fingerprint / content-matching scans.

The matching itself is an external capability; this module records every
attempt and applies the auto-block policy. A failed scan never blocks
intake: it is recorded as failed and the notice stays in manual review.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from notice_engine.core.clock import Clock, system_clock
from notice_engine.core.config import settings
from notice_engine.db.enums import (
    ContentActionKind,
    NoticeStatus,
    ScanAutoAction,
    ScanStatus,
    TakedownActionType,
)
from notice_engine.db.models import FingerprintScan, TakedownNotice
from notice_engine.services import audit_service, lifecycle
from notice_engine.services.content_store import ContentStore
from notice_engine.services.errors import ExternalServiceUnavailable
from notice_engine.services.sla_service import calculate_counter_notice_deadline
from notice_engine.services.statutory_validator import requires_canadian_forwarding

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanResult:
    match_found: bool
    confidence_score: float  # 0-100
    provider: str
    fingerprint_hash: str | None = None
    matched_title: str | None = None


class FingerprintScanner(ABC):
    @abstractmethod
    def scan(self, content_id: str) -> ScanResult:
        """Scan one piece of content. Raises ExternalServiceUnavailable on failure."""
        pass


class HttpFingerprintScanner(FingerprintScanner):
    """Content-matching provider reached over HTTP."""

    def __init__(
        self,
        url: str,
        api_key: str = "",
        provider: str = "external",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url
        self.api_key = api_key
        self.provider = provider
        self.timeout = timeout
        self._transport = transport

    def scan(self, content_id: str) -> ScanResult:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.url, headers=headers, json={"content_id": content_id})
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as exc:
            raise ExternalServiceUnavailable("Fingerprint scan timed out") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ExternalServiceUnavailable(f"Fingerprint scan failed: {exc}") from exc

        try:
            return ScanResult(
                match_found=bool(data["match_found"]),
                confidence_score=float(data.get("confidence_score") or 0.0),
                provider=data.get("provider") or self.provider,
                fingerprint_hash=data.get("fingerprint_hash"),
                matched_title=data.get("matched_title"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ExternalServiceUnavailable("Malformed fingerprint scan response") from exc


def get_fingerprint_scanner() -> FingerprintScanner | None:
    """Configured scanner, or None when scanning is disabled."""
    if not settings.FINGERPRINT_SCAN_URL:
        return None
    return HttpFingerprintScanner(
        settings.FINGERPRINT_SCAN_URL,
        api_key=settings.FINGERPRINT_API_KEY,
        timeout=settings.EXTERNAL_HTTP_TIMEOUT_SECONDS,
    )


def should_auto_block(result: ScanResult) -> bool:
    return result.match_found and result.confidence_score >= settings.FINGERPRINT_AUTO_BLOCK_THRESHOLD


def scan_content(
    db: Session,
    scanner: FingerprintScanner,
    content_store: ContentStore,
    content_id: str,
    content_type: str,
    notice: TakedownNotice | None = None,
    clock: Clock = system_clock,
) -> FingerprintScan:
    """
    Run one scan and persist its record.

    A confident match disables the content immediately and, when a notice
    is attached and still pre-action, moves it to action_taken without
    waiting for triage. Caller commits.
    """
    record = FingerprintScan(
        content_id=content_id,
        content_type=content_type,
        notice_id=notice.id if notice is not None else None,
        scan_status=ScanStatus.PENDING.value,
        auto_action_taken=ScanAutoAction.NONE.value,
        created_at=clock.now(),
    )
    db.add(record)

    try:
        result = scanner.scan(content_id)
    except Exception as exc:
        # Any provider failure routes to manual review
        record.scan_status = ScanStatus.FAILED.value
        record.error_message = str(exc)[:1000]
        db.flush()
        logger.warning(
            "Fingerprint scan failed",
            extra={"content_id": content_id, "error": str(exc)},
        )
        if notice is not None:
            audit_service.log_action(
                db,
                notice,
                TakedownActionType.AUTO_SCAN_FAILED,
                notes="Automated scan failed; routed to manual review",
                details={"scan_id": str(record.id)},
                clock=clock,
            )
        return record

    record.scan_status = ScanStatus.COMPLETED.value
    record.match_found = result.match_found
    record.confidence_score = result.confidence_score
    record.scan_provider = result.provider
    record.fingerprint_hash = result.fingerprint_hash
    record.matched_title = result.matched_title
    db.flush()

    if notice is not None:
        audit_service.log_action(
            db,
            notice,
            TakedownActionType.AUTO_SCAN_COMPLETED,
            details={
                "scan_id": str(record.id),
                "match_found": result.match_found,
                "confidence_score": result.confidence_score,
                "provider": result.provider,
            },
            clock=clock,
        )

    if not should_auto_block(result):
        return record
    if notice is not None and requires_canadian_forwarding(notice.jurisdiction):
        # Notice-and-notice regime: forward only, never block
        return record

    try:
        content_store.disable(content_id, content_type)
    except Exception as exc:
        # Any store failure leaves the content for manual review
        logger.warning(
            "Auto-block failed, leaving for manual review: %s",
            exc,
            extra={"content_id": content_id},
        )
        return record
    record.auto_action_taken = ScanAutoAction.UPLOAD_BLOCKED.value
    db.flush()
    logger.info(
        "Content auto-blocked by fingerprint match",
        extra={"content_id": content_id, "confidence_score": result.confidence_score},
    )

    if notice is not None and lifecycle.can_transition(notice.status, NoticeStatus.ACTION_TAKEN):
        deadline = calculate_counter_notice_deadline(settings.COUNTER_NOTICE_BUSINESS_DAYS, clock)
        notice.action_type = ContentActionKind.DISABLE.value
        notice.action_taken_at = clock.now()
        notice.counter_notice_deadline = deadline
        lifecycle.transition(
            db,
            notice,
            NoticeStatus.ACTION_TAKEN,
            TakedownActionType.UPLOAD_BLOCKED,
            details={
                "scan_id": str(record.id),
                "confidence_score": result.confidence_score,
                "counter_notice_deadline": deadline.isoformat(),
            },
            clock=clock,
        )
    return record


def list_scans(
    db: Session,
    content_id: str | None = None,
    notice_id=None,
    limit: int = 100,
) -> list[FingerprintScan]:
    query = select(FingerprintScan).order_by(FingerprintScan.created_at.desc()).limit(limit)
    if content_id:
        query = query.where(FingerprintScan.content_id == content_id)
    if notice_id:
        query = query.where(FingerprintScan.notice_id == notice_id)
    return list(db.execute(query).scalars())
