"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notice_engine.db.base import Base
from notice_engine.db.enums import (
    AppealStatus,
    CounterNoticeStatus,
    NoticePriority,
    NoticeStatus,
    ScanAutoAction,
    ScanStatus,
    StrikeStatus,
    TrustLevel,
)


# =============================================================================
# Takedown Notices
# =============================================================================


class TakedownNotice(Base):
    """
    Copyright / IP complaint received through the public intake.

    Created on intake and never physically deleted. Status only changes
    through services.lifecycle.transition so every move leaves an audit
    event behind.
    """

    __tablename__ = "takedown_notices"
    __table_args__ = (
        UniqueConstraint("ticket_id", name="uq_takedown_ticket_id"),
        Index("idx_takedown_status_deadline", "status", "sla_deadline"),
        Index("idx_takedown_content", "content_type", "content_id"),
        Index("idx_takedown_owner", "content_owner_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[str] = mapped_column(String(20), nullable=False)  # TDN-YYYY-XXXXXX

    # Targeted content
    content_type: Mapped[str] = mapped_column(String(20), nullable=False)  # ContentType
    content_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    infringing_content_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    additional_urls: Mapped[list | None] = mapped_column(JSON, nullable=True)
    content_owner_id: Mapped[str | None] = mapped_column(String(100), nullable=True)  # Artist

    # Claimant
    claimant_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    claimant_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    claimant_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    claimant_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    claimant_company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_rights_holder: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    authorized_agent_for: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Copyrighted work
    copyrighted_work_title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    copyrighted_work_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    copyrighted_work_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    copyright_registration_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    isrc_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    upc_code: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Infringement
    infringement_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    infringement_type: Mapped[str | None] = mapped_column(String(30), nullable=True)

    # Statutory attestations
    good_faith_statement: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    accuracy_statement: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    perjury_statement: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    electronic_signature: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Routing
    jurisdiction: Mapped[str] = mapped_column(String(5), nullable=False)
    legal_framework: Mapped[str] = mapped_column(String(20), nullable=False)
    trust_level: Mapped[str | None] = mapped_column(String(20), nullable=True)  # TrustLevel
    trusted_flagger_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("trusted_flaggers.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Lifecycle
    status: Mapped[str] = mapped_column(
        String(30), default=NoticeStatus.SUBMITTED.value, nullable=False
    )
    priority: Mapped[str] = mapped_column(
        String(10), default=NoticePriority.NORMAL.value, nullable=False
    )
    sla_deadline: Mapped[datetime] = mapped_column(nullable=False)
    counter_notice_deadline: Mapped[datetime | None] = mapped_column(nullable=True)

    # Remediation flags (validation never blocks intake)
    needs_remediation: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    missing_elements: Mapped[list | None] = mapped_column(JSON, nullable=True)

    # Automated assessment snapshot
    risk_level: Mapped[str | None] = mapped_column(String(10), nullable=True)
    ai_suggested_priority: Mapped[str | None] = mapped_column(String(10), nullable=True)
    assessment_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Enforcement
    action_type: Mapped[str | None] = mapped_column(String(20), nullable=True)  # ContentActionKind
    action_taken_at: Mapped[datetime | None] = mapped_column(nullable=True)
    action_taken_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    assigned_to: Mapped[str | None] = mapped_column(String(100), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(nullable=True)

    submitter_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    actions: Mapped[list["TakedownAction"]] = relationship(
        back_populates="notice", order_by="TakedownAction.id"
    )
    counter_notice: Mapped["CounterNotice | None"] = relationship(back_populates="notice")
    appeals: Mapped[list["TakedownAppeal"]] = relationship(back_populates="notice")
    trusted_flagger: Mapped["TrustedFlagger | None"] = relationship()


class TakedownAction(Base):
    """
    Append-only audit trail for takedown notices.

    Security:
    - Insert-only; ORM listeners in services.audit_service refuse updates/deletes
    - performed_by is None for automated events
    - Hash chain per notice makes tampering detectable
    """

    __tablename__ = "takedown_actions"
    __table_args__ = (Index("idx_takedown_actions_notice", "notice_id", "id"),)

    # Integer sequence so chain order is insertion order
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    notice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("takedown_notices.id", ondelete="RESTRICT"),
        nullable=False,
    )
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)  # TakedownActionType
    is_automated: Mapped[bool] = mapped_column(Boolean, nullable=False)
    performed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Tamper-evident hash chain
    prev_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)  # SHA256 hex
    entry_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)  # SHA256 hex

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    notice: Mapped["TakedownNotice"] = relationship(back_populates="actions")


# =============================================================================
# Disputes
# =============================================================================


class CounterNotice(Base):
    """DMCA §512(g)(3) counter-notice. At most one per takedown notice."""

    __tablename__ = "counter_notices"
    __table_args__ = (UniqueConstraint("notice_id", name="uq_counter_notice_notice"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    notice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("takedown_notices.id", ondelete="RESTRICT"),
        nullable=False,
    )
    submitted_by: Mapped[str] = mapped_column(String(100), nullable=False)

    # Statutory elements
    identification_of_removed_content: Mapped[str] = mapped_column(Text, nullable=False)
    good_faith_belief: Mapped[bool] = mapped_column(Boolean, nullable=False)
    consent_to_jurisdiction: Mapped[bool] = mapped_column(Boolean, nullable=False)
    consent_to_service: Mapped[bool] = mapped_column(Boolean, nullable=False)
    electronic_signature: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)

    # Supporting evidence
    fair_use_argument: Mapped[str | None] = mapped_column(Text, nullable=True)
    license_evidence: Mapped[str | None] = mapped_column(Text, nullable=True)
    original_work_evidence: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(30), default=CounterNoticeStatus.SUBMITTED.value, nullable=False
    )
    submitted_at: Mapped[datetime] = mapped_column(nullable=False)
    reinstate_after: Mapped[datetime] = mapped_column(nullable=False)
    decided_at: Mapped[datetime | None] = mapped_column(nullable=True)

    notice: Mapped["TakedownNotice"] = relationship(back_populates="counter_notice")


class TakedownAppeal(Base):
    """Second-level review requested by the artist or the claimant."""

    __tablename__ = "takedown_appeals"
    __table_args__ = (Index("idx_takedown_appeals_notice", "notice_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    notice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("takedown_notices.id", ondelete="RESTRICT"),
        nullable=False,
    )
    appeal_type: Mapped[str] = mapped_column(String(20), nullable=False)  # AppealType
    submitted_by: Mapped[str] = mapped_column(String(100), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=AppealStatus.SUBMITTED.value, nullable=False
    )
    decision_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    notice: Mapped["TakedownNotice"] = relationship(back_populates="appeals")


# =============================================================================
# Trusted Flaggers
# =============================================================================


class TrustedFlagger(Base):
    """DSA Art. 22 trusted flagger. Trust level overrides suggested priority."""

    __tablename__ = "trusted_flaggers"
    __table_args__ = (UniqueConstraint("contact_email", name="uq_trusted_flagger_email"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_email: Mapped[str] = mapped_column(String(255), nullable=False)
    trust_level: Mapped[str] = mapped_column(
        String(20), default=TrustLevel.STANDARD.value, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    dsa_certified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    total_notices: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)


# =============================================================================
# Fingerprint Scans
# =============================================================================


class FingerprintScan(Base):
    """One row per scan attempt, matched or not, successful or not."""

    __tablename__ = "fingerprint_scans"
    __table_args__ = (Index("idx_fingerprint_content", "content_type", "content_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    content_id: Mapped[str] = mapped_column(String(100), nullable=False)
    content_type: Mapped[str] = mapped_column(String(20), nullable=False)
    notice_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("takedown_notices.id", ondelete="SET NULL"),
        nullable=True,
    )
    fingerprint_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    scan_provider: Mapped[str | None] = mapped_column(String(50), nullable=True)
    match_found: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    confidence_score: Mapped[float | None] = mapped_column(Float, nullable=True)  # 0-100
    matched_title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    auto_action_taken: Mapped[str] = mapped_column(
        String(20), default=ScanAutoAction.NONE.value, nullable=False
    )
    scan_status: Mapped[str] = mapped_column(
        String(20), default=ScanStatus.PENDING.value, nullable=False
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)


# =============================================================================
# Repeat Infringers
# =============================================================================


class RepeatInfringer(Base):
    """
    Strike summary per content owner (safe-harbor repeat infringer policy).

    strike_count counts active, unexpired strikes only and is recomputed
    whenever a strike is issued, expires, or is reversed or pardoned.
    """

    __tablename__ = "repeat_infringers"
    __table_args__ = (UniqueConstraint("artist_id", name="uq_repeat_infringer_artist"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    artist_id: Mapped[str] = mapped_column(String(100), nullable=False)
    strike_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_strikes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    termination_eligible: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_strike_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    strikes: Mapped[list["InfringementStrike"]] = relationship(
        back_populates="infringer", order_by="InfringementStrike.created_at"
    )


class InfringementStrike(Base):
    """Strike ledger. Unique per notice so a notice never strikes twice."""

    __tablename__ = "infringement_strikes"
    __table_args__ = (
        UniqueConstraint("notice_id", name="uq_infringement_strike_notice"),
        Index("idx_infringement_strike_status", "infringer_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    infringer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("repeat_infringers.id", ondelete="CASCADE"),
        nullable=False,
    )
    notice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("takedown_notices.id", ondelete="RESTRICT"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20), default=StrikeStatus.ACTIVE.value, nullable=False
    )
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)  # None = never
    status_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status_changed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status_changed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    infringer: Mapped["RepeatInfringer"] = relationship(back_populates="strikes")
