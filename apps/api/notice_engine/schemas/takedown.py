"""Schemas for takedown intake, workflow, disputes and reporting."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from notice_engine.db.enums import (
    AppealType,
    ContentActionKind,
    ContentType,
    CounterNoticeDecision,
    InfringementType,
    Jurisdiction,
    LegalFramework,
    NoticePriority,
    TrustLevel,
)


# =============================================================================
# Public intake
# =============================================================================


class NoticeSubmit(BaseModel):
    """
    Public notice submission.

    Statutory elements are optional here on purpose: an incomplete notice
    still gets a ticket and is flagged for remediation.
    """
    jurisdiction: Jurisdiction = Jurisdiction.US
    legal_framework: LegalFramework | None = None

    # Targeted content
    content_type: ContentType = ContentType.OTHER
    content_id: str | None = Field(default=None, max_length=100)
    infringing_content_url: str | None = None
    additional_urls: list[str] | None = None
    content_owner_id: str | None = Field(default=None, max_length=100)

    # Claimant
    claimant_name: str | None = Field(default=None, max_length=255)
    claimant_email: EmailStr | None = None
    claimant_phone: str | None = Field(default=None, max_length=50)
    claimant_address: str | None = None
    claimant_company: str | None = Field(default=None, max_length=255)
    is_rights_holder: bool = True
    authorized_agent_for: str | None = Field(default=None, max_length=255)

    # Copyrighted work
    copyrighted_work_title: str | None = Field(default=None, max_length=500)
    copyrighted_work_description: str | None = None
    copyrighted_work_url: str | None = None
    copyright_registration_number: str | None = Field(default=None, max_length=100)
    isrc_code: str | None = Field(default=None, max_length=20)
    upc_code: str | None = Field(default=None, max_length=20)

    # Infringement
    infringement_description: str | None = None
    infringement_type: InfringementType | None = None

    # Statutory declarations
    good_faith_statement: bool = False
    accuracy_statement: bool = False
    perjury_statement: bool = False
    electronic_signature: str | None = Field(default=None, max_length=255)


class NoticeReceipt(BaseModel):
    ticket_id: str
    status: str
    priority: str
    jurisdiction: str
    legal_framework: str
    sla_deadline: datetime
    needs_remediation: bool
    missing_elements: list[str] = []
    message: str


class NoticeStatusRead(BaseModel):
    ticket_id: str
    status: str
    priority: str
    jurisdiction: str
    sla_deadline: datetime
    is_overdue: bool
    counter_notice_deadline: datetime | None
    needs_remediation: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Disputes
# =============================================================================


class CounterNoticeSubmit(BaseModel):
    identification_of_removed_content: str = ""
    good_faith_belief: bool = False
    consent_to_jurisdiction: bool = False
    consent_to_service: bool = False
    electronic_signature: str = ""
    address: str = ""
    fair_use_argument: str | None = None
    license_evidence: str | None = None
    original_work_evidence: str | None = None


class CounterNoticeRead(BaseModel):
    id: UUID
    submitted_by: str
    status: str
    submitted_at: datetime
    reinstate_after: datetime
    decided_at: datetime | None

    model_config = {"from_attributes": True}


class CounterNoticeResolve(BaseModel):
    decision: CounterNoticeDecision
    notes: str | None = None


class AppealCreate(BaseModel):
    appeal_type: AppealType = AppealType.ARTIST_APPEAL
    reason: str = Field(min_length=10)


class AppealRead(BaseModel):
    id: UUID
    notice_id: UUID
    appeal_type: str
    submitted_by: str
    reason: str
    status: str
    decision_notes: str | None
    decided_by: str | None
    decided_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class AppealResolve(BaseModel):
    decision: Literal["approved", "denied", "escalated"]
    notes: str | None = None


# =============================================================================
# Operator workflow
# =============================================================================


class NoticeResolve(BaseModel):
    outcome: Literal["resolved_upheld", "resolved_reversed", "withdrawn"]
    notes: str | None = None


class TriageAssign(BaseModel):
    assignee_id: str = Field(min_length=1)
    notes: str | None = None


class ContentActionRequest(BaseModel):
    action: ContentActionKind
    notes: str | None = None
    regions: list[str] | None = None


class OperatorNote(BaseModel):
    notes: str | None = None


class NoteCreate(BaseModel):
    note: str = Field(min_length=1)


class NoActionRequest(BaseModel):
    notes: str = Field(min_length=1)


class PriorityEscalate(BaseModel):
    priority: NoticePriority
    notes: str | None = None


class NoticeRead(BaseModel):
    id: UUID
    ticket_id: str
    status: str
    priority: str
    jurisdiction: str
    legal_framework: str
    content_type: str
    content_id: str | None
    infringing_content_url: str | None
    content_owner_id: str | None
    claimant_name: str | None
    claimant_email: str | None
    copyrighted_work_title: str | None
    infringement_type: str | None
    trust_level: str | None
    sla_deadline: datetime
    counter_notice_deadline: datetime | None
    needs_remediation: bool
    missing_elements: list[str] | None
    risk_level: str | None
    ai_suggested_priority: str | None
    assessment_notes: str | None
    action_type: str | None
    action_taken_at: datetime | None
    action_taken_by: str | None
    assigned_to: str | None
    resolved_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class OwnerNoticeItem(BaseModel):
    """A notice filed against the caller's content. Claimant contact details are withheld."""

    ticket_id: str
    jurisdiction: str
    legal_framework: str
    content_type: str
    content_id: str | None
    status: str
    priority: str
    claimant_name: str | None
    copyrighted_work_title: str | None
    infringement_type: str | None
    action_type: str | None
    action_taken_at: datetime | None
    sla_deadline: datetime
    counter_notice_deadline: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class NoticeQueueItem(BaseModel):
    ticket_id: str
    status: str
    priority: str
    jurisdiction: str
    sla_deadline: datetime
    assigned_to: str | None
    is_overdue: bool


class AuditEventRead(BaseModel):
    id: int
    action_type: str
    is_automated: bool
    performed_by: str | None
    notes: str | None
    details: dict[str, Any] | None
    prev_hash: str | None
    entry_hash: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ScanRead(BaseModel):
    id: UUID
    content_id: str
    content_type: str
    notice_id: UUID | None
    fingerprint_hash: str | None
    scan_provider: str | None
    match_found: bool
    confidence_score: float | None
    matched_title: str | None
    auto_action_taken: str
    scan_status: str
    error_message: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class NoticeDetailRead(BaseModel):
    notice: NoticeRead
    is_overdue: bool
    actions: list[AuditEventRead]
    counter_notice: CounterNoticeRead | None
    appeals: list[AppealRead]
    scans: list[ScanRead]
    chain_valid: bool

    model_config = {"from_attributes": True}


class ChainVerificationRead(BaseModel):
    valid: bool
    checked: int
    broken_at: int | None = None

    model_config = {"from_attributes": True}


class ScanRequest(BaseModel):
    content_id: str = Field(min_length=1, max_length=100)
    content_type: ContentType
    ticket_id: str | None = None


# =============================================================================
# Registry / reporting
# =============================================================================


class TrustedFlaggerCreate(BaseModel):
    organization_name: str = Field(min_length=1, max_length=255)
    contact_email: EmailStr
    trust_level: TrustLevel = TrustLevel.STANDARD
    dsa_certified: bool = False


class TrustedFlaggerUpdate(BaseModel):
    is_active: bool


class TrustedFlaggerRead(BaseModel):
    id: UUID
    organization_name: str
    contact_email: str
    trust_level: str
    is_active: bool
    dsa_certified: bool
    total_notices: int
    created_at: datetime

    model_config = {"from_attributes": True}


class RepeatInfringerRead(BaseModel):
    artist_id: str
    strike_count: int
    total_strikes: int
    termination_eligible: bool
    last_strike_at: datetime | None

    model_config = {"from_attributes": True}


class StrikeRead(BaseModel):
    id: UUID
    notice_id: UUID
    status: str
    expires_at: datetime | None
    status_reason: str | None
    status_changed_by: str | None
    status_changed_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class StrikeStatusUpdate(BaseModel):
    """Admin override; expiry is applied by the sweep, never by hand."""

    status: Literal["reversed", "pardoned"]
    reason: str = Field(min_length=1)


class StrikeExpiryResult(BaseModel):
    expired: int


class JurisdictionRuleRead(BaseModel):
    jurisdiction: str
    legal_framework: str
    legal_citation: str
    sla_hours: dict[str, int]
    requires_forwarding: bool
    requires_content_removal: bool
    counter_notice_business_days: int | None
    required_elements: list[str]


class ComplianceMetrics(BaseModel):
    total: int
    last_30_days: int
    open: int
    overdue_sla: int
    needs_remediation: int
    by_status: dict[str, int]
    by_jurisdiction: dict[str, int]
    by_content_type: dict[str, int]
    scans: dict[str, int]
    active_trusted_flaggers: int
    termination_eligible_artists: int
