"""Enum definitions for application constants."""

from notice_engine.db.enums.audit import TakedownActionType
from notice_engine.db.enums.auth import Role
from notice_engine.db.enums.permissions import (
    ROLES_CAN_DISPUTE,
    ROLES_CAN_RESOLVE,
    ROLES_CAN_REVIEW,
)
from notice_engine.db.enums.takedown import (
    AppealStatus,
    AppealType,
    ContentActionKind,
    ContentType,
    CounterNoticeDecision,
    CounterNoticeStatus,
    InfringementType,
    Jurisdiction,
    LegalFramework,
    NoticePriority,
    NoticeStatus,
    ScanAutoAction,
    ScanStatus,
    StrikeStatus,
    TrustLevel,
)

__all__ = [
    "AppealStatus",
    "AppealType",
    "ContentActionKind",
    "ContentType",
    "CounterNoticeDecision",
    "CounterNoticeStatus",
    "InfringementType",
    "Jurisdiction",
    "LegalFramework",
    "NoticePriority",
    "NoticeStatus",
    "ROLES_CAN_DISPUTE",
    "ROLES_CAN_RESOLVE",
    "ROLES_CAN_REVIEW",
    "Role",
    "ScanAutoAction",
    "ScanStatus",
    "StrikeStatus",
    "TakedownActionType",
    "TrustLevel",
]
