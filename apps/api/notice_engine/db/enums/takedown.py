"""Takedown notice enums."""

from enum import Enum


class Jurisdiction(str, Enum):
    """Regional regime a notice is filed under. WW is the catch-all."""

    US = "US"
    EU = "EU"
    UK = "UK"
    CA = "CA"
    AU = "AU"
    WW = "WW"


class LegalFramework(str, Enum):
    """Statute the notice is evaluated against."""

    DMCA_512 = "DMCA_512"  # US 17 U.S.C. § 512
    DSA_ART16 = "DSA_ART16"  # EU Digital Services Act Art. 16
    CDPA_1988 = "CDPA_1988"  # UK Copyright, Designs and Patents Act 1988
    CA_NOTICE = "CA_NOTICE"  # Canada notice-and-notice
    AU_COPYRIGHT = "AU_COPYRIGHT"  # Australia Copyright Act 1968
    WIPO_GLOBAL = "WIPO_GLOBAL"  # WIPO-aligned global default


class NoticePriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class NoticeStatus(str, Enum):
    """
    Notice lifecycle status.

    Allowed moves live in services.lifecycle.TRANSITIONS; resolved_upheld,
    resolved_reversed and withdrawn are terminal.
    """

    SUBMITTED = "submitted"
    TRIAGE = "triage"
    ACTION_TAKEN = "action_taken"
    NOTIFIED = "notified"
    COUNTER_NOTICE_WINDOW = "counter_notice_window"
    COUNTER_NOTICE_RECEIVED = "counter_notice_received"
    RESOLVED_UPHELD = "resolved_upheld"
    RESOLVED_REVERSED = "resolved_reversed"
    WITHDRAWN = "withdrawn"


class ContentType(str, Enum):
    TRACK = "track"
    BOP = "bop"  # Vertical video
    PRODUCT = "product"
    PROFILE = "profile"
    OTHER = "other"


class InfringementType(str, Enum):
    REPRODUCTION = "reproduction"
    DISTRIBUTION = "distribution"
    PUBLIC_PERFORMANCE = "public_performance"
    DERIVATIVE_WORK = "derivative_work"
    SYNCHRONIZATION = "synchronization"
    COVER_SONG = "cover_song"
    SAMPLING = "sampling"
    TRADEMARK = "trademark"
    OTHER = "other"


class TrustLevel(str, Enum):
    """Trusted flagger tier (DSA Art. 22). Drives priority override."""

    STANDARD = "standard"
    ELEVATED = "elevated"
    PREMIUM = "premium"


class ContentActionKind(str, Enum):
    """Operator-selected enforcement against the targeted content."""

    REMOVE = "remove"
    DISABLE = "disable"
    GEO_BLOCK = "geo_block"


class CounterNoticeStatus(str, Enum):
    SUBMITTED = "submitted"
    CONTENT_REINSTATED = "content_reinstated"
    KEPT_DOWN = "kept_down"  # Claimant filed suit


class CounterNoticeDecision(str, Enum):
    REINSTATE = "reinstate"
    KEEP_DOWN = "keep_down"


class AppealType(str, Enum):
    ARTIST_APPEAL = "artist_appeal"
    CLAIMANT_APPEAL = "claimant_appeal"


class AppealStatus(str, Enum):
    SUBMITTED = "submitted"
    APPROVED = "approved"
    DENIED = "denied"
    ESCALATED = "escalated"


class ScanStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    PENDING = "pending"


class ScanAutoAction(str, Enum):
    NONE = "none"
    UPLOAD_BLOCKED = "upload_blocked"


class StrikeStatus(str, Enum):
    """Only active, unexpired strikes count toward termination."""

    ACTIVE = "active"
    EXPIRED = "expired"
    REVERSED = "reversed"  # Overturned on review
    PARDONED = "pardoned"  # Admin override
