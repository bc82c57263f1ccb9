"""Audit trail enums."""

from enum import Enum


class TakedownActionType(str, Enum):
    """
    Takedown audit trail action taxonomy.

    Groups:
    - Intake: receipt, validation, automated scan
    - Content: removal, disable, geo-block, upload block, reinstatement
    - Communications: receipts, artist notices, claimant notices, forwarding
    - Disputes: counter-notices and appeals
    - Resolution and admin: outcomes, notes, escalation, strikes
    """

    # Intake
    NOTICE_RECEIVED = "notice_received"
    INTAKE_VALIDATED = "intake_validated"
    INTAKE_FLAGGED = "intake_flagged"  # Missing statutory elements
    AUTO_SCAN_COMPLETED = "auto_scan_completed"
    AUTO_SCAN_FAILED = "auto_scan_failed"
    TRIAGE_ASSIGNED = "triage_assigned"

    # Content actions
    CONTENT_REMOVED = "content_removed"
    CONTENT_DISABLED = "content_disabled"
    CONTENT_GEO_BLOCKED = "content_geo_blocked"
    UPLOAD_BLOCKED = "upload_blocked"
    CONTENT_REINSTATED = "content_reinstated"
    NO_ACTION = "no_action"

    # Communications
    RECEIPT_SENT_TO_CLAIMANT = "receipt_sent_to_claimant"
    TAKEDOWN_NOTICE_SENT_TO_ARTIST = "takedown_notice_sent_to_artist"
    COUNTER_NOTICE_WINDOW_OPENED = "counter_notice_window_opened"
    CLAIMANT_NOTIFIED_OF_COUNTER = "claimant_notified_of_counter"
    NOTICE_FORWARDED = "notice_forwarded"  # CA notice-and-notice

    # Counter-notice & appeal
    COUNTER_NOTICE_RECEIVED = "counter_notice_received"
    APPEAL_RECEIVED = "appeal_received"
    APPEAL_DECISION_MADE = "appeal_decision_made"

    # Resolution
    NOTICE_RESOLVED = "notice_resolved"
    NOTICE_WITHDRAWN = "notice_withdrawn"

    # Admin
    ADMIN_NOTE_ADDED = "admin_note_added"
    PRIORITY_CHANGED = "priority_changed"
    STRIKE_ISSUED = "strike_issued"
