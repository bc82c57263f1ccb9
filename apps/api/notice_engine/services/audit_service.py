"""Takedown audit trail - append-only, hash-chained per notice.

Security guidelines:
- Insert-only: no update/delete helpers exist, and the ORM refuses both
- Never put claimant contact details in `details`; use ids
- performed_by is None for automated events
"""

import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import event, select
from sqlalchemy.orm import Session

from notice_engine.core.clock import Clock, system_clock
from notice_engine.db.enums import TakedownActionType
from notice_engine.db.models import TakedownAction, TakedownNotice

logger = logging.getLogger(__name__)

GENESIS_HASH = "0" * 64  # All zeros for the first entry of each notice


class AuditTrailImmutable(RuntimeError):
    """Raised when something tries to modify or remove an audit event."""

    pass


# =============================================================================
# Immutability guards
# =============================================================================


@event.listens_for(TakedownAction, "before_update")
def _refuse_update(mapper, connection, target):
    raise AuditTrailImmutable(f"Audit event {target.id} cannot be modified")


@event.listens_for(TakedownAction, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise AuditTrailImmutable(f"Audit event {target.id} cannot be deleted")


@event.listens_for(Session, "do_orm_execute")
def _refuse_bulk_writes(orm_execute_state):
    if not (orm_execute_state.is_update or orm_execute_state.is_delete):
        return
    mapper = orm_execute_state.bind_mapper
    if mapper is not None and mapper.class_ is TakedownAction:
        raise AuditTrailImmutable("Bulk update/delete of audit events is not allowed")


# =============================================================================
# Hash chain
# =============================================================================


def canonical_json(obj: dict | None) -> str:
    """
    Serialize object to canonical JSON for consistent hashing.

    Uses sorted keys, compact separators, and str() for non-JSON types.
    This MUST be used consistently everywhere hashes are computed.
    """
    return json.dumps(obj or {}, sort_keys=True, separators=(",", ":"), default=str)


def compute_hash(
    prev_hash: str,
    notice_id: str,
    action_type: str,
    is_automated: bool,
    performed_by: str,
    created_at: str,
    notes: str,
    details_json: str,
) -> str:
    """Hash = SHA256(all immutable fields joined with |)."""
    data = "|".join(
        [
            prev_hash,
            notice_id,
            action_type,
            "1" if is_automated else "0",
            performed_by,
            created_at,
            notes,
            details_json,
        ]
    )
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def _entry_hash(entry: TakedownAction, prev_hash: str) -> str:
    return compute_hash(
        prev_hash=prev_hash,
        notice_id=str(entry.notice_id),
        action_type=entry.action_type,
        is_automated=entry.is_automated,
        performed_by=entry.performed_by or "",
        created_at=entry.created_at.isoformat(),
        notes=entry.notes or "",
        details_json=canonical_json(entry.details),
    )


def get_last_hash(db: Session, notice_id) -> str:
    """Hash of the newest event for a notice (GENESIS_HASH when none)."""
    result = db.execute(
        select(TakedownAction.entry_hash)
        .where(TakedownAction.notice_id == notice_id)
        .order_by(TakedownAction.id.desc())
        .limit(1)
    ).scalar()
    return result or GENESIS_HASH


# =============================================================================
# Recording
# =============================================================================


def log_action(
    db: Session,
    notice: TakedownNotice,
    action_type: TakedownActionType,
    performed_by: str | None = None,
    notes: str | None = None,
    details: dict[str, Any] | None = None,
    clock: Clock = system_clock,
) -> TakedownAction:
    """
    Append one audit event for a notice.

    Args:
        db: Database session (caller commits)
        notice: Notice the event belongs to (must already be flushed)
        action_type: Event type
        performed_by: Operator id; None marks the event as automated
        notes: Free-text operator notes
        details: Extra context (ids and codes only, no raw PII)
        clock: Time source for created_at

    Returns:
        The created event with its chain hashes set
    """
    if notice.id is None:
        db.flush()
    # Round-trip through canonical JSON so the stored value hashes identically
    stored_details = json.loads(canonical_json(details)) if details else None
    prev_hash = get_last_hash(db, notice.id)

    entry = TakedownAction(
        notice_id=notice.id,
        action_type=TakedownActionType(action_type).value,
        is_automated=performed_by is None,
        performed_by=performed_by,
        notes=notes,
        details=stored_details,
        created_at=clock.now(),
        prev_hash=prev_hash,
    )
    entry.entry_hash = _entry_hash(entry, prev_hash)
    db.add(entry)
    db.flush()

    logger.debug(
        "Audit event recorded",
        extra={"ticket_id": notice.ticket_id, "action_type": entry.action_type},
    )
    return entry


# =============================================================================
# Reading / verification
# =============================================================================


def list_actions(db: Session, notice: TakedownNotice) -> list[TakedownAction]:
    return list(
        db.execute(
            select(TakedownAction)
            .where(TakedownAction.notice_id == notice.id)
            .order_by(TakedownAction.id.asc())
        ).scalars()
    )


@dataclass
class ChainVerification:
    valid: bool
    checked: int
    broken_at: int | None = None  # id of the first event that fails


def verify_chain(db: Session, notice: TakedownNotice) -> ChainVerification:
    """Recompute every hash for a notice's trail and compare with stored values."""
    prev_hash = GENESIS_HASH
    checked = 0
    for entry in list_actions(db, notice):
        checked += 1
        if entry.prev_hash != prev_hash or entry.entry_hash != _entry_hash(entry, prev_hash):
            logger.warning(
                "Audit chain broken",
                extra={"ticket_id": notice.ticket_id, "action_id": entry.id},
            )
            return ChainVerification(valid=False, checked=checked, broken_at=entry.id)
        prev_hash = entry.entry_hash
    return ChainVerification(valid=True, checked=checked)
