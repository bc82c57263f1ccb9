"""Repeat infringer policy - strike accounting per content owner.

Strikes are issued for upheld notices and later expire, or are reversed
or pardoned by an admin. Only active, unexpired strikes count toward
termination eligibility.
"""

import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notice_engine.core.clock import Clock, system_clock
from notice_engine.core.config import settings
from notice_engine.db.enums import NoticeStatus, StrikeStatus, TakedownActionType
from notice_engine.db.models import InfringementStrike, RepeatInfringer, TakedownNotice
from notice_engine.services import audit_service
from notice_engine.services.errors import StateTransitionRejected, StrikeNotFound

logger = logging.getLogger(__name__)

# Admin overrides; expiry is automatic
OVERRIDE_STATUSES = frozenset({StrikeStatus.REVERSED.value, StrikeStatus.PARDONED.value})


def get_record(db: Session, artist_id: str) -> RepeatInfringer | None:
    return db.execute(
        select(RepeatInfringer).where(RepeatInfringer.artist_id == artist_id)
    ).scalar_one_or_none()


def list_records(db: Session, termination_eligible_only: bool = False) -> list[RepeatInfringer]:
    query = select(RepeatInfringer).order_by(RepeatInfringer.strike_count.desc())
    if termination_eligible_only:
        query = query.where(RepeatInfringer.termination_eligible.is_(True))
    return list(db.execute(query).scalars())


def list_strikes(db: Session, artist_id: str) -> list[InfringementStrike]:
    return list(
        db.execute(
            select(InfringementStrike)
            .join(RepeatInfringer, InfringementStrike.infringer_id == RepeatInfringer.id)
            .where(RepeatInfringer.artist_id == artist_id)
            .order_by(InfringementStrike.created_at.asc())
        ).scalars()
    )


def _find_locked(db: Session, artist_id: str) -> RepeatInfringer | None:
    return db.execute(
        select(RepeatInfringer)
        .where(RepeatInfringer.artist_id == artist_id)
        .with_for_update()
    ).scalar_one_or_none()


def _get_or_create_locked(db: Session, artist_id: str) -> RepeatInfringer:
    """
    Lock the artist's record, creating it on first strike.

    FOR UPDATE locks nothing while the row is missing, so two first strikes
    can race to insert; the loser's savepoint is rolled back and it locks
    the winner's row instead.
    """
    record = _find_locked(db, artist_id)
    if record is not None:
        return record
    try:
        with db.begin_nested():
            record = RepeatInfringer(
                artist_id=artist_id, strike_count=0, total_strikes=0, termination_eligible=False
            )
            db.add(record)
    except IntegrityError:
        logger.info("Repeat infringer record created concurrently", extra={"artist_id": artist_id})
        record = _find_locked(db, artist_id)
        if record is None:
            raise
    return record


def _active_strike_count(db: Session, record: RepeatInfringer, clock: Clock) -> int:
    return db.execute(
        select(func.count(InfringementStrike.id)).where(
            InfringementStrike.infringer_id == record.id,
            InfringementStrike.status == StrikeStatus.ACTIVE.value,
            or_(InfringementStrike.expires_at.is_(None), InfringementStrike.expires_at > clock.now()),
        )
    ).scalar_one()


def _refresh(db: Session, record: RepeatInfringer, clock: Clock) -> bool:
    """Recount active strikes. Returns True when the artist just became eligible."""
    db.flush()
    record.strike_count = _active_strike_count(db, record, clock)
    eligible = record.strike_count >= settings.REPEAT_INFRINGER_THRESHOLD
    newly_eligible = eligible and not record.termination_eligible
    record.termination_eligible = eligible
    return newly_eligible


def record_strike(
    db: Session,
    artist_id: str,
    notice: TakedownNotice,
    clock: Clock = system_clock,
) -> RepeatInfringer:
    """
    Count one strike for an upheld notice.

    A notice strikes at most once; calling again for the same notice
    returns the record unchanged. Caller commits.
    """
    if notice.status != NoticeStatus.RESOLVED_UPHELD.value:
        raise StateTransitionRejected(
            notice.status,
            NoticeStatus.RESOLVED_UPHELD.value,
            "Strikes are only issued for upheld notices",
        )

    record = _get_or_create_locked(db, artist_id)
    already = db.execute(
        select(InfringementStrike.id).where(InfringementStrike.notice_id == notice.id)
    ).scalar_one_or_none()
    if already is not None:
        return record

    now = clock.now()
    expires_at = (
        now + timedelta(days=settings.STRIKE_EXPIRY_DAYS) if settings.STRIKE_EXPIRY_DAYS > 0 else None
    )
    strike = InfringementStrike(
        infringer_id=record.id,
        notice_id=notice.id,
        status=StrikeStatus.ACTIVE.value,
        expires_at=expires_at,
        created_at=now,
    )
    db.add(strike)
    record.total_strikes += 1
    record.last_strike_at = now
    newly_eligible = _refresh(db, record, clock)
    db.flush()

    audit_service.log_action(
        db,
        notice,
        TakedownActionType.STRIKE_ISSUED,
        details={
            "artist_id": artist_id,
            "strike_id": str(strike.id),
            "strike_count": record.strike_count,
            "termination_eligible": record.termination_eligible,
            "expires_at": expires_at.isoformat() if expires_at else None,
        },
        clock=clock,
    )
    if newly_eligible:
        logger.warning(
            "Repeat infringer reached termination threshold",
            extra={"artist_id": artist_id, "strike_count": record.strike_count},
        )
    return record


def change_strike_status(
    db: Session,
    strike_id: UUID,
    new_status: StrikeStatus | str,
    operator_id: str,
    reason: str,
    clock: Clock = system_clock,
) -> InfringementStrike:
    """Reverse or pardon a strike and recount the artist's active strikes."""
    new_status = StrikeStatus(new_status).value
    if new_status not in OVERRIDE_STATUSES:
        raise ValueError(f"Strikes can only be reversed or pardoned, not {new_status}")

    strike = db.execute(
        select(InfringementStrike).where(InfringementStrike.id == strike_id).with_for_update()
    ).scalar_one_or_none()
    if strike is None:
        raise StrikeNotFound(f"Strike {strike_id}")
    if strike.status in OVERRIDE_STATUSES:
        raise StateTransitionRejected(
            strike.status, new_status, f"Strike is already {strike.status}"
        )

    record = _find_locked(db, strike.infringer.artist_id)
    old_status = strike.status
    strike.status = new_status
    strike.status_reason = reason
    strike.status_changed_by = operator_id
    strike.status_changed_at = clock.now()
    _refresh(db, record, clock)

    notice = db.get(TakedownNotice, strike.notice_id)
    audit_service.log_action(
        db,
        notice,
        TakedownActionType.ADMIN_NOTE_ADDED,
        performed_by=operator_id,
        notes=reason,
        details={
            "strike_id": str(strike.id),
            "from_strike_status": old_status,
            "to_strike_status": new_status,
            "strike_count": record.strike_count,
            "termination_eligible": record.termination_eligible,
        },
        clock=clock,
    )
    db.commit()
    db.refresh(strike)
    logger.info(
        "Strike status changed",
        extra={"artist_id": record.artist_id, "operator_id": operator_id, "status": new_status},
    )
    return strike


def expire_strikes(db: Session, clock: Clock = system_clock) -> int:
    """Mark active strikes past expires_at as expired. Returns how many expired."""
    now = clock.now()
    due = list(
        db.execute(
            select(InfringementStrike)
            .where(
                InfringementStrike.status == StrikeStatus.ACTIVE.value,
                InfringementStrike.expires_at.is_not(None),
                InfringementStrike.expires_at <= now,
            )
            .with_for_update()
        ).scalars()
    )
    for strike in due:
        strike.status = StrikeStatus.EXPIRED.value
        strike.status_changed_at = now

    for infringer_id in {strike.infringer_id for strike in due}:
        record = db.execute(
            select(RepeatInfringer).where(RepeatInfringer.id == infringer_id).with_for_update()
        ).scalar_one()
        _refresh(db, record, clock)

    db.commit()
    if due:
        logger.info("Expired strikes", extra={"count": len(due)})
    return len(due)
