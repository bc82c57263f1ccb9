"""Trusted flagger registry (DSA Art. 22)."""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notice_engine.db.enums import TrustLevel
from notice_engine.db.models import TrustedFlagger
from notice_engine.services.errors import TakedownServiceError


class DuplicateFlaggerError(TakedownServiceError):
    """A flagger with this contact email is already registered."""

    pass


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def get_active_flagger(db: Session, email: str | None) -> TrustedFlagger | None:
    if not email:
        return None
    return db.execute(
        select(TrustedFlagger).where(
            TrustedFlagger.contact_email == _normalize_email(email),
            TrustedFlagger.is_active.is_(True),
        )
    ).scalar_one_or_none()


def add_flagger(
    db: Session,
    organization_name: str,
    contact_email: str,
    trust_level: TrustLevel = TrustLevel.STANDARD,
    dsa_certified: bool = False,
) -> TrustedFlagger:
    flagger = TrustedFlagger(
        organization_name=organization_name,
        contact_email=_normalize_email(contact_email),
        trust_level=TrustLevel(trust_level).value,
        dsa_certified=dsa_certified,
        is_active=True,
    )
    db.add(flagger)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateFlaggerError(contact_email) from exc
    db.refresh(flagger)
    return flagger


def set_active(db: Session, flagger: TrustedFlagger, is_active: bool) -> TrustedFlagger:
    flagger.is_active = is_active
    db.commit()
    db.refresh(flagger)
    return flagger


def get_flagger(db: Session, flagger_id) -> TrustedFlagger | None:
    return db.get(TrustedFlagger, flagger_id)


def list_flaggers(db: Session, active_only: bool = False) -> list[TrustedFlagger]:
    query = select(TrustedFlagger).order_by(TrustedFlagger.organization_name.asc())
    if active_only:
        query = query.where(TrustedFlagger.is_active.is_(True))
    return list(db.execute(query).scalars())
