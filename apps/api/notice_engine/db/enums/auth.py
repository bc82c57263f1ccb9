"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    Operator roles with increasing privilege levels.

    - ARTIST: Content owner; may file counter-notices and appeals
    - REVIEWER: Compliance analyst; triage, actions, notes
    - ADMIN: Compliance lead; resolutions, escalations, trusted flaggers
    """

    ARTIST = "artist"
    REVIEWER = "reviewer"
    ADMIN = "admin"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_
