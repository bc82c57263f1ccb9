"""Authentication-related Pydantic schemas."""

from pydantic import BaseModel

from notice_engine.db.enums import Role


class TokenPayload(BaseModel):
    """Decoded JWT payload structure."""
    sub: str  # operator id
    role: str


class OperatorSession(BaseModel):
    """
    Session context for authenticated requests.

    Returned by the get_current_session dependency.
    """
    user_id: str
    role: Role  # Validated enum
