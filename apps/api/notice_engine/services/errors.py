"""Takedown service exceptions.

Routers translate these into HTTP responses (404/409/403/422).
"""


class TakedownServiceError(Exception):
    """Base exception for takedown service errors."""

    pass


class NoticeNotFound(TakedownServiceError):
    """No notice with the given ticket id (or the claimant email does not match)."""

    pass


class StrikeNotFound(TakedownServiceError):
    """No infringement strike with the given id."""

    pass


class StateTransitionRejected(TakedownServiceError):
    """Requested transition is not allowed from the notice's current status."""

    def __init__(self, from_status: str, to_status: str, message: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(message or f"Cannot move notice from {from_status} to {to_status}")


class ValidationIncomplete(TakedownServiceError):
    """Required statutory elements are missing."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required elements: {', '.join(self.missing)}")


class ExternalServiceUnavailable(TakedownServiceError):
    """An external collaborator failed, timed out, or is not configured."""

    pass


class AuthorizationDenied(TakedownServiceError):
    """Caller's role is not allowed to perform the operation."""

    pass
