"""Structured logging helpers (PII-safe)."""

from typing import Any


def build_log_context(
    *,
    ticket_id: str | None = None,
    operator_id: str | None = None,
    jurisdiction: str | None = None,
    status: str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict. Claimant contact details never go in."""
    context: dict[str, Any] = {}
    if ticket_id:
        context["ticket_id"] = ticket_id
    if operator_id:
        context["operator_id"] = operator_id
    if jurisdiction:
        context["jurisdiction"] = jurisdiction
    if status:
        context["status"] = status
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context
