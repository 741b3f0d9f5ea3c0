# Overview: Base domain error and the generic errors shared across services.

from __future__ import annotations


class HerbTradeError(Exception):
    """
    Base class for every domain error surfaced to API clients.

    Routes catch this type and answer with `to_dict()` and `status_code`.
    The message is client-safe; details are optional free text.
    """
    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: str | None = None, details: str | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(HerbTradeError):
    """400-level input problem."""
    default_message = "Invalid request"


class NotFoundError(HerbTradeError):
    """Referenced order, product or principal does not exist."""
    status_code = 404
    default_message = "Not found"


class ConflictError(HerbTradeError):
    """Business rule conflict (e.g., duplicate email)."""
    default_message = "Conflict"
