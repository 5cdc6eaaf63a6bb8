# pharmabook/core/errors.py
from __future__ import annotations

from typing import Any, List


class PharmabookError(Exception):
    """
    Base class for service-level errors. str(exc) is a short snake_case code
    that main.py maps to an HTTP response.
    """

    status_code: int = 400
    default_code: str = "error"

    def __init__(self, code: str | None = None):
        super().__init__(code or self.default_code)

    @property
    def code(self) -> str:
        return str(self)


class ValidationError(PharmabookError):
    """
    Input rejected before any persistence call (bad rule window,
    slot not offered, illegal status transition, malformed id).
    """

    status_code = 422
    default_code = "validation_error"


class ConflictError(PharmabookError):
    """
    The caller has to choose different input: overlapping rule or a slot
    that has just been claimed.
    """

    status_code = 409
    default_code = "conflict"


class RuleOverlap(ConflictError):
    """Draft availability overlaps existing active rules."""

    default_code = "availability_overlap"

    def __init__(self, conflicts: List[Any]):
        super().__init__()
        self.conflicts = conflicts


class SlotUnavailable(ConflictError):
    """Slot already taken (detected by the unique index at insert time)."""

    default_code = "slot_unavailable"


class NotFoundError(PharmabookError):
    """Referenced service/rule/booking is absent or owned by another tenant."""

    status_code = 404
    default_code = "not_found"


class PermissionDenied(PharmabookError):
    status_code = 403
    default_code = "forbidden"


class NotificationWindowExpired(PermissionDenied):
    default_code = "confirmation_window_expired"


class TransientFetchError(PharmabookError):
    """
    Persistence read failed. Callers must show "try again", never treat it
    as an empty result.
    """

    status_code = 503
    default_code = "try_again"


__all__ = [
    "PharmabookError",
    "ValidationError",
    "ConflictError",
    "RuleOverlap",
    "SlotUnavailable",
    "NotFoundError",
    "PermissionDenied",
    "NotificationWindowExpired",
    "TransientFetchError",
]
