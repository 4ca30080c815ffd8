"""Core domain logic for the CinéRoom booking service.

This package contains zero external dependencies and represents
the pure business logic of the application. All adapters and
external integrations are handled by the adapters package.
"""

from .models import (
    CheckInResult,
    CheckoutResult,
    CheckoutSession,
    Event,
    MailMessage,
    Participation,
    ParticipationStatus,
    User,
    ValidationStatus,
)

__all__ = [
    "CheckInResult",
    "CheckoutResult",
    "CheckoutSession",
    "Event",
    "MailMessage",
    "Participation",
    "ParticipationStatus",
    "User",
    "ValidationStatus",
]
