"""Domain models for the CinéRoom booking service.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

import secrets
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from email.message import EmailMessage
from enum import Enum
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class User:
    """A registered spectator or event creator."""

    id: str
    email: str
    first_name: str
    last_name: str = ""

    def __post_init__(self) -> None:
        """Validate user invariants on creation."""
        if not self.email or "@" not in self.email:
            raise ValueError(f"email must be a valid address, got {self.email!r}")
        if not self.first_name or not self.first_name.strip():
            raise ValueError("first_name must be a non-empty string")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class ValidationStatus(Enum):
    """Moderation states for a submitted event.

    - PENDING: Submitted by a creator, waiting for an admin decision
    - APPROVED: Visible to the public and open for booking
    - REJECTED: Refused by an admin
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class Event:
    """A screening that spectators can book seats for.

    Note: This dataclass is intentionally mutable so moderation can update
    validation_status and validated_at in place.
    """

    id: str
    title: str
    event_date: datetime
    price_cents: int
    max_capacity: int
    creator_id: str | None = None
    validation_status: ValidationStatus = ValidationStatus.PENDING
    venue_name: str = ""
    venue_address: str = ""
    description: str = ""
    validated_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate event invariants on creation or deserialization."""
        if not self.title or not self.title.strip():
            raise ValueError("title must be a non-empty string")
        if self.price_cents <= 0:
            raise ValueError(f"price_cents must be positive, got {self.price_cents}")
        if not 0 < self.max_capacity <= 100:
            raise ValueError(
                f"max_capacity must be between 1 and 100, got {self.max_capacity}"
            )

    @property
    def is_approved(self) -> bool:
        return self.validation_status == ValidationStatus.APPROVED

    def approve(self, at: datetime) -> None:
        """Transition event to approved status."""
        if self.validation_status == ValidationStatus.APPROVED:
            raise ValueError(f"Event {self.id} is already approved")
        self.validation_status = ValidationStatus.APPROVED
        self.validated_at = at

    def reject(self, at: datetime) -> None:
        """Transition event to rejected status."""
        if self.validation_status == ValidationStatus.REJECTED:
            raise ValueError(f"Event {self.id} is already rejected")
        self.validation_status = ValidationStatus.REJECTED
        self.validated_at = at


class ParticipationStatus(Enum):
    """Lifecycle states for a booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


def new_ticket_code() -> str:
    """Random token printed on the ticket and checked at the door."""
    return secrets.token_urlsafe(16)


@dataclass(frozen=True)
class Participation:
    """A user's booking of one or more seats for an event."""

    id: str
    user_id: str
    event_id: str
    seats: int
    status: ParticipationStatus
    stripe_payment_id: str | None = None
    ticket_code: str = field(default_factory=new_ticket_code)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    used_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate participation invariants on creation."""
        if self.seats < 1:
            raise ValueError(f"seats must be >= 1, got {self.seats}")

    @property
    def is_used(self) -> bool:
        """Whether the ticket was already scanned at the entrance."""
        return self.used_at is not None


@dataclass(frozen=True)
class MailMessage:
    """A composed email, ready to be delivered or previewed."""

    subject: str
    sender: tuple[str, ...]
    to: tuple[str, ...]
    text_body: str
    html_body: str | None = None

    def __post_init__(self) -> None:
        """Validate message invariants on creation."""
        if not self.to:
            raise ValueError("a mail needs at least one recipient")
        if not self.sender:
            raise ValueError("a mail needs a sender")

    @property
    def body(self) -> str:
        return self.text_body

    def to_email_message(self) -> EmailMessage:
        """Build the stdlib message (multipart/alternative when HTML exists)."""
        message = EmailMessage()
        message["Subject"] = self.subject
        message["From"] = ", ".join(self.sender)
        message["To"] = ", ".join(self.to)
        message.set_content(self.text_body)
        if self.html_body is not None:
            message.add_alternative(self.html_body, subtype="html")
        return message

    def encoded(self) -> str:
        """Return the RFC 5322 representation of the message."""
        return self.to_email_message().as_string()


@dataclass(frozen=True)
class CheckoutSession:
    """A hosted payment page opened with the payment provider."""

    id: str
    url: str | None
    payment_status: str
    metadata: dict[str, str] | MappingProxyType[str, str]  # converted to proxy in __post_init__

    def __post_init__(self) -> None:
        """Convert metadata dict to read-only proxy."""
        if isinstance(self.metadata, dict):
            object.__setattr__(self, "metadata", MappingProxyType(self.metadata))

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"


@dataclass(frozen=True)
class CheckoutResult:
    """Outcome of a checkout return (success or cancel page)."""

    message: str
    event: Event | None = None
    participation: Participation | None = None
    created: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize the result for JSON responses."""
        data: dict[str, Any] = {
            "status": "success",
            "message": self.message,
            "created": self.created,
            "event": None,
            "participation": None,
        }
        if self.event is not None:
            data["event"] = {"id": self.event.id, "title": self.event.title}
        if self.participation is not None:
            data["participation"] = {
                "id": self.participation.id,
                "seats": self.participation.seats,
                "status": self.participation.status.value,
                "ticket_code": self.participation.ticket_code,
            }
        return data


@dataclass(frozen=True)
class CheckInResult:
    """A ticket accepted at the entrance."""

    participation: Participation
    event: Event
    user: User | None = None

    def to_dict(self) -> dict[str, Any]:
        used_at = self.participation.used_at
        return {
            "id": self.participation.id,
            "user_name": self.user.full_name if self.user else None,
            "user_email": self.user.email if self.user else None,
            "event_title": self.event.title,
            "seats": self.participation.seats,
            "checked_in_at": used_at.isoformat() if used_at else None,
        }


def metadata_value(metadata: Mapping[str, Any], key: str) -> str | None:
    """Read a metadata entry as a stripped string, None when blank."""
    value = metadata.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None
