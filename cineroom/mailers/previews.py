"""Developer previews for mailers.

Every MailerPreview subclass registers itself under its snake_case name
without the ``Preview`` suffix. Its public methods are the emails it can
render. Preview all emails at http://localhost:3000/mailers

Pass ``register=False`` in the class statement to keep a subclass out of
the registry.
"""

import inspect
from datetime import UTC, datetime, timedelta
from typing import Any, ClassVar

from cineroom.core.models import (
    Event,
    MailMessage,
    Participation,
    ParticipationStatus,
    User,
    ValidationStatus,
)

from . import Mailers, build_mailers
from .base import _snake_case, template_environment


class MailerPreview:
    """Base class for mailer previews."""

    registry: ClassVar[dict[str, type["MailerPreview"]]] = {}

    def __init_subclass__(cls, register: bool = True, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if register:
            MailerPreview.registry[cls.preview_name()] = cls

    def __init__(self, mailers: Mailers | None = None):
        self.mailers = mailers or build_mailers()

    @classmethod
    def preview_name(cls) -> str:
        name = cls.__name__
        if name.endswith("Preview"):
            name = name[: -len("Preview")]
        return _snake_case(name)

    @classmethod
    def emails(cls) -> list[str]:
        """Names of the emails this preview can render, in definition order."""
        return [
            name
            for name, member in vars(cls).items()
            if not name.startswith("_") and inspect.isfunction(member)
        ]

    def render(self, email: str) -> MailMessage:
        """Render one email of this preview.

        Raises:
            LookupError: If the preview has no such email.
        """
        if email not in self.emails():
            raise LookupError(f"{self.preview_name()} has no email named {email!r}")
        return getattr(self, email)()


def _sample_user() -> User:
    return User(id="preview-user", email="jane.doe@example.com", first_name="Jane", last_name="Doe")


def _sample_event() -> Event:
    return Event(
        id="preview-event",
        title="Stalker - 35mm screening",
        event_date=datetime.now(UTC).replace(hour=20, minute=30, second=0, microsecond=0)
        + timedelta(days=14),
        price_cents=1200,
        max_capacity=40,
        creator_id="preview-user",
        validation_status=ValidationStatus.APPROVED,
        venue_name="Le Studio",
        venue_address="12 rue des Lilas, Paris",
    )


def _sample_participation() -> Participation:
    return Participation(
        id="preview-participation",
        user_id="preview-user",
        event_id="preview-event",
        seats=2,
        status=ParticipationStatus.CONFIRMED,
        stripe_payment_id="cs_test_preview",
        ticket_code="PREVIEW-TICKET-CODE",
    )


# Preview this email at http://localhost:3000/mailers/event_mailer/event_approved
class EventMailerPreview(MailerPreview):
    def event_approved(self) -> MailMessage:
        return self.mailers.event.event_approved()

    def event_rejected(self) -> MailMessage:
        return self.mailers.event.event_rejected()


class ParticipationMailerPreview(MailerPreview):
    def confirmation_email(self) -> MailMessage:
        return self.mailers.participation.confirmation_email(
            _sample_participation(), _sample_event(), _sample_user()
        )


class TicketMailerPreview(MailerPreview):
    def ticket_confirmation(self) -> MailMessage:
        return self.mailers.ticket.ticket_confirmation(
            _sample_participation(), _sample_event(), _sample_user()
        )


class PreviewRenderer:
    """Renders the preview index and single-email pages as HTML."""

    def __init__(self, mailers: Mailers | None = None):
        self.mailers = mailers or build_mailers()
        self.environment = template_environment()

    def list_previews(self) -> list[dict[str, Any]]:
        return [
            {"name": name, "emails": preview.emails()}
            for name, preview in sorted(MailerPreview.registry.items())
        ]

    def render_message(self, preview_name: str, email: str) -> MailMessage:
        """Render one previewed email.

        Raises:
            LookupError: If the preview or the email doesn't exist.
        """
        preview_class = MailerPreview.registry.get(preview_name)
        if preview_class is None:
            raise LookupError(f"No mailer preview named {preview_name!r}")
        return preview_class(self.mailers).render(email)

    def render_index(self) -> str:
        template = self.environment.get_template("previews/index.html")
        return template.render(previews=self.list_previews())

    def render_email(self, preview_name: str, email: str, part: str | None = None) -> str:
        """Render the page for one email.

        Args:
            part: "html" or "text"; defaults to HTML when the mail has one.

        Raises:
            LookupError: If the preview or the email doesn't exist.
        """
        message = self.render_message(preview_name, email)
        if part not in ("html", "text"):
            part = "html" if message.html_body is not None else "text"
        if part == "html" and message.html_body is None:
            part = "text"
        template = self.environment.get_template("previews/show.html")
        return template.render(
            preview_name=preview_name,
            email=email,
            message=message,
            part=part,
        )
