"""Tests for EventMailer moderation mails."""

from datetime import UTC, datetime

import pytest

from cineroom.core.models import Event, User, ValidationStatus
from cineroom.mailers import EventMailer, build_mailers
from cineroom.mailers.event_mailer import DEFAULT_REJECTION_REASON


@pytest.fixture
def mailer() -> EventMailer:
    return EventMailer()


@pytest.fixture
def creator() -> User:
    return User(id="user-1", email="creator@example.net", first_name="Agnes", last_name="Varda")


@pytest.fixture
def event() -> Event:
    return Event(
        id="event-1",
        title="Cleo from 5 to 7",
        event_date=datetime(2026, 11, 20, 20, 30, tzinfo=UTC),
        price_cents=900,
        max_capacity=30,
        creator_id="user-1",
        validation_status=ValidationStatus.APPROVED,
        venue_name="Le Champo",
    )


class TestEventApproved:
    """event_approved renders with the mailer defaults."""

    def test_renders_the_headers(self, mailer):
        mail = mailer.event_approved()

        assert mail.subject == "Event approved"
        assert list(mail.to) == ["to@example.org"]
        assert list(mail.sender) == ["from@example.com"]

    def test_renders_the_body(self, mailer):
        mail = mailer.event_approved()

        assert "Hi" in mail.body
        assert "Hi" in mail.encoded()

    def test_has_html_alternative(self, mailer):
        mail = mailer.event_approved()

        assert mail.html_body is not None
        assert "Hi" in mail.html_body
        assert "multipart/alternative" in mail.encoded()

    def test_addresses_the_creator(self, mailer, event, creator):
        mail = mailer.event_approved(event, creator)

        assert list(mail.to) == ["creator@example.net"]
        assert mail.body.startswith("Hi Agnes,")
        assert "Cleo from 5 to 7" in mail.body
        assert "Le Champo" in mail.body


class TestEventRejected:
    """event_rejected renders with the mailer defaults."""

    def test_renders_the_headers(self, mailer):
        mail = mailer.event_rejected()

        assert mail.subject == "Event rejected"
        assert list(mail.to) == ["to@example.org"]
        assert list(mail.sender) == ["from@example.com"]

    def test_renders_the_body(self, mailer):
        mail = mailer.event_rejected()

        assert "Hi" in mail.body
        assert "Hi" in mail.encoded()

    def test_uses_default_reason(self, mailer):
        mail = mailer.event_rejected()

        assert f"Reason: {DEFAULT_REJECTION_REASON}" in mail.body

    def test_includes_given_reason(self, mailer, event, creator):
        mail = mailer.event_rejected(event, creator, reason="Missing screening rights")

        assert list(mail.to) == ["creator@example.net"]
        assert "Reason: Missing screening rights" in mail.body
        assert "Cleo from 5 to 7" in mail.body

    def test_escapes_html_in_html_part_only(self, mailer, event, creator):
        mail = mailer.event_rejected(event, creator, reason="<b>spam</b>")

        assert "<b>spam</b>" in mail.body
        assert "&lt;b&gt;spam&lt;/b&gt;" in mail.html_body


class TestConfiguredDefaults:
    def test_build_mailers_overrides_defaults(self):
        mailers = build_mailers(default_from="tickets@cineroom.test", default_to="ops@cineroom.test")

        mail = mailers.event.event_approved()

        assert list(mail.sender) == ["tickets@cineroom.test"]
        assert list(mail.to) == ["ops@cineroom.test"]

    def test_overrides_do_not_touch_class_defaults(self):
        build_mailers(default_from="tickets@cineroom.test")

        assert EventMailer.default_from == "from@example.com"
        assert list(EventMailer().event_approved().sender) == ["from@example.com"]

    def test_mailer_name(self):
        assert EventMailer.mailer_name() == "event_mailer"
