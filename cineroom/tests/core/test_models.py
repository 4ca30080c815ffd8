"""Tests for domain model invariants."""

from datetime import UTC, datetime

import pytest

from cineroom.core.models import (
    CheckoutResult,
    CheckoutSession,
    Event,
    MailMessage,
    Participation,
    ParticipationStatus,
    User,
    ValidationStatus,
    metadata_value,
)


def make_event(**overrides) -> Event:
    fields = {
        "id": "event-1",
        "title": "Jeanne Dielman",
        "event_date": datetime(2026, 11, 1, 20, 0, tzinfo=UTC),
        "price_cents": 1000,
        "max_capacity": 20,
    }
    fields.update(overrides)
    return Event(**fields)


class TestUser:
    def test_full_name(self):
        assert User(id="u", email="a@b.c", first_name="Chantal", last_name="Akerman").full_name == (
            "Chantal Akerman"
        )
        assert User(id="u", email="a@b.c", first_name="Chantal").full_name == "Chantal"

    @pytest.mark.parametrize("email", ["", "not-an-email"])
    def test_rejects_invalid_email(self, email):
        with pytest.raises(ValueError):
            User(id="u", email=email, first_name="Chantal")

    def test_rejects_blank_first_name(self):
        with pytest.raises(ValueError):
            User(id="u", email="a@b.c", first_name="  ")


class TestEvent:
    def test_defaults_to_pending(self):
        event = make_event()

        assert event.validation_status == ValidationStatus.PENDING
        assert not event.is_approved
        assert event.validated_at is None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"title": ""},
            {"price_cents": 0},
            {"max_capacity": 0},
            {"max_capacity": 101},
        ],
    )
    def test_rejects_invalid_fields(self, overrides):
        with pytest.raises(ValueError):
            make_event(**overrides)

    def test_approve_then_reject(self):
        event = make_event()
        approved_at = datetime(2026, 10, 1, tzinfo=UTC)

        event.approve(approved_at)
        assert event.is_approved
        assert event.validated_at == approved_at

        event.reject(datetime(2026, 10, 2, tzinfo=UTC))
        assert event.validation_status == ValidationStatus.REJECTED

    def test_approve_twice_raises(self):
        event = make_event(validation_status=ValidationStatus.APPROVED)

        with pytest.raises(ValueError, match="already approved"):
            event.approve(datetime.now(UTC))

    def test_reject_twice_raises(self):
        event = make_event(validation_status=ValidationStatus.REJECTED)

        with pytest.raises(ValueError, match="already rejected"):
            event.reject(datetime.now(UTC))


class TestParticipation:
    def test_generates_ticket_code(self):
        first = Participation(
            id="p1", user_id="u", event_id="e", seats=1, status=ParticipationStatus.CONFIRMED
        )
        second = Participation(
            id="p2", user_id="u", event_id="e", seats=1, status=ParticipationStatus.CONFIRMED
        )

        assert first.ticket_code
        assert first.ticket_code != second.ticket_code

    def test_rejects_zero_seats(self):
        with pytest.raises(ValueError):
            Participation(
                id="p", user_id="u", event_id="e", seats=0, status=ParticipationStatus.PENDING
            )

    def test_is_used(self):
        fresh = Participation(
            id="p1", user_id="u", event_id="e", seats=1, status=ParticipationStatus.CONFIRMED
        )
        scanned = Participation(
            id="p2",
            user_id="u",
            event_id="e",
            seats=1,
            status=ParticipationStatus.CONFIRMED,
            used_at=datetime(2026, 11, 14, 19, 30, tzinfo=UTC),
        )

        assert fresh.used_at is None
        assert not fresh.is_used
        assert scanned.is_used


class TestMailMessage:
    def test_requires_recipient(self):
        with pytest.raises(ValueError):
            MailMessage(subject="s", sender=("from@example.com",), to=(), text_body="Hi")

    def test_text_only_message(self):
        message = MailMessage(
            subject="Hello", sender=("from@example.com",), to=("to@example.org",), text_body="Hi\n"
        )

        email = message.to_email_message()
        assert email["Subject"] == "Hello"
        assert email["To"] == "to@example.org"
        assert not email.is_multipart()
        assert message.body == "Hi\n"


class TestCheckoutSession:
    def test_metadata_is_read_only(self):
        session = CheckoutSession(id="cs", url=None, payment_status="paid", metadata={"a": "1"})

        assert session.is_paid
        with pytest.raises(TypeError):
            session.metadata["a"] = "2"  # type: ignore[index]

    def test_metadata_value(self):
        assert metadata_value({"a": " x "}, "a") == "x"
        assert metadata_value({"a": "  "}, "a") is None
        assert metadata_value({}, "a") is None
        assert metadata_value({"a": 3}, "a") == "3"


class TestCheckoutResult:
    def test_to_dict(self):
        event = make_event()
        participation = Participation(
            id="p1",
            user_id="u",
            event_id=event.id,
            seats=2,
            status=ParticipationStatus.CONFIRMED,
            ticket_code="CODE",
        )

        data = CheckoutResult("ok", event, participation, created=True).to_dict()

        assert data == {
            "status": "success",
            "message": "ok",
            "created": True,
            "event": {"id": "event-1", "title": "Jeanne Dielman"},
            "participation": {"id": "p1", "seats": 2, "status": "confirmed", "ticket_code": "CODE"},
        }

    def test_to_dict_without_booking(self):
        data = CheckoutResult("canceled").to_dict()

        assert data["event"] is None
        assert data["participation"] is None
        assert data["created"] is False
