"""Tests for CheckInService.

Uses the in-memory booking store and a fixed clock.
"""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from cineroom.core.check_in_service import CheckInService
from cineroom.core.errors import (
    CheckInError,
    EventNotFoundError,
    EventNotTodayError,
    InvalidTicketError,
    ParticipationNotConfirmedError,
    ParticipationNotFoundError,
    TicketAlreadyUsedError,
)
from cineroom.core.models import (
    Event,
    Participation,
    ParticipationStatus,
    User,
    ValidationStatus,
)
from cineroom.tests.fakes import FakeBookingStore

SCREENING = datetime(2026, 11, 14, 20, 0, tzinfo=UTC)
DOORS_OPEN = datetime(2026, 11, 14, 19, 30, tzinfo=UTC)


@pytest.fixture
def store() -> FakeBookingStore:
    store = FakeBookingStore()
    store.add_user(User(id="user-1", email="spectator@example.net", first_name="Anna", last_name="Karina"))
    store.add_event(
        Event(
            id="event-1",
            title="Vivre sa vie",
            event_date=SCREENING,
            price_cents=1000,
            max_capacity=10,
            validation_status=ValidationStatus.APPROVED,
        )
    )
    store.add_participation(
        Participation(
            id="p1",
            user_id="user-1",
            event_id="event-1",
            seats=2,
            status=ParticipationStatus.CONFIRMED,
            stripe_payment_id="cs_paid",
            ticket_code="TICKET-1",
        )
    )
    return store


def service_at(store: FakeBookingStore, now: datetime) -> CheckInService:
    return CheckInService(store=store, clock=lambda: now)


class TestCheckIn:
    @pytest.mark.asyncio
    async def test_marks_ticket_used(self, store):
        result = await service_at(store, DOORS_OPEN).check_in("p1", "TICKET-1")

        assert result.participation.used_at == DOORS_OPEN
        assert store.participations["p1"].is_used
        assert result.to_dict() == {
            "id": "p1",
            "user_name": "Anna Karina",
            "user_email": "spectator@example.net",
            "event_title": "Vivre sa vie",
            "seats": 2,
            "checked_in_at": DOORS_OPEN.isoformat(),
        }

    @pytest.mark.asyncio
    async def test_unknown_participation(self, store):
        with pytest.raises(ParticipationNotFoundError):
            await service_at(store, DOORS_OPEN).check_in("missing", "TICKET-1")

    @pytest.mark.asyncio
    async def test_missing_event(self, store):
        del store.events["event-1"]

        with pytest.raises(EventNotFoundError):
            await service_at(store, DOORS_OPEN).check_in("p1", "TICKET-1")

    @pytest.mark.parametrize("code", ["TICKET-2", "", "ticket-1"])
    @pytest.mark.asyncio
    async def test_wrong_ticket_code(self, store, code):
        with pytest.raises(InvalidTicketError):
            await service_at(store, DOORS_OPEN).check_in("p1", code)
        assert not store.participations["p1"].is_used

    @pytest.mark.parametrize("delta", [timedelta(days=-1), timedelta(days=1)])
    @pytest.mark.asyncio
    async def test_event_not_today(self, store, delta):
        with pytest.raises(EventNotTodayError, match="2026-11-14"):
            await service_at(store, DOORS_OPEN + delta).check_in("p1", "TICKET-1")

    @pytest.mark.asyncio
    async def test_event_day_uses_screening_timezone(self, store):
        paris = timezone(timedelta(hours=1))
        store.events["event-1"].event_date = datetime(2026, 11, 14, 0, 30, tzinfo=paris)
        # 23:45 UTC on the 13th is already the 14th in Paris.
        now = datetime(2026, 11, 13, 23, 45, tzinfo=UTC)

        result = await service_at(store, now).check_in("p1", "TICKET-1")

        assert result.participation.used_at == now

    @pytest.mark.asyncio
    async def test_ticket_used_twice(self, store):
        service = service_at(store, DOORS_OPEN)
        await service.check_in("p1", "TICKET-1")

        with pytest.raises(TicketAlreadyUsedError, match="already used"):
            await service.check_in("p1", "TICKET-1")

    @pytest.mark.parametrize(
        "status", [ParticipationStatus.PENDING, ParticipationStatus.CANCELLED]
    )
    @pytest.mark.asyncio
    async def test_unconfirmed_booking(self, store, status):
        store.add_participation(
            Participation(
                id="p1",
                user_id="user-1",
                event_id="event-1",
                seats=2,
                status=status,
                ticket_code="TICKET-1",
            )
        )

        with pytest.raises(ParticipationNotConfirmedError, match=status.value):
            await service_at(store, DOORS_OPEN).check_in("p1", "TICKET-1")

    @pytest.mark.asyncio
    async def test_code_checked_before_event_day(self, store):
        with pytest.raises(InvalidTicketError):
            await service_at(store, DOORS_OPEN + timedelta(days=3)).check_in("p1", "nope")

    @pytest.mark.asyncio
    async def test_event_day_checked_before_prior_use(self, store):
        await service_at(store, DOORS_OPEN).check_in("p1", "TICKET-1")

        with pytest.raises(EventNotTodayError):
            await service_at(store, DOORS_OPEN + timedelta(days=1)).check_in("p1", "TICKET-1")

    @pytest.mark.asyncio
    async def test_prior_use_checked_before_status(self, store):
        store.add_participation(
            Participation(
                id="p1",
                user_id="user-1",
                event_id="event-1",
                seats=2,
                status=ParticipationStatus.CANCELLED,
                ticket_code="TICKET-1",
                used_at=DOORS_OPEN,
            )
        )

        with pytest.raises(TicketAlreadyUsedError):
            await service_at(store, DOORS_OPEN).check_in("p1", "TICKET-1")

    @pytest.mark.asyncio
    async def test_refusals_are_checkout_errors(self, store):
        with pytest.raises(CheckInError) as exc_info:
            await service_at(store, DOORS_OPEN).check_in("p1", "nope")

        assert isinstance(exc_info.value, ValueError)
