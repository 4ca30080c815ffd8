"""Integration tests for the SQLite booking store."""

from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path

import pytest

from cineroom.adapters.store.sqlite import SQLiteBookingStore
from cineroom.core.errors import DuplicateBookingError
from cineroom.core.models import (
    Event,
    Participation,
    ParticipationStatus,
    User,
    ValidationStatus,
)


@pytest.fixture
async def store(tmp_path: Path) -> SQLiteBookingStore:
    """Create a store backed by a temporary database, seeded with one user."""
    store = SQLiteBookingStore(str(tmp_path / "data" / "test.db"))
    await store.save_user(User(id="user-1", email="a@example.net", first_name="Alice"))
    await store.save_user(User(id="user-2", email="b@example.net", first_name="Bob"))
    yield store
    await store.close_pool()


def make_event(event_id: str, day: int, **overrides) -> Event:
    fields = {
        "id": event_id,
        "title": f"Screening {event_id}",
        "event_date": datetime(2026, 11, day, 20, 0, tzinfo=UTC),
        "price_cents": 900,
        "max_capacity": 40,
        "creator_id": "user-1",
    }
    fields.update(overrides)
    return Event(**fields)


def make_participation(participation_id: str, user_id: str, **overrides) -> Participation:
    fields = {
        "id": participation_id,
        "user_id": user_id,
        "event_id": "event-1",
        "seats": 2,
        "status": ParticipationStatus.CONFIRMED,
        "stripe_payment_id": f"cs_{participation_id}",
    }
    fields.update(overrides)
    return Participation(**fields)


@pytest.mark.asyncio
async def test_user_round_trip(store: SQLiteBookingStore) -> None:
    user = await store.get_user("user-1")

    assert user == User(id="user-1", email="a@example.net", first_name="Alice")
    assert await store.get_user("missing") is None


@pytest.mark.asyncio
async def test_event_update_persists_moderation(store: SQLiteBookingStore) -> None:
    event = make_event("event-1", 10, venue_name="Le Grand Action")
    await store.save_event(event)

    decided_at = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
    event.approve(decided_at)
    await store.save_event(event)

    loaded = await store.get_event("event-1")
    assert loaded.validation_status == ValidationStatus.APPROVED
    assert loaded.validated_at == decided_at
    assert loaded.event_date == event.event_date
    assert loaded.venue_name == "Le Grand Action"


@pytest.mark.asyncio
async def test_list_events_filters_and_orders(store: SQLiteBookingStore) -> None:
    await store.save_event(make_event("late", 25))
    await store.save_event(make_event("early", 3))
    await store.save_event(
        make_event("approved", 12, validation_status=ValidationStatus.APPROVED)
    )

    all_events = await store.list_events()
    pending = await store.list_events(ValidationStatus.PENDING)

    assert [e.id for e in all_events] == ["early", "approved", "late"]
    assert [e.id for e in pending] == ["early", "late"]


@pytest.mark.asyncio
async def test_participation_lookups(store: SQLiteBookingStore) -> None:
    await store.save_event(make_event("event-1", 10))
    participation = make_participation("p1", "user-1")
    await store.save_participation(participation)

    assert await store.find_participation("user-1", "event-1") == participation
    assert await store.find_participation("user-2", "event-1") is None
    assert await store.get_participation_by_payment_id("cs_p1") == participation
    assert await store.get_participation_by_payment_id("cs_other") is None


@pytest.mark.asyncio
async def test_get_participation_and_check_in_persists(store: SQLiteBookingStore) -> None:
    await store.save_event(make_event("event-1", 10))
    participation = make_participation("p1", "user-1")
    await store.save_participation(participation)

    loaded = await store.get_participation("p1")
    assert loaded == participation
    assert loaded.used_at is None
    assert await store.get_participation("missing") is None

    scanned_at = datetime(2026, 11, 10, 19, 45, tzinfo=UTC)
    await store.save_participation(replace(participation, used_at=scanned_at))

    reloaded = await store.get_participation("p1")
    assert reloaded.used_at == scanned_at
    assert reloaded.is_used
    assert reloaded.ticket_code == participation.ticket_code


@pytest.mark.asyncio
async def test_duplicate_user_event_pair_is_rejected(store: SQLiteBookingStore) -> None:
    await store.save_event(make_event("event-1", 10))
    await store.save_participation(make_participation("p1", "user-1"))

    with pytest.raises(DuplicateBookingError):
        await store.save_participation(make_participation("p2", "user-1"))


@pytest.mark.asyncio
async def test_duplicate_payment_id_is_rejected(store: SQLiteBookingStore) -> None:
    await store.save_event(make_event("event-1", 10))
    await store.save_participation(make_participation("p1", "user-1"))

    with pytest.raises(DuplicateBookingError):
        await store.save_participation(
            make_participation("p2", "user-2", stripe_payment_id="cs_p1")
        )


@pytest.mark.asyncio
async def test_reserved_seats_counts_confirmed_only(store: SQLiteBookingStore) -> None:
    await store.save_event(make_event("event-1", 10))
    assert await store.reserved_seats("event-1") == 0

    await store.save_participation(make_participation("p1", "user-1", seats=3))
    await store.save_participation(
        make_participation("p2", "user-2", seats=4, status=ParticipationStatus.CANCELLED)
    )

    assert await store.reserved_seats("event-1") == 3


@pytest.mark.asyncio
async def test_row_parsing_with_invalid_status(store: SQLiteBookingStore) -> None:
    """A corrupted status column surfaces as ValueError."""
    await store.save_event(make_event("event-1", 10))

    conn = await store._get_connection()
    try:
        await conn.execute(
            "UPDATE events SET validation_status = 'archived' WHERE id = 'event-1'"
        )
        await conn.commit()
    finally:
        await store._return_connection(conn)

    with pytest.raises(ValueError):
        await store.get_event("event-1")


@pytest.mark.asyncio
async def test_row_parsing_with_invalid_timestamp(store: SQLiteBookingStore) -> None:
    await store.save_event(make_event("event-1", 10))
    await store.save_participation(make_participation("p1", "user-1"))

    conn = await store._get_connection()
    try:
        await conn.execute("UPDATE participations SET created_at = 'yesterday' WHERE id = 'p1'")
        await conn.commit()
    finally:
        await store._return_connection(conn)

    with pytest.raises(ValueError):
        await store.find_participation("user-1", "event-1")
