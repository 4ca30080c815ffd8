"""SQLite booking store adapter.

Implements BookingStorePort using SQLite with aiosqlite for async access.
Provides ACID guarantees for bookings with zero operational overhead.
"""

import asyncio
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from cineroom.core.errors import DuplicateBookingError
from cineroom.core.models import (
    Event,
    Participation,
    ParticipationStatus,
    User,
    ValidationStatus,
)
from cineroom.core.ports import BookingStorePort

logger = logging.getLogger(__name__)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT UNIQUE NOT NULL,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL DEFAULT ''
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS events (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        event_date TIMESTAMP NOT NULL,
        price_cents INTEGER NOT NULL,
        max_capacity INTEGER NOT NULL,
        creator_id TEXT REFERENCES users(id),
        validation_status TEXT NOT NULL DEFAULT 'pending',
        venue_name TEXT NOT NULL DEFAULT '',
        venue_address TEXT NOT NULL DEFAULT '',
        description TEXT NOT NULL DEFAULT '',
        validated_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS participations (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id),
        event_id TEXT NOT NULL REFERENCES events(id),
        seats INTEGER NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending',
        stripe_payment_id TEXT UNIQUE,
        ticket_code TEXT UNIQUE NOT NULL,
        created_at TIMESTAMP NOT NULL,
        used_at TIMESTAMP,
        UNIQUE (user_id, event_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_events_validation ON events(validation_status)",
    "CREATE INDEX IF NOT EXISTS idx_participations_event ON participations(event_id)",
)

EVENT_COLUMNS = (
    "id, title, event_date, price_cents, max_capacity, creator_id, "
    "validation_status, venue_name, venue_address, description, validated_at"
)
PARTICIPATION_COLUMNS = (
    "id, user_id, event_id, seats, status, stripe_payment_id, ticket_code, created_at, "
    "used_at"
)


class SQLiteBookingStore(BookingStorePort):
    """SQLite-backed booking store with connection pooling and async access."""

    def __init__(self, db_path: str, pool_size: int = 5):
        """Initialize SQLite store with connection pooling.

        Args:
            db_path: Path to SQLite database file.
            pool_size: Number of connections to maintain in the pool.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._pool: list[aiosqlite.Connection] = []
        self._pool_lock = asyncio.Lock()
        self._pool_size = pool_size
        self._schema_initialized = False

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get a connection from the pool or create a new one."""
        async with self._pool_lock:
            if self._pool:
                return self._pool.pop()
        conn = await aiosqlite.connect(str(self.db_path))
        await conn.execute("PRAGMA foreign_keys = ON")
        return conn

    async def _return_connection(self, conn: aiosqlite.Connection) -> None:
        """Return a connection to the pool."""
        async with self._pool_lock:
            if len(self._pool) < self._pool_size:
                self._pool.append(conn)
                return
        await conn.close()

    async def close_pool(self) -> None:
        """Close all pooled connections."""
        async with self._pool_lock:
            for conn in self._pool:
                await conn.close()
            self._pool.clear()

    async def _init_schema(self) -> None:
        """Initialize database schema on first use.

        Only runs once per instance. Subsequent calls are no-ops.
        """
        if self._schema_initialized:
            return

        conn = await self._get_connection()
        try:
            for statement in SCHEMA:
                await conn.execute(statement)
            await conn.commit()
            self._schema_initialized = True
        finally:
            await self._return_connection(conn)

    async def _fetchone(self, query: str, params: tuple[Any, ...]) -> tuple[Any, ...] | None:
        await self._init_schema()
        conn = await self._get_connection()
        try:
            cursor = await conn.execute(query, params)
            return await cursor.fetchone()
        finally:
            await self._return_connection(conn)

    async def _fetchall(self, query: str, params: tuple[Any, ...] = ()) -> list[tuple[Any, ...]]:
        await self._init_schema()
        conn = await self._get_connection()
        try:
            cursor = await conn.execute(query, params)
            return list(await cursor.fetchall())
        finally:
            await self._return_connection(conn)

    async def _write(self, query: str, params: tuple[Any, ...]) -> None:
        await self._init_schema()
        conn = await self._get_connection()
        try:
            await conn.execute(query, params)
            await conn.commit()
        finally:
            await self._return_connection(conn)

    # ------------------------------------------------------------------ users

    async def get_user(self, user_id: str) -> User | None:
        row = await self._fetchone(
            "SELECT id, email, first_name, last_name FROM users WHERE id = ?",
            (user_id,),
        )
        if row is None:
            return None
        return self._row_to_user(row)

    async def save_user(self, user: User) -> None:
        await self._write(
            """
            INSERT INTO users (id, email, first_name, last_name)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                email = excluded.email,
                first_name = excluded.first_name,
                last_name = excluded.last_name
            """,
            (user.id, user.email, user.first_name, user.last_name),
        )

    # ----------------------------------------------------------------- events

    async def get_event(self, event_id: str) -> Event | None:
        row = await self._fetchone(
            f"SELECT {EVENT_COLUMNS} FROM events WHERE id = ?", (event_id,)
        )
        if row is None:
            return None
        return self._row_to_event(row)

    async def save_event(self, event: Event) -> None:
        await self._write(
            f"""
            INSERT OR REPLACE INTO events ({EVENT_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                event.id,
                event.title,
                event.event_date.isoformat(),
                event.price_cents,
                event.max_capacity,
                event.creator_id,
                event.validation_status.value,
                event.venue_name,
                event.venue_address,
                event.description,
                event.validated_at.isoformat() if event.validated_at else None,
            ),
        )

    async def list_events(
        self, status: ValidationStatus | None = None
    ) -> list[Event]:
        if status is None:
            rows = await self._fetchall(
                f"SELECT {EVENT_COLUMNS} FROM events ORDER BY event_date ASC"
            )
        else:
            rows = await self._fetchall(
                f"""
                SELECT {EVENT_COLUMNS} FROM events
                WHERE validation_status = ?
                ORDER BY event_date ASC
                """,
                (status.value,),
            )
        return [self._row_to_event(row) for row in rows]

    # --------------------------------------------------------- participations

    async def get_participation(self, participation_id: str) -> Participation | None:
        row = await self._fetchone(
            f"SELECT {PARTICIPATION_COLUMNS} FROM participations WHERE id = ?",
            (participation_id,),
        )
        if row is None:
            return None
        return self._row_to_participation(row)

    async def find_participation(
        self, user_id: str, event_id: str
    ) -> Participation | None:
        row = await self._fetchone(
            f"""
            SELECT {PARTICIPATION_COLUMNS} FROM participations
            WHERE user_id = ? AND event_id = ?
            """,
            (user_id, event_id),
        )
        if row is None:
            return None
        return self._row_to_participation(row)

    async def get_participation_by_payment_id(
        self, stripe_payment_id: str
    ) -> Participation | None:
        row = await self._fetchone(
            f"SELECT {PARTICIPATION_COLUMNS} FROM participations WHERE stripe_payment_id = ?",
            (stripe_payment_id,),
        )
        if row is None:
            return None
        return self._row_to_participation(row)

    async def save_participation(self, participation: Participation) -> None:
        """Create or update a participation.

        Raises:
            DuplicateBookingError: If another participation already holds the
                same (user, event) pair or payment id.
        """
        try:
            await self._write(
                f"""
                INSERT INTO participations ({PARTICIPATION_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    seats = excluded.seats,
                    status = excluded.status,
                    stripe_payment_id = excluded.stripe_payment_id,
                    used_at = excluded.used_at
                """,
                (
                    participation.id,
                    participation.user_id,
                    participation.event_id,
                    participation.seats,
                    participation.status.value,
                    participation.stripe_payment_id,
                    participation.ticket_code,
                    participation.created_at.isoformat(),
                    participation.used_at.isoformat() if participation.used_at else None,
                ),
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateBookingError(
                f"Participation conflicts with an existing booking: {e}"
            ) from e

    async def reserved_seats(self, event_id: str) -> int:
        row = await self._fetchone(
            "SELECT SUM(seats) FROM participations WHERE event_id = ? AND status = ?",
            (event_id, ParticipationStatus.CONFIRMED.value),
        )
        return (row[0] if row else None) or 0

    # ---------------------------------------------------------------- parsing

    @staticmethod
    def _row_to_user(row: tuple[Any, ...]) -> User:
        user_id, email, first_name, last_name = row
        return User(id=user_id, email=email, first_name=first_name, last_name=last_name or "")

    @staticmethod
    def _row_to_event(row: tuple[Any, ...]) -> Event:
        """Convert a database row to an Event.

        Raises:
            ValueError: If row is malformed or contains invalid data.
        """
        try:
            (
                event_id,
                title,
                event_date,
                price_cents,
                max_capacity,
                creator_id,
                validation_status,
                venue_name,
                venue_address,
                description,
                validated_at,
            ) = row
            return Event(
                id=event_id,
                title=title,
                event_date=datetime.fromisoformat(event_date),
                price_cents=price_cents,
                max_capacity=max_capacity,
                creator_id=creator_id,
                validation_status=ValidationStatus(validation_status),
                venue_name=venue_name or "",
                venue_address=venue_address or "",
                description=description or "",
                validated_at=datetime.fromisoformat(validated_at) if validated_at else None,
            )
        except ValueError as e:
            logger.error(f"Failed to parse event row: {e}")
            raise
        except Exception as e:
            logger.error(f"Unexpected error parsing event row: {e}")
            raise ValueError(f"Row parsing failed: {e}") from e

    @staticmethod
    def _row_to_participation(row: tuple[Any, ...]) -> Participation:
        """Convert a database row to a Participation.

        Raises:
            ValueError: If row is malformed or contains invalid data.
        """
        try:
            (
                participation_id,
                user_id,
                event_id,
                seats,
                status,
                stripe_payment_id,
                ticket_code,
                created_at,
                used_at,
            ) = row
            return Participation(
                id=participation_id,
                user_id=user_id,
                event_id=event_id,
                seats=seats,
                status=ParticipationStatus(status),
                stripe_payment_id=stripe_payment_id,
                ticket_code=ticket_code,
                created_at=datetime.fromisoformat(created_at),
                used_at=datetime.fromisoformat(used_at) if used_at else None,
            )
        except ValueError as e:
            logger.error(f"Failed to parse participation row: {e}")
            raise
        except Exception as e:
            logger.error(f"Unexpected error parsing participation row: {e}")
            raise ValueError(f"Row parsing failed: {e}") from e
