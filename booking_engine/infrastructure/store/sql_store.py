from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    create_engine,
    event,
    func,
    select,
    text,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from booking_engine.application.exceptions import StorageError, UniquenessViolation
from booking_engine.application.ports.booking_store import BookingStorePort
from booking_engine.domain.entities.booking import BookingInstance, BookingStatus, NewBooking
from booking_engine.domain.entities.calendar import Calendar
from booking_engine.domain.entities.time_slot import TimeSlotTemplate

Base = declarative_base()

CONFIRMED_ONLY = text("status = 'confirmed'")


class CalendarRow(Base):
    __tablename__ = "calendars"

    id = Column(String(64), primary_key=True)
    owner_id = Column(String(64), nullable=False, index=True)
    title = Column(String(200), nullable=False, default="")
    owner_name = Column(String(200), nullable=True)
    owner_email = Column(String(320), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class TimeSlotRow(Base):
    __tablename__ = "time_slots"

    id = Column(String(64), primary_key=True)
    calendar_id = Column(String(64), ForeignKey("calendars.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    buffer_minutes = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_time_slots_day_of_week"),
        CheckConstraint("duration_minutes > 0", name="ck_time_slots_duration_positive"),
        CheckConstraint("buffer_minutes >= 0", name="ck_time_slots_buffer_non_negative"),
    )


class BookingRow(Base):
    __tablename__ = "bookings"

    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    calendar_id = Column(String(64), ForeignKey("calendars.id", ondelete="CASCADE"), nullable=False, index=True)
    # Bookings outlive their template; deleting a template only clears the reference.
    time_slot_id = Column(String(64), ForeignKey("time_slots.id", ondelete="SET NULL"), nullable=True, index=True)
    booking_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    guest_name = Column(String(200), nullable=False)
    guest_email = Column(String(320), nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value)
    cancellation_token = Column(String(128), nullable=False, unique=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    __table_args__ = (
        # Authoritative double-booking guard: one confirmed booking per calendar, date and start.
        Index(
            "uq_bookings_confirmed_start",
            "calendar_id",
            "booking_date",
            "start_time",
            unique=True,
            sqlite_where=CONFIRMED_ONLY,
            postgresql_where=CONFIRMED_ONLY,
        ),
        CheckConstraint("status IN ('confirmed', 'cancelled', 'completed')", name="ck_bookings_status"),
    )


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, **kwargs)

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine
    return create_engine(database_url, pool_pre_ping=True)


def _is_unique_violation(error: IntegrityError) -> bool:
    # 23505 is PostgreSQL's unique_violation; SQLite only reports it in the message.
    if getattr(error.orig, "pgcode", None) == "23505":
        return True
    return "unique" in str(error.orig).lower()


class SqlBookingStore(BookingStorePort):
    def __init__(self, engine: Engine | str, create_schema: bool = True) -> None:
        self._engine = build_engine(engine) if isinstance(engine, str) else engine
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        self._logger = logging.getLogger(__name__)
        if create_schema:
            try:
                Base.metadata.create_all(self._engine)
            except SQLAlchemyError as e:
                raise StorageError(f"Failed to create schema: {e}") from e

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            with session.begin():
                yield session
        except IntegrityError as e:
            if _is_unique_violation(e):
                raise UniquenessViolation(str(e.orig)) from e
            raise StorageError(str(e.orig)) from e
        except SQLAlchemyError as e:
            self._logger.error("Booking store query failed", extra={"error": str(e)})
            raise StorageError(str(e)) from e
        finally:
            session.close()

    def get_calendar(self, calendar_id: str) -> Calendar | None:
        with self._transaction() as session:
            row = session.get(CalendarRow, calendar_id)
            return _to_calendar(row) if row is not None else None

    def get_active_calendar(self, calendar_id: str) -> Calendar | None:
        calendar = self.get_calendar(calendar_id)
        return calendar if calendar is not None and calendar.is_active else None

    def get_time_slot(self, time_slot_id: str) -> TimeSlotTemplate | None:
        with self._transaction() as session:
            row = session.get(TimeSlotRow, time_slot_id)
            return _to_template(row) if row is not None else None

    def get_active_time_slot(self, time_slot_id: str) -> TimeSlotTemplate | None:
        template = self.get_time_slot(time_slot_id)
        return template if template is not None and template.is_active else None

    def list_time_slots(self, calendar_id: str) -> list[TimeSlotTemplate]:
        stmt = (
            select(TimeSlotRow)
            .where(TimeSlotRow.calendar_id == calendar_id)
            .order_by(TimeSlotRow.day_of_week, TimeSlotRow.start_time, TimeSlotRow.id)
        )
        with self._transaction() as session:
            return [_to_template(row) for row in session.scalars(stmt)]

    def list_confirmed_bookings(
        self,
        calendar_id: str,
        start_date: date,
        end_date: date | None = None,
    ) -> list[BookingInstance]:
        stmt = (
            select(BookingRow)
            .where(
                BookingRow.calendar_id == calendar_id,
                BookingRow.status == BookingStatus.CONFIRMED.value,
                BookingRow.booking_date >= start_date,
                BookingRow.booking_date <= (end_date or start_date),
            )
            .order_by(BookingRow.booking_date, BookingRow.start_time, BookingRow.id)
        )
        with self._transaction() as session:
            return [_to_booking(row) for row in session.scalars(stmt)]

    def get_booking(self, booking_id: str) -> BookingInstance | None:
        with self._transaction() as session:
            row = session.get(BookingRow, booking_id)
            return _to_booking(row) if row is not None else None

    def get_booking_by_token(self, token: str) -> BookingInstance | None:
        stmt = select(BookingRow).where(BookingRow.cancellation_token == token)
        with self._transaction() as session:
            row = session.scalars(stmt).first()
            return _to_booking(row) if row is not None else None

    def insert_booking(self, booking: NewBooking) -> BookingInstance:
        row = BookingRow(
            calendar_id=booking.calendar_id,
            time_slot_id=booking.time_slot_id,
            booking_date=booking.booking_date,
            start_time=booking.start_time,
            end_time=booking.end_time,
            guest_name=booking.guest_name,
            guest_email=booking.guest_email,
            notes=booking.notes,
            status=booking.status.value,
            cancellation_token=booking.cancellation_token,
        )
        with self._transaction() as session:
            session.add(row)
            session.flush()
            return _to_booking(row)

    def update_booking_status(
        self,
        booking_id: str,
        new_status: BookingStatus,
        expected_status: BookingStatus | None = None,
    ) -> BookingInstance | None:
        stmt = update(BookingRow).where(BookingRow.id == booking_id)
        if expected_status is not None:
            stmt = stmt.where(BookingRow.status == expected_status.value)
        stmt = stmt.values(status=new_status.value, updated_at=datetime.now())

        with self._transaction() as session:
            result = session.execute(stmt)
            if result.rowcount == 0:
                return None
            row = session.get(BookingRow, booking_id, populate_existing=True)
            return _to_booking(row) if row is not None else None

    def save_calendar(self, calendar: Calendar) -> Calendar:
        with self._transaction() as session:
            session.merge(
                CalendarRow(
                    id=calendar.id,
                    owner_id=calendar.owner_id,
                    title=calendar.title,
                    owner_name=calendar.owner_name,
                    owner_email=calendar.owner_email,
                    is_active=calendar.is_active,
                )
            )
        return calendar

    def delete_calendar(self, calendar_id: str) -> bool:
        with self._transaction() as session:
            row = session.get(CalendarRow, calendar_id)
            if row is None:
                return False
            session.delete(row)
            return True

    def save_time_slot(self, template: TimeSlotTemplate) -> TimeSlotTemplate:
        with self._transaction() as session:
            session.merge(
                TimeSlotRow(
                    id=template.id,
                    calendar_id=template.calendar_id,
                    day_of_week=template.day_of_week,
                    start_time=template.start_time,
                    end_time=template.end_time,
                    duration_minutes=template.duration_minutes,
                    buffer_minutes=template.buffer_minutes,
                    is_active=template.is_active,
                )
            )
        return template

    def delete_time_slot(self, time_slot_id: str) -> bool:
        with self._transaction() as session:
            row = session.get(TimeSlotRow, time_slot_id)
            if row is None:
                return False
            session.execute(
                update(BookingRow).where(BookingRow.time_slot_id == time_slot_id).values(time_slot_id=None)
            )
            session.delete(row)
            return True

    def count_future_bookings(
        self,
        from_date: date,
        calendar_id: str | None = None,
        time_slot_id: str | None = None,
    ) -> int:
        stmt = select(func.count(BookingRow.id)).where(
            BookingRow.status == BookingStatus.CONFIRMED.value,
            BookingRow.booking_date >= from_date,
        )
        if calendar_id is not None:
            stmt = stmt.where(BookingRow.calendar_id == calendar_id)
        if time_slot_id is not None:
            stmt = stmt.where(BookingRow.time_slot_id == time_slot_id)
        with self._transaction() as session:
            return int(session.scalar(stmt) or 0)


def _to_calendar(row: CalendarRow) -> Calendar:
    return Calendar(
        id=row.id,
        owner_id=row.owner_id,
        is_active=bool(row.is_active),
        title=row.title or "",
        owner_name=row.owner_name,
        owner_email=row.owner_email,
    )


def _to_template(row: TimeSlotRow) -> TimeSlotTemplate:
    return TimeSlotTemplate(
        id=row.id,
        calendar_id=row.calendar_id,
        day_of_week=row.day_of_week,
        start_time=row.start_time,
        end_time=row.end_time,
        duration_minutes=row.duration_minutes,
        buffer_minutes=row.buffer_minutes or 0,
        is_active=bool(row.is_active),
    )


def _to_booking(row: BookingRow) -> BookingInstance:
    return BookingInstance(
        id=row.id,
        calendar_id=row.calendar_id,
        time_slot_id=row.time_slot_id,
        booking_date=row.booking_date,
        start_time=row.start_time,
        end_time=row.end_time,
        guest_name=row.guest_name,
        guest_email=row.guest_email,
        cancellation_token=row.cancellation_token,
        status=BookingStatus(row.status),
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
