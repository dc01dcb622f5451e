"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in bookings/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from math import ceil
from typing import Generic, TypeVar

from bookings.domain.value_objects import (
    BookingId,
    BookingStatus,
    Capacity,
    ClassId,
    ClassStatus,
    MemberId,
)

T = TypeVar("T")


@dataclass(frozen=True)
class FitnessClass:
    """Domain representation of a scheduled class offering."""

    id: ClassId
    name: str
    status: ClassStatus
    start_date: date
    end_date: date
    max_capacity: Capacity
    start_time: time | None = None

    @property
    def is_active(self) -> bool:
        return self.status is ClassStatus.ACTIVE

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class Member:
    """Domain representation of a Member, deduplicated by email."""

    id: MemberId
    name: str
    email: str
    phone: str | None = None


@dataclass(frozen=True)
class Booking:
    """Domain representation of a Booking."""

    id: BookingId
    class_id: ClassId
    member_id: MemberId
    participation_date: date
    status: BookingStatus
    created_at: datetime
    updated_at: datetime
    notes: str | None = None
    cancelled_at: datetime | None = None
    cancelled_by: str | None = None
    cancellation_reason: str | None = None
    attended_at: datetime | None = None


@dataclass(frozen=True)
class NewBooking:
    """Values for a booking that has not been persisted yet."""

    class_id: ClassId
    member_id: MemberId
    participation_date: date
    notes: str | None = None
    status: BookingStatus = BookingStatus.CONFIRMED


@dataclass(frozen=True)
class BookingDetails:
    """A booking with best-effort member and class details attached.

    ``member`` and ``fitness_class`` are None when the lookup failed.
    """

    booking: Booking
    member: Member | None = None
    fitness_class: FitnessClass | None = None


@dataclass(frozen=True)
class BookingFilters:
    class_id: ClassId | None = None
    member_name: str | None = None
    status: BookingStatus | None = None
    start_date: date | None = None
    end_date: date | None = None
    limit: int = 20
    offset: int = 0
    order_by: str = "created_at"
    order_direction: str = "DESC"


@dataclass(frozen=True)
class StatisticsOptions:
    start_date: date | None = None
    end_date: date | None = None
    class_id: ClassId | None = None


@dataclass(frozen=True)
class BookingStatistics:
    total_bookings: int = 0
    confirmed_bookings: int = 0
    cancelled_bookings: int = 0
    attended_bookings: int = 0
    no_show_bookings: int = 0
    attendance_rate: float = 0.0


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a filtered listing."""

    data: tuple[T, ...]
    total: int
    limit: int
    offset: int

    @property
    def page(self) -> int:
        return self.offset // self.limit + 1

    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.limit)


@dataclass(frozen=True)
class BookingRequest:
    """Raw create payload. Presence and format are checked by the validator."""

    class_id: str | None
    member_name: str | None
    participation_date: date | str | None
    member_email: str | None = None
    member_phone: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class BookingPatch:
    """Raw update payload. None means the field is left unchanged."""

    class_id: str | None = None
    member_name: str | None = None
    member_email: str | None = None
    member_phone: str | None = None
    participation_date: date | str | None = None
    notes: str | None = None
    status: str | None = None
    cancellation_reason: str | None = None

    @property
    def touches_member(self) -> bool:
        return any((self.member_name, self.member_email, self.member_phone))
