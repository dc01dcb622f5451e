"""In-memory stores used to exercise the service without a database."""

import threading
import time
import uuid
from collections import defaultdict
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any

from bookings.domain import (
    Booking,
    BookingFilters,
    BookingId,
    BookingStatistics,
    BookingStatus,
    Capacity,
    ClassId,
    ClassStatus,
    FitnessClass,
    Member,
    MemberId,
    NewBooking,
    Page,
    StatisticsOptions,
)
from bookings.domain.errors import BookingNotFoundError, ConflictError
from bookings.stores.interfaces import BookingStore, ClassStore, MemberStore


class InMemoryClassStore(ClassStore):
    def __init__(self) -> None:
        self.classes: dict[ClassId, FitnessClass] = {}

    def add(self, fitness_class: FitnessClass) -> FitnessClass:
        self.classes[fitness_class.id] = fitness_class
        return fitness_class

    def get_class(self, class_id: ClassId) -> FitnessClass | None:
        return self.classes.get(class_id)


class InMemoryMemberStore(MemberStore):
    def __init__(self) -> None:
        self.members: dict[MemberId, Member] = {}
        self._lock = threading.Lock()

    def create_member_if_not_exists(
        self, name: str, email: str, phone: str | None = None
    ) -> Member:
        with self._lock:
            for member in self.members.values():
                if member.email == email:
                    return member
            member = Member(id=MemberId(uuid.uuid4()), name=name, email=email, phone=phone)
            self.members[member.id] = member
            return member

    def get_member(self, member_id: MemberId) -> Member | None:
        return self.members.get(member_id)

    def fill_missing_phone(self, member_id: MemberId, phone: str) -> Member:
        with self._lock:
            member = self.members[member_id]
            if not member.phone:
                member = replace(member, phone=phone)
                self.members[member_id] = member
            return member


class BrokenMemberStore(InMemoryMemberStore):
    """Creates members normally but fails every lookup by id."""

    def get_member(self, member_id: MemberId) -> Member | None:
        raise ConnectionError("member database unreachable")


class InMemoryBookingStore(BookingStore):
    """Booking store with one lock per class.

    ``count_delay`` widens the window between counting and writing so that
    races show up in threaded tests.
    """

    def __init__(self, members: InMemoryMemberStore, clock: Callable[[], datetime]) -> None:
        self.bookings: dict[BookingId, Booking] = {}
        self.count_delay = 0.0
        self._members = members
        self._clock = clock
        self._class_locks: defaultdict[ClassId, threading.Lock] = defaultdict(threading.Lock)
        self._registry_lock = threading.Lock()

    @contextmanager
    def seat_lock(self, class_id: ClassId) -> Iterator[None]:
        with self._registry_lock:
            lock = self._class_locks[class_id]
        with lock:
            yield

    def count_confirmed(self, class_id: ClassId, excluding: BookingId | None = None) -> int:
        count = sum(
            1
            for booking in list(self.bookings.values())
            if booking.class_id == class_id
            and booking.status is BookingStatus.CONFIRMED
            and booking.id != excluding
        )
        if self.count_delay:
            time.sleep(self.count_delay)
        return count

    def create_booking(self, new_booking: NewBooking) -> Booking:
        now = self._clock()
        booking = Booking(
            id=BookingId(uuid.uuid4()),
            class_id=new_booking.class_id,
            member_id=new_booking.member_id,
            participation_date=new_booking.participation_date,
            status=new_booking.status,
            created_at=now,
            updated_at=now,
            notes=new_booking.notes,
        )
        self.bookings[booking.id] = booking
        return booking

    def get_booking(self, booking_id: BookingId) -> Booking | None:
        return self.bookings.get(booking_id)

    def list_bookings(self, filters: BookingFilters) -> Page[Booking]:
        matches = [b for b in self.bookings.values() if self._matches(b, filters)]
        matches.sort(
            key=lambda b: getattr(b, filters.order_by).value
            if filters.order_by == "status"
            else getattr(b, filters.order_by),
            reverse=filters.order_direction == "DESC",
        )
        window = matches[filters.offset : filters.offset + filters.limit]
        return Page(data=tuple(window), total=len(matches), limit=filters.limit, offset=filters.offset)

    def _matches(self, booking: Booking, filters: BookingFilters) -> bool:
        if filters.class_id is not None and booking.class_id != filters.class_id:
            return False
        if filters.status is not None and booking.status is not filters.status:
            return False
        if filters.start_date is not None and booking.participation_date < filters.start_date:
            return False
        if filters.end_date is not None and booking.participation_date > filters.end_date:
            return False
        if filters.member_name:
            member = self._members.members.get(booking.member_id)
            if member is None or filters.member_name.lower() not in member.name.lower():
                return False
        return True

    def update_booking(
        self,
        booking_id: BookingId,
        changes: dict[str, Any],
        *,
        expected_status: BookingStatus | None = None,
    ) -> Booking:
        if booking_id not in self.bookings:
            raise BookingNotFoundError(str(booking_id))
        if expected_status is not None and self.bookings[booking_id].status is not expected_status:
            raise ConflictError("Booking status changed while it was being updated")
        updated = replace(self.bookings[booking_id], **changes, updated_at=self._clock())
        self.bookings[booking_id] = updated
        return updated

    def delete_booking(self, booking_id: BookingId) -> None:
        if self.bookings.pop(booking_id, None) is None:
            raise BookingNotFoundError(str(booking_id))

    def get_statistics(self, options: StatisticsOptions) -> BookingStatistics:
        selected = [
            b
            for b in self.bookings.values()
            if (options.class_id is None or b.class_id == options.class_id)
            and (options.start_date is None or b.participation_date >= options.start_date)
            and (options.end_date is None or b.participation_date <= options.end_date)
        ]
        by_status = {status: 0 for status in BookingStatus}
        for booking in selected:
            by_status[booking.status] += 1
        seated = by_status[BookingStatus.CONFIRMED] + by_status[BookingStatus.ATTENDED]
        rate = round(by_status[BookingStatus.ATTENDED] / seated * 100, 2) if seated else 0.0
        return BookingStatistics(
            total_bookings=len(selected),
            confirmed_bookings=by_status[BookingStatus.CONFIRMED],
            cancelled_bookings=by_status[BookingStatus.CANCELLED],
            attended_bookings=by_status[BookingStatus.ATTENDED],
            no_show_bookings=by_status[BookingStatus.NO_SHOW],
            attendance_rate=rate,
        )


NOW = datetime(2030, 1, 10, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


def make_class(
    *,
    max_capacity: int = 2,
    status: ClassStatus = ClassStatus.ACTIVE,
    start_date: date = date(2030, 1, 1),
    end_date: date = date(2030, 3, 31),
    name: str = "Morning Yoga",
) -> FitnessClass:
    return FitnessClass(
        id=ClassId(uuid.uuid4()),
        name=name,
        status=status,
        start_date=start_date,
        end_date=end_date,
        max_capacity=Capacity(max_capacity),
    )
