"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any

from bookings.domain import (
    Booking,
    BookingFilters,
    BookingId,
    BookingStatistics,
    BookingStatus,
    ClassId,
    FitnessClass,
    Member,
    MemberId,
    NewBooking,
    Page,
    StatisticsOptions,
)


class ClassStore(ABC):
    """Read-only access to scheduled classes."""

    @abstractmethod
    def get_class(self, class_id: ClassId) -> FitnessClass | None:
        """Return a class by ID, or None if not found."""
        ...


class MemberStore(ABC):
    """Interface for member persistence operations."""

    @abstractmethod
    def create_member_if_not_exists(
        self, name: str, email: str, phone: str | None = None
    ) -> Member:
        """Return the member owning ``email``, creating it if absent.

        Must never fail because a concurrent writer created the same email.
        """
        ...

    @abstractmethod
    def get_member(self, member_id: MemberId) -> Member | None:
        """Return a member by ID, or None if not found."""
        ...

    @abstractmethod
    def fill_missing_phone(self, member_id: MemberId, phone: str) -> Member:
        """Set the phone of a member that has none. Existing values win."""
        ...


class BookingStore(ABC):
    """Interface for booking persistence operations."""

    @abstractmethod
    def seat_lock(self, class_id: ClassId) -> AbstractContextManager[None]:
        """Serialize seat changes for one class.

        Counting confirmed bookings and writing the booking that takes the
        seat must both happen inside this context so that concurrent writers
        cannot overshoot capacity. Nothing written inside is visible if the
        block raises.
        """
        ...

    @abstractmethod
    def count_confirmed(self, class_id: ClassId, excluding: BookingId | None = None) -> int:
        """Count confirmed bookings for a class, optionally skipping one."""
        ...

    @abstractmethod
    def create_booking(self, new_booking: NewBooking) -> Booking:
        ...

    @abstractmethod
    def get_booking(self, booking_id: BookingId) -> Booking | None:
        """Return a booking by ID, or None if not found."""
        ...

    @abstractmethod
    def list_bookings(self, filters: BookingFilters) -> Page[Booking]:
        """Return one page of bookings matching the filters."""
        ...

    @abstractmethod
    def update_booking(
        self,
        booking_id: BookingId,
        changes: dict[str, Any],
        *,
        expected_status: BookingStatus | None = None,
    ) -> Booking:
        """Apply field changes and return the stored booking.

        Keys are Booking field names. When expected_status is given the write
        only applies while the booking still has that status.

        Raises:
            BookingNotFoundError: If the booking vanished.
            ConflictError: If the status no longer matches expected_status.
        """
        ...

    @abstractmethod
    def delete_booking(self, booking_id: BookingId) -> None:
        ...

    @abstractmethod
    def get_statistics(self, options: StatisticsOptions) -> BookingStatistics:
        ...
