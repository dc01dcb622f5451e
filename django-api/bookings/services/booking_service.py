"""Booking service - all business logic lives here.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors

Domain errors raised by the validator, guard or lifecycle propagate
unchanged. Anything else a store raises is logged and re-raised as a
ServiceError with a generic message.
"""

import functools
import logging
from collections.abc import Callable
from datetime import date, datetime
from typing import Any, ParamSpec, TypeVar

from django.utils import timezone

from bookings.conf import BookingSettings
from bookings.domain import (
    Booking,
    BookingDetails,
    BookingFilters,
    BookingId,
    BookingPatch,
    BookingRequest,
    BookingStatistics,
    BookingStatus,
    ClassId,
    FitnessClass,
    Member,
    MemberId,
    NewBooking,
    Page,
)
from bookings.domain import lifecycle
from bookings.domain.errors import (
    BookingNotFoundError,
    ClassNotFoundError,
    DomainError,
    ErrorCode,
    ServiceError,
    ValidationError,
)
from bookings.domain.validator import BookingValidator, parse_booking_id
from bookings.services.capacity_guard import CapacityGuard
from bookings.services.member_resolver import MemberResolver
from bookings.stores.interfaces import BookingStore, ClassStore, MemberStore

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def service_boundary(message: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Let domain errors through and wrap anything else as ServiceError."""

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return func(*args, **kwargs)
            except DomainError:
                raise
            except Exception as exc:
                logger.exception(message)
                raise ServiceError(message) from exc

        return wrapper

    return decorator


class BookingService:
    """Create, read, update, delete, cancel and attend bookings."""

    def __init__(
        self,
        classes: ClassStore,
        members: MemberStore,
        bookings: BookingStore,
        *,
        settings: BookingSettings | None = None,
        clock: Callable[[], datetime] = timezone.localtime,
    ) -> None:
        self._classes = classes
        self._member_store = members
        self._bookings = bookings
        self._settings = settings or BookingSettings()
        self._clock = clock
        self._validator = BookingValidator(today=self._today)
        self._members = MemberResolver(members, self._settings.placeholder_email_domain)
        self._capacity = CapacityGuard(bookings)

    def _today(self) -> date:
        return self._clock().date()

    @service_boundary("Failed to create booking")
    def create_booking(self, request: BookingRequest) -> Booking:
        """Create a confirmed booking.

        Raises:
            ValidationError: Missing fields, bad formats or an inactive class.
            ClassNotFoundError: If the class does not exist.
            PastParticipationDateError: If the date is before tomorrow.
            DateOutOfRangeError: If the date is outside the class range.
            ClassFullError: If no confirmed seat is left.
        """
        class_id, participation_date = self._validator.validate_request(request)
        fitness_class = self._validator.validate_class(self._classes.get_class(class_id), class_id)
        self._validator.validate_new_date(participation_date, fitness_class)

        member = self._members.resolve(
            request.member_name or "", request.member_email, request.member_phone
        )

        # A member may hold several bookings for the same class and date.
        with self._capacity.reserve_seat(fitness_class):
            booking = self._bookings.create_booking(
                NewBooking(
                    class_id=class_id,
                    member_id=member.id,
                    participation_date=participation_date,
                    notes=request.notes or None,
                )
            )
        logger.info("Created booking %s for class %s", booking.id, class_id)
        return booking

    @service_boundary("Failed to retrieve booking")
    def get_booking_by_id(self, booking_id: str) -> BookingDetails:
        booking = self._get_existing(parse_booking_id(booking_id))
        return BookingDetails(booking=booking, member=self._find_member(booking.member_id))

    @service_boundary("Failed to retrieve bookings")
    def get_all_bookings(
        self,
        *,
        class_id: str | None = None,
        member_name: str | None = None,
        status: str | None = None,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
        limit: int | None = None,
        offset: int | None = None,
        order_by: str | None = None,
        order_direction: str | None = None,
    ) -> Page[BookingDetails]:
        filters = self._validator.validate_filters(
            class_id=class_id,
            member_name=member_name,
            status=status,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset,
            order_by=order_by,
            order_direction=order_direction,
            default_limit=self._settings.default_page_size,
            max_limit=self._settings.max_page_size,
        )
        return self._list_with_details(filters)

    @service_boundary("Failed to search bookings")
    def search_bookings(
        self,
        *,
        member_name: str | None = None,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> Page[BookingDetails]:
        if not member_name and not start_date and not end_date:
            raise ValidationError(
                "At least one search parameter is required: memberName, startDate, or endDate"
            )
        filters = self._validator.validate_filters(
            member_name=member_name,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset,
            default_limit=self._settings.default_page_size,
            max_limit=self._settings.max_page_size,
        )
        return self._list_with_details(filters)

    @service_boundary("Failed to update booking")
    def update_booking(self, booking_id: str, patch: BookingPatch) -> Booking:
        """Apply a partial update.

        A booking that ends up confirmed takes a seat in the target class
        under the seat lock when it moves class or returns to confirmed.
        The write only applies if the status is still the one the guards saw.

        Raises:
            InvalidTransitionError: If the booking is attended, or the status
                change is not allowed.
            ClassNotFoundError: If the new class does not exist.
            ClassFullError: If the target class has no confirmed seat left.
            ConflictError: If the status changed concurrently.
            ValidationError: For any other rejected field.
        """
        existing_id = parse_booking_id(booking_id)
        existing = self._get_existing(existing_id)
        validated = self._validator.validate_patch(existing, patch)

        changes: dict[str, Any] = {}
        target_class = None
        if validated.class_id is not None:
            target_class = self._validator.validate_class(
                self._classes.get_class(validated.class_id),
                validated.class_id,
                not_found_message="Selected class not found",
            )
            changes["class_id"] = validated.class_id

        if validated.participation_date is not None or target_class is not None:
            range_class = target_class or self._classes.get_class(existing.class_id)
            new_date = validated.participation_date or existing.participation_date
            if range_class is not None:
                self._validator.validate_moved_date(new_date, range_class)
            if validated.participation_date is not None:
                changes["participation_date"] = validated.participation_date

        if patch.touches_member:
            changes["member_id"] = self._resolve_patched_member(existing.member_id, patch).id

        if validated.status is not None:
            changes.update(
                lifecycle.transition_changes(
                    existing.status,
                    validated.status,
                    self._clock(),
                    cancelled_by=self._settings.system_actor,
                    cancellation_reason=validated.cancellation_reason,
                )
            )
        elif validated.cancellation_reason is not None:
            changes["cancellation_reason"] = validated.cancellation_reason

        if patch.notes is not None:
            changes["notes"] = patch.notes or None

        if not changes:
            raise ValidationError("No valid fields to update")

        seat_class = self._seat_class_for(existing, validated.status, target_class)
        if seat_class is None:
            updated = self._bookings.update_booking(
                existing_id, changes, expected_status=existing.status
            )
        else:
            with self._capacity.reserve_seat(
                seat_class, excluding=existing_id, message="Selected class is at full capacity"
            ):
                updated = self._bookings.update_booking(
                    existing_id, changes, expected_status=existing.status
                )
        logger.info("Updated booking %s (%s)", existing_id, ", ".join(sorted(changes)))
        return updated

    @service_boundary("Failed to delete booking")
    def delete_booking(self, booking_id: str) -> None:
        existing_id = parse_booking_id(booking_id)
        existing = self._get_existing(existing_id)
        if existing.status is BookingStatus.ATTENDED:
            raise ValidationError(
                "Cannot delete attended booking", ErrorCode.INVALID_STATUS_TRANSITION
            )
        self._bookings.delete_booking(existing_id)
        logger.info("Deleted booking %s", existing_id)

    @service_boundary("Failed to cancel booking")
    def cancel_booking(self, booking_id: str, reason: str | None = None) -> Booking:
        existing_id = parse_booking_id(booking_id)
        existing = self._get_existing(existing_id)
        lifecycle.ensure_can_cancel(existing.status)
        changes = lifecycle.transition_changes(
            existing.status,
            BookingStatus.CANCELLED,
            self._clock(),
            # TODO: take the actor from the request once authentication exists.
            cancelled_by=self._settings.system_actor,
            cancellation_reason=(reason or "").strip() or None,
        )
        cancelled = self._bookings.update_booking(
            existing_id, changes, expected_status=existing.status
        )
        logger.info("Cancelled booking %s", existing_id)
        return cancelled

    @service_boundary("Failed to mark booking as attended")
    def mark_booking_attended(self, booking_id: str) -> Booking:
        existing_id = parse_booking_id(booking_id)
        existing = self._get_existing(existing_id)
        lifecycle.ensure_can_attend(existing.status)
        changes = lifecycle.transition_changes(
            existing.status, BookingStatus.ATTENDED, self._clock()
        )
        attended = self._bookings.update_booking(
            existing_id, changes, expected_status=existing.status
        )
        logger.info("Marked booking %s as attended", existing_id)
        return attended

    @service_boundary("Failed to get booking statistics")
    def get_booking_statistics(
        self,
        *,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
        class_id: str | None = None,
    ) -> BookingStatistics:
        options = self._validator.validate_statistics_options(
            start_date=start_date, end_date=end_date, class_id=class_id
        )
        return self._bookings.get_statistics(options)

    def _get_existing(self, booking_id: BookingId) -> Booking:
        booking = self._bookings.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(str(booking_id))
        return booking

    def _seat_class_for(
        self,
        existing: Booking,
        new_status: BookingStatus | None,
        target_class: FitnessClass | None,
    ) -> FitnessClass | None:
        """Return the class whose seat an update takes, or None.

        Only a booking that ends up confirmed holds a seat.
        """
        if (new_status or existing.status) is not BookingStatus.CONFIRMED:
            return None
        if target_class is not None:
            return target_class
        rejoining = (
            new_status is BookingStatus.CONFIRMED
            and existing.status is not BookingStatus.CONFIRMED
        )
        if not rejoining:
            return None
        current_class = self._classes.get_class(existing.class_id)
        if current_class is None:
            raise ClassNotFoundError(str(existing.class_id))
        return current_class

    def _resolve_patched_member(self, member_id: MemberId, patch: BookingPatch) -> Member:
        current = self._find_member(member_id)
        return self._members.resolve(
            patch.member_name or (current.name if current else ""),
            patch.member_email or (current.email if current else None),
            patch.member_phone or (current.phone if current else None),
        )

    def _list_with_details(self, filters: BookingFilters) -> Page[BookingDetails]:
        page = self._bookings.list_bookings(filters)
        classes: dict[ClassId, FitnessClass | None] = {}
        details = []
        for booking in page.data:
            if booking.class_id not in classes:
                classes[booking.class_id] = self._find_class(booking.class_id)
            details.append(
                BookingDetails(
                    booking=booking,
                    member=self._find_member(booking.member_id),
                    fitness_class=classes[booking.class_id],
                )
            )
        return Page(data=tuple(details), total=page.total, limit=page.limit, offset=page.offset)

    def _find_member(self, member_id: MemberId) -> Member | None:
        """Best-effort lookup. Never fails; None on a missing row or lookup error."""
        try:
            return self._member_store.get_member(member_id)
        except Exception:
            logger.warning("Member lookup failed for %s", member_id, exc_info=True)
            return None

    def _find_class(self, class_id: ClassId) -> FitnessClass | None:
        """Best-effort lookup. Never fails; None on a missing row or lookup error."""
        try:
            return self._classes.get_class(class_id)
        except Exception:
            logger.warning("Class lookup failed for %s", class_id, exc_info=True)
            return None
