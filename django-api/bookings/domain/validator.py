"""Booking validation rules.

Create rules run in a fixed order: required fields, class exists, class
active, date from tomorrow onwards, date inside the class range. Capacity
is the last rule and is checked by the CapacityGuard inside the seat lock.

Updates are looser on dates: today is accepted, tomorrow is not required.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta

from bookings.domain import lifecycle
from bookings.domain.errors import (
    ClassNotFoundError,
    DateOutOfRangeError,
    ErrorCode,
    PastParticipationDateError,
    ValidationError,
)
from bookings.domain.models import (
    Booking,
    BookingFilters,
    BookingPatch,
    BookingRequest,
    FitnessClass,
    StatisticsOptions,
)
from bookings.domain.value_objects import BookingId, BookingStatus, ClassId, parse_date

ORDERABLE_FIELDS = frozenset({"created_at", "updated_at", "participation_date", "status"})
ORDER_DIRECTIONS = frozenset({"ASC", "DESC"})


@dataclass(frozen=True)
class ValidatedPatch:
    """An update payload after parsing.

    ``class_id`` is only set when the booking moves to a different class.
    """

    class_id: ClassId | None = None
    status: BookingStatus | None = None
    participation_date: date | None = None
    cancellation_reason: str | None = None


def parse_booking_id(raw: str | None) -> BookingId:
    if not raw or not raw.strip():
        raise ValidationError("Invalid booking ID", ErrorCode.INVALID_BOOKING_ID)
    try:
        return BookingId.from_string(raw.strip())
    except ValueError:
        raise ValidationError("Invalid booking ID", ErrorCode.INVALID_BOOKING_ID) from None


def parse_class_id(raw: str, message: str = "Invalid class ID") -> ClassId:
    try:
        return ClassId.from_string(str(raw).strip())
    except ValueError:
        raise ValidationError(message, ErrorCode.INVALID_CLASS_ID) from None


def _parse_date(raw: date | str, message: str) -> date:
    try:
        return parse_date(raw)
    except (TypeError, ValueError):
        raise ValidationError(message, ErrorCode.INVALID_DATE) from None


def _parse_optional_date(raw: date | str | None, name: str) -> date | None:
    if raw in (None, ""):
        return None
    return _parse_date(raw, f"Invalid {name} filter")


class BookingValidator:
    """Field presence, date range and cross-field rules for bookings."""

    def __init__(self, today: Callable[[], date]) -> None:
        self._today = today

    def validate_request(self, request: BookingRequest) -> tuple[ClassId, date]:
        """Check required fields and parse the class id and participation date."""
        if not request.class_id or not (request.member_name or "").strip() or not request.participation_date:
            raise ValidationError(
                "Class ID, member name, and participation date are required",
                ErrorCode.MISSING_FIELDS,
            )
        class_id = parse_class_id(request.class_id)
        participation_date = _parse_date(
            request.participation_date, "Invalid participation date format"
        )
        return class_id, participation_date

    def validate_class(
        self,
        fitness_class: FitnessClass | None,
        class_id: ClassId,
        *,
        not_found_message: str = "Class not found",
    ) -> FitnessClass:
        if fitness_class is None:
            raise ClassNotFoundError(str(class_id), not_found_message)
        if not fitness_class.is_active:
            raise ValidationError("Cannot book an inactive class", ErrorCode.CLASS_INACTIVE)
        return fitness_class

    def validate_new_date(self, participation_date: date, fitness_class: FitnessClass) -> None:
        tomorrow = self._today() + timedelta(days=1)
        if participation_date < tomorrow:
            raise PastParticipationDateError()
        if not fitness_class.covers(participation_date):
            raise DateOutOfRangeError()

    def validate_patch(self, existing: Booking, patch: BookingPatch) -> ValidatedPatch:
        """Parse an update and apply the rules that need no lookups.

        Raises:
            InvalidTransitionError: If the booking is attended or the status
                change is not allowed.
            ValidationError: For malformed ids, dates or statuses, a past
                date, or a cancellation reason on a non-cancelled booking.
        """
        lifecycle.ensure_can_update(existing.status)

        class_id = None
        if patch.class_id:
            parsed = parse_class_id(patch.class_id)
            if parsed != existing.class_id:
                class_id = parsed

        status = None
        if patch.status:
            try:
                status = BookingStatus(patch.status)
            except ValueError:
                raise ValidationError(f"Invalid status: {patch.status}") from None
            lifecycle.ensure_transition(existing.status, status)

        participation_date = None
        if patch.participation_date:
            participation_date = _parse_date(
                patch.participation_date, "Invalid participation date format"
            )
            if participation_date < self._today():
                raise ValidationError(
                    "Participation date cannot be in the past", ErrorCode.INVALID_DATE
                )

        if patch.cancellation_reason:
            resulting = status or existing.status
            if resulting is not BookingStatus.CANCELLED:
                raise ValidationError(
                    "Cancellation reason can only be set when status is cancelled",
                    ErrorCode.CANCELLATION_REASON_NOT_ALLOWED,
                )

        return ValidatedPatch(
            class_id=class_id,
            status=status,
            participation_date=participation_date,
            cancellation_reason=patch.cancellation_reason or None,
        )

    def validate_moved_date(self, participation_date: date, fitness_class: FitnessClass) -> None:
        """A rescheduled or moved booking must still fall inside its class range."""
        if not fitness_class.covers(participation_date):
            raise DateOutOfRangeError()

    def validate_filters(
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
        default_limit: int = 20,
        max_limit: int = 100,
    ) -> BookingFilters:
        if limit is not None and not 1 <= limit <= max_limit:
            raise ValidationError("Invalid limit filter", ErrorCode.INVALID_FILTER)
        if offset is not None and offset < 0:
            raise ValidationError("Invalid offset filter", ErrorCode.INVALID_FILTER)

        parsed_status = None
        if status:
            try:
                parsed_status = BookingStatus(status)
            except ValueError:
                raise ValidationError("Invalid status filter", ErrorCode.INVALID_FILTER) from None

        order_field = (order_by or "created_at").lower()
        if order_field not in ORDERABLE_FIELDS:
            raise ValidationError("Invalid orderBy filter", ErrorCode.INVALID_FILTER)
        direction = (order_direction or "DESC").upper()
        if direction not in ORDER_DIRECTIONS:
            raise ValidationError("Invalid orderDirection filter", ErrorCode.INVALID_FILTER)

        return BookingFilters(
            class_id=parse_class_id(class_id, "Invalid class ID filter") if class_id else None,
            member_name=(member_name or "").strip() or None,
            status=parsed_status,
            start_date=_parse_optional_date(start_date, "startDate"),
            end_date=_parse_optional_date(end_date, "endDate"),
            limit=limit or default_limit,
            offset=offset or 0,
            order_by=order_field,
            order_direction=direction,
        )

    def validate_statistics_options(
        self,
        *,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
        class_id: str | None = None,
    ) -> StatisticsOptions:
        return StatisticsOptions(
            start_date=_parse_optional_date(start_date, "startDate"),
            end_date=_parse_optional_date(end_date, "endDate"),
            class_id=parse_class_id(class_id, "Invalid class ID filter") if class_id else None,
        )
