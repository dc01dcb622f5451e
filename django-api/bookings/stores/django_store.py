"""Django ORM implementations of the stores.

Each method queries the ORM and converts rows to domain models.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from bookings import models
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

# Domain field name -> ORM column for identity-typed values.
_ID_FIELDS = {"class_id": "fitness_class_id", "member_id": "member_id"}


def _to_class(row: models.FitnessClass) -> FitnessClass:
    return FitnessClass(
        id=ClassId(row.id),
        name=row.name,
        status=ClassStatus(row.status),
        start_date=row.start_date,
        end_date=row.end_date,
        max_capacity=Capacity(row.max_capacity),
        start_time=row.start_time,
    )


def _to_member(row: models.Member) -> Member:
    return Member(id=MemberId(row.id), name=row.name, email=row.email, phone=row.phone)


def _to_booking(row: models.Booking) -> Booking:
    return Booking(
        id=BookingId(row.id),
        class_id=ClassId(row.fitness_class_id),
        member_id=MemberId(row.member_id),
        participation_date=row.participation_date,
        status=BookingStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
        notes=row.notes,
        cancelled_at=row.cancelled_at,
        cancelled_by=row.cancelled_by,
        cancellation_reason=row.cancellation_reason,
        attended_at=row.attended_at,
    )


def _to_columns(changes: dict[str, Any]) -> dict[str, Any]:
    columns = {}
    for name, value in changes.items():
        if name in _ID_FIELDS:
            columns[_ID_FIELDS[name]] = value.value
        elif isinstance(value, BookingStatus):
            columns[name] = value.value
        else:
            columns[name] = value
    return columns


class DjangoClassStore(ClassStore):
    """Class lookups backed by the Django ORM."""

    def get_class(self, class_id: ClassId) -> FitnessClass | None:
        row = models.FitnessClass.objects.filter(pk=class_id.value).first()
        return _to_class(row) if row else None


class DjangoMemberStore(MemberStore):
    """Member persistence backed by the Django ORM."""

    def create_member_if_not_exists(
        self, name: str, email: str, phone: str | None = None
    ) -> Member:
        # get_or_create retries the lookup when a concurrent insert wins the
        # unique email constraint.
        row, _ = models.Member.objects.get_or_create(
            email=email, defaults={"name": name, "phone": phone}
        )
        return _to_member(row)

    def get_member(self, member_id: MemberId) -> Member | None:
        row = models.Member.objects.filter(pk=member_id.value).first()
        return _to_member(row) if row else None

    def fill_missing_phone(self, member_id: MemberId, phone: str) -> Member:
        models.Member.objects.filter(
            Q(phone__isnull=True) | Q(phone=""), pk=member_id.value
        ).update(phone=phone, updated_at=timezone.now())
        return _to_member(models.Member.objects.get(pk=member_id.value))


class DjangoBookingStore(BookingStore):
    """Booking persistence backed by the Django ORM.

    The seat lock is a transaction holding a row lock on the class, so the
    confirmed count and the write that takes a seat commit together. On
    backends without SELECT ... FOR UPDATE the lock degrades to the
    database's own write serialization.
    """

    @contextmanager
    def seat_lock(self, class_id: ClassId) -> Iterator[None]:
        with transaction.atomic():
            list(
                models.FitnessClass.objects.select_for_update()
                .filter(pk=class_id.value)
                .values_list("pk", flat=True)
            )
            yield

    def count_confirmed(self, class_id: ClassId, excluding: BookingId | None = None) -> int:
        queryset = models.Booking.objects.filter(
            fitness_class_id=class_id.value, status=models.Booking.Status.CONFIRMED
        )
        if excluding is not None:
            queryset = queryset.exclude(pk=excluding.value)
        return queryset.count()

    def create_booking(self, new_booking: NewBooking) -> Booking:
        row = models.Booking.objects.create(
            fitness_class_id=new_booking.class_id.value,
            member_id=new_booking.member_id.value,
            participation_date=new_booking.participation_date,
            notes=new_booking.notes,
            status=new_booking.status.value,
        )
        return _to_booking(row)

    def get_booking(self, booking_id: BookingId) -> Booking | None:
        row = models.Booking.objects.filter(pk=booking_id.value).first()
        return _to_booking(row) if row else None

    def list_bookings(self, filters: BookingFilters) -> Page[Booking]:
        queryset = models.Booking.objects.all()
        if filters.class_id is not None:
            queryset = queryset.filter(fitness_class_id=filters.class_id.value)
        if filters.member_name:
            queryset = queryset.filter(member__name__icontains=filters.member_name)
        if filters.status is not None:
            queryset = queryset.filter(status=filters.status.value)
        if filters.start_date is not None:
            queryset = queryset.filter(participation_date__gte=filters.start_date)
        if filters.end_date is not None:
            queryset = queryset.filter(participation_date__lte=filters.end_date)

        prefix = "-" if filters.order_direction == "DESC" else ""
        queryset = queryset.order_by(f"{prefix}{filters.order_by}", f"{prefix}id")

        total = queryset.count()
        rows = queryset[filters.offset : filters.offset + filters.limit]
        return Page(
            data=tuple(_to_booking(row) for row in rows),
            total=total,
            limit=filters.limit,
            offset=filters.offset,
        )

    def update_booking(
        self,
        booking_id: BookingId,
        changes: dict[str, Any],
        *,
        expected_status: BookingStatus | None = None,
    ) -> Booking:
        queryset = models.Booking.objects.filter(pk=booking_id.value)
        if expected_status is not None:
            queryset = queryset.filter(status=expected_status.value)
        updated = queryset.update(**_to_columns(changes), updated_at=timezone.now())
        if not updated:
            exists = models.Booking.objects.filter(pk=booking_id.value).exists()
            if expected_status is not None and exists:
                raise ConflictError("Booking status changed while it was being updated")
            raise BookingNotFoundError(str(booking_id))
        return _to_booking(models.Booking.objects.get(pk=booking_id.value))

    def delete_booking(self, booking_id: BookingId) -> None:
        deleted, _ = models.Booking.objects.filter(pk=booking_id.value).delete()
        if not deleted:
            raise BookingNotFoundError(str(booking_id))

    def get_statistics(self, options: StatisticsOptions) -> BookingStatistics:
        queryset = models.Booking.objects.all()
        if options.start_date is not None:
            queryset = queryset.filter(participation_date__gte=options.start_date)
        if options.end_date is not None:
            queryset = queryset.filter(participation_date__lte=options.end_date)
        if options.class_id is not None:
            queryset = queryset.filter(fitness_class_id=options.class_id.value)

        status = models.Booking.Status
        counts = queryset.aggregate(
            total=Count("id"),
            confirmed=Count("id", filter=Q(status=status.CONFIRMED)),
            cancelled=Count("id", filter=Q(status=status.CANCELLED)),
            attended=Count("id", filter=Q(status=status.ATTENDED)),
            no_show=Count("id", filter=Q(status=status.NO_SHOW)),
        )
        seated = counts["confirmed"] + counts["attended"]
        rate = round(counts["attended"] / seated * 100, 2) if seated else 0.0
        return BookingStatistics(
            total_bookings=counts["total"],
            confirmed_bookings=counts["confirmed"],
            cancelled_bookings=counts["cancelled"],
            attended_bookings=counts["attended"],
            no_show_bookings=counts["no_show"],
            attendance_rate=rate,
        )
