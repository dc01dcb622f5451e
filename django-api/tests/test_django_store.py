"""Integration tests for the Django ORM stores.

Run with: pytest tests/test_django_store.py -v
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
from django.db import IntegrityError, connections, transaction
from django.utils import timezone

from bookings import models
from bookings.domain import BookingFilters, BookingRequest, BookingStatus, ClassId, StatisticsOptions
from bookings.domain.errors import (
    BookingNotFoundError,
    ClassFullError,
    ConflictError,
    DomainError,
    ErrorCode,
)
from bookings.services import BookingService
from bookings.stores.django_store import DjangoBookingStore, DjangoClassStore, DjangoMemberStore


@pytest.fixture
def db_service() -> BookingService:
    return BookingService(
        DjangoClassStore(), DjangoMemberStore(), DjangoBookingStore(), clock=timezone.localtime
    )


@pytest.fixture
def spin_class() -> models.FitnessClass:
    today = timezone.localdate()
    return models.FitnessClass.objects.create(
        name="Spin",
        start_date=today,
        end_date=today + timedelta(days=30),
        max_capacity=2,
    )


def _request(fitness_class, email: str = "jane@example.com", days: int = 3) -> BookingRequest:
    return BookingRequest(
        class_id=str(fitness_class.id),
        member_name="Jane Doe",
        member_email=email,
        participation_date=(timezone.localdate() + timedelta(days=days)).isoformat(),
    )


@pytest.mark.django_db
class TestDjangoStores:
    """Service operations backed by the database."""

    def test_create_and_read(self, db_service, spin_class):
        booking = db_service.create_booking(_request(spin_class))
        row = models.Booking.objects.get(pk=booking.id.value)
        assert row.status == "confirmed"
        assert row.member.email == "jane@example.com"

        details = db_service.get_booking_by_id(str(booking.id))
        assert details.booking.id == booking.id
        assert details.booking.participation_date == booking.participation_date
        assert details.booking.status is BookingStatus.CONFIRMED
        assert details.member.name == "Jane Doe"

    def test_capacity_is_enforced(self, db_service, spin_class):
        db_service.create_booking(_request(spin_class, "a@example.com"))
        db_service.create_booking(_request(spin_class, "b@example.com"))
        with pytest.raises(ClassFullError):
            db_service.create_booking(_request(spin_class, "c@example.com"))
        assert models.Booking.objects.filter(fitness_class=spin_class).count() == 2

    def test_count_confirmed_excludes(self, db_service, spin_class):
        store = DjangoBookingStore()
        booking = db_service.create_booking(_request(spin_class))
        class_id = ClassId(spin_class.id)
        assert store.count_confirmed(class_id) == 1
        assert store.count_confirmed(class_id, excluding=booking.id) == 0

    def test_member_get_or_create_dedups_by_email(self):
        store = DjangoMemberStore()
        first = store.create_member_if_not_exists("Jane Doe", "jane@example.com")
        second = store.create_member_if_not_exists("Janet", "jane@example.com", "+15550001")
        assert first.id == second.id
        assert models.Member.objects.count() == 1

        filled = store.fill_missing_phone(first.id, "+15550001")
        assert filled.phone == "+15550001"
        assert store.fill_missing_phone(first.id, "+15559999").phone == "+15550001"

    def test_cancel_and_statistics(self, db_service, spin_class):
        first = db_service.create_booking(_request(spin_class, "a@example.com"))
        second = db_service.create_booking(_request(spin_class, "b@example.com"))
        db_service.cancel_booking(str(first.id), "Sick")
        db_service.mark_booking_attended(str(second.id))

        row = models.Booking.objects.get(pk=first.id.value)
        assert row.cancelled_by == "system"
        assert row.cancellation_reason == "Sick"
        assert row.cancelled_at is not None

        stats = DjangoBookingStore().get_statistics(StatisticsOptions(class_id=ClassId(spin_class.id)))
        assert stats.total_bookings == 2
        assert stats.cancelled_bookings == 1
        assert stats.attended_bookings == 1
        assert stats.attendance_rate == 100.0

    def test_list_filters_by_member_name(self, db_service, spin_class):
        db_service.create_booking(_request(spin_class, "a@example.com"))
        store = DjangoBookingStore()
        assert store.list_bookings(BookingFilters(member_name="jane")).total == 1
        assert store.list_bookings(BookingFilters(member_name="bob")).total == 0
        assert store.list_bookings(BookingFilters(status=BookingStatus.CANCELLED)).total == 0

    def test_update_and_delete_missing_booking(self, db_service, spin_class):
        store = DjangoBookingStore()
        booking = db_service.create_booking(_request(spin_class))
        store.delete_booking(booking.id)
        with pytest.raises(BookingNotFoundError):
            store.update_booking(booking.id, {"notes": "x"})
        with pytest.raises(BookingNotFoundError):
            store.delete_booking(booking.id)

    def test_reason_requires_cancelled_status_in_database(self, db_service, spin_class):
        booking = db_service.create_booking(_request(spin_class))
        with pytest.raises(IntegrityError), transaction.atomic():
            models.Booking.objects.filter(pk=booking.id.value).update(cancellation_reason="x")

    def test_update_with_stale_status_is_rejected(self, db_service, spin_class):
        store = DjangoBookingStore()
        booking = db_service.create_booking(_request(spin_class))
        db_service.mark_booking_attended(str(booking.id))

        with pytest.raises(ConflictError):
            store.update_booking(
                booking.id,
                {"status": BookingStatus.CANCELLED, "cancelled_at": timezone.now()},
                expected_status=BookingStatus.CONFIRMED,
            )

        row = models.Booking.objects.get(pk=booking.id.value)
        assert row.status == "attended"
        assert row.attended_at is not None
        assert row.cancelled_at is None


@pytest.mark.django_db(transaction=True)
class TestConcurrentDatabaseCreation:
    """The seat lock must hold across real database connections."""

    @pytest.mark.parametrize("max_capacity,attempts", [(1, 10), (3, 12)])
    def test_capacity_holds_under_concurrency(self, max_capacity, attempts):
        today = timezone.localdate()
        fitness_class = models.FitnessClass.objects.create(
            name="Rowing",
            start_date=today,
            end_date=today + timedelta(days=30),
            max_capacity=max_capacity,
        )

        def attempt(index: int):
            service = BookingService(DjangoClassStore(), DjangoMemberStore(), DjangoBookingStore())
            try:
                return service.create_booking(_request(fitness_class, f"member{index}@example.com"))
            except DomainError as exc:
                return exc
            finally:
                connections.close_all()

        with ThreadPoolExecutor(max_workers=attempts) as pool:
            results = list(pool.map(attempt, range(attempts)))

        failures = [r for r in results if isinstance(r, DomainError)]
        assert len(results) - len(failures) == max_capacity
        assert [f.code for f in failures] == [ErrorCode.BOOKING_CLASS_FULL] * (attempts - max_capacity)
        confirmed = models.Booking.objects.filter(fitness_class=fitness_class, status="confirmed")
        assert confirmed.count() == max_capacity
