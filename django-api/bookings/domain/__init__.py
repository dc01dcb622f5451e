from bookings.domain.models import (
    Booking,
    BookingDetails,
    BookingFilters,
    BookingPatch,
    BookingRequest,
    BookingStatistics,
    FitnessClass,
    Member,
    NewBooking,
    Page,
    StatisticsOptions,
)
from bookings.domain.value_objects import (
    BookingId,
    BookingStatus,
    Capacity,
    ClassId,
    ClassStatus,
    MemberId,
)

__all__ = [
    "Booking",
    "BookingDetails",
    "BookingFilters",
    "BookingPatch",
    "BookingRequest",
    "BookingStatistics",
    "FitnessClass",
    "Member",
    "NewBooking",
    "Page",
    "StatisticsOptions",
    "BookingId",
    "BookingStatus",
    "Capacity",
    "ClassId",
    "ClassStatus",
    "MemberId",
]
