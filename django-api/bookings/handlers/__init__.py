from bookings.handlers.views import (
    BookingAttendView,
    BookingCancelView,
    BookingDetailView,
    BookingListView,
    BookingSearchView,
    BookingStatisticsView,
)

__all__ = [
    "BookingAttendView",
    "BookingCancelView",
    "BookingDetailView",
    "BookingListView",
    "BookingSearchView",
    "BookingStatisticsView",
]
