from django.urls import path

from bookings.handlers import (
    BookingAttendView,
    BookingCancelView,
    BookingDetailView,
    BookingListView,
    BookingSearchView,
    BookingStatisticsView,
)

urlpatterns = [
    path("bookings", BookingListView.as_view(), name="booking-list"),
    path("bookings/search", BookingSearchView.as_view(), name="booking-search"),
    path("bookings/statistics", BookingStatisticsView.as_view(), name="booking-statistics"),
    path("bookings/<str:booking_id>", BookingDetailView.as_view(), name="booking-detail"),
    path(
        "bookings/<str:booking_id>/cancel",
        BookingCancelView.as_view(),
        name="booking-cancel",
    ),
    path(
        "bookings/<str:booking_id>/attend",
        BookingAttendView.as_view(),
        name="booking-attend",
    ),
]
