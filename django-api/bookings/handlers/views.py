"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import logging

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.serializers import Serializer
from rest_framework.views import APIView

from bookings.conf import BookingSettings
from bookings.domain.errors import DomainError, ErrorKind
from bookings.handlers.serializers import (
    BookingCreateSerializer,
    BookingQuerySerializer,
    BookingSerializer,
    BookingUpdateSerializer,
    CancelSerializer,
    StatisticsQuerySerializer,
    StatisticsSerializer,
    booking_details_data,
    page_data,
)
from bookings.services import BookingService
from bookings.stores.django_store import DjangoBookingStore, DjangoClassStore, DjangoMemberStore

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.SERVICE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_booking_service() -> BookingService:
    return BookingService(
        DjangoClassStore(),
        DjangoMemberStore(),
        DjangoBookingStore(),
        settings=BookingSettings.from_django(),
    )


def success(data, http_status: int = status.HTTP_200_OK, **extra) -> Response:
    return Response({"success": True, "data": data, **extra}, status=http_status)


def failure(code: str, message: str, http_status: int, details=None) -> Response:
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return Response({"success": False, "error": error}, status=http_status)


class InvalidPayload(Exception):
    def __init__(self, errors) -> None:
        super().__init__("Invalid request payload")
        self.errors = errors


class BookingAPIView(APIView):
    """Base view that maps domain errors to the response envelope."""

    def get_service(self) -> BookingService:
        return get_booking_service()

    def parse(self, serializer_class: type[Serializer], data) -> Serializer:
        serializer = serializer_class(data=data)
        if not serializer.is_valid():
            raise InvalidPayload(serializer.errors)
        return serializer

    def handle_exception(self, exc: Exception) -> Response:
        if isinstance(exc, InvalidPayload):
            return failure(
                "VALIDATION_ERROR", "Invalid request payload", status.HTTP_400_BAD_REQUEST, exc.errors
            )
        if isinstance(exc, DomainError):
            http_status = STATUS_BY_KIND[exc.kind]
            logger.info(
                "%s %s -> %s %s", self.request.method, self.request.path, http_status, exc.code.value
            )
            return failure(exc.code.value, exc.message, http_status)

        # Framework errors such as unparsable bodies or unsupported methods.
        response = super().handle_exception(exc)
        detail = response.data.get("detail") if isinstance(response.data, dict) else None
        code = str(getattr(exc, "default_code", "error")).upper()
        enveloped = failure(code, str(detail or "Request failed"), response.status_code)
        for header in ("Allow", "WWW-Authenticate", "Retry-After"):
            if header in response:
                enveloped[header] = response[header]
        return enveloped


class BookingListView(BookingAPIView):
    """Handler for GET/POST /api/bookings"""

    def get(self, request: Request) -> Response:
        query = self.parse(BookingQuerySerializer, request.query_params).validated_data
        page = self.get_service().get_all_bookings(
            class_id=query.get("classId"),
            member_name=query.get("memberName"),
            status=query.get("status"),
            start_date=query.get("startDate"),
            end_date=query.get("endDate"),
            limit=query.get("limit"),
            offset=query.get("offset"),
            order_by=query.get("orderBy"),
            order_direction=query.get("orderDirection"),
        )
        payload = page_data(page)
        return success(payload["data"], pagination=payload["pagination"])

    def post(self, request: Request) -> Response:
        serializer = self.parse(BookingCreateSerializer, request.data)
        booking = self.get_service().create_booking(serializer.to_request())
        return success(BookingSerializer(booking).data, status.HTTP_201_CREATED)


class BookingSearchView(BookingAPIView):
    """Handler for GET /api/bookings/search"""

    def get(self, request: Request) -> Response:
        query = self.parse(BookingQuerySerializer, request.query_params).validated_data
        page = self.get_service().search_bookings(
            member_name=query.get("memberName"),
            start_date=query.get("startDate"),
            end_date=query.get("endDate"),
            limit=query.get("limit"),
            offset=query.get("offset"),
        )
        payload = page_data(page)
        return success(payload["data"], pagination=payload["pagination"])


class BookingStatisticsView(BookingAPIView):
    """Handler for GET /api/bookings/statistics"""

    def get(self, request: Request) -> Response:
        query = self.parse(StatisticsQuerySerializer, request.query_params).validated_data
        statistics = self.get_service().get_booking_statistics(
            start_date=query.get("startDate"),
            end_date=query.get("endDate"),
            class_id=query.get("classId"),
        )
        return success(StatisticsSerializer(statistics).data)


class BookingDetailView(BookingAPIView):
    """Handler for GET/PUT/PATCH/DELETE /api/bookings/{booking_id}"""

    def get(self, request: Request, booking_id: str) -> Response:
        details = self.get_service().get_booking_by_id(booking_id)
        return success(booking_details_data(details))

    def put(self, request: Request, booking_id: str) -> Response:
        serializer = self.parse(BookingUpdateSerializer, request.data)
        booking = self.get_service().update_booking(booking_id, serializer.to_patch())
        return success(BookingSerializer(booking).data)

    patch = put

    def delete(self, request: Request, booking_id: str) -> Response:
        self.get_service().delete_booking(booking_id)
        return success(None)


class BookingCancelView(BookingAPIView):
    """Handler for POST /api/bookings/{booking_id}/cancel"""

    def post(self, request: Request, booking_id: str) -> Response:
        reason = self.parse(CancelSerializer, request.data).validated_data.get("reason")
        booking = self.get_service().cancel_booking(booking_id, reason)
        return success(BookingSerializer(booking).data)


class BookingAttendView(BookingAPIView):
    """Handler for POST /api/bookings/{booking_id}/attend"""

    def post(self, request: Request, booking_id: str) -> Response:
        booking = self.get_service().mark_booking_attended(booking_id)
        return success(BookingSerializer(booking).data)
