"""Serializers for request payloads and domain model responses.

Request serializers only check shape. Business rules belong to the service.
"""

from rest_framework import serializers

from bookings.domain import BookingDetails, BookingPatch, BookingRequest, Page


class BookingCreateSerializer(serializers.Serializer):
    # Presence is enforced by the service so its error codes stay stable.
    classId = serializers.CharField(required=False, allow_blank=True)
    memberName = serializers.CharField(max_length=100, required=False, allow_blank=True)
    memberEmail = serializers.CharField(max_length=255, required=False, allow_blank=True)
    memberPhone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    participationDate = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def to_request(self) -> BookingRequest:
        data = self.validated_data
        return BookingRequest(
            class_id=data.get("classId"),
            member_name=data.get("memberName"),
            participation_date=data.get("participationDate"),
            member_email=data.get("memberEmail"),
            member_phone=data.get("memberPhone"),
            notes=data.get("notes"),
        )


class BookingUpdateSerializer(serializers.Serializer):
    classId = serializers.CharField(required=False)
    memberName = serializers.CharField(max_length=100, required=False)
    memberEmail = serializers.CharField(max_length=255, required=False)
    memberPhone = serializers.CharField(max_length=50, required=False)
    participationDate = serializers.CharField(required=False)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True)
    status = serializers.CharField(required=False)
    cancellationReason = serializers.CharField(max_length=255, required=False)

    def to_patch(self) -> BookingPatch:
        data = self.validated_data
        return BookingPatch(
            class_id=data.get("classId"),
            member_name=data.get("memberName"),
            member_email=data.get("memberEmail"),
            member_phone=data.get("memberPhone"),
            participation_date=data.get("participationDate"),
            notes=data.get("notes"),
            status=data.get("status"),
            cancellation_reason=data.get("cancellationReason"),
        )


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)


class BookingQuerySerializer(serializers.Serializer):
    classId = serializers.CharField(required=False)
    memberName = serializers.CharField(required=False)
    status = serializers.CharField(required=False)
    startDate = serializers.CharField(required=False)
    endDate = serializers.CharField(required=False)
    limit = serializers.IntegerField(required=False)
    offset = serializers.IntegerField(required=False)
    orderBy = serializers.CharField(required=False)
    orderDirection = serializers.CharField(required=False)


class StatisticsQuerySerializer(serializers.Serializer):
    classId = serializers.CharField(required=False)
    startDate = serializers.CharField(required=False)
    endDate = serializers.CharField(required=False)


class MemberSerializer(serializers.Serializer):
    """Serializer for Member domain model."""

    id = serializers.UUIDField(source="id.value")
    name = serializers.CharField()
    email = serializers.CharField()
    phone = serializers.CharField(allow_null=True)


class FitnessClassSerializer(serializers.Serializer):
    """Serializer for FitnessClass domain model."""

    id = serializers.UUIDField(source="id.value")
    name = serializers.CharField()
    status = serializers.CharField(source="status.value")
    startDate = serializers.DateField(source="start_date")
    endDate = serializers.DateField(source="end_date")
    startTime = serializers.TimeField(source="start_time", allow_null=True)
    maxCapacity = serializers.IntegerField(source="max_capacity.value")


class BookingSerializer(serializers.Serializer):
    """Serializer for Booking domain model."""

    id = serializers.UUIDField(source="id.value")
    classId = serializers.UUIDField(source="class_id.value")
    memberId = serializers.UUIDField(source="member_id.value")
    participationDate = serializers.DateField(source="participation_date")
    status = serializers.CharField(source="status.value")
    notes = serializers.CharField(allow_null=True)
    attendedAt = serializers.DateTimeField(source="attended_at", allow_null=True)
    cancelledAt = serializers.DateTimeField(source="cancelled_at", allow_null=True)
    cancelledBy = serializers.CharField(source="cancelled_by", allow_null=True)
    cancellationReason = serializers.CharField(source="cancellation_reason", allow_null=True)
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")


def booking_details_data(details: BookingDetails) -> dict:
    """Flatten a booking with its optional member and class summary."""
    data = dict(BookingSerializer(details.booking).data)
    data["member"] = MemberSerializer(details.member).data if details.member else None
    fitness_class = details.fitness_class
    data["class"] = FitnessClassSerializer(fitness_class).data if fitness_class else None
    data["className"] = fitness_class.name if fitness_class else None
    data["classStartTime"] = (
        fitness_class.start_time.isoformat()
        if fitness_class and fitness_class.start_time
        else None
    )
    return data


def page_data(page: Page[BookingDetails]) -> dict:
    return {
        "data": [booking_details_data(details) for details in page.data],
        "pagination": {
            "total": page.total,
            "limit": page.limit,
            "offset": page.offset,
            "page": page.page,
            "totalPages": page.total_pages,
        },
    }


class StatisticsSerializer(serializers.Serializer):
    totalBookings = serializers.IntegerField(source="total_bookings")
    confirmedBookings = serializers.IntegerField(source="confirmed_bookings")
    cancelledBookings = serializers.IntegerField(source="cancelled_bookings")
    attendedBookings = serializers.IntegerField(source="attended_bookings")
    noShowBookings = serializers.IntegerField(source="no_show_bookings")
    attendanceRate = serializers.FloatField(source="attendance_rate")
