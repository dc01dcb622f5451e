from bookings.services.booking_service import BookingService
from bookings.services.capacity_guard import CapacityGuard, SeatToken
from bookings.services.member_resolver import MemberResolver

__all__ = ["BookingService", "CapacityGuard", "MemberResolver", "SeatToken"]
