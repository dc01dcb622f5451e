"""Booking status state machine.

confirmed is the initial state. attended is terminal. cancelled only
accepts edits that keep it cancelled, so there is no un-cancel path.
The generic update path permits every other transition; cancel and
attend have their own stricter guards.
"""

from datetime import datetime
from typing import Any

from bookings.domain.errors import InvalidTransitionError
from bookings.domain.value_objects import BookingStatus


def ensure_can_update(current: BookingStatus) -> None:
    """Reject any modification of an attended booking."""
    if current is BookingStatus.ATTENDED:
        raise InvalidTransitionError("Cannot change status of attended booking")


def ensure_transition(current: BookingStatus, new: BookingStatus) -> None:
    """Guard a status change requested through the generic update path.

    Raises:
        InvalidTransitionError: If the booking is attended, or cancelled and
            asked to move to any other status.
    """
    ensure_can_update(current)
    if current is BookingStatus.CANCELLED and new is not BookingStatus.CANCELLED:
        raise InvalidTransitionError(
            f"Cannot change status of cancelled booking to {new.value}"
        )


def ensure_can_cancel(current: BookingStatus) -> None:
    if current is BookingStatus.ATTENDED:
        raise InvalidTransitionError("Cannot cancel attended booking")
    if current is BookingStatus.CANCELLED:
        raise InvalidTransitionError("Booking is already cancelled")


def ensure_can_attend(current: BookingStatus) -> None:
    if current is BookingStatus.ATTENDED:
        raise InvalidTransitionError("Booking is already marked as attended")
    if current is BookingStatus.CANCELLED:
        raise InvalidTransitionError("Cannot mark cancelled booking as attended")
    if current is BookingStatus.NO_SHOW:
        raise InvalidTransitionError("Cannot mark no-show booking as attended")


def transition_changes(
    current: BookingStatus,
    new: BookingStatus,
    now: datetime,
    *,
    cancelled_by: str | None = None,
    cancellation_reason: str | None = None,
) -> dict[str, Any]:
    """Return the field changes that accompany moving from current to new.

    Entering cancelled stamps cancelled_at and records the actor and reason.
    Entering attended stamps attended_at. Staying in the same status only
    carries a changed reason.
    """
    changes: dict[str, Any] = {"status": new}
    if new is BookingStatus.CANCELLED:
        if current is not BookingStatus.CANCELLED:
            changes["cancelled_at"] = now
            changes["cancelled_by"] = cancelled_by
        if cancellation_reason is not None:
            changes["cancellation_reason"] = cancellation_reason
    elif new is BookingStatus.ATTENDED and current is not BookingStatus.ATTENDED:
        changes["attended_at"] = now
    return changes
