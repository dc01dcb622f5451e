"""Class capacity enforcement.

Only confirmed bookings hold a seat. Attended, cancelled and no-show
bookings are not counted, so marking a booking attended frees its seat for
live capacity purposes.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from bookings.domain import BookingId, ClassId, FitnessClass
from bookings.domain.errors import ClassFullError
from bookings.stores.interfaces import BookingStore


@dataclass(frozen=True)
class SeatToken:
    """Proof that a seat was free when the lock was taken."""

    class_id: ClassId
    confirmed: int
    max_capacity: int


class CapacityGuard:
    def __init__(self, store: BookingStore) -> None:
        self._store = store

    def check_capacity(
        self,
        class_id: ClassId,
        max_capacity: int,
        excluding: BookingId | None = None,
        *,
        message: str = "Class is at maximum capacity",
    ) -> SeatToken:
        """Raise ClassFullError when the class has no confirmed seat left.

        Only meaningful inside ``BookingStore.seat_lock``; use reserve_seat
        unless the lock is already held.
        """
        confirmed = self._store.count_confirmed(class_id, excluding=excluding)
        if confirmed >= max_capacity:
            raise ClassFullError(str(class_id), message)
        return SeatToken(class_id=class_id, confirmed=confirmed, max_capacity=max_capacity)

    @contextmanager
    def reserve_seat(
        self,
        fitness_class: FitnessClass,
        excluding: BookingId | None = None,
        *,
        message: str = "Class is at maximum capacity",
    ) -> Iterator[SeatToken]:
        """Hold the class seat lock while the caller writes the booking.

        The count and the write inside the ``with`` block commit atomically,
        so for a class of capacity N at most N bookings are ever confirmed.
        """
        with self._store.seat_lock(fitness_class.id):
            yield self.check_capacity(
                fitness_class.id,
                fitness_class.max_capacity.value,
                excluding,
                message=message,
            )
