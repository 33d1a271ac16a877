from sendbox.booking.applications.booking_transition import (
    BookingTransitionService,
    TransitionResult,
)
from sendbox.booking.domain.enum import BookingStatus
from sendbox.booking.domain.value_object import BookingId
from sendbox.shared.domain import UserId


class RefuseBookingService(BookingTransitionService):
    """予約拒否ユースケース（旅行者）"""

    def refuse(
        self, actor_id: UserId, booking_id: BookingId, reason: str
    ) -> TransitionResult:
        booking = self._load(booking_id)
        now = self._clock()
        return self._apply(
            booking,
            lambda b: b.refuse(actor_id, reason, now),
            lambda b: b.status == BookingStatus.REFUSED,
        )
