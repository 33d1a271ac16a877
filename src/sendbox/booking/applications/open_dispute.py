from sendbox.booking.applications.booking_transition import (
    BookingTransitionService,
    TransitionResult,
)
from sendbox.booking.domain.value_object import BookingId
from sendbox.shared.domain import UserId


class OpenDisputeService(BookingTransitionService):
    """配達後の異議申し立てユースケース（資金解放を保留する）"""

    def open_dispute(
        self, actor_id: UserId, booking_id: BookingId, reason: str
    ) -> TransitionResult:
        booking = self._load(booking_id)
        now = self._clock()
        return self._apply(
            booking,
            lambda b: b.open_dispute(actor_id, reason, now),
            lambda b: b.has_open_dispute,
        )
