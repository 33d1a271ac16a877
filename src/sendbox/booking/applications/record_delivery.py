from sendbox.booking.applications.booking_transition import (
    BookingTransitionService,
    TransitionResult,
)
from sendbox.booking.domain.value_object import BookingId
from sendbox.shared.domain import UserId


class RecordDeliveryService(BookingTransitionService):
    """配達完了（QR 読み取り）ユースケース"""

    def record_delivery(
        self, actor_id: UserId, booking_id: BookingId, qr_code: str
    ) -> TransitionResult:
        booking = self._load(booking_id)
        now = self._clock()
        return self._apply(
            booking,
            lambda b: b.mark_delivered(actor_id, qr_code, now),
            lambda b: b.timeline.delivered_at is not None,
        )
