from sendbox.booking.applications.booking_transition import (
    BookingTransitionService,
    TransitionResult,
)
from sendbox.booking.domain.enum import BookingStatus
from sendbox.booking.domain.value_object import BookingId
from sendbox.shared.domain import UserId


class RecordHandoverService(BookingTransitionService):
    """荷物受け取り（QR 読み取り）ユースケース"""

    def record_handover(
        self, actor_id: UserId, booking_id: BookingId, qr_code: str
    ) -> TransitionResult:
        booking = self._load(booking_id)
        now = self._clock()
        return self._apply(
            booking,
            lambda b: b.mark_in_transit(actor_id, qr_code, now),
            lambda b: b.status == BookingStatus.IN_TRANSIT,
        )
