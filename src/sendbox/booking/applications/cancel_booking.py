from aws_lambda_powertools import Logger

from sendbox.booking.applications.booking_transition import (
    BookingTransitionService,
    Clock,
    TransitionResult,
)
from sendbox.booking.domain.enum import BookingStatus
from sendbox.booking.domain.repository import BookingRepository
from sendbox.booking.domain.value_object import BookingId
from sendbox.notification.applications.dispatch_notifications import (
    NotificationDispatcher,
)
from sendbox.payment.domain.gateway import PaymentProcessor
from sendbox.shared.domain import UserId
from sendbox.shared.domain.exception import ProcessorException

logger = Logger(child=True)


class CancelBookingService(BookingTransitionService):
    """予約キャンセルユースケース（送り主・支払い前のみ）

    決済プロセッサに保留が作成済みであれば、キャンセル後に取り消す。
    取り消しに失敗してもキャンセルは確定しており、その後に届いた
    キャプチャはプロセッサイベント処理で返金される。
    """

    def __init__(
        self,
        repository: BookingRepository,
        dispatcher: NotificationDispatcher,
        clock: Clock | None = None,
        processor: PaymentProcessor | None = None,
    ) -> None:
        super().__init__(repository, dispatcher, clock)
        self._processor = processor

    def cancel(
        self, actor_id: UserId, booking_id: BookingId, reason: str | None = None
    ) -> TransitionResult:
        booking = self._load(booking_id)
        now = self._clock()
        result = self._apply(
            booking,
            lambda b: b.cancel(actor_id, reason, now),
            lambda b: b.status == BookingStatus.CANCELLED,
        )
        if not result.already_processed:
            self._cancel_hold(result.booking.payment_reference)
        return result

    def _cancel_hold(self, reference: str | None) -> None:
        if reference is None or self._processor is None:
            return
        try:
            self._processor.cancel_hold(reference)
        except ProcessorException:
            logger.warning(
                "Payment hold could not be cancelled",
                extra={"reference": reference},
                exc_info=True,
            )
