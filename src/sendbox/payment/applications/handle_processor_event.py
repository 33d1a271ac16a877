import secrets
from datetime import datetime
from typing import assert_never

from aws_lambda_powertools import Logger

from sendbox.booking.applications.booking_transition import Clock, utc_now
from sendbox.booking.domain.entity import Booking
from sendbox.booking.domain.enum import BookingStatus
from sendbox.booking.domain.repository import BookingRepository
from sendbox.booking.domain.service import from_minor_units
from sendbox.booking.domain.value_object import BookingId
from sendbox.notification.applications.dispatch_notifications import (
    NotificationDispatcher,
)
from sendbox.payment.domain.entity import Transaction
from sendbox.payment.domain.enum import (
    EventOutcome,
    TransactionStatus,
    TransactionType,
)
from sendbox.payment.domain.gateway import PaymentProcessor
from sendbox.payment.domain.repository import TransactionRepository
from sendbox.payment.domain.value_object import (
    CaptureFailed,
    CaptureSucceeded,
    ProcessorEvent,
    Refunded,
    TransactionId,
)
from sendbox.shared.domain import Currency, Money
from sendbox.shared.domain.exception import (
    DuplicateResourceException,
    OptimisticLockException,
)

logger = Logger(child=True)

MAX_EVENT_ATTEMPTS = 3


def generate_qr_code() -> str:
    return secrets.token_urlsafe(16)


class HandleProcessorEventService:
    """決済プロセッサイベント処理ユースケース

    同じイベントが何度届いても結果は一度だけ反映される。
    予約の更新が競合した場合は最新の状態を読み直して再評価し
    （最大 MAX_EVENT_ATTEMPTS 回）、受け取ったお金の動きは必ず台帳に残す。
    """

    def __init__(
        self,
        repository: BookingRepository,
        transaction_repository: TransactionRepository,
        dispatcher: NotificationDispatcher,
        processor: PaymentProcessor | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._repository = repository
        self._transaction_repository = transaction_repository
        self._dispatcher = dispatcher
        self._processor = processor
        self._clock = clock or utc_now

    def handle(self, event: ProcessorEvent) -> EventOutcome:
        match event:
            case CaptureSucceeded():
                return self._capture_succeeded(event)
            case CaptureFailed():
                return self._capture_failed(event)
            case Refunded():
                return self._refunded(event)
            case _:
                assert_never(event)

    def _capture_succeeded(self, event: CaptureSucceeded) -> EventOutcome:
        for attempt in range(1, MAX_EVENT_ATTEMPTS + 1):
            booking = self._repository.find_by_id(BookingId(value=event.booking_id))
            if booking is None:
                logger.warning(
                    "Capture for unknown booking", extra={"booking_id": event.booking_id}
                )
                return EventOutcome.IGNORED
            if booking.is_paid:
                return EventOutcome.ALREADY_PROCESSED
            if booking.status != BookingStatus.ACCEPTED:
                return self._refund_late_capture(booking, event)

            now = self._clock()
            booking.mark_paid(event.reference, generate_qr_code(), now)
            try:
                self._transaction_repository.record_capture(
                    booking,
                    self._capture_entry(booking, event, now),
                    expected_status=BookingStatus.ACCEPTED,
                )
            except DuplicateResourceException:
                return EventOutcome.ALREADY_PROCESSED
            except OptimisticLockException:
                logger.info(
                    "Booking changed before capture could be recorded, retrying",
                    extra={"booking_id": event.booking_id, "attempt": attempt},
                )
                continue

            logger.info(
                "Payment captured",
                extra={"booking_id": event.booking_id, "reference": event.reference},
            )
            self._dispatcher.dispatch(booking.flush_domain_events())
            return EventOutcome.PROCESSED
        raise OptimisticLockException(
            f"Capture could not be recorded for booking {event.booking_id}"
        )

    def _refund_late_capture(
        self, booking: Booking, event: CaptureSucceeded
    ) -> EventOutcome:
        """支払いを受け付けられない予約へのキャプチャを返金して台帳に記録する

        返金は冪等キー付きで先に行い、台帳への記録が失敗しても再送で再開できる。
        """
        capture_id = TransactionId.capture()
        recorded = self._transaction_repository.list_by_booking(booking.id)
        if any(t.id == capture_id for t in recorded):
            return EventOutcome.ALREADY_PROCESSED

        logger.warning(
            "Capture for booking that is not awaiting payment, refunding",
            extra={
                "booking_id": event.booking_id,
                "status": booking.status.value,
                "reference": event.reference,
            },
        )
        if self._processor is None:
            logger.error(
                "No payment processor configured, refund must be issued manually",
                extra={"booking_id": event.booking_id, "reference": event.reference},
            )
        else:
            self._processor.refund(
                event.reference, idempotency_key=f"refund_{booking.id}"
            )
        try:
            self._transaction_repository.append(
                self._capture_entry(booking, event, self._clock())
            )
        except DuplicateResourceException:
            return EventOutcome.ALREADY_PROCESSED

        booking.notify_late_payment_refund()
        self._dispatcher.dispatch(booking.flush_domain_events())
        return EventOutcome.PROCESSED

    def _capture_failed(self, event: CaptureFailed) -> EventOutcome:
        booking = self._repository.find_by_id(BookingId(value=event.booking_id))
        if booking is None:
            logger.warning("Failure for unknown booking", extra={"booking_id": event.booking_id})
            return EventOutcome.IGNORED

        transaction = Transaction(
            id=TransactionId.from_event("failed", event.event_id),
            booking_id=booking.id,
            user_id=booking.sender_id,
            type=TransactionType.CAPTURE,
            amount=Money(amount=booking.amounts.total_amount, currency=booking.currency),
            status=TransactionStatus.FAILED,
            created_at=self._clock(),
            processor_reference=event.reference,
            failure_reason=event.message,
        )
        try:
            self._transaction_repository.append(transaction)
        except DuplicateResourceException:
            return EventOutcome.ALREADY_PROCESSED

        logger.info(
            "Payment failed",
            extra={"booking_id": event.booking_id, "reason": event.message},
        )
        booking.record_payment_failure(event.message)
        self._dispatcher.dispatch(booking.flush_domain_events())
        return EventOutcome.PROCESSED

    def _refunded(self, event: Refunded) -> EventOutcome:
        for attempt in range(1, MAX_EVENT_ATTEMPTS + 1):
            booking = self._find_refunded_booking(event)
            if booking is None:
                logger.warning(
                    "Refund for unknown booking", extra={"reference": event.reference}
                )
                return EventOutcome.IGNORED
            if booking.status == BookingStatus.CANCELLED and booking.is_paid:
                return EventOutcome.ALREADY_PROCESSED

            now = self._clock()
            transaction = self._refund_entry(booking, event, now)
            if booking.status not in BookingStatus.refundable():
                return self._record_unmatched_refund(booking, transaction)

            expected_status = booking.status
            booking.refund(now)
            try:
                self._transaction_repository.record_refund(
                    booking, transaction, expected_status=expected_status
                )
            except DuplicateResourceException:
                return EventOutcome.ALREADY_PROCESSED
            except OptimisticLockException:
                logger.info(
                    "Booking changed before refund could be recorded, retrying",
                    extra={"booking_id": str(booking.id), "attempt": attempt},
                )
                continue

            logger.info("Payment refunded", extra={"booking_id": str(booking.id)})
            self._dispatcher.dispatch(booking.flush_domain_events())
            return EventOutcome.PROCESSED
        raise OptimisticLockException(
            f"Refund could not be recorded for payment {event.reference}"
        )

    def _record_unmatched_refund(
        self, booking: Booking, transaction: Transaction
    ) -> EventOutcome:
        """予約を取り消せない状態で届いた返金を台帳にだけ残す"""
        try:
            self._transaction_repository.append(transaction)
        except DuplicateResourceException:
            return EventOutcome.ALREADY_PROCESSED
        logger.warning(
            "Refund recorded for booking that cannot be cancelled",
            extra={"booking_id": str(booking.id), "status": booking.status.value},
        )
        return EventOutcome.PROCESSED

    def _find_refunded_booking(self, event: Refunded) -> Booking | None:
        if event.booking_id:
            return self._repository.find_by_id(BookingId(value=event.booking_id))
        return self._repository.find_by_payment_reference(event.reference)

    @staticmethod
    def _capture_entry(
        booking: Booking, event: CaptureSucceeded, now: datetime
    ) -> Transaction:
        return Transaction(
            id=TransactionId.capture(),
            booking_id=booking.id,
            user_id=booking.sender_id,
            type=TransactionType.CAPTURE,
            amount=Money(
                amount=from_minor_units(event.amount_minor),
                currency=Currency(event.currency),
            ),
            status=TransactionStatus.COMPLETED,
            created_at=now,
            processor_reference=event.reference,
        )

    @staticmethod
    def _refund_entry(
        booking: Booking, event: Refunded, now: datetime
    ) -> Transaction:
        return Transaction(
            id=TransactionId.from_event("refund", event.event_id),
            booking_id=booking.id,
            user_id=booking.sender_id,
            type=TransactionType.REFUND,
            amount=Money(
                amount=from_minor_units(event.amount_minor),
                currency=Currency(event.currency),
            ),
            status=TransactionStatus.COMPLETED,
            created_at=now,
            processor_reference=event.reference,
        )
