from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from aws_lambda_powertools import Logger

from sendbox.booking.domain.entity import Booking
from sendbox.booking.domain.repository import BookingRepository
from sendbox.booking.domain.value_object import BookingId
from sendbox.notification.applications.dispatch_notifications import (
    NotificationDispatcher,
)
from sendbox.shared.domain.exception import (
    InvalidStateException,
    OptimisticLockException,
    ResourceNotFoundException,
)

logger = Logger(child=True)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TransitionResult:
    """状態遷移の結果

    already_processed は、競合した別の呼び出しによって既に同じ遷移が
    完了していたことを表す（エラーではない）。
    """

    booking: Booking
    already_processed: bool = False


class BookingTransitionService:
    """予約の状態遷移ユースケースの基底クラス

    読み込み -> 遷移 -> ステータスを条件とした書き込み -> 通知配信 の順で処理する。
    """

    def __init__(
        self,
        repository: BookingRepository,
        dispatcher: NotificationDispatcher,
        clock: Clock | None = None,
    ) -> None:
        self._repository = repository
        self._dispatcher = dispatcher
        self._clock = clock or utc_now

    def _load(self, booking_id: BookingId) -> Booking:
        booking = self._repository.find_by_id(booking_id)
        if booking is None:
            raise ResourceNotFoundException("Booking not found")
        return booking

    def _apply(
        self,
        booking: Booking,
        transition: Callable[[Booking], None],
        is_done: Callable[[Booking], bool],
    ) -> TransitionResult:
        expected_status = booking.status
        transition(booking)
        try:
            self._repository.update(booking, expected_status=expected_status)
        except OptimisticLockException:
            current = self._load(booking.id)
            if is_done(current):
                logger.info(
                    "Transition already applied by a concurrent request",
                    extra={"booking_id": str(booking.id), "status": current.status.value},
                )
                return TransitionResult(booking=current, already_processed=True)
            raise InvalidStateException(
                f"Booking is now {current.status.value}, the action can no longer be applied"
            )
        self._dispatcher.dispatch(booking.flush_domain_events())
        return TransitionResult(booking=booking)
