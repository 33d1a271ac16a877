from aws_lambda_powertools import Logger

from sendbox.booking.applications.booking_transition import Clock, utc_now
from sendbox.booking.domain.entity import Booking
from sendbox.booking.domain.enum import BookingStatus, ReleaseTrigger
from sendbox.booking.domain.repository import BookingRepository
from sendbox.booking.domain.service import to_minor_units
from sendbox.booking.domain.value_object import BookingId
from sendbox.notification.applications.dispatch_notifications import (
    NotificationDispatcher,
)
from sendbox.payment.domain.entity import Transaction
from sendbox.payment.domain.enum import TransactionStatus, TransactionType
from sendbox.payment.domain.gateway import PaymentProcessor
from sendbox.payment.domain.repository import TransactionRepository
from sendbox.payment.domain.value_object import TransactionId
from sendbox.settlement.domain import (
    PayoutAccount,
    PayoutAccountProvider,
    ReleaseResult,
)
from sendbox.settlement.domain.value_object.release_result import (
    PAYMENTS_DISABLED,
    PAYOUTS_NOT_ENABLED,
    TRANSFER_FAILED,
)
from sendbox.shared.config import EngineSettings
from sendbox.shared.domain import Money
from sendbox.shared.domain.exception import (
    DuplicateResourceException,
    InvalidStateException,
    OptimisticLockException,
    ProcessorException,
    ResourceNotFoundException,
)

logger = Logger(child=True)


class ReleaseFundsService:
    """資金解放ユースケース

    1. delivered -> delivery_confirmed | auto_released の条件付き更新で解放権を確保する
    2. 確保できた呼び出しのみ旅行者へ送金する（冪等キー transfer_<booking_id>）
    3. 送金結果を台帳に追記し、released_at を記録する

    送金に失敗した場合は delivered に戻して再試行できるようにする。
    解放権を確保したまま中断した予約は、一定時間後にスイープが引き継ぐ。
    """

    def __init__(
        self,
        repository: BookingRepository,
        transaction_repository: TransactionRepository,
        processor: PaymentProcessor,
        payout_accounts: PayoutAccountProvider,
        dispatcher: NotificationDispatcher,
        settings: EngineSettings,
        clock: Clock | None = None,
    ) -> None:
        self._repository = repository
        self._transaction_repository = transaction_repository
        self._processor = processor
        self._payout_accounts = payout_accounts
        self._dispatcher = dispatcher
        self._settings = settings
        self._clock = clock or utc_now

    def release(self, booking_id: BookingId, trigger: ReleaseTrigger) -> ReleaseResult:
        booking = self._repository.find_by_id(booking_id)
        if booking is None:
            raise ResourceNotFoundException("Booking not found")
        if booking.is_released:
            return ReleaseResult(already_released=True)

        if not self._settings.payments_enabled:
            logger.info(
                "Payments disabled, release skipped",
                extra={"booking_id": str(booking_id)},
            )
            return ReleaseResult(error=PAYMENTS_DISABLED)

        now = self._clock()
        if booking.is_release_claimed:
            stale_before = now - self._settings.release_claim_timeout
            if not booking.is_release_claim_stale(stale_before):
                return ReleaseResult(already_released=True)
            return self._resume(booking, trigger)

        if booking.status != BookingStatus.DELIVERED:
            raise InvalidStateException("Funds can only be released after delivery")

        account = self._payout_account_for(booking, trigger)
        if account is None:
            return ReleaseResult(error=PAYOUTS_NOT_ENABLED)

        booking.claim_release(trigger, now)
        try:
            self._repository.update(booking, expected_status=BookingStatus.DELIVERED)
        except OptimisticLockException:
            current = self._repository.find_by_id(booking_id)
            if current is not None and (current.is_release_claimed or current.is_released):
                logger.info(
                    "Release already claimed by a concurrent request",
                    extra={"booking_id": str(booking_id)},
                )
                return ReleaseResult(already_released=True)
            raise InvalidStateException("Booking changed while releasing funds")

        logger.info(
            "Release claimed",
            extra={"booking_id": str(booking_id), "trigger": trigger.value},
        )
        return self._transfer(booking, account)

    def _resume(self, booking: Booking, trigger: ReleaseTrigger) -> ReleaseResult:
        """中断された解放処理を引き継ぐ（送金は冪等キーにより二重実行されない）"""
        account = self._payout_account_for(booking, trigger)
        if account is None:
            return ReleaseResult(error=PAYOUTS_NOT_ENABLED)

        claimed_status = booking.status
        booking.renew_release_claim(self._clock())
        try:
            self._repository.update(booking, expected_status=claimed_status)
        except OptimisticLockException:
            return ReleaseResult(already_released=True)

        logger.info("Resuming stale release", extra={"booking_id": str(booking.id)})
        return self._transfer(booking, account)

    def _transfer(self, booking: Booking, account: PayoutAccount) -> ReleaseResult:
        claimed_status = booking.status
        payout = booking.amounts.traveler_payout
        try:
            receipt = self._processor.transfer(
                amount_minor=to_minor_units(payout),
                currency=str(booking.currency),
                destination=account.account_id,
                idempotency_key=f"transfer_{booking.id}",
                metadata={
                    "booking_id": str(booking.id),
                    "traveler_id": str(booking.traveler_id),
                },
            )
        except ProcessorException as e:
            logger.exception(
                "Transfer failed, reverting release claim",
                extra={"booking_id": str(booking.id)},
            )
            self._append(
                Transaction(
                    id=TransactionId.generate("transfer_failed"),
                    booking_id=booking.id,
                    user_id=booking.traveler_id,
                    type=TransactionType.TRANSFER,
                    amount=Money(amount=payout, currency=booking.currency),
                    status=TransactionStatus.FAILED,
                    created_at=self._clock(),
                    failure_reason=str(e),
                )
            )
            booking.revert_release_claim()
            self._repository.update(booking, expected_status=claimed_status)
            return ReleaseResult(error=TRANSFER_FAILED)

        now = self._clock()
        self._append(
            Transaction(
                id=TransactionId.transfer(),
                booking_id=booking.id,
                user_id=booking.traveler_id,
                type=TransactionType.TRANSFER,
                amount=Money(amount=payout, currency=booking.currency),
                status=TransactionStatus.COMPLETED,
                created_at=now,
                processor_reference=receipt.transfer_id,
            )
        )
        booking.mark_released(receipt.transfer_id, now)
        try:
            self._repository.update(booking, expected_status=claimed_status)
        except OptimisticLockException:
            logger.warning(
                "Release recorded by another request",
                extra={"booking_id": str(booking.id), "transfer_id": receipt.transfer_id},
            )
            return ReleaseResult(already_released=True, transfer_id=receipt.transfer_id)

        logger.info(
            "Funds released",
            extra={
                "booking_id": str(booking.id),
                "transfer_id": receipt.transfer_id,
                "amount": str(payout),
            },
        )
        self._dispatcher.dispatch(booking.flush_domain_events())
        return ReleaseResult(released=True, transfer_id=receipt.transfer_id)

    def _payout_account_for(
        self, booking: Booking, trigger: ReleaseTrigger
    ) -> PayoutAccount | None:
        """旅行者の送金先を返す

        未設定の旅行者への通知は受け取り確認のときだけ行い、スイープの度には送らない。
        """
        account = self._payout_accounts.get_payout_account(booking.traveler_id)
        if account is not None and account.payouts_enabled:
            return account
        logger.warning(
            "Traveler payouts not enabled",
            extra={"booking_id": str(booking.id), "traveler_id": str(booking.traveler_id)},
        )
        if trigger == ReleaseTrigger.CONFIRMATION:
            booking.notify_payouts_not_enabled()
            self._dispatcher.dispatch(booking.flush_domain_events())
        return None

    def _append(self, transaction: Transaction) -> None:
        try:
            self._transaction_repository.append(transaction)
        except DuplicateResourceException:
            logger.info(
                "Ledger entry already recorded",
                extra={"booking_id": str(transaction.booking_id), "transaction_id": str(transaction.id)},
            )
