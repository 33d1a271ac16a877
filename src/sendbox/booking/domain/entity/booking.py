from datetime import datetime
from decimal import Decimal

from sendbox.booking.domain.enum import BookingStatus, ReleaseTrigger
from sendbox.booking.domain.value_object import (
    AnnouncementId,
    BookingId,
    BookingTimeline,
    PriceBreakdown,
)
from sendbox.notification.domain import Notification, NotificationType
from sendbox.shared.domain import AggregateRoot, Currency, UserId
from sendbox.shared.domain.exception import (
    BusinessRuleViolationException,
    ForbiddenException,
    InvalidStateException,
    ValidationFailedException,
)

MIN_REASON_LENGTH = 5
DEFAULT_CANCELLATION_REASON = "Cancelled by sender"
REFUND_CANCELLATION_REASON = "Payment refunded"


class Booking(AggregateRoot[BookingId]):
    """予約エンティティ（送り主と旅行者の間の荷物輸送契約）

    状態遷移:
        pending -> accepted | refused | cancelled
        accepted -> paid | cancelled
        paid -> in_transit
        in_transit -> delivered
        delivered -> delivery_confirmed | auto_released
        accepted/paid/in_transit/delivered -> cancelled（返金時のみ）

    金額内訳は作成時に確定し、以後変更しない。
    """

    def __init__(
        self,
        id: BookingId,
        announcement_id: AnnouncementId,
        sender_id: UserId,
        traveler_id: UserId,
        weight_kg: Decimal,
        price_per_kg: Decimal,
        declared_value: Decimal,
        insurance_opted: bool,
        package_description: str,
        amounts: PriceBreakdown,
        currency: Currency,
        timeline: BookingTimeline,
        status: BookingStatus = BookingStatus.PENDING,
        status_changed_at: datetime | None = None,
        payment_reference: str | None = None,
        qr_code: str | None = None,
        reason: str | None = None,
        dispute_reason: str | None = None,
        payout_reference: str | None = None,
        package_photos: list[str] | None = None,
        version: int = 0,
    ) -> None:
        super().__init__(id)
        self._announcement_id = announcement_id
        self._sender_id = sender_id
        self._traveler_id = traveler_id
        self._weight_kg = weight_kg
        self._price_per_kg = price_per_kg
        self._declared_value = declared_value
        self._insurance_opted = insurance_opted
        self._package_description = package_description
        self._amounts = amounts
        self._currency = currency
        self._timeline = timeline
        self._status = status
        self._status_changed_at = status_changed_at or timeline.created_at
        self._payment_reference = payment_reference
        self._qr_code = qr_code
        self._reason = reason
        self._dispute_reason = dispute_reason
        self._payout_reference = payout_reference
        self._package_photos = list(package_photos or [])
        self._version = version

    @property
    def announcement_id(self) -> AnnouncementId:
        return self._announcement_id

    @property
    def sender_id(self) -> UserId:
        return self._sender_id

    @property
    def traveler_id(self) -> UserId:
        return self._traveler_id

    @property
    def weight_kg(self) -> Decimal:
        return self._weight_kg

    @property
    def price_per_kg(self) -> Decimal:
        return self._price_per_kg

    @property
    def declared_value(self) -> Decimal:
        return self._declared_value

    @property
    def insurance_opted(self) -> bool:
        return self._insurance_opted

    @property
    def package_description(self) -> str:
        return self._package_description

    @property
    def amounts(self) -> PriceBreakdown:
        return self._amounts

    @property
    def currency(self) -> Currency:
        return self._currency

    @property
    def timeline(self) -> BookingTimeline:
        return self._timeline

    @property
    def status(self) -> BookingStatus:
        return self._status

    @property
    def status_changed_at(self) -> datetime:
        return self._status_changed_at

    @property
    def payment_reference(self) -> str | None:
        return self._payment_reference

    @property
    def qr_code(self) -> str | None:
        return self._qr_code

    @property
    def reason(self) -> str | None:
        return self._reason

    @property
    def dispute_reason(self) -> str | None:
        return self._dispute_reason

    @property
    def payout_reference(self) -> str | None:
        return self._payout_reference

    @property
    def package_photos(self) -> list[str]:
        return list(self._package_photos)

    @property
    def version(self) -> int:
        """永続化済みの更新回数（条件付き書き込みの比較値）"""
        return self._version

    def advance_version(self) -> None:
        self._version += 1

    @property
    def is_paid(self) -> bool:
        return self._timeline.paid_at is not None

    @property
    def is_released(self) -> bool:
        """送金まで完了しているか"""
        return self._timeline.released_at is not None

    @property
    def is_release_claimed(self) -> bool:
        return self._status in BookingStatus.released()

    @property
    def has_open_dispute(self) -> bool:
        return self._timeline.dispute_opened_at is not None

    @property
    def holds_capacity(self) -> bool:
        return self._status in BookingStatus.capacity_holding()

    # --- 当事者チェック ---

    def ensure_sender(self, actor_id: UserId) -> None:
        if actor_id != self._sender_id:
            raise ForbiddenException("Only the sender can perform this action")

    def ensure_traveler(self, actor_id: UserId) -> None:
        if actor_id != self._traveler_id:
            raise ForbiddenException("Only the traveler can perform this action")

    # --- 状態遷移 ---

    def attach_photos(self, photo_urls: list[str]) -> None:
        self._package_photos.extend(photo_urls)

    def accept(self, actor_id: UserId, now: datetime) -> None:
        """旅行者が予約リクエストを承諾する"""
        self.ensure_traveler(actor_id)
        self._ensure_status(BookingStatus.PENDING, "This request is no longer pending")
        self._transition_to(BookingStatus.ACCEPTED, now)
        self._timeline.accepted_at = now
        self._notify(
            self._sender_id,
            NotificationType.BOOKING_ACCEPTED,
            "Booking accepted",
            "Your booking request was accepted. You can now proceed to payment.",
        )

    def refuse(self, actor_id: UserId, reason: str, now: datetime) -> None:
        """旅行者が予約リクエストを拒否する"""
        self.ensure_traveler(actor_id)
        self._ensure_status(BookingStatus.PENDING, "This request is no longer pending")
        reason = (reason or "").strip()
        if len(reason) < MIN_REASON_LENGTH:
            raise ValidationFailedException(
                f"Please give a reason of at least {MIN_REASON_LENGTH} characters",
                field="reason",
            )
        self._transition_to(BookingStatus.REFUSED, now)
        self._timeline.refused_at = now
        self._reason = reason
        self._notify(
            self._sender_id,
            NotificationType.BOOKING_REFUSED,
            "Booking refused",
            f"Your booking request was refused: {reason}",
        )

    def cancel(self, actor_id: UserId, reason: str | None, now: datetime) -> None:
        """送り主が支払い前の予約をキャンセルする"""
        self.ensure_sender(actor_id)
        if self._status not in (BookingStatus.PENDING, BookingStatus.ACCEPTED):
            raise InvalidStateException(
                f"Cannot cancel a booking in {self._status.value} status"
            )
        if self.is_paid:
            raise InvalidStateException("A paid booking cannot be cancelled")
        self._transition_to(BookingStatus.CANCELLED, now)
        self._timeline.cancelled_at = now
        self._reason = (reason or "").strip() or DEFAULT_CANCELLATION_REASON
        self._notify(
            self._traveler_id,
            NotificationType.BOOKING_CANCELLED,
            "Booking cancelled",
            f"A booking on your announcement was cancelled: {self._reason}",
        )

    def attach_payment_reference(self, reference: str) -> None:
        """決済プロセッサのホールド参照を記録する"""
        self._ensure_status(
            BookingStatus.ACCEPTED, "Only accepted bookings can be paid"
        )
        self._payment_reference = reference

    def mark_paid(self, reference: str, qr_code: str, now: datetime) -> None:
        """キャプチャ成功を反映する（paid_at は一度だけ記録される）"""
        if self.is_paid:
            raise InvalidStateException("This booking is already paid")
        self._ensure_status(
            BookingStatus.ACCEPTED, "Only accepted bookings can be paid"
        )
        self._transition_to(BookingStatus.PAID, now)
        self._timeline.paid_at = now
        self._payment_reference = reference
        self._qr_code = qr_code
        self._notify(
            self._sender_id,
            NotificationType.PAYMENT_CONFIRMED,
            "Payment confirmed",
            "Your payment was received. Show the QR code at handover.",
        )
        self._notify(
            self._traveler_id,
            NotificationType.PAYMENT_CONFIRMED,
            "Booking paid",
            "The sender has paid. You can collect the package.",
        )

    def record_payment_failure(self, message: str) -> None:
        """キャプチャ失敗を送り主へ通知する（ステータスは変えない）"""
        self._notify(
            self._sender_id,
            NotificationType.PAYMENT_FAILED,
            "Payment failed",
            f"Your payment could not be completed: {message}",
        )

    def notify_late_payment_refund(self) -> None:
        """支払いを受け付けられない予約に届いたキャプチャの返金を送り主へ通知する"""
        self._notify(
            self._sender_id,
            NotificationType.PAYMENT_REFUNDED,
            "Payment refunded",
            f"Your payment arrived after the booking was {self._status.value} "
            "and is being refunded.",
        )

    def refund(self, now: datetime) -> None:
        """返金を反映して予約をキャンセル扱いにする"""
        if self._status not in BookingStatus.refundable():
            raise InvalidStateException(
                f"Cannot refund a booking in {self._status.value} status"
            )
        self._transition_to(BookingStatus.CANCELLED, now)
        self._timeline.cancelled_at = now
        self._reason = REFUND_CANCELLATION_REASON
        self._notify(
            self._sender_id,
            NotificationType.PAYMENT_REFUNDED,
            "Payment refunded",
            "Your payment was refunded and the booking is cancelled.",
        )
        self._notify(
            self._traveler_id,
            NotificationType.BOOKING_CANCELLED,
            "Booking cancelled",
            "A booking was refunded and cancelled.",
        )

    def mark_in_transit(self, actor_id: UserId, qr_code: str, now: datetime) -> None:
        """旅行者が受け取り時に QR コードを読み取る"""
        self.ensure_traveler(actor_id)
        self._ensure_status(BookingStatus.PAID, "The package can only be picked up once paid")
        self._ensure_qr_code(qr_code)
        self._transition_to(BookingStatus.IN_TRANSIT, now)
        self._timeline.in_transit_at = now
        self._notify(
            self._sender_id,
            NotificationType.BOOKING_IN_TRANSIT,
            "Package picked up",
            "The traveler has picked up your package.",
        )

    def mark_delivered(self, actor_id: UserId, qr_code: str, now: datetime) -> None:
        """旅行者が配達時に QR コードを読み取る"""
        self.ensure_traveler(actor_id)
        self._ensure_status(BookingStatus.IN_TRANSIT, "The package is not in transit")
        self._ensure_qr_code(qr_code)
        self._transition_to(BookingStatus.DELIVERED, now)
        self._timeline.delivered_at = now
        self._notify(
            self._sender_id,
            NotificationType.BOOKING_DELIVERED,
            "Package delivered",
            "Your package was delivered. Please confirm delivery.",
        )

    def open_dispute(self, actor_id: UserId, reason: str, now: datetime) -> None:
        """送り主が配達後に異議を申し立てる（資金解放を止める）"""
        self.ensure_sender(actor_id)
        self._ensure_status(
            BookingStatus.DELIVERED, "Disputes can only be opened after delivery"
        )
        if self.has_open_dispute:
            raise InvalidStateException("A dispute is already open for this booking")
        reason = (reason or "").strip()
        if len(reason) < MIN_REASON_LENGTH:
            raise ValidationFailedException(
                f"Please give a reason of at least {MIN_REASON_LENGTH} characters",
                field="reason",
            )
        self._timeline.dispute_opened_at = now
        self._dispute_reason = reason
        self._notify(
            self._traveler_id,
            NotificationType.DISPUTE_OPENED,
            "Dispute opened",
            "The sender opened a dispute. Funds are on hold until it is resolved.",
        )

    def claim_release(self, trigger: ReleaseTrigger, now: datetime) -> None:
        """資金解放の権利を確保する（delivered -> delivery_confirmed | auto_released）"""
        self._ensure_status(
            BookingStatus.DELIVERED, "Funds can only be released after delivery"
        )
        if self.has_open_dispute:
            raise BusinessRuleViolationException(
                "Funds are on hold while a dispute is open"
            )
        if trigger == ReleaseTrigger.CONFIRMATION:
            self._transition_to(BookingStatus.DELIVERY_CONFIRMED, now)
            self._timeline.delivery_confirmed_at = now
        else:
            self._transition_to(BookingStatus.AUTO_RELEASED, now)
            self._timeline.auto_released_at = now
        self._timeline.release_claimed_at = now

    def is_release_claim_stale(self, claimed_before: datetime) -> bool:
        claimed_at = self._timeline.release_claimed_at
        return (
            self.is_release_claimed
            and not self.is_released
            and claimed_at is not None
            and claimed_at <= claimed_before
        )

    def renew_release_claim(self, now: datetime) -> None:
        """中断された解放処理を引き継ぐ"""
        if not self.is_release_claimed or self.is_released:
            raise InvalidStateException("No pending release to resume")
        self._status_changed_at = now
        self._timeline.release_claimed_at = now

    def revert_release_claim(self) -> None:
        """送金失敗時に delivered へ戻し、再試行可能にする"""
        if not self.is_release_claimed or self.is_released:
            raise InvalidStateException("No pending release to revert")
        self._status = BookingStatus.DELIVERED
        self._status_changed_at = self._timeline.delivered_at or self._status_changed_at
        self._timeline.delivery_confirmed_at = None
        self._timeline.auto_released_at = None
        self._timeline.release_claimed_at = None

    def mark_released(self, payout_reference: str, now: datetime) -> None:
        """送金完了を記録する"""
        if not self.is_release_claimed:
            raise InvalidStateException("Release was not claimed")
        if self.is_released:
            raise InvalidStateException("Funds were already released")
        self._timeline.released_at = now
        self._payout_reference = payout_reference
        self._notify(
            self._traveler_id,
            NotificationType.FUNDS_RELEASED,
            "Funds released",
            f"{self._amounts.traveler_payout} {self._currency} is on its way to you.",
        )

    def notify_payouts_not_enabled(self) -> None:
        self._notify(
            self._traveler_id,
            NotificationType.SYSTEM_ALERT,
            "Payout account required",
            "Set up your payout account to receive your earnings.",
        )

    def _ensure_status(self, expected: BookingStatus, message: str) -> None:
        if self._status != expected:
            raise InvalidStateException(message)

    def _ensure_qr_code(self, qr_code: str) -> None:
        if not self._qr_code or qr_code != self._qr_code:
            raise ValidationFailedException("Invalid QR code", field="qr_code")

    def _transition_to(self, status: BookingStatus, now: datetime) -> None:
        self._status = status
        self._status_changed_at = now

    def _notify(
        self, user_id: UserId, type: NotificationType, title: str, body: str
    ) -> None:
        self.record_event(
            Notification(
                user_id=user_id,
                type=type,
                title=title,
                body=body,
                related_booking_id=str(self.id),
            )
        )
