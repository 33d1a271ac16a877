from dataclasses import dataclass
from decimal import Decimal

from aws_lambda_powertools import Logger

from sendbox.booking.domain.entity import Booking
from sendbox.booking.domain.enum import BookingStatus
from sendbox.booking.domain.repository import BookingRepository
from sendbox.booking.domain.service import KycGate, to_minor_units
from sendbox.booking.domain.value_object import BookingId
from sendbox.payment.domain.gateway import PaymentProcessor
from sendbox.payment.domain.value_object import Hold
from sendbox.shared.config import EngineSettings
from sendbox.shared.domain import UserId
from sendbox.shared.domain.exception import (
    InvalidStateException,
    OptimisticLockException,
    PaymentsDisabledException,
    ResourceNotFoundException,
)

logger = Logger(child=True)


@dataclass(frozen=True)
class HoldResult:
    external_reference: str | None
    client_token: str | None
    amount: Decimal
    already_paid: bool = False


class CreateHoldService:
    """支払い保留（PaymentIntent）作成ユースケース"""

    def __init__(
        self,
        repository: BookingRepository,
        processor: PaymentProcessor,
        kyc_gate: KycGate,
        settings: EngineSettings,
    ) -> None:
        self._repository = repository
        self._processor = processor
        self._kyc_gate = kyc_gate
        self._settings = settings

    def create_hold(self, sender_id: UserId, booking_id: BookingId) -> HoldResult:
        if not self._settings.payments_enabled:
            raise PaymentsDisabledException()

        booking = self._repository.find_by_id(booking_id)
        if booking is None:
            raise ResourceNotFoundException("Booking not found")
        booking.ensure_sender(sender_id)

        if booking.is_paid:
            return self._already_paid(booking)
        if booking.status != BookingStatus.ACCEPTED:
            raise InvalidStateException("Only accepted bookings can be paid")

        self._kyc_gate.ensure_approved(sender_id)

        if booking.payment_reference:
            existing = self._processor.retrieve_hold(booking.payment_reference)
            if existing.succeeded:
                logger.info(
                    "Hold already succeeded, waiting for capture event",
                    extra={"booking_id": str(booking.id)},
                )
                return self._already_paid(booking)
            if existing.reusable:
                return self._to_result(booking, existing)

        hold = self._processor.create_hold(
            amount_minor=to_minor_units(booking.amounts.total_amount),
            currency=str(booking.currency),
            metadata={
                "booking_id": str(booking.id),
                "sender_id": str(booking.sender_id),
                "traveler_id": str(booking.traveler_id),
                "platform_fee": str(booking.amounts.platform_fee),
                "total_amount": str(booking.amounts.total_amount),
            },
            idempotency_key=f"payment_intent_{booking.id}",
        )
        booking.attach_payment_reference(hold.reference)
        try:
            self._repository.update(booking, expected_status=BookingStatus.ACCEPTED)
        except OptimisticLockException:
            current = self._repository.find_by_id(booking_id)
            if current is not None and current.is_paid:
                return self._already_paid(current)
            raise InvalidStateException("Booking changed while creating the payment")

        logger.info(
            "Payment hold created",
            extra={"booking_id": str(booking.id), "reference": hold.reference},
        )
        return self._to_result(booking, hold)

    @staticmethod
    def _to_result(booking: Booking, hold: Hold) -> HoldResult:
        return HoldResult(
            external_reference=hold.reference,
            client_token=hold.client_token,
            amount=booking.amounts.total_amount,
        )

    @staticmethod
    def _already_paid(booking: Booking) -> HoldResult:
        return HoldResult(
            external_reference=booking.payment_reference,
            client_token=None,
            amount=booking.amounts.total_amount,
            already_paid=True,
        )
