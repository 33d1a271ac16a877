from dataclasses import replace
from decimal import Decimal

import pytest

from sendbox.booking.domain.enum import BookingStatus
from sendbox.payment.applications.create_hold import CreateHoldService
from sendbox.shared.config import PaymentsMode
from sendbox.shared.domain import UserId
from sendbox.shared.domain.exception import (
    ForbiddenException,
    InvalidStateException,
    PaymentsDisabledException,
)


class TestCreateHoldService:
    @pytest.fixture
    def create_service(self, booking_repository, payment_processor, kyc_gate, settings):
        def _factory(settings=settings) -> CreateHoldService:
            return CreateHoldService(
                repository=booking_repository,
                processor=payment_processor,
                kyc_gate=kyc_gate,
                settings=settings,
            )

        return _factory

    def test_creates_hold_for_total_amount(
        self, create_service, create_booking, booking_repository, sender_id
    ):
        booking = create_booking(status=BookingStatus.ACCEPTED)
        booking_repository.save(booking)

        result = create_service().create_hold(sender_id, booking.id)

        assert result.external_reference == "pi_booking-1"
        assert result.client_token == "pi_booking-1_secret"
        assert result.amount == Decimal("56")
        assert not result.already_paid
        stored = booking_repository.find_by_id(booking.id)
        assert stored.payment_reference == "pi_booking-1"
        assert stored.status == BookingStatus.ACCEPTED

    def test_existing_hold_is_reused(
        self,
        create_service,
        create_booking,
        booking_repository,
        payment_processor,
        sender_id,
    ):
        booking = create_booking(status=BookingStatus.ACCEPTED)
        booking_repository.save(booking)
        service = create_service()
        first = service.create_hold(sender_id, booking.id)

        second = service.create_hold(sender_id, booking.id)

        assert second.external_reference == first.external_reference
        assert len(payment_processor.holds) == 1

    def test_paid_booking_reports_already_paid(
        self, create_service, create_booking, booking_repository, sender_id
    ):
        booking = create_booking(status=BookingStatus.PAID)
        booking_repository.save(booking)

        result = create_service().create_hold(sender_id, booking.id)

        assert result.already_paid
        assert result.client_token is None

    def test_pending_booking_cannot_be_paid(
        self, create_service, create_booking, booking_repository, sender_id
    ):
        booking = create_booking()
        booking_repository.save(booking)

        with pytest.raises(InvalidStateException):
            create_service().create_hold(sender_id, booking.id)

    def test_only_sender_can_pay(
        self, create_service, create_booking, booking_repository
    ):
        booking = create_booking(status=BookingStatus.ACCEPTED)
        booking_repository.save(booking)

        with pytest.raises(ForbiddenException):
            create_service().create_hold(UserId(value="intruder"), booking.id)

    def test_payments_disabled(
        self, create_service, create_booking, booking_repository, settings, sender_id
    ):
        booking = create_booking(status=BookingStatus.ACCEPTED)
        booking_repository.save(booking)
        service = create_service(
            settings=replace(settings, payments_mode=PaymentsMode.DISABLED)
        )

        with pytest.raises(PaymentsDisabledException):
            service.create_hold(sender_id, booking.id)
