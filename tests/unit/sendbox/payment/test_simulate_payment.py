from dataclasses import replace

import pytest

from sendbox.booking.domain.enum import BookingStatus
from sendbox.payment.applications.handle_processor_event import (
    HandleProcessorEventService,
)
from sendbox.payment.applications.simulate_payment import SimulatePaymentService
from sendbox.payment.domain.enum import EventOutcome
from sendbox.shared.config import PaymentsMode
from sendbox.shared.domain.exception import PaymentsDisabledException


class TestSimulatePaymentService:
    @pytest.fixture
    def create_service(
        self, booking_repository, transaction_repository, dispatcher, clock, settings
    ):
        def _factory(settings=settings) -> SimulatePaymentService:
            return SimulatePaymentService(
                repository=booking_repository,
                event_service=HandleProcessorEventService(
                    booking_repository, transaction_repository, dispatcher, clock=clock
                ),
                settings=settings,
            )

        return _factory

    def test_simulated_capture_follows_real_path(
        self,
        create_service,
        create_booking,
        booking_repository,
        transaction_repository,
        sender_id,
    ):
        booking = create_booking(status=BookingStatus.ACCEPTED)
        booking_repository.save(booking)
        service = create_service()

        assert service.simulate(sender_id, booking.id) == EventOutcome.PROCESSED
        assert service.simulate(sender_id, booking.id) == EventOutcome.ALREADY_PROCESSED

        stored = booking_repository.find_by_id(booking.id)
        assert stored.status == BookingStatus.PAID
        assert stored.payment_reference == "sim_booking-1"
        assert len(transaction_repository.list_by_booking(booking.id)) == 1

    def test_not_available_outside_simulation_mode(
        self, create_service, create_booking, booking_repository, settings, sender_id
    ):
        booking = create_booking(status=BookingStatus.ACCEPTED)
        booking_repository.save(booking)
        service = create_service(
            settings=replace(settings, payments_mode=PaymentsMode.STRIPE)
        )

        with pytest.raises(PaymentsDisabledException):
            service.simulate(sender_id, booking.id)
