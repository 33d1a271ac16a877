from sendbox.booking.domain.enum import BookingStatus
from sendbox.booking.domain.repository import BookingRepository
from sendbox.booking.domain.service import to_minor_units
from sendbox.booking.domain.value_object import BookingId
from sendbox.payment.applications.handle_processor_event import (
    HandleProcessorEventService,
)
from sendbox.payment.domain.enum import EventOutcome
from sendbox.payment.domain.value_object import CaptureSucceeded
from sendbox.shared.config import EngineSettings, PaymentsMode
from sendbox.shared.domain import UserId
from sendbox.shared.domain.exception import (
    InvalidStateException,
    PaymentsDisabledException,
    ResourceNotFoundException,
)


class SimulatePaymentService:
    """シミュレーションモードの支払い（実際のキャプチャと同じ経路を通す）"""

    def __init__(
        self,
        repository: BookingRepository,
        event_service: HandleProcessorEventService,
        settings: EngineSettings,
    ) -> None:
        self._repository = repository
        self._event_service = event_service
        self._settings = settings

    def simulate(self, sender_id: UserId, booking_id: BookingId) -> EventOutcome:
        if self._settings.payments_mode != PaymentsMode.SIMULATION:
            raise PaymentsDisabledException("Payment simulation is not available")

        booking = self._repository.find_by_id(booking_id)
        if booking is None:
            raise ResourceNotFoundException("Booking not found")
        booking.ensure_sender(sender_id)
        if booking.is_paid:
            return EventOutcome.ALREADY_PROCESSED
        if booking.status != BookingStatus.ACCEPTED:
            raise InvalidStateException("Only accepted bookings can be paid")

        reference = f"sim_{booking.id}"
        return self._event_service.handle(
            CaptureSucceeded(
                event_id=reference,
                booking_id=str(booking.id),
                reference=reference,
                amount_minor=to_minor_units(booking.amounts.total_amount),
                currency=str(booking.currency),
            )
        )
