from sendbox.booking.domain.enum import ReleaseTrigger
from sendbox.booking.domain.repository import BookingRepository
from sendbox.booking.domain.value_object import BookingId
from sendbox.settlement.applications.release_funds import ReleaseFundsService
from sendbox.settlement.domain import ReleaseResult
from sendbox.shared.domain import UserId
from sendbox.shared.domain.exception import ResourceNotFoundException


class ConfirmDeliveryService:
    """送り主による受け取り確認ユースケース（確認と同時に資金を解放する）"""

    def __init__(
        self, repository: BookingRepository, release_service: ReleaseFundsService
    ) -> None:
        self._repository = repository
        self._release_service = release_service

    def confirm(self, sender_id: UserId, booking_id: BookingId) -> ReleaseResult:
        booking = self._repository.find_by_id(booking_id)
        if booking is None:
            raise ResourceNotFoundException("Booking not found")
        booking.ensure_sender(sender_id)
        if booking.is_released:
            return ReleaseResult(already_released=True)
        return self._release_service.release(booking_id, ReleaseTrigger.CONFIRMATION)
