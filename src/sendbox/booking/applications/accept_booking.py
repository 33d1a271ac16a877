from sendbox.booking.applications.booking_transition import (
    BookingTransitionService,
    Clock,
    TransitionResult,
)
from sendbox.booking.domain.enum import BookingStatus
from sendbox.booking.domain.repository import (
    AnnouncementRepository,
    BookingRepository,
)
from sendbox.booking.domain.service import CapacityLedger
from sendbox.booking.domain.value_object import BookingId
from sendbox.notification.applications.dispatch_notifications import (
    NotificationDispatcher,
)
from sendbox.shared.domain import UserId
from sendbox.shared.domain.exception import ResourceNotFoundException


class AcceptBookingService(BookingTransitionService):
    """予約承諾ユースケース（旅行者）"""

    def __init__(
        self,
        repository: BookingRepository,
        announcement_repository: AnnouncementRepository,
        capacity_ledger: CapacityLedger,
        dispatcher: NotificationDispatcher,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(repository, dispatcher, clock)
        self._announcement_repository = announcement_repository
        self._capacity_ledger = capacity_ledger

    def accept(self, actor_id: UserId, booking_id: BookingId) -> TransitionResult:
        booking = self._load(booking_id)
        booking.ensure_traveler(actor_id)

        if booking.status == BookingStatus.PENDING:
            announcement = self._announcement_repository.find_by_id(
                booking.announcement_id
            )
            if announcement is None:
                raise ResourceNotFoundException("Announcement not found")
            announcement.ensure_active()
            self._capacity_ledger.ensure_available(
                announcement, booking.weight_kg, exclude=booking.id
            )

        now = self._clock()
        return self._apply(
            booking,
            lambda b: b.accept(actor_id, now),
            lambda b: b.status == BookingStatus.ACCEPTED,
        )
