from decimal import Decimal

from sendbox.booking.domain.entity import Announcement
from sendbox.booking.domain.repository import (
    AnnouncementRepository,
    BookingRepository,
)
from sendbox.booking.domain.value_object import AnnouncementId, BookingId
from sendbox.shared.domain.exception import (
    CapacityExceededException,
    ResourceNotFoundException,
)


class CapacityLedger:
    """アナウンスの残り積載量を計算する

    残り積載量 = 最大積載量 - 占有中（pending / accepted / paid / in_transit）の予約重量合計
    """

    def __init__(
        self,
        booking_repository: BookingRepository,
        announcement_repository: AnnouncementRepository,
    ) -> None:
        self._booking_repository = booking_repository
        self._announcement_repository = announcement_repository

    def available_weight(self, announcement_id: AnnouncementId) -> Decimal:
        announcement = self._announcement_repository.find_by_id(announcement_id)
        if announcement is None:
            raise ResourceNotFoundException("Announcement not found")
        return self.available_for(announcement)

    def available_for(
        self, announcement: Announcement, exclude: BookingId | None = None
    ) -> Decimal:
        reserved = self._booking_repository.reserved_weight(
            announcement.id, exclude=exclude
        )
        return max(Decimal("0"), announcement.max_weight_kg - reserved)

    def ensure_available(
        self,
        announcement: Announcement,
        weight_kg: Decimal,
        exclude: BookingId | None = None,
    ) -> None:
        available = self.available_for(announcement, exclude=exclude)
        if weight_kg > available:
            raise CapacityExceededException(
                f"Only {available} kg available on this announcement"
            )
