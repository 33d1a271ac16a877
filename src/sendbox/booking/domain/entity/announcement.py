from decimal import Decimal

from sendbox.booking.domain.enum import AnnouncementStatus
from sendbox.booking.domain.value_object import AnnouncementId
from sendbox.shared.domain import Currency, Entity, UserId
from sendbox.shared.domain.exception import BusinessRuleViolationException


class Announcement(Entity[AnnouncementId]):
    """旅行者のアナウンス（積載量と kg 単価の出品）

    capacity_version は予約作成のたびに加算され、積載量の楽観ロックに使う。
    """

    def __init__(
        self,
        id: AnnouncementId,
        traveler_id: UserId,
        max_weight_kg: Decimal,
        price_per_kg: Decimal,
        currency: Currency,
        status: AnnouncementStatus = AnnouncementStatus.ACTIVE,
        capacity_version: int = 0,
    ) -> None:
        super().__init__(id)
        self._traveler_id = traveler_id
        self._max_weight_kg = max_weight_kg
        self._price_per_kg = price_per_kg
        self._currency = currency
        self._status = status
        self._capacity_version = capacity_version

    @property
    def traveler_id(self) -> UserId:
        return self._traveler_id

    @property
    def max_weight_kg(self) -> Decimal:
        return self._max_weight_kg

    @property
    def price_per_kg(self) -> Decimal:
        return self._price_per_kg

    @property
    def currency(self) -> Currency:
        return self._currency

    @property
    def status(self) -> AnnouncementStatus:
        return self._status

    @property
    def capacity_version(self) -> int:
        return self._capacity_version

    @property
    def is_active(self) -> bool:
        return self._status == AnnouncementStatus.ACTIVE

    def ensure_active(self) -> None:
        if not self.is_active:
            raise BusinessRuleViolationException("This announcement is no longer active")
