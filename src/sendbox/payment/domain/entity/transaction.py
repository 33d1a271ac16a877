from datetime import datetime

from sendbox.booking.domain.value_object import BookingId
from sendbox.payment.domain.enum import TransactionStatus, TransactionType
from sendbox.payment.domain.value_object import TransactionId
from sendbox.shared.domain import Entity, Money, UserId


class Transaction(Entity[TransactionId]):
    """資金移動の台帳エントリ（追記のみ・変更不可）"""

    def __init__(
        self,
        id: TransactionId,
        booking_id: BookingId,
        user_id: UserId,
        type: TransactionType,
        amount: Money,
        status: TransactionStatus,
        created_at: datetime,
        processor_reference: str | None = None,
        failure_reason: str | None = None,
    ) -> None:
        super().__init__(id)
        self._booking_id = booking_id
        self._user_id = user_id
        self._type = type
        self._amount = amount
        self._status = status
        self._created_at = created_at
        self._processor_reference = processor_reference
        self._failure_reason = failure_reason

    @property
    def booking_id(self) -> BookingId:
        return self._booking_id

    @property
    def user_id(self) -> UserId:
        return self._user_id

    @property
    def type(self) -> TransactionType:
        return self._type

    @property
    def amount(self) -> Money:
        return self._amount

    @property
    def status(self) -> TransactionStatus:
        return self._status

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def processor_reference(self) -> str | None:
        return self._processor_reference

    @property
    def failure_reason(self) -> str | None:
        return self._failure_reason
