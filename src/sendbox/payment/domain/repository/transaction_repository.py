from abc import ABC, abstractmethod

from sendbox.booking.domain.entity import Booking
from sendbox.booking.domain.enum import BookingStatus
from sendbox.booking.domain.value_object import BookingId
from sendbox.payment.domain.entity import Transaction


class TransactionRepository(ABC):
    """台帳リポジトリのインターフェース

    台帳エントリは追記のみ。同じIDのエントリが既にある場合は
    DuplicateResourceException を送出する。
    """

    @abstractmethod
    def append(self, transaction: Transaction) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_by_booking(self, booking_id: BookingId) -> list[Transaction]:
        raise NotImplementedError

    @abstractmethod
    def record_capture(
        self,
        booking: Booking,
        transaction: Transaction,
        expected_status: BookingStatus,
    ) -> None:
        """予約の paid への遷移とキャプチャエントリの追記を原子的に行う

        予約が expected_status でない、または既に paid_at を持つ場合は
        何も書き込まず OptimisticLockException を送出する。
        """
        raise NotImplementedError

    @abstractmethod
    def record_refund(
        self,
        booking: Booking,
        transaction: Transaction,
        expected_status: BookingStatus,
    ) -> None:
        """予約のキャンセルと返金エントリの追記を原子的に行う"""
        raise NotImplementedError
