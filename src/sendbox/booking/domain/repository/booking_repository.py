from abc import abstractmethod
from datetime import datetime
from decimal import Decimal

from sendbox.booking.domain.entity import Booking
from sendbox.booking.domain.enum import BookingStatus
from sendbox.booking.domain.value_object import AnnouncementId, BookingId
from sendbox.shared.domain import Repository, UserId


class BookingRepository(Repository[Booking, BookingId]):
    """予約リポジトリのインターフェース

    状態を変更する書き込みはすべて expected_status を条件とした
    比較交換（CAS）で行い、競合時は OptimisticLockException を送出する。
    """

    @abstractmethod
    def save(
        self, booking: Booking, expected_capacity_version: int | None = None
    ) -> None:
        """新規予約を保存する

        expected_capacity_version を指定した場合、アナウンスの積載量バージョンが
        一致するときのみ保存し、同時にバージョンを加算する（原子的に実行）。
        """
        raise NotImplementedError

    @abstractmethod
    def update(self, booking: Booking, expected_status: BookingStatus) -> None:
        """現在のステータスが expected_status の場合のみ予約を書き換える"""
        raise NotImplementedError

    @abstractmethod
    def delete(self, booking_id: BookingId) -> None:
        """予約を削除する（作成直後のロールバック用）"""
        raise NotImplementedError

    @abstractmethod
    def find_by_payment_reference(self, reference: str) -> Booking | None:
        raise NotImplementedError

    @abstractmethod
    def reserved_weight(
        self,
        announcement_id: AnnouncementId,
        exclude: BookingId | None = None,
    ) -> Decimal:
        """積載量を占有している予約の合計重量"""
        raise NotImplementedError

    @abstractmethod
    def count_pending_by_sender(self, sender_id: UserId) -> int:
        raise NotImplementedError

    @abstractmethod
    def list_delivered_before(self, cutoff: datetime) -> list[Booking]:
        """delivered のまま cutoff 以前に配達された予約（自動解放の候補）"""
        raise NotImplementedError

    @abstractmethod
    def list_stale_release_claims(self, claimed_before: datetime) -> list[Booking]:
        """解放を確保したまま送金が完了していない予約"""
        raise NotImplementedError
