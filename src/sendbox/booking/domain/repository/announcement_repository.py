from abc import abstractmethod

from sendbox.booking.domain.entity import Announcement
from sendbox.booking.domain.value_object import AnnouncementId
from sendbox.shared.domain import Repository


class AnnouncementRepository(Repository[Announcement, AnnouncementId]):
    """アナウンスリポジトリのインターフェース（予約処理からは参照のみ）"""

    @abstractmethod
    def find_by_id(self, id: AnnouncementId) -> Announcement | None:
        raise NotImplementedError
