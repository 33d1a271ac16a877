from abc import ABC, abstractmethod
from dataclasses import dataclass

from sendbox.booking.domain.value_object import BookingId


@dataclass(frozen=True)
class PackagePhoto:
    """アップロード対象の荷物写真"""

    content: bytes
    content_type: str = "image/jpeg"


class PackagePhotoStorage(ABC):
    """荷物写真の保存先"""

    @abstractmethod
    def upload(self, booking_id: BookingId, index: int, photo: PackagePhoto) -> str:
        """写真を 1 枚保存し、参照 URL を返す"""
        raise NotImplementedError
