from abc import ABC, abstractmethod

from sendbox.booking.domain.value_object import KycVerification
from sendbox.shared.domain import UserId


class KycStatusProvider(ABC):
    """利用者の本人確認状態を提供する"""

    @abstractmethod
    def get_verification(self, user_id: UserId) -> KycVerification | None:
        """本人確認を一度も開始していない場合は None"""
        raise NotImplementedError
