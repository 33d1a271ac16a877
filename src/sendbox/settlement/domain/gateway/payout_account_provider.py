from abc import ABC, abstractmethod

from sendbox.settlement.domain.value_object import PayoutAccount
from sendbox.shared.domain import UserId


class PayoutAccountProvider(ABC):
    """旅行者の受取口座を提供する"""

    @abstractmethod
    def get_payout_account(self, user_id: UserId) -> PayoutAccount | None:
        raise NotImplementedError
