from abc import ABC, abstractmethod

from sendbox.notification.domain.enum import NotificationType
from sendbox.shared.domain import UserId


class Notifier(ABC):
    """通知シンクのインターフェース（送りっぱなし）"""

    @abstractmethod
    def notify(
        self,
        user_id: UserId,
        type: NotificationType,
        title: str,
        body: str,
        related_booking_id: str | None = None,
    ) -> None:
        raise NotImplementedError
