from dataclasses import dataclass

from sendbox.notification.domain.enum import NotificationType
from sendbox.shared.domain import UserId


@dataclass(frozen=True)
class Notification:
    """当事者への通知（ドメインイベントとして集約に蓄積される）"""

    user_id: UserId
    type: NotificationType
    title: str
    body: str
    related_booking_id: str | None = None
