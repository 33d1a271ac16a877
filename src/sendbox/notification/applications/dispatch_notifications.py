from collections.abc import Iterable

from aws_lambda_powertools import Logger

from sendbox.notification.domain import Notification, Notifier

logger = Logger(child=True)


class NotificationDispatcher:
    """集約から取り出した通知を配信する

    通知の失敗は状態遷移に影響させない。ログに残して次の通知へ進む。
    """

    def __init__(self, notifier: Notifier) -> None:
        self._notifier = notifier

    def dispatch(self, events: Iterable[object]) -> int:
        """Notification イベントを配信し、成功件数を返す"""
        delivered = 0
        for event in events:
            if not isinstance(event, Notification):
                continue
            try:
                self._notifier.notify(
                    user_id=event.user_id,
                    type=event.type,
                    title=event.title,
                    body=event.body,
                    related_booking_id=event.related_booking_id,
                )
                delivered += 1
            except Exception:
                logger.exception(
                    "Notification delivery failed",
                    extra={
                        "user_id": str(event.user_id),
                        "notification_type": event.type.value,
                        "booking_id": event.related_booking_id,
                    },
                )
        return delivered
