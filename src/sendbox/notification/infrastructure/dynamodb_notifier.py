import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from sendbox.notification.domain import NotificationType, Notifier
from sendbox.shared.domain import UserId
from sendbox.shared.infrastructure.dynamodb import get_table


class DynamoDBNotifier(Notifier):
    """アプリ内通知を DynamoDB に書き込む Notifier の具象実装"""

    def __init__(
        self,
        table_name: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.table = get_table(table_name)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def notify(
        self,
        user_id: UserId,
        type: NotificationType,
        title: str,
        body: str,
        related_booking_id: str | None = None,
    ) -> None:
        created_at = self._clock().isoformat()
        notification_id = str(uuid.uuid4())
        item = {
            "PK": f"USER#{user_id}",
            "SK": f"NOTIFICATION#{created_at}#{notification_id}",
            "entity_type": "NOTIFICATION",
            "notification_id": notification_id,
            "user_id": str(user_id),
            "type": type.value,
            "title": title,
            "body": body,
            "read": False,
            "created_at": created_at,
        }
        if related_booking_id:
            item["booking_id"] = related_booking_id
        self.table.put_item(Item=item)
