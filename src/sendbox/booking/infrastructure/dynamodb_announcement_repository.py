from decimal import Decimal

from sendbox.booking.domain.entity import Announcement
from sendbox.booking.domain.enum import AnnouncementStatus
from sendbox.booking.domain.repository import AnnouncementRepository
from sendbox.booking.domain.value_object import AnnouncementId
from sendbox.shared.domain import Currency, UserId
from sendbox.shared.infrastructure.dynamodb import get_table


class DynamoDBAnnouncementRepository(AnnouncementRepository):
    """DynamoDBを使用したAnnouncementRepository の具象実装

    アナウンスの作成・編集は別サービスの責務。ここでは積載量計算に
    必要な属性の読み込みと、テスト・初期データ投入用の保存のみ行う。
    """

    def __init__(self, table_name: str | None = None) -> None:
        self.table = get_table(table_name)

    def save(self, announcement: Announcement) -> None:
        self.table.put_item(
            Item={
                "PK": f"ANNOUNCEMENT#{announcement.id}",
                "SK": "ANNOUNCEMENT",
                "entity_type": "ANNOUNCEMENT",
                "announcement_id": str(announcement.id),
                "traveler_id": str(announcement.traveler_id),
                "max_weight_kg": announcement.max_weight_kg,
                "price_per_kg": str(announcement.price_per_kg),
                "currency": str(announcement.currency),
                "status": announcement.status.value,
                "capacity_version": announcement.capacity_version,
            }
        )

    def find_by_id(self, announcement_id: AnnouncementId) -> Announcement | None:
        response = self.table.get_item(
            Key={"PK": f"ANNOUNCEMENT#{announcement_id}", "SK": "ANNOUNCEMENT"},
            ConsistentRead=True,
        )
        item = response.get("Item")
        if not item:
            return None
        return Announcement(
            id=AnnouncementId(value=item["announcement_id"]),
            traveler_id=UserId(value=item["traveler_id"]),
            max_weight_kg=Decimal(str(item["max_weight_kg"])),
            price_per_kg=Decimal(str(item["price_per_kg"])),
            currency=Currency(item["currency"]),
            status=AnnouncementStatus(item["status"]),
            capacity_version=int(item.get("capacity_version", 0)),
        )
