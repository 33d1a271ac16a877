from dataclasses import dataclass
from datetime import datetime


@dataclass
class BookingTimeline:
    """予約の各遷移時刻

    遷移ごとに一度だけ記録される。release_claimed_at のみ解放失敗時に取り消される。
    """

    created_at: datetime
    accepted_at: datetime | None = None
    refused_at: datetime | None = None
    cancelled_at: datetime | None = None
    paid_at: datetime | None = None
    in_transit_at: datetime | None = None
    delivered_at: datetime | None = None
    delivery_confirmed_at: datetime | None = None
    auto_released_at: datetime | None = None
    release_claimed_at: datetime | None = None
    released_at: datetime | None = None
    dispute_opened_at: datetime | None = None
