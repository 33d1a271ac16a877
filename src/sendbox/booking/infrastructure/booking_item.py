"""予約アイテムと DynamoDB アイテムの相互変換

予約本体は BOOKING#<id> / BOOKING に保存し、積載量を占有している間は
ANNOUNCEMENT#<id> / RESERVATION#<booking_id> に重量の予約エントリを置く。
予約エントリはアナウンスのパーティションにあるため強い整合性で合計できる。
"""

from decimal import Decimal

from sendbox.booking.domain.entity import Booking
from sendbox.booking.domain.enum import BookingStatus
from sendbox.booking.domain.value_object import (
    AnnouncementId,
    BookingId,
    BookingTimeline,
    PriceBreakdown,
)
from sendbox.shared.domain import Currency, UserId
from sendbox.shared.infrastructure.dynamodb import (
    from_iso,
    serialize,
    serialize_values,
    to_iso,
)

_TIMESTAMP_FIELDS = (
    "accepted_at",
    "refused_at",
    "cancelled_at",
    "paid_at",
    "in_transit_at",
    "delivered_at",
    "delivery_confirmed_at",
    "auto_released_at",
    "release_claimed_at",
    "released_at",
    "dispute_opened_at",
)

_UPDATE_CONDITION = (
    "#status = :expected_status AND #version = :expected_version "
    "AND attribute_not_exists(released_at)"
)


def booking_key(booking_id: BookingId) -> dict:
    return {"PK": f"BOOKING#{booking_id}", "SK": "BOOKING"}


def reservation_key(announcement_id: AnnouncementId, booking_id: BookingId) -> dict:
    return {"PK": f"ANNOUNCEMENT#{announcement_id}", "SK": f"RESERVATION#{booking_id}"}


def to_item(booking: Booking, version: int) -> dict:
    """予約エンティティを DynamoDB アイテム（resource 形式）に変換する"""
    amounts = booking.amounts
    timeline = booking.timeline
    item = {
        **booking_key(booking.id),
        "entity_type": "BOOKING",
        "booking_id": str(booking.id),
        "announcement_id": str(booking.announcement_id),
        "sender_id": str(booking.sender_id),
        "traveler_id": str(booking.traveler_id),
        "weight_kg": booking.weight_kg,
        "price_per_kg": str(booking.price_per_kg),
        "declared_value": str(booking.declared_value),
        "insurance_opted": booking.insurance_opted,
        "package_description": booking.package_description,
        "transport_price": str(amounts.transport_price),
        "commission_amount": str(amounts.commission_amount),
        "insurance_premium": str(amounts.insurance_premium),
        "total_amount": str(amounts.total_amount),
        "insurance_coverage": (
            str(amounts.insurance_coverage)
            if amounts.insurance_coverage is not None
            else None
        ),
        "currency": str(booking.currency),
        "status": booking.status.value,
        "status_changed_at": to_iso(booking.status_changed_at),
        "created_at": to_iso(timeline.created_at),
        "payment_reference": booking.payment_reference,
        "qr_code": booking.qr_code,
        "reason": booking.reason,
        "dispute_reason": booking.dispute_reason,
        "payout_reference": booking.payout_reference,
        "package_photos": booking.package_photos,
        "version": version,
        "GSI1PK": f"ANNOUNCEMENT#{booking.announcement_id}",
        "GSI1SK": f"BOOKING#{booking.id}",
        "GSI2PK": f"STATUS#{booking.status.value}",
        "GSI2SK": to_iso(booking.status_changed_at),
        "GSI3PK": f"SENDER#{booking.sender_id}",
        "GSI3SK": f"STATUS#{booking.status.value}#{booking.id}",
    }
    for field in _TIMESTAMP_FIELDS:
        item[field] = to_iso(getattr(timeline, field))
    return {k: v for k, v in item.items() if v is not None}


def to_entity(item: dict) -> Booking:
    """DynamoDB アイテムを予約エンティティに変換する"""
    coverage = item.get("insurance_coverage")
    timeline = BookingTimeline(
        created_at=from_iso(item["created_at"]),
        **{field: from_iso(item.get(field)) for field in _TIMESTAMP_FIELDS},
    )
    return Booking(
        id=BookingId(value=item["booking_id"]),
        announcement_id=AnnouncementId(value=item["announcement_id"]),
        sender_id=UserId(value=item["sender_id"]),
        traveler_id=UserId(value=item["traveler_id"]),
        weight_kg=Decimal(str(item["weight_kg"])),
        price_per_kg=Decimal(item["price_per_kg"]),
        declared_value=Decimal(item["declared_value"]),
        insurance_opted=bool(item["insurance_opted"]),
        package_description=item["package_description"],
        amounts=PriceBreakdown(
            transport_price=Decimal(item["transport_price"]),
            commission_amount=Decimal(item["commission_amount"]),
            insurance_premium=Decimal(item["insurance_premium"]),
            total_amount=Decimal(item["total_amount"]),
            insurance_coverage=Decimal(coverage) if coverage is not None else None,
        ),
        currency=Currency(item["currency"]),
        timeline=timeline,
        status=BookingStatus(item["status"]),
        status_changed_at=from_iso(item.get("status_changed_at")),
        payment_reference=item.get("payment_reference"),
        qr_code=item.get("qr_code"),
        reason=item.get("reason"),
        dispute_reason=item.get("dispute_reason"),
        payout_reference=item.get("payout_reference"),
        package_photos=list(item.get("package_photos", [])),
        version=int(item.get("version", 0)),
    )


def insert_writes(table_name: str, booking: Booking) -> list[dict]:
    """新規予約と重量予約エントリの TransactItems"""
    reservation = {
        **reservation_key(booking.announcement_id, booking.id),
        "entity_type": "RESERVATION",
        "booking_id": str(booking.id),
        "weight_kg": booking.weight_kg,
    }
    return [
        {
            "Put": {
                "TableName": table_name,
                "Item": serialize(to_item(booking, version=booking.version)),
                "ConditionExpression": "attribute_not_exists(PK)",
            }
        },
        {"Put": {"TableName": table_name, "Item": serialize(reservation)}},
    ]


def update_writes(
    table_name: str,
    booking: Booking,
    expected_status: BookingStatus,
    extra_condition: str | None = None,
) -> list[dict]:
    """ステータスとバージョンを条件とした予約更新の TransactItems

    積載量を占有するステータスから外れる遷移では、重量予約エントリも削除する。
    """
    condition = _UPDATE_CONDITION
    if extra_condition:
        condition = f"{condition} AND {extra_condition}"
    writes = [
        {
            "Put": {
                "TableName": table_name,
                "Item": serialize(to_item(booking, version=booking.version + 1)),
                "ConditionExpression": condition,
                "ExpressionAttributeNames": {"#status": "status", "#version": "version"},
                "ExpressionAttributeValues": serialize_values(
                    {
                        ":expected_status": expected_status.value,
                        ":expected_version": booking.version,
                    }
                ),
            }
        }
    ]
    if (
        expected_status in BookingStatus.capacity_holding()
        and not booking.holds_capacity
    ):
        writes.append(
            {
                "Delete": {
                    "TableName": table_name,
                    "Key": serialize(
                        reservation_key(booking.announcement_id, booking.id)
                    ),
                }
            }
        )
    return writes
