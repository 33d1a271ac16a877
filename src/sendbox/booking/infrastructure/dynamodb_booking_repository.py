from datetime import datetime
from decimal import Decimal

from aws_lambda_powertools import Logger
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from sendbox.booking.domain.entity import Booking
from sendbox.booking.domain.enum import BookingStatus
from sendbox.booking.domain.repository import BookingRepository
from sendbox.booking.domain.value_object import AnnouncementId, BookingId
from sendbox.booking.infrastructure.booking_item import (
    booking_key,
    insert_writes,
    reservation_key,
    to_entity,
    update_writes,
)
from sendbox.shared.domain import UserId
from sendbox.shared.domain.exception import (
    DuplicateResourceException,
    OptimisticLockException,
)
from sendbox.shared.infrastructure.dynamodb import (
    cancellation_codes,
    get_table,
    is_transaction_cancelled,
    serialize,
    serialize_values,
    to_iso,
)

logger = Logger(child=True)

_CONDITION_FAILED = "ConditionalCheckFailed"


class DynamoDBBookingRepository(BookingRepository):
    """DynamoDBを使用したBookingRepository の具象実装"""

    def __init__(self, table_name: str | None = None) -> None:
        self.table = get_table(table_name)
        self.table_name = self.table.name
        self.client = self.table.meta.client

    def save(
        self, booking: Booking, expected_capacity_version: int | None = None
    ) -> None:
        """予約を新規保存する（アナウンスの積載量バージョンを同時に進める）"""
        writes = insert_writes(self.table_name, booking)
        if expected_capacity_version is not None:
            writes.append(
                self._capacity_version_update(
                    booking.announcement_id, expected_capacity_version
                )
            )
        try:
            self.client.transact_write_items(TransactItems=writes)
        except ClientError as e:
            if not is_transaction_cancelled(e):
                raise
            codes = cancellation_codes(e)
            if codes and codes[0] == _CONDITION_FAILED:
                raise DuplicateResourceException(
                    f"Booking already exists: {booking.id}"
                )
            raise OptimisticLockException(
                f"Announcement capacity changed: "
                f"expected version {expected_capacity_version}, "
                f"announcement_id={booking.announcement_id}"
            )

    def update(self, booking: Booking, expected_status: BookingStatus) -> None:
        """予約を書き換える（ステータスとバージョンが一致する場合のみ）"""
        writes = update_writes(self.table_name, booking, expected_status)
        try:
            self.client.transact_write_items(TransactItems=writes)
        except ClientError as e:
            if is_transaction_cancelled(e):
                raise OptimisticLockException(
                    f"Booking status conflict: "
                    f"expected {expected_status.value}, "
                    f"booking_id={booking.id}"
                )
            raise
        booking.advance_version()

    def delete(self, booking_id: BookingId) -> None:
        booking = self.find_by_id(booking_id)
        if booking is None:
            return
        self.client.transact_write_items(
            TransactItems=[
                {
                    "Delete": {
                        "TableName": self.table_name,
                        "Key": serialize(booking_key(booking_id)),
                    }
                },
                {
                    "Delete": {
                        "TableName": self.table_name,
                        "Key": serialize(
                            reservation_key(booking.announcement_id, booking_id)
                        ),
                    }
                },
            ]
        )

    def find_by_id(self, booking_id: BookingId) -> Booking | None:
        response = self.table.get_item(Key=booking_key(booking_id), ConsistentRead=True)
        item = response.get("Item")
        return to_entity(item) if item else None

    def find_by_payment_reference(self, reference: str) -> Booking | None:
        """決済参照で検索"""
        response = self.table.scan(
            FilterExpression=Attr("entity_type").eq("BOOKING")
            & Attr("payment_reference").eq(reference),
        )
        items = response.get("Items", [])
        while not items and "LastEvaluatedKey" in response:
            response = self.table.scan(
                FilterExpression=Attr("entity_type").eq("BOOKING")
                & Attr("payment_reference").eq(reference),
                ExclusiveStartKey=response["LastEvaluatedKey"],
            )
            items = response.get("Items", [])
        return to_entity(items[0]) if items else None

    def reserved_weight(
        self,
        announcement_id: AnnouncementId,
        exclude: BookingId | None = None,
    ) -> Decimal:
        items = self._query_all(
            KeyConditionExpression=Key("PK").eq(f"ANNOUNCEMENT#{announcement_id}")
            & Key("SK").begins_with("RESERVATION#"),
            ConsistentRead=True,
        )
        excluded = str(exclude) if exclude else None
        return sum(
            (
                Decimal(str(item["weight_kg"]))
                for item in items
                if item["booking_id"] != excluded
            ),
            Decimal("0"),
        )

    def count_pending_by_sender(self, sender_id: UserId) -> int:
        kwargs: dict = {
            "IndexName": "GSI3",
            "KeyConditionExpression": Key("GSI3PK").eq(f"SENDER#{sender_id}")
            & Key("GSI3SK").begins_with(f"STATUS#{BookingStatus.PENDING.value}#"),
            "Select": "COUNT",
        }
        count = 0
        while True:
            response = self.table.query(**kwargs)
            count += response.get("Count", 0)
            if "LastEvaluatedKey" not in response:
                return count
            kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]

    def list_delivered_before(self, cutoff: datetime) -> list[Booking]:
        items = self._query_all(
            IndexName="GSI2",
            KeyConditionExpression=Key("GSI2PK").eq(
                f"STATUS#{BookingStatus.DELIVERED.value}"
            )
            & Key("GSI2SK").lte(to_iso(cutoff)),
            FilterExpression=Attr("dispute_opened_at").not_exists(),
        )
        return [to_entity(item) for item in items]

    def list_stale_release_claims(self, claimed_before: datetime) -> list[Booking]:
        bookings: list[Booking] = []
        for status in sorted(BookingStatus.released(), key=lambda s: s.value):
            items = self._query_all(
                IndexName="GSI2",
                KeyConditionExpression=Key("GSI2PK").eq(f"STATUS#{status.value}")
                & Key("GSI2SK").lte(to_iso(claimed_before)),
                FilterExpression=Attr("released_at").not_exists(),
            )
            bookings.extend(to_entity(item) for item in items)
        return bookings

    def _capacity_version_update(
        self, announcement_id: AnnouncementId, expected_version: int
    ) -> dict:
        if expected_version == 0:
            condition = (
                "attribute_exists(PK) AND "
                "(attribute_not_exists(capacity_version) "
                "OR capacity_version = :expected)"
            )
        else:
            condition = "capacity_version = :expected"
        return {
            "Update": {
                "TableName": self.table_name,
                "Key": serialize(
                    {"PK": f"ANNOUNCEMENT#{announcement_id}", "SK": "ANNOUNCEMENT"}
                ),
                "UpdateExpression": (
                    "SET capacity_version = if_not_exists(capacity_version, :zero) + :one"
                ),
                "ConditionExpression": condition,
                "ExpressionAttributeValues": serialize_values(
                    {":zero": 0, ":one": 1, ":expected": expected_version}
                ),
            }
        }

    def _query_all(self, **kwargs) -> list[dict]:
        items: list[dict] = []
        while True:
            response = self.table.query(**kwargs)
            items.extend(response.get("Items", []))
            if "LastEvaluatedKey" not in response:
                return items
            kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]
