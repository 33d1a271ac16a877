from decimal import Decimal

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from sendbox.booking.domain.entity import Booking
from sendbox.booking.domain.enum import BookingStatus
from sendbox.booking.domain.value_object import BookingId
from sendbox.booking.infrastructure.booking_item import update_writes
from sendbox.payment.domain.entity import Transaction
from sendbox.payment.domain.enum import TransactionStatus, TransactionType
from sendbox.payment.domain.repository import TransactionRepository
from sendbox.payment.domain.value_object import TransactionId
from sendbox.shared.domain import Currency, Money, UserId
from sendbox.shared.domain.exception import (
    DuplicateResourceException,
    OptimisticLockException,
)
from sendbox.shared.infrastructure.dynamodb import (
    cancellation_codes,
    from_iso,
    get_table,
    is_conditional_failure,
    is_transaction_cancelled,
    serialize,
    to_iso,
)

_CONDITION_FAILED = "ConditionalCheckFailed"


class DynamoDBTransactionRepository(TransactionRepository):
    """DynamoDBを使用したTransactionRepository の具象実装

    台帳エントリは予約と同じパーティション（BOOKING#<id> / TRANSACTION#<id>）に置く。
    """

    def __init__(self, table_name: str | None = None) -> None:
        self.table = get_table(table_name)
        self.table_name = self.table.name
        self.client = self.table.meta.client

    def append(self, transaction: Transaction) -> None:
        try:
            self.table.put_item(
                Item=self._to_item(transaction),
                ConditionExpression="attribute_not_exists(SK)",
            )
        except ClientError as e:
            if is_conditional_failure(e):
                raise DuplicateResourceException(
                    f"Transaction already exists: {transaction.id}"
                )
            raise

    def list_by_booking(self, booking_id: BookingId) -> list[Transaction]:
        response = self.table.query(
            KeyConditionExpression=Key("PK").eq(f"BOOKING#{booking_id}")
            & Key("SK").begins_with("TRANSACTION#"),
            ConsistentRead=True,
        )
        items = sorted(response.get("Items", []), key=lambda i: i["created_at"])
        return [self._to_entity(item) for item in items]

    def record_capture(
        self,
        booking: Booking,
        transaction: Transaction,
        expected_status: BookingStatus,
    ) -> None:
        writes = update_writes(
            self.table_name,
            booking,
            expected_status,
            extra_condition="attribute_not_exists(paid_at)",
        )
        self._write_with_entry(booking, transaction, writes, expected_status)

    def record_refund(
        self,
        booking: Booking,
        transaction: Transaction,
        expected_status: BookingStatus,
    ) -> None:
        writes = update_writes(self.table_name, booking, expected_status)
        self._write_with_entry(booking, transaction, writes, expected_status)

    def _write_with_entry(
        self,
        booking: Booking,
        transaction: Transaction,
        writes: list[dict],
        expected_status: BookingStatus,
    ) -> None:
        """予約の書き換えと台帳エントリの追記を一つのトランザクションで行う"""
        writes.append(
            {
                "Put": {
                    "TableName": self.table_name,
                    "Item": serialize(self._to_item(transaction)),
                    "ConditionExpression": "attribute_not_exists(SK)",
                }
            }
        )
        try:
            self.client.transact_write_items(TransactItems=writes)
        except ClientError as e:
            if not is_transaction_cancelled(e):
                raise
            codes = cancellation_codes(e)
            if codes and codes[0] == _CONDITION_FAILED:
                raise OptimisticLockException(
                    f"Booking status conflict: "
                    f"expected {expected_status.value}, "
                    f"booking_id={booking.id}"
                )
            raise DuplicateResourceException(
                f"Transaction already exists: {transaction.id}"
            )
        booking.advance_version()

    def _to_item(self, transaction: Transaction) -> dict:
        item = {
            "PK": f"BOOKING#{transaction.booking_id}",
            "SK": f"TRANSACTION#{transaction.id}",
            "entity_type": "TRANSACTION",
            "transaction_id": str(transaction.id),
            "booking_id": str(transaction.booking_id),
            "user_id": str(transaction.user_id),
            "type": transaction.type.value,
            "amount": str(transaction.amount.amount),
            "currency": str(transaction.amount.currency),
            "status": transaction.status.value,
            "processor_reference": transaction.processor_reference,
            "failure_reason": transaction.failure_reason,
            "created_at": to_iso(transaction.created_at),
        }
        return {k: v for k, v in item.items() if v is not None}

    def _to_entity(self, item: dict) -> Transaction:
        return Transaction(
            id=TransactionId(value=item["transaction_id"]),
            booking_id=BookingId(value=item["booking_id"]),
            user_id=UserId(value=item["user_id"]),
            type=TransactionType(item["type"]),
            amount=Money(
                amount=Decimal(item["amount"]),
                currency=Currency(item["currency"]),
            ),
            status=TransactionStatus(item["status"]),
            created_at=from_iso(item["created_at"]),
            processor_reference=item.get("processor_reference"),
            failure_reason=item.get("failure_reason"),
        )
