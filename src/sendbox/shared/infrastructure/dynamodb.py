import os
from datetime import datetime

import boto3
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

_serializer = TypeSerializer()


def get_table(table_name: str | None = None):
    """TABLE_NAME（または引数）の DynamoDB テーブルリソースを返す"""
    dynamodb = boto3.resource("dynamodb")
    return dynamodb.Table(table_name or os.getenv("TABLE_NAME"))


def serialize(item: dict) -> dict:
    """resource 形式の値を client 形式（型記述子付き）に変換する

    transact_write_items は client API のため、属性値の型を明示する必要がある。
    None は DynamoDB に保存しない。
    """
    return {k: _serializer.serialize(v) for k, v in item.items() if v is not None}


def serialize_values(values: dict) -> dict:
    """ExpressionAttributeValues を client 形式に変換する"""
    return {k: _serializer.serialize(v) for k, v in values.items()}


def to_iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def cancellation_codes(error: ClientError) -> list[str]:
    """TransactionCanceledException から各アイテムのキャンセル理由コードを取り出す

    コードの並びは TransactItems の並びと一致する（成功したアイテムは "None"）。
    """
    reasons = error.response.get("CancellationReasons", [])
    return [reason.get("Code", "None") for reason in reasons]


def is_conditional_failure(error: ClientError) -> bool:
    return error.response["Error"]["Code"] == "ConditionalCheckFailedException"


def is_transaction_cancelled(error: ClientError) -> bool:
    return error.response["Error"]["Code"] == "TransactionCanceledException"
