from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class TransactionId:
    """台帳エントリID

    重複排除が必要なエントリは決定的なIDを使う。
    - キャプチャ: "capture"（予約ごとに一つ）
    - 失敗・返金: プロセッサのイベントIDから導出
    - 送金成功: "transfer"
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("TransactionId cannot be empty")

    def __str__(self) -> str:
        return self.value

    @classmethod
    def capture(cls) -> TransactionId:
        return cls("capture")

    @classmethod
    def transfer(cls) -> TransactionId:
        return cls("transfer")

    @classmethod
    def from_event(cls, prefix: str, event_id: str) -> TransactionId:
        return cls(f"{prefix}_{event_id}")

    @classmethod
    def generate(cls, prefix: str) -> TransactionId:
        return cls(f"{prefix}_{uuid.uuid4()}")
