"""決済プロセッサから届くイベント

Webhook のペイロードはアダプタでこのいずれかに変換され、
アプリケーション層では match 文で網羅的に処理する。
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CaptureSucceeded:
    event_id: str
    booking_id: str
    reference: str
    amount_minor: int
    currency: str


@dataclass(frozen=True)
class CaptureFailed:
    event_id: str
    booking_id: str
    reference: str
    message: str


@dataclass(frozen=True)
class Refunded:
    event_id: str
    reference: str
    amount_minor: int
    currency: str
    booking_id: str | None = None


ProcessorEvent = CaptureSucceeded | CaptureFailed | Refunded
