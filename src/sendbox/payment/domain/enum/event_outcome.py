from enum import Enum


class EventOutcome(str, Enum):
    """プロセッサイベント処理の結果"""

    PROCESSED = "processed"
    ALREADY_PROCESSED = "already_processed"
    IGNORED = "ignored"
