from enum import Enum


class TransactionStatus(str, Enum):
    """台帳エントリのステータス"""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
