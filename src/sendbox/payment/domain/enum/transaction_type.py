from enum import Enum


class TransactionType(str, Enum):
    """台帳エントリの種別"""

    CAPTURE = "capture"
    REFUND = "refund"
    TRANSFER = "transfer"
