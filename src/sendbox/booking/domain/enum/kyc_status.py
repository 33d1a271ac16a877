from enum import Enum


class KycStatus(str, Enum):
    """本人確認ステータス"""

    APPROVED = "approved"
    PENDING = "pending"
    REJECTED = "rejected"
    INCOMPLETE = "incomplete"
