from enum import Enum


class AnnouncementStatus(str, Enum):
    """アナウンス（旅行者の出品）ステータス"""

    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
