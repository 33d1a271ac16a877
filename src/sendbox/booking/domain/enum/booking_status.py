from enum import Enum


class BookingStatus(str, Enum):
    """予約ステータス"""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REFUSED = "refused"
    CANCELLED = "cancelled"
    PAID = "paid"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    DELIVERY_CONFIRMED = "delivery_confirmed"
    AUTO_RELEASED = "auto_released"

    @classmethod
    def capacity_holding(cls) -> frozenset["BookingStatus"]:
        """アナウンスの積載量を占有するステータス"""
        return frozenset({cls.PENDING, cls.ACCEPTED, cls.PAID, cls.IN_TRANSIT})

    @classmethod
    def released(cls) -> frozenset["BookingStatus"]:
        """資金解放済み（または解放処理中）のステータス"""
        return frozenset({cls.DELIVERY_CONFIRMED, cls.AUTO_RELEASED})

    @classmethod
    def refundable(cls) -> frozenset["BookingStatus"]:
        return frozenset({cls.ACCEPTED, cls.PAID, cls.IN_TRANSIT, cls.DELIVERED})
