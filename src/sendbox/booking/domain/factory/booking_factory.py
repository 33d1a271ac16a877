from datetime import datetime
from decimal import Decimal
from typing import TypedDict

from sendbox.booking.domain.entity import Announcement, Booking
from sendbox.booking.domain.enum import BookingStatus
from sendbox.booking.domain.service.pricing import compute_amounts
from sendbox.booking.domain.value_object import (
    BookingId,
    BookingTimeline,
    PricingPolicy,
)
from sendbox.notification.domain import Notification, NotificationType
from sendbox.shared.domain import UserId


class BookingDetails(TypedDict):
    """予約リクエストの入力データ構造（TypedDict）"""

    weight_kg: Decimal
    declared_value: Decimal
    insurance_opted: bool
    package_description: str


class BookingFactory:
    """予約ファクトリ"""

    def __init__(self, policy: PricingPolicy | None = None) -> None:
        self._policy = policy or PricingPolicy()

    def create(
        self,
        sender_id: UserId,
        announcement: Announcement,
        booking_details: BookingDetails,
        now: datetime,
    ) -> Booking:
        """pending の予約を生成し、金額内訳を確定させる"""
        amounts = compute_amounts(
            booking_details["weight_kg"],
            announcement.price_per_kg,
            booking_details["declared_value"],
            booking_details["insurance_opted"],
            self._policy,
        )
        booking = Booking(
            id=BookingId.generate(),
            announcement_id=announcement.id,
            sender_id=sender_id,
            traveler_id=announcement.traveler_id,
            weight_kg=booking_details["weight_kg"],
            price_per_kg=announcement.price_per_kg,
            declared_value=booking_details["declared_value"],
            insurance_opted=booking_details["insurance_opted"],
            package_description=booking_details["package_description"],
            amounts=amounts,
            currency=announcement.currency,
            timeline=BookingTimeline(created_at=now),
            status=BookingStatus.PENDING,
        )
        booking.record_event(
            Notification(
                user_id=announcement.traveler_id,
                type=NotificationType.BOOKING_REQUEST,
                title="New booking request",
                body=f"A sender wants to ship {booking.weight_kg} kg with you.",
                related_booking_id=str(booking.id),
            )
        )
        return booking
