from __future__ import annotations

from pydantic import BaseModel

from sendbox.booking.domain.entity import Booking


class BookingData(BaseModel):
    """予約データのレスポンスモデル"""

    booking_id: str
    announcement_id: str
    sender_id: str
    traveler_id: str
    status: str
    weight_kg: str
    transport_price: str
    commission_amount: str
    insurance_premium: str
    total_amount: str
    insurance_coverage: str | None = None
    currency: str
    package_photos: list[str] = []


class SuccessResponse(BaseModel):
    """成功レスポンスモデル"""

    status: str = "success"
    already_processed: bool = False
    data: BookingData


def to_response(booking: Booking, already_processed: bool = False) -> dict:
    """Booking エンティティをレスポンス辞書に変換する"""
    amounts = booking.amounts
    return SuccessResponse(
        already_processed=already_processed,
        data=BookingData(
            booking_id=str(booking.id),
            announcement_id=str(booking.announcement_id),
            sender_id=str(booking.sender_id),
            traveler_id=str(booking.traveler_id),
            status=booking.status.value,
            weight_kg=str(booking.weight_kg),
            transport_price=str(amounts.transport_price),
            commission_amount=str(amounts.commission_amount),
            insurance_premium=str(amounts.insurance_premium),
            total_amount=str(amounts.total_amount),
            insurance_coverage=(
                str(amounts.insurance_coverage)
                if amounts.insurance_coverage is not None
                else None
            ),
            currency=str(booking.currency),
            package_photos=booking.package_photos,
        ),
    ).model_dump()
