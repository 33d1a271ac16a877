from __future__ import annotations

from pydantic import BaseModel

from sendbox.payment.applications.create_hold import HoldResult


class HoldData(BaseModel):
    """支払い保留のレスポンスモデル"""

    booking_id: str
    external_reference: str | None
    client_token: str | None
    amount: str
    already_paid: bool


class HoldResponse(BaseModel):
    status: str = "success"
    data: HoldData


class EventAcknowledgement(BaseModel):
    """Webhook / シミュレーションの処理結果"""

    received: bool = True
    outcome: str


def to_hold_response(booking_id: str, result: HoldResult) -> dict:
    return HoldResponse(
        data=HoldData(
            booking_id=booking_id,
            external_reference=result.external_reference,
            client_token=result.client_token,
            amount=str(result.amount),
            already_paid=result.already_paid,
        )
    ).model_dump()
