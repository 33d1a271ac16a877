from __future__ import annotations

from pydantic import BaseModel

from sendbox.settlement.domain import ReleaseResult, SweepReport


class ReleaseData(BaseModel):
    """資金解放のレスポンスモデル"""

    booking_id: str
    released: bool
    already_released: bool
    error: str | None = None
    transfer_id: str | None = None


class SweepErrorData(BaseModel):
    booking_id: str
    message: str


class SweepData(BaseModel):
    processed: int
    released: int
    errors: list[SweepErrorData]


def to_release_response(booking_id: str, result: ReleaseResult) -> dict:
    return {
        "status": "success",
        "data": ReleaseData(
            booking_id=booking_id,
            released=result.released,
            already_released=result.already_released,
            error=result.error,
            transfer_id=result.transfer_id,
        ).model_dump(),
    }


def to_sweep_response(report: SweepReport) -> dict:
    return SweepData(
        processed=report.processed,
        released=report.released,
        errors=[
            SweepErrorData(booking_id=e.booking_id, message=e.message)
            for e in report.errors
        ],
    ).model_dump()
