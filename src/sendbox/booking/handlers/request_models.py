from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from sendbox.shared.utils.validators import to_decimal


class PhotoUpload(BaseModel):
    """荷物写真（Base64）"""

    content_base64: str = Field(..., min_length=1)
    content_type: str = Field(default="image/jpeg", pattern="^image/(jpeg|png|webp)$")


class CreateBookingRequest(BaseModel):
    """予約リクエスト作成モデル"""

    announcement_id: str = Field(..., min_length=1)
    weight_kg: Decimal = Field(
        ...,
        ge=Decimal("0.5"),
        le=Decimal("30"),
        description="荷物の重量（0.5〜30 kg）",
    )
    package_description: str = Field(..., min_length=10, max_length=500)
    declared_value: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        le=Decimal("10000"),
        description="申告額（保険の算定基準）",
    )
    insurance_opted: bool = False
    photos: list[PhotoUpload] = Field(default_factory=list, max_length=5)

    @field_validator("weight_kg", "declared_value", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        return to_decimal(v)


class RefuseBookingRequest(BaseModel):
    reason: str = Field(..., min_length=5, max_length=500)


class CancelBookingRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class ScanRequest(BaseModel):
    """受け取り・配達時の QR コード読み取り"""

    qr_code: str = Field(..., min_length=1)


class OpenDisputeRequest(BaseModel):
    reason: str = Field(..., min_length=5, max_length=1000)
