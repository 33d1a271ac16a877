"""実行時設定

機能フラグ（KYC・決済モード・ベータ上限）はここで明示的に読み込み、
サービスのコンストラクタへ渡す。ドメインコードから環境変数を直接参照しない。
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from enum import Enum

from sendbox.booking.domain.value_object import PricingPolicy


class PaymentsMode(str, Enum):
    """決済モード"""

    STRIPE = "stripe"
    SIMULATION = "simulation"
    DISABLED = "disabled"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_decimal(name: str, default: str) -> Decimal:
    return Decimal(os.getenv(name) or default)


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name) or default)


@dataclass(frozen=True)
class EngineSettings:
    """予約・決済エンジンの設定値"""

    table_name: str | None = None
    photo_bucket_name: str | None = None
    kyc_enabled: bool = True
    payments_mode: PaymentsMode = PaymentsMode.SIMULATION
    pricing_policy: PricingPolicy = field(default_factory=PricingPolicy)
    max_pending_bookings: int = 5
    auto_release_grace: timedelta = timedelta(days=7)
    beta_mode: bool = False
    max_booking_amount: Decimal = Decimal("500")
    release_claim_timeout: timedelta = timedelta(minutes=15)
    sweep_item_timeout_seconds: float = 30.0
    sweep_max_workers: int = 4
    sweep_deadline_seconds: float = 600.0
    stripe_api_key_secret_env: str = "STRIPE_API_KEY_SECRET_ARN"
    stripe_webhook_secret_env: str = "STRIPE_WEBHOOK_SECRET_ARN"
    cron_secret_env: str = "CRON_SECRET_ARN"

    @property
    def payments_enabled(self) -> bool:
        return self.payments_mode != PaymentsMode.DISABLED

    @classmethod
    def from_env(cls) -> EngineSettings:
        """環境変数から設定を生成する（未設定の項目は既定値）"""
        return cls(
            table_name=os.getenv("TABLE_NAME"),
            photo_bucket_name=os.getenv("PHOTO_BUCKET_NAME"),
            kyc_enabled=_env_bool("KYC_ENABLED", True),
            payments_mode=PaymentsMode(
                (os.getenv("PAYMENTS_MODE") or PaymentsMode.SIMULATION.value).lower()
            ),
            pricing_policy=PricingPolicy(
                commission_rate=_env_decimal("COMMISSION_RATE", "0.12"),
                insurance_rate=_env_decimal("INSURANCE_RATE", "0.015"),
                insurance_base_fee=_env_decimal("INSURANCE_BASE_FEE", "2"),
                max_insurance_coverage=_env_decimal("MAX_INSURANCE_COVERAGE", "500"),
            ),
            max_pending_bookings=_env_int("MAX_PENDING_BOOKINGS", 5),
            auto_release_grace=timedelta(days=_env_int("AUTO_RELEASE_GRACE_DAYS", 7)),
            beta_mode=_env_bool("BETA_MODE", False),
            max_booking_amount=_env_decimal("MAX_BOOKING_AMOUNT", "500"),
            release_claim_timeout=timedelta(
                minutes=_env_int("RELEASE_CLAIM_TIMEOUT_MINUTES", 15)
            ),
            sweep_item_timeout_seconds=float(
                os.getenv("SWEEP_ITEM_TIMEOUT_SECONDS") or 30
            ),
            sweep_max_workers=_env_int("SWEEP_MAX_WORKERS", 4),
            sweep_deadline_seconds=float(os.getenv("SWEEP_DEADLINE_SECONDS") or 600),
        )
