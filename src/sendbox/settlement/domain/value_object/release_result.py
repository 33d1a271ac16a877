from dataclasses import dataclass, field

PAYOUTS_NOT_ENABLED = "payouts_not_enabled"
PAYMENTS_DISABLED = "payments_disabled"
TRANSFER_FAILED = "transfer_failed"


@dataclass(frozen=True)
class ReleaseResult:
    """資金解放の結果"""

    released: bool = False
    already_released: bool = False
    error: str | None = None
    transfer_id: str | None = None


@dataclass(frozen=True)
class SweepError:
    booking_id: str
    message: str


@dataclass(frozen=True)
class SweepReport:
    """自動解放スイープの結果"""

    processed: int = 0
    released: int = 0
    errors: list[SweepError] = field(default_factory=list)
