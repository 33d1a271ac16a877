from dataclasses import dataclass
from decimal import Decimal

from .currency import Currency


@dataclass(frozen=True)
class Money:
    """通貨付きの金額（台帳エントリ・送金額）

    負の金額は持たない。丸めは行わず、補助単位への変換は決済プロセッサとの境界で行う。
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))
        if self.amount < 0:
            raise ValueError(f"Amount cannot be negative: {self.amount}")

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"
