from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PriceBreakdown:
    """予約金額の内訳

    total_amount == transport_price + commission_amount + insurance_premium
    """

    transport_price: Decimal
    commission_amount: Decimal
    insurance_premium: Decimal
    total_amount: Decimal
    insurance_coverage: Decimal | None = None

    @property
    def platform_fee(self) -> Decimal:
        """プラットフォームが保持する金額（手数料 + 保険料）"""
        return self.commission_amount + self.insurance_premium

    @property
    def traveler_payout(self) -> Decimal:
        """旅行者へ送金する金額"""
        return self.total_amount - self.platform_fee
