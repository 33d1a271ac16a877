from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PricingPolicy:
    """料金計算の料率

    手数料はプラットフォームが保持し、保険料も旅行者には支払われない。
    """

    commission_rate: Decimal = Decimal("0.12")
    insurance_rate: Decimal = Decimal("0.015")
    insurance_base_fee: Decimal = Decimal("2")
    max_insurance_coverage: Decimal = Decimal("500")
