"""料金計算

副作用のない純粋関数のみを置く。丸めは決済プロセッサへ渡す境界
（to_minor_units）でのみ行い、内訳の計算では一切丸めない。
負の入力は拒否しない（入力検証は呼び出し側の責務）。
"""

from decimal import ROUND_HALF_UP, Decimal

from sendbox.booking.domain.value_object import PriceBreakdown, PricingPolicy
from sendbox.shared.utils.validators import to_decimal

_MINOR_UNIT_EXPONENT = 2


def compute_amounts(
    weight_kg: Decimal | int | float | str,
    price_per_kg: Decimal | int | float | str,
    declared_value: Decimal | int | float | str,
    insurance_opted: bool,
    policy: PricingPolicy | None = None,
) -> PriceBreakdown:
    """重量・kg単価・申告額・保険加入有無から金額内訳を計算する"""
    policy = policy or PricingPolicy()
    weight = to_decimal(weight_kg)
    unit_price = to_decimal(price_per_kg)
    value = to_decimal(declared_value)

    transport_price = weight * unit_price
    commission_amount = transport_price * policy.commission_rate

    insurance_coverage: Decimal | None = None
    if insurance_opted:
        insurance_premium = value * policy.insurance_rate + policy.insurance_base_fee
        insurance_coverage = min(value, policy.max_insurance_coverage)
    else:
        insurance_premium = Decimal("0")

    return PriceBreakdown(
        transport_price=transport_price,
        commission_amount=commission_amount,
        insurance_premium=insurance_premium,
        total_amount=transport_price + commission_amount + insurance_premium,
        insurance_coverage=insurance_coverage,
    )


def to_minor_units(amount: Decimal | int | float | str) -> int:
    """金額を補助単位（セント）の整数に変換する（四捨五入）"""
    scaled = to_decimal(amount).scaleb(_MINOR_UNIT_EXPONENT)
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    """補助単位の整数を金額に戻す（to_minor_units の逆変換）"""
    return Decimal(amount).scaleb(-_MINOR_UNIT_EXPONENT)
