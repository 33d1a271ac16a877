from dataclasses import dataclass


@dataclass(frozen=True)
class PayoutAccount:
    """旅行者の受取口座（Stripe Connect アカウント相当）"""

    account_id: str
    payouts_enabled: bool
