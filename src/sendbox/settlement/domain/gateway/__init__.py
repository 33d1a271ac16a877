from .payout_account_provider import PayoutAccountProvider as PayoutAccountProvider
