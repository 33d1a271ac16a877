from sendbox.settlement.domain import PayoutAccount, PayoutAccountProvider
from sendbox.shared.domain import UserId
from sendbox.shared.infrastructure.dynamodb import get_table


class DynamoDBPayoutAccountProvider(PayoutAccountProvider):
    """利用者プロフィール（USER#<id> / PROFILE）から受取口座を読む"""

    def __init__(self, table_name: str | None = None) -> None:
        self.table = get_table(table_name)

    def get_payout_account(self, user_id: UserId) -> PayoutAccount | None:
        response = self.table.get_item(
            Key={"PK": f"USER#{user_id}", "SK": "PROFILE"},
            ProjectionExpression="payout_account_id, payouts_enabled",
        )
        item = response.get("Item")
        if not item or not item.get("payout_account_id"):
            return None
        return PayoutAccount(
            account_id=item["payout_account_id"],
            payouts_enabled=bool(item.get("payouts_enabled", False)),
        )
