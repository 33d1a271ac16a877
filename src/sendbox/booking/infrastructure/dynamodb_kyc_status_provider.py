from sendbox.booking.domain.enum import KycStatus
from sendbox.booking.domain.gateway import KycStatusProvider
from sendbox.booking.domain.value_object import KycVerification
from sendbox.shared.domain import UserId
from sendbox.shared.infrastructure.dynamodb import get_table


class DynamoDBKycStatusProvider(KycStatusProvider):
    """利用者プロフィール（USER#<id> / PROFILE）から本人確認状態を読む"""

    def __init__(self, table_name: str | None = None) -> None:
        self.table = get_table(table_name)

    def get_verification(self, user_id: UserId) -> KycVerification | None:
        response = self.table.get_item(
            Key={"PK": f"USER#{user_id}", "SK": "PROFILE"},
            ProjectionExpression="kyc_status, kyc_rejection_reason",
        )
        item = response.get("Item")
        if not item or not item.get("kyc_status"):
            return None
        return KycVerification(
            status=KycStatus(item["kyc_status"]),
            rejection_reason=item.get("kyc_rejection_reason"),
        )
