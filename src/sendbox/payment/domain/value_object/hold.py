from dataclasses import dataclass

SUCCEEDED = "succeeded"
CANCELED = "canceled"


@dataclass(frozen=True)
class Hold:
    """決済プロセッサ上の支払い保留（PaymentIntent 相当）"""

    reference: str
    client_token: str | None
    status: str
    amount_minor: int

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCEEDED

    @property
    def reusable(self) -> bool:
        return self.status not in (SUCCEEDED, CANCELED)


@dataclass(frozen=True)
class TransferReceipt:
    """送金結果"""

    transfer_id: str
