from sendbox.payment.domain.gateway import PaymentProcessor
from sendbox.payment.domain.value_object import Hold, ProcessorEvent, TransferReceipt
from sendbox.shared.domain.exception import InvalidSignatureException

_SIMULATED_STATUS = "requires_confirmation"


class SimulatedPaymentProcessor(PaymentProcessor):
    """決済プロセッサを使わずに動作させるためのシミュレーター

    保留は常に成功扱い。キャプチャは SimulatePaymentService から発生させる。
    """

    def __init__(self) -> None:
        self._holds: dict[str, Hold] = {}

    def create_hold(
        self,
        amount_minor: int,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str,
    ) -> Hold:
        reference = f"sim_{metadata['booking_id']}"
        hold = Hold(
            reference=reference,
            client_token=f"{reference}_secret",
            status=_SIMULATED_STATUS,
            amount_minor=amount_minor,
        )
        self._holds[reference] = hold
        return hold

    def retrieve_hold(self, reference: str) -> Hold:
        return self._holds.get(
            reference,
            Hold(
                reference=reference,
                client_token=f"{reference}_secret",
                status=_SIMULATED_STATUS,
                amount_minor=0,
            ),
        )

    def transfer(
        self,
        amount_minor: int,
        currency: str,
        destination: str,
        idempotency_key: str,
        metadata: dict[str, str],
    ) -> TransferReceipt:
        return TransferReceipt(transfer_id=f"sim_{idempotency_key}")

    def cancel_hold(self, reference: str) -> None:
        self._holds.pop(reference, None)

    def refund(self, reference: str, idempotency_key: str) -> str:
        return f"sim_{idempotency_key}"

    def parse_event(self, payload: str, signature: str) -> ProcessorEvent | None:
        raise InvalidSignatureException("Webhooks are not accepted in simulation mode")
