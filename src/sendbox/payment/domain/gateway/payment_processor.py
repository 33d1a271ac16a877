from abc import ABC, abstractmethod

from sendbox.payment.domain.value_object import Hold, ProcessorEvent, TransferReceipt


class PaymentProcessor(ABC):
    """外部決済プロセッサのインターフェース

    呼び出しの失敗は ProcessorException、Webhook の署名不正は
    InvalidSignatureException として送出する。
    """

    @abstractmethod
    def create_hold(
        self,
        amount_minor: int,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str,
    ) -> Hold:
        raise NotImplementedError

    @abstractmethod
    def retrieve_hold(self, reference: str) -> Hold:
        raise NotImplementedError

    @abstractmethod
    def transfer(
        self,
        amount_minor: int,
        currency: str,
        destination: str,
        idempotency_key: str,
        metadata: dict[str, str],
    ) -> TransferReceipt:
        raise NotImplementedError

    @abstractmethod
    def cancel_hold(self, reference: str) -> None:
        """未キャプチャの保留を取り消す"""
        raise NotImplementedError

    @abstractmethod
    def refund(self, reference: str, idempotency_key: str) -> str:
        """キャプチャ済みの支払いを全額返金し、返金 ID を返す"""
        raise NotImplementedError

    @abstractmethod
    def parse_event(self, payload: str, signature: str) -> ProcessorEvent | None:
        """署名を検証してイベントに変換する（対象外のイベントは None）"""
        raise NotImplementedError
