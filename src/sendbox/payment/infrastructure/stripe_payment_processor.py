import json

import stripe
from aws_lambda_powertools import Logger

from sendbox.payment.domain.gateway import PaymentProcessor
from sendbox.payment.domain.value_object import (
    CaptureFailed,
    CaptureSucceeded,
    Hold,
    ProcessorEvent,
    Refunded,
    TransferReceipt,
)
from sendbox.shared.domain.exception import (
    InvalidSignatureException,
    ProcessorException,
)
from sendbox.shared.utils.secrets import get_secret

logger = Logger(child=True)

_BOOKING_SCOPED_EVENTS = ("payment_intent.succeeded", "payment_intent.payment_failed")


class StripePaymentProcessor(PaymentProcessor):
    """Stripe を使用した PaymentProcessor の具象実装

    API キーと Webhook シークレットは Secrets Manager から初回利用時に取得する。
    """

    def __init__(
        self,
        api_key: str | None = None,
        webhook_secret: str | None = None,
        api_key_secret_env: str = "STRIPE_API_KEY_SECRET_ARN",
        webhook_secret_env: str = "STRIPE_WEBHOOK_SECRET_ARN",
    ) -> None:
        self._api_key = api_key
        self._webhook_secret = webhook_secret
        self._api_key_secret_env = api_key_secret_env
        self._webhook_secret_env = webhook_secret_env

    @property
    def api_key(self) -> str:
        if self._api_key is None:
            self._api_key = get_secret(self._api_key_secret_env)
        return self._api_key

    @property
    def webhook_secret(self) -> str:
        if self._webhook_secret is None:
            self._webhook_secret = get_secret(self._webhook_secret_env)
        return self._webhook_secret

    def create_hold(
        self,
        amount_minor: int,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str,
    ) -> Hold:
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_minor,
                currency=currency.lower(),
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
                idempotency_key=idempotency_key,
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            raise ProcessorException(f"PaymentIntent creation failed: {e}") from e
        return self._to_hold(intent)

    def retrieve_hold(self, reference: str) -> Hold:
        try:
            intent = stripe.PaymentIntent.retrieve(reference, api_key=self.api_key)
        except stripe.StripeError as e:
            raise ProcessorException(f"PaymentIntent retrieval failed: {e}") from e
        return self._to_hold(intent)

    def transfer(
        self,
        amount_minor: int,
        currency: str,
        destination: str,
        idempotency_key: str,
        metadata: dict[str, str],
    ) -> TransferReceipt:
        try:
            transfer = stripe.Transfer.create(
                amount=amount_minor,
                currency=currency.lower(),
                destination=destination,
                metadata=metadata,
                idempotency_key=idempotency_key,
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            raise ProcessorException(f"Transfer failed: {e}") from e
        return TransferReceipt(transfer_id=transfer.id)

    def cancel_hold(self, reference: str) -> None:
        try:
            stripe.PaymentIntent.cancel(reference, api_key=self.api_key)
        except stripe.StripeError as e:
            raise ProcessorException(f"PaymentIntent cancellation failed: {e}") from e

    def refund(self, reference: str, idempotency_key: str) -> str:
        try:
            refund = stripe.Refund.create(
                payment_intent=reference,
                idempotency_key=idempotency_key,
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            raise ProcessorException(f"Refund failed: {e}") from e
        return refund.id

    def parse_event(self, payload: str, signature: str) -> ProcessorEvent | None:
        try:
            event = stripe.Webhook.construct_event(
                payload, signature, self.webhook_secret
            )
        except (ValueError, stripe.SignatureVerificationError) as e:
            raise InvalidSignatureException() from e

        obj = json.loads(payload)["data"]["object"]
        metadata = obj.get("metadata") or {}
        event_type = event.type
        booking_id = metadata.get("booking_id")

        if event_type in _BOOKING_SCOPED_EVENTS and not booking_id:
            logger.warning(
                "Stripe event without booking_id metadata",
                extra={"event_type": event_type, "event_id": event.id},
            )
            return None
        if event_type == "payment_intent.succeeded":
            return CaptureSucceeded(
                event_id=event.id,
                booking_id=booking_id,
                reference=obj["id"],
                amount_minor=int(obj.get("amount_received") or obj["amount"]),
                currency=obj["currency"].upper(),
            )
        if event_type == "payment_intent.payment_failed":
            error = obj.get("last_payment_error") or {}
            return CaptureFailed(
                event_id=event.id,
                booking_id=booking_id,
                reference=obj["id"],
                message=error.get("message") or "Payment failed",
            )
        if event_type == "charge.refunded":
            return Refunded(
                event_id=event.id,
                booking_id=booking_id,
                reference=obj.get("payment_intent") or obj["id"],
                amount_minor=int(obj.get("amount_refunded") or obj["amount"]),
                currency=obj["currency"].upper(),
            )

        logger.info("Unhandled Stripe event", extra={"event_type": event_type})
        return None

    @staticmethod
    def _to_hold(intent) -> Hold:
        return Hold(
            reference=intent.id,
            client_token=intent.client_secret,
            status=intent.status,
            amount_minor=intent.amount,
        )
