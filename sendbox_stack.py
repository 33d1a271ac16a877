from aws_cdk import CfnOutput, Stack
from aws_cdk import aws_secretsmanager as secretsmanager
from constructs import Construct

from infra.constructs import Api, Database, Functions, Layers, Scheduling


class SendboxStack(Stack):
    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        database = Database(self, "Database")
        layers = Layers(self, "Layers")

        stripe_api_key = secretsmanager.Secret(
            self,
            "StripeApiKey",
            secret_name="/sendbox/stripe-api-key",
        )
        stripe_webhook_secret = secretsmanager.Secret(
            self,
            "StripeWebhookSecret",
            secret_name="/sendbox/stripe-webhook-secret",
        )
        cron_secret = secretsmanager.Secret(
            self,
            "CronSecret",
            secret_name="/sendbox/cron-secret",
            generate_secret_string=secretsmanager.SecretStringGenerator(
                exclude_punctuation=True,
                password_length=32,
            ),
        )

        fns = Functions(
            self,
            "Functions",
            table=database.table,
            photo_bucket=database.photo_bucket,
            common_layer=layers.common_layer,
            stripe_api_key=stripe_api_key,
            stripe_webhook_secret=stripe_webhook_secret,
            cron_secret=cron_secret,
            settings={
                "PAYMENTS_MODE": self.node.try_get_context("payments_mode")
                or "simulation",
                "KYC_ENABLED": str(self.node.try_get_context("kyc_enabled") or "true"),
                "BETA_MODE": str(self.node.try_get_context("beta_mode") or "false"),
            },
        )

        api = Api(
            self,
            "Api",
            jwt_issuer=self.node.try_get_context("jwt_issuer")
            or "https://auth.example.com/",
            jwt_audience=[self.node.try_get_context("jwt_audience") or "sendbox"],
            routes={
                ("POST", "/bookings"): fns.create_booking,
                ("POST", "/bookings/{booking_id}/accept"): fns.accept_booking,
                ("POST", "/bookings/{booking_id}/refuse"): fns.refuse_booking,
                ("POST", "/bookings/{booking_id}/cancel"): fns.cancel_booking,
                ("POST", "/bookings/{booking_id}/handover"): fns.record_handover,
                ("POST", "/bookings/{booking_id}/delivery"): fns.record_delivery,
                ("POST", "/bookings/{booking_id}/dispute"): fns.open_dispute,
                ("POST", "/bookings/{booking_id}/confirm"): fns.confirm_delivery,
                ("POST", "/bookings/{booking_id}/payment"): fns.create_hold,
                ("POST", "/bookings/{booking_id}/payment/simulate"): fns.simulate_payment,
            },
            public_routes={
                ("POST", "/webhooks/stripe"): fns.payment_webhook,
                ("POST", "/cron/release-sweep"): fns.release_sweep,
            },
        )

        Scheduling(self, "Scheduling", release_sweep=fns.release_sweep)

        CfnOutput(self, "ApiUrl", value=api.http_api.api_endpoint)
