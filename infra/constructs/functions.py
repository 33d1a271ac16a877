import datetime

from aws_cdk import Duration
from aws_cdk import aws_dynamodb as dynamodb
from aws_cdk import aws_lambda as _lambda
from aws_cdk import aws_s3 as s3
from aws_cdk import aws_secretsmanager as secretsmanager
from constructs import Construct

from .layers import ARCHITECTURE, RUNTIME


class Functions(Construct):
    """Lambda 関数を管理する Construct"""

    def __init__(
        self,
        scope: Construct,
        id: str,
        table: dynamodb.Table,
        photo_bucket: s3.IBucket,
        common_layer: _lambda.LayerVersion,
        stripe_api_key: secretsmanager.ISecret,
        stripe_webhook_secret: secretsmanager.ISecret,
        cron_secret: secretsmanager.ISecret,
        settings: dict[str, str],
    ) -> None:
        super().__init__(scope, id)

        self._table = table
        self._common_layer = common_layer
        self._environment = {
            "TABLE_NAME": table.table_name,
            "PHOTO_BUCKET_NAME": photo_bucket.bucket_name,
            "STRIPE_API_KEY_SECRET_ARN": stripe_api_key.secret_arn,
            "STRIPE_WEBHOOK_SECRET_ARN": stripe_webhook_secret.secret_arn,
            "CRON_SECRET_ARN": cron_secret.secret_arn,
            **settings,
        }

        self.create_booking = self._create_function(
            "CreateBookingLambda",
            "sendbox.booking.handlers.create.lambda_handler",
            "booking-service",
        )
        self.accept_booking = self._create_function(
            "AcceptBookingLambda",
            "sendbox.booking.handlers.accept.lambda_handler",
            "booking-service",
        )
        self.refuse_booking = self._create_function(
            "RefuseBookingLambda",
            "sendbox.booking.handlers.refuse.lambda_handler",
            "booking-service",
        )
        self.cancel_booking = self._create_function(
            "CancelBookingLambda",
            "sendbox.booking.handlers.cancel.lambda_handler",
            "booking-service",
        )
        self.record_handover = self._create_function(
            "RecordHandoverLambda",
            "sendbox.booking.handlers.handover.lambda_handler",
            "booking-service",
        )
        self.record_delivery = self._create_function(
            "RecordDeliveryLambda",
            "sendbox.booking.handlers.delivery.lambda_handler",
            "booking-service",
        )
        self.open_dispute = self._create_function(
            "OpenDisputeLambda",
            "sendbox.booking.handlers.dispute.lambda_handler",
            "booking-service",
        )

        self.create_hold = self._create_function(
            "CreateHoldLambda",
            "sendbox.payment.handlers.create_hold.lambda_handler",
            "payment-service",
        )
        self.payment_webhook = self._create_function(
            "PaymentWebhookLambda",
            "sendbox.payment.handlers.webhook.lambda_handler",
            "payment-service",
        )
        self.simulate_payment = self._create_function(
            "SimulatePaymentLambda",
            "sendbox.payment.handlers.simulate.lambda_handler",
            "payment-service",
        )

        self.confirm_delivery = self._create_function(
            "ConfirmDeliveryLambda",
            "sendbox.settlement.handlers.confirm.lambda_handler",
            "settlement-service",
        )
        self.release_sweep = self._create_function(
            "ReleaseSweepLambda",
            "sendbox.settlement.handlers.release_sweep.lambda_handler",
            "settlement-service",
            timeout=Duration.minutes(10),
        )

        for fn in self.all_functions:
            table.grant_read_write_data(fn)

        photo_bucket.grant_put(self.create_booking)

        for fn in [
            self.create_hold,
            self.payment_webhook,
            self.confirm_delivery,
            self.release_sweep,
        ]:
            stripe_api_key.grant_read(fn)
        stripe_webhook_secret.grant_read(self.payment_webhook)
        cron_secret.grant_read(self.release_sweep)

    @property
    def all_functions(self) -> list[_lambda.Function]:
        return [
            self.create_booking,
            self.accept_booking,
            self.refuse_booking,
            self.cancel_booking,
            self.record_handover,
            self.record_delivery,
            self.open_dispute,
            self.create_hold,
            self.payment_webhook,
            self.simulate_payment,
            self.confirm_delivery,
            self.release_sweep,
        ]

    def _create_function(
        self,
        id: str,
        handler: str,
        service_name: str,
        timeout: Duration = Duration.seconds(30),
    ) -> _lambda.Function:
        return _lambda.Function(
            self,
            id,
            runtime=RUNTIME,
            architecture=ARCHITECTURE,
            handler=handler,
            code=_lambda.Code.from_asset("src", exclude=["**/__pycache__", "*.egg-info"]),
            layers=[self._common_layer],
            timeout=timeout,
            environment={
                **self._environment,
                "POWERTOOLS_SERVICE_NAME": service_name,
                "DEPLOY_TIME": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            },
        )
