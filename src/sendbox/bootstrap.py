"""Lambda ハンドラー向けの依存関係の組み立て

ハンドラーモジュールの読み込み時に一度だけ呼ばれ、コンテナの再利用中は
同じインスタンスを使い回す。
"""

from functools import lru_cache

from sendbox.booking.applications.accept_booking import AcceptBookingService
from sendbox.booking.applications.cancel_booking import CancelBookingService
from sendbox.booking.applications.create_booking import CreateBookingService
from sendbox.booking.applications.open_dispute import OpenDisputeService
from sendbox.booking.applications.record_delivery import RecordDeliveryService
from sendbox.booking.applications.record_handover import RecordHandoverService
from sendbox.booking.applications.refuse_booking import RefuseBookingService
from sendbox.booking.domain.factory import BookingFactory
from sendbox.booking.domain.service import CapacityLedger, KycGate
from sendbox.booking.infrastructure.dynamodb_announcement_repository import (
    DynamoDBAnnouncementRepository,
)
from sendbox.booking.infrastructure.dynamodb_booking_repository import (
    DynamoDBBookingRepository,
)
from sendbox.booking.infrastructure.dynamodb_kyc_status_provider import (
    DynamoDBKycStatusProvider,
)
from sendbox.booking.infrastructure.s3_photo_storage import S3PackagePhotoStorage
from sendbox.notification.applications.dispatch_notifications import (
    NotificationDispatcher,
)
from sendbox.notification.infrastructure.dynamodb_notifier import DynamoDBNotifier
from sendbox.payment.applications.create_hold import CreateHoldService
from sendbox.payment.applications.handle_processor_event import (
    HandleProcessorEventService,
)
from sendbox.payment.applications.simulate_payment import SimulatePaymentService
from sendbox.payment.domain.gateway import PaymentProcessor
from sendbox.payment.infrastructure.dynamodb_transaction_repository import (
    DynamoDBTransactionRepository,
)
from sendbox.payment.infrastructure.simulated_payment_processor import (
    SimulatedPaymentProcessor,
)
from sendbox.payment.infrastructure.stripe_payment_processor import (
    StripePaymentProcessor,
)
from sendbox.settlement.applications.confirm_delivery import ConfirmDeliveryService
from sendbox.settlement.applications.release_funds import ReleaseFundsService
from sendbox.settlement.applications.run_release_sweep import RunReleaseSweepService
from sendbox.settlement.infrastructure.dynamodb_payout_account_provider import (
    DynamoDBPayoutAccountProvider,
)
from sendbox.shared.config import EngineSettings, PaymentsMode


@lru_cache(maxsize=1)
def settings() -> EngineSettings:
    return EngineSettings.from_env()


@lru_cache(maxsize=1)
def booking_repository() -> DynamoDBBookingRepository:
    return DynamoDBBookingRepository(settings().table_name)


@lru_cache(maxsize=1)
def announcement_repository() -> DynamoDBAnnouncementRepository:
    return DynamoDBAnnouncementRepository(settings().table_name)


@lru_cache(maxsize=1)
def transaction_repository() -> DynamoDBTransactionRepository:
    return DynamoDBTransactionRepository(settings().table_name)


@lru_cache(maxsize=1)
def dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(DynamoDBNotifier(settings().table_name))


@lru_cache(maxsize=1)
def capacity_ledger() -> CapacityLedger:
    return CapacityLedger(booking_repository(), announcement_repository())


@lru_cache(maxsize=1)
def kyc_gate() -> KycGate:
    return KycGate(
        DynamoDBKycStatusProvider(settings().table_name),
        enabled=settings().kyc_enabled,
    )


@lru_cache(maxsize=1)
def payment_processor() -> PaymentProcessor:
    config = settings()
    if config.payments_mode == PaymentsMode.STRIPE:
        return StripePaymentProcessor(
            api_key_secret_env=config.stripe_api_key_secret_env,
            webhook_secret_env=config.stripe_webhook_secret_env,
        )
    return SimulatedPaymentProcessor()


def create_booking_service() -> CreateBookingService:
    config = settings()
    return CreateBookingService(
        repository=booking_repository(),
        announcement_repository=announcement_repository(),
        capacity_ledger=capacity_ledger(),
        kyc_gate=kyc_gate(),
        factory=BookingFactory(config.pricing_policy),
        dispatcher=dispatcher(),
        settings=config,
        photo_storage=(
            S3PackagePhotoStorage(config.photo_bucket_name)
            if config.photo_bucket_name
            else None
        ),
    )


def accept_booking_service() -> AcceptBookingService:
    return AcceptBookingService(
        repository=booking_repository(),
        announcement_repository=announcement_repository(),
        capacity_ledger=capacity_ledger(),
        dispatcher=dispatcher(),
    )


def refuse_booking_service() -> RefuseBookingService:
    return RefuseBookingService(booking_repository(), dispatcher())


def cancel_booking_service() -> CancelBookingService:
    return CancelBookingService(
        booking_repository(), dispatcher(), processor=payment_processor()
    )


def record_handover_service() -> RecordHandoverService:
    return RecordHandoverService(booking_repository(), dispatcher())


def record_delivery_service() -> RecordDeliveryService:
    return RecordDeliveryService(booking_repository(), dispatcher())


def open_dispute_service() -> OpenDisputeService:
    return OpenDisputeService(booking_repository(), dispatcher())


def create_hold_service() -> CreateHoldService:
    return CreateHoldService(
        repository=booking_repository(),
        processor=payment_processor(),
        kyc_gate=kyc_gate(),
        settings=settings(),
    )


def processor_event_service() -> HandleProcessorEventService:
    return HandleProcessorEventService(
        repository=booking_repository(),
        transaction_repository=transaction_repository(),
        dispatcher=dispatcher(),
        processor=payment_processor(),
    )


def simulate_payment_service() -> SimulatePaymentService:
    return SimulatePaymentService(
        repository=booking_repository(),
        event_service=processor_event_service(),
        settings=settings(),
    )


def release_funds_service() -> ReleaseFundsService:
    return ReleaseFundsService(
        repository=booking_repository(),
        transaction_repository=transaction_repository(),
        processor=payment_processor(),
        payout_accounts=DynamoDBPayoutAccountProvider(settings().table_name),
        dispatcher=dispatcher(),
        settings=settings(),
    )


def confirm_delivery_service() -> ConfirmDeliveryService:
    return ConfirmDeliveryService(booking_repository(), release_funds_service())


def release_sweep_service() -> RunReleaseSweepService:
    return RunReleaseSweepService(
        repository=booking_repository(),
        release_service=release_funds_service(),
        settings=settings(),
    )
