from decimal import Decimal

from aws_lambda_powertools import Logger

from sendbox.booking.applications.booking_transition import Clock, utc_now
from sendbox.booking.domain.entity import Booking
from sendbox.booking.domain.enum import BookingStatus
from sendbox.booking.domain.factory import BookingDetails, BookingFactory
from sendbox.booking.domain.gateway import PackagePhoto, PackagePhotoStorage
from sendbox.booking.domain.repository import (
    AnnouncementRepository,
    BookingRepository,
)
from sendbox.booking.domain.service import CapacityLedger, KycGate
from sendbox.booking.domain.value_object import AnnouncementId
from sendbox.notification.applications.dispatch_notifications import (
    NotificationDispatcher,
)
from sendbox.shared.config import EngineSettings
from sendbox.shared.domain import UserId
from sendbox.shared.domain.exception import (
    BusinessRuleViolationException,
    CapacityExceededException,
    LimitExceededException,
    OptimisticLockException,
    ResourceNotFoundException,
    ValidationFailedException,
)

logger = Logger(child=True)

MAX_CAPACITY_ATTEMPTS = 3
MAX_PHOTOS = 5


class CreateBookingService:
    """予約リクエスト作成ユースケース"""

    def __init__(
        self,
        repository: BookingRepository,
        announcement_repository: AnnouncementRepository,
        capacity_ledger: CapacityLedger,
        kyc_gate: KycGate,
        factory: BookingFactory,
        dispatcher: NotificationDispatcher,
        settings: EngineSettings,
        photo_storage: PackagePhotoStorage | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._repository = repository
        self._announcement_repository = announcement_repository
        self._capacity_ledger = capacity_ledger
        self._kyc_gate = kyc_gate
        self._factory = factory
        self._dispatcher = dispatcher
        self._settings = settings
        self._photo_storage = photo_storage
        self._clock = clock or utc_now

    def create(
        self,
        sender_id: UserId,
        announcement_id: AnnouncementId,
        booking_details: BookingDetails,
        photos: list[PackagePhoto] | None = None,
    ) -> Booking:
        """予約を pending で作成する

        積載量の確認と保存の間に別の予約が入った場合は、最新の状態を読み直して
        再評価する（最大 MAX_CAPACITY_ATTEMPTS 回）。
        """
        photos = photos or []
        self._validate(booking_details, photos)
        self._kyc_gate.ensure_approved(sender_id)

        pending = self._repository.count_pending_by_sender(sender_id)
        if pending >= self._settings.max_pending_bookings:
            raise LimitExceededException(
                f"You already have {pending} pending requests. "
                "Wait for a response before sending more."
            )

        booking = self._reserve(sender_id, announcement_id, booking_details)
        logger.info(
            "Booking created",
            extra={
                "booking_id": str(booking.id),
                "announcement_id": str(announcement_id),
                "weight_kg": str(booking.weight_kg),
            },
        )

        if photos:
            self._attach_photos(booking, photos)

        self._dispatcher.dispatch(booking.flush_domain_events())
        return booking

    def _reserve(
        self,
        sender_id: UserId,
        announcement_id: AnnouncementId,
        booking_details: BookingDetails,
    ) -> Booking:
        for attempt in range(1, MAX_CAPACITY_ATTEMPTS + 1):
            announcement = self._announcement_repository.find_by_id(announcement_id)
            if announcement is None:
                raise ResourceNotFoundException("Announcement not found")
            announcement.ensure_active()
            if announcement.traveler_id == sender_id:
                raise BusinessRuleViolationException(
                    "You cannot book your own announcement"
                )
            self._capacity_ledger.ensure_available(
                announcement, booking_details["weight_kg"]
            )

            booking = self._factory.create(
                sender_id, announcement, booking_details, self._clock()
            )
            self._ensure_beta_limit(booking)
            try:
                self._repository.save(
                    booking, expected_capacity_version=announcement.capacity_version
                )
                return booking
            except OptimisticLockException:
                logger.info(
                    "Announcement capacity changed concurrently, retrying",
                    extra={"announcement_id": str(announcement_id), "attempt": attempt},
                )
        raise CapacityExceededException(
            "The announcement is in high demand, please try again"
        )

    def _attach_photos(self, booking: Booking, photos: list[PackagePhoto]) -> None:
        assert self._photo_storage is not None
        try:
            urls = [
                self._photo_storage.upload(booking.id, index, photo)
                for index, photo in enumerate(photos)
            ]
        except Exception as e:
            logger.exception(
                "Photo upload failed, rolling back booking",
                extra={"booking_id": str(booking.id)},
            )
            self._repository.delete(booking.id)
            raise ValidationFailedException(
                "Photo upload failed, please try again", field="photos"
            ) from e
        booking.attach_photos(urls)
        self._repository.update(booking, expected_status=BookingStatus.PENDING)

    def _ensure_beta_limit(self, booking: Booking) -> None:
        if not self._settings.beta_mode:
            return
        limit = self._settings.max_booking_amount
        if booking.amounts.total_amount > limit:
            raise LimitExceededException(
                f"During the beta, bookings are limited to {limit} {booking.currency}"
            )

    def _validate(
        self, booking_details: BookingDetails, photos: list[PackagePhoto]
    ) -> None:
        if photos and self._photo_storage is None:
            raise ValidationFailedException("Photo upload is not available", field="photos")
        if booking_details["weight_kg"] <= Decimal("0"):
            raise ValidationFailedException("Weight must be positive", field="weight_kg")
        if booking_details["declared_value"] < Decimal("0"):
            raise ValidationFailedException(
                "Declared value cannot be negative", field="declared_value"
            )
        if len(photos) > MAX_PHOTOS:
            raise ValidationFailedException(
                f"At most {MAX_PHOTOS} photos are allowed", field="photos"
            )
