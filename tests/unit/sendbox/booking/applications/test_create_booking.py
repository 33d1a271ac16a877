import threading
from dataclasses import replace
from decimal import Decimal

import pytest

from sendbox.booking.applications.create_booking import CreateBookingService
from sendbox.booking.domain.entity import Announcement
from sendbox.booking.domain.enum import AnnouncementStatus, BookingStatus, KycStatus
from sendbox.booking.domain.factory import BookingDetails, BookingFactory
from sendbox.booking.domain.gateway import PackagePhoto, PackagePhotoStorage
from sendbox.booking.domain.value_object import AnnouncementId, KycVerification
from sendbox.notification.domain import NotificationType
from sendbox.shared.domain import Currency, UserId
from sendbox.shared.domain.exception import (
    BusinessRuleViolationException,
    CapacityExceededException,
    KycRequiredException,
    LimitExceededException,
    ResourceNotFoundException,
    ValidationFailedException,
)


class RecordingPhotoStorage(PackagePhotoStorage):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.uploaded: list[tuple[str, int]] = []

    def upload(self, booking_id, index, photo):
        if self.fail:
            raise RuntimeError("S3 unavailable")
        self.uploaded.append((str(booking_id), index))
        return f"s3://photos/bookings/{booking_id}/package_{index}.jpg"


def _details(weight_kg: str = "5", **overrides) -> BookingDetails:
    details: BookingDetails = {
        "weight_kg": Decimal(weight_kg),
        "declared_value": Decimal("100"),
        "insurance_opted": False,
        "package_description": "Two paperback books",
    }
    details.update(overrides)
    return details


class TestCreateBookingService:
    @pytest.fixture
    def create_service(
        self,
        booking_repository,
        announcement_repository,
        capacity_ledger,
        kyc_gate,
        dispatcher,
        settings,
        clock,
    ):
        def _factory(settings=settings, photo_storage=None) -> CreateBookingService:
            return CreateBookingService(
                repository=booking_repository,
                announcement_repository=announcement_repository,
                capacity_ledger=capacity_ledger,
                kyc_gate=kyc_gate,
                factory=BookingFactory(),
                dispatcher=dispatcher,
                settings=settings,
                photo_storage=photo_storage,
                clock=clock,
            )

        return _factory

    def test_create_pending_booking_with_amounts(
        self,
        create_service,
        create_announcement,
        booking_repository,
        notifier,
        sender_id,
        traveler_id,
    ):
        announcement = create_announcement()

        booking = create_service().create(sender_id, announcement.id, _details())

        assert booking.status == BookingStatus.PENDING
        assert booking.traveler_id == traveler_id
        assert booking.amounts.total_amount == Decimal("56")
        assert booking_repository.find_by_id(booking.id) is not None
        assert booking_repository.reserved_weight(announcement.id) == Decimal("5")
        assert notifier.types_for(traveler_id) == [NotificationType.BOOKING_REQUEST]

    def test_capacity_is_enforced(
        self, create_service, create_announcement, sender_id
    ):
        announcement = create_announcement(max_weight_kg=Decimal("10"))
        service = create_service()
        service.create(sender_id, announcement.id, _details("6"))

        with pytest.raises(CapacityExceededException):
            service.create(UserId(value="sender-2"), announcement.id, _details("6"))

    def test_concurrent_requests_never_oversell(
        self, create_service, create_announcement, booking_repository
    ):
        announcement = create_announcement(max_weight_kg=Decimal("10"))
        service = create_service()
        barrier = threading.Barrier(2)
        created, rejected = [], []

        def _book(sender: str) -> None:
            barrier.wait()
            try:
                created.append(
                    service.create(UserId(value=sender), announcement.id, _details("6"))
                )
            except CapacityExceededException as e:
                rejected.append(e)

        threads = [
            threading.Thread(target=_book, args=(f"sender-{i}",)) for i in range(2)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(created) == 1
        assert len(rejected) == 1
        assert booking_repository.reserved_weight(announcement.id) == Decimal("6")

    def test_booking_takes_announcement_currency(
        self, create_service, announcement_repository, sender_id
    ):
        announcement = Announcement(
            id=AnnouncementId(value="announcement-gbp"),
            traveler_id=UserId(value="traveler-1"),
            max_weight_kg=Decimal("10"),
            price_per_kg=Decimal("10"),
            currency=Currency("GBP"),
            status=AnnouncementStatus.ACTIVE,
        )
        announcement_repository.save(announcement)

        booking = create_service().create(sender_id, announcement.id, _details())

        assert booking.currency == Currency("GBP")

    def test_cannot_book_own_announcement(
        self, create_service, create_announcement, traveler_id
    ):
        announcement = create_announcement()

        with pytest.raises(BusinessRuleViolationException, match="own announcement"):
            create_service().create(traveler_id, announcement.id, _details())

    def test_inactive_announcement(self, create_service, create_announcement, sender_id):
        announcement = create_announcement(status=AnnouncementStatus.COMPLETED)

        with pytest.raises(BusinessRuleViolationException, match="no longer active"):
            create_service().create(sender_id, announcement.id, _details())

    def test_unknown_announcement(self, create_service, sender_id):
        with pytest.raises(ResourceNotFoundException):
            create_service().create(
                sender_id, AnnouncementId(value="missing"), _details()
            )

    @pytest.mark.parametrize(
        "details, field",
        [
            (_details("0"), "weight_kg"),
            (_details(declared_value=Decimal("-1")), "declared_value"),
        ],
    )
    def test_invalid_input(
        self, create_service, create_announcement, sender_id, details, field
    ):
        announcement = create_announcement()

        with pytest.raises(ValidationFailedException) as exc_info:
            create_service().create(sender_id, announcement.id, details)

        assert exc_info.value.field == field

    def test_kyc_not_approved(
        self, create_service, create_announcement, kyc_provider, sender_id
    ):
        announcement = create_announcement()
        kyc_provider.verifications[str(sender_id)] = KycVerification(
            status=KycStatus.PENDING
        )

        with pytest.raises(KycRequiredException):
            create_service().create(sender_id, announcement.id, _details())

    def test_pending_request_limit(
        self, create_service, create_announcement, settings, sender_id
    ):
        announcement = create_announcement(max_weight_kg=Decimal("30"))
        service = create_service(settings=replace(settings, max_pending_bookings=2))
        service.create(sender_id, announcement.id, _details("1"))
        service.create(sender_id, announcement.id, _details("1"))

        with pytest.raises(LimitExceededException):
            service.create(sender_id, announcement.id, _details("1"))

    def test_beta_amount_limit(
        self, create_service, create_announcement, settings, sender_id
    ):
        announcement = create_announcement(
            max_weight_kg=Decimal("30"), price_per_kg=Decimal("100")
        )
        service = create_service(
            settings=replace(settings, beta_mode=True, max_booking_amount=Decimal("500"))
        )

        with pytest.raises(LimitExceededException, match="beta"):
            service.create(sender_id, announcement.id, _details("5"))

    def test_photos_are_uploaded_and_attached(
        self, create_service, create_announcement, booking_repository, sender_id
    ):
        announcement = create_announcement()
        storage = RecordingPhotoStorage()
        photos = [PackagePhoto(content=b"front"), PackagePhoto(content=b"back")]

        booking = create_service(photo_storage=storage).create(
            sender_id, announcement.id, _details(), photos
        )

        assert len(booking.package_photos) == 2
        stored = booking_repository.find_by_id(booking.id)
        assert stored.package_photos == booking.package_photos

    def test_failed_upload_rolls_back_booking(
        self, create_service, create_announcement, booking_repository, sender_id
    ):
        announcement = create_announcement()
        service = create_service(photo_storage=RecordingPhotoStorage(fail=True))

        with pytest.raises(ValidationFailedException) as exc_info:
            service.create(
                sender_id, announcement.id, _details(), [PackagePhoto(content=b"x")]
            )

        assert exc_info.value.field == "photos"
        assert booking_repository.reserved_weight(announcement.id) == Decimal("0")

    def test_too_many_photos(self, create_service, create_announcement, sender_id):
        announcement = create_announcement()
        photos = [PackagePhoto(content=b"x")] * 6

        with pytest.raises(ValidationFailedException):
            create_service(photo_storage=RecordingPhotoStorage()).create(
                sender_id, announcement.id, _details(), photos
            )

    def test_photos_without_storage_leave_no_booking(
        self, create_service, create_announcement, booking_repository, sender_id
    ):
        announcement = create_announcement()

        with pytest.raises(ValidationFailedException) as exc_info:
            create_service().create(
                sender_id, announcement.id, _details(), [PackagePhoto(content=b"x")]
            )

        assert exc_info.value.field == "photos"
        assert booking_repository.count_pending_by_sender(sender_id) == 0
        assert booking_repository.reserved_weight(announcement.id) == Decimal("0")
