import copy
import os
import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-3")
os.environ.setdefault("TABLE_NAME", "sendbox-test")
os.environ.setdefault("PAYMENTS_MODE", "simulation")

from sendbox.booking.domain.entity import Announcement, Booking  # noqa: E402
from sendbox.booking.domain.enum import (  # noqa: E402
    AnnouncementStatus,
    BookingStatus,
    KycStatus,
)
from sendbox.booking.domain.gateway import KycStatusProvider  # noqa: E402
from sendbox.booking.domain.repository import (  # noqa: E402
    AnnouncementRepository,
    BookingRepository,
)
from sendbox.booking.domain.service import (  # noqa: E402
    CapacityLedger,
    KycGate,
    compute_amounts,
)
from sendbox.booking.domain.value_object import (  # noqa: E402
    AnnouncementId,
    BookingId,
    BookingTimeline,
    KycVerification,
)
from sendbox.notification.applications.dispatch_notifications import (  # noqa: E402
    NotificationDispatcher,
)
from sendbox.notification.domain import Notifier  # noqa: E402
from sendbox.payment.domain.entity import Transaction  # noqa: E402
from sendbox.payment.domain.gateway import PaymentProcessor  # noqa: E402
from sendbox.payment.domain.repository import TransactionRepository  # noqa: E402
from sendbox.payment.domain.value_object import Hold, TransferReceipt  # noqa: E402
from sendbox.settlement.domain import (  # noqa: E402
    PayoutAccount,
    PayoutAccountProvider,
)
from sendbox.shared.config import EngineSettings  # noqa: E402
from sendbox.shared.domain import Currency, UserId  # noqa: E402
from sendbox.shared.domain.exception import (  # noqa: E402
    DuplicateResourceException,
    OptimisticLockException,
    ProcessorException,
)

T0 = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)

_PROGRESSION = [
    BookingStatus.PENDING,
    BookingStatus.ACCEPTED,
    BookingStatus.PAID,
    BookingStatus.IN_TRANSIT,
    BookingStatus.DELIVERED,
]


# --- インメモリ実装 ---


class InMemoryAnnouncementRepository(AnnouncementRepository):
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._items: dict[str, Announcement] = {}

    def save(self, announcement: Announcement) -> None:
        with self._lock:
            self._items[str(announcement.id)] = copy.deepcopy(announcement)

    def find_by_id(self, id: AnnouncementId) -> Announcement | None:
        with self._lock:
            item = self._items.get(str(id))
            return copy.deepcopy(item) if item else None

    def bump_capacity_version(self, id: AnnouncementId, expected: int) -> None:
        with self._lock:
            current = self._items.get(str(id))
            if current is None or current.capacity_version != expected:
                raise OptimisticLockException(f"Announcement capacity changed: {id}")
            self._items[str(id)] = Announcement(
                id=current.id,
                traveler_id=current.traveler_id,
                max_weight_kg=current.max_weight_kg,
                price_per_kg=current.price_per_kg,
                currency=current.currency,
                status=current.status,
                capacity_version=expected + 1,
            )


class InMemoryBookingRepository(BookingRepository):
    """DynamoDB 実装と同じ条件（ステータス・バージョン・未送金）で書き込む"""

    def __init__(self, announcements: InMemoryAnnouncementRepository) -> None:
        self.lock = threading.RLock()
        self._announcements = announcements
        self._items: dict[str, Booking] = {}

    def save(
        self, booking: Booking, expected_capacity_version: int | None = None
    ) -> None:
        with self.lock:
            if str(booking.id) in self._items:
                raise DuplicateResourceException(f"Booking already exists: {booking.id}")
            if expected_capacity_version is not None:
                self._announcements.bump_capacity_version(
                    booking.announcement_id, expected_capacity_version
                )
            self._items[str(booking.id)] = self._snapshot(booking)

    def update(self, booking: Booking, expected_status: BookingStatus) -> None:
        with self.lock:
            self.ensure_writable(booking, expected_status)
            booking.advance_version()
            self._items[str(booking.id)] = self._snapshot(booking)

    def ensure_writable(self, booking: Booking, expected_status: BookingStatus) -> None:
        current = self._items.get(str(booking.id))
        if (
            current is None
            or current.status != expected_status
            or current.version != booking.version
            or current.is_released
        ):
            raise OptimisticLockException(f"Booking status conflict: {booking.id}")

    def delete(self, booking_id: BookingId) -> None:
        with self.lock:
            self._items.pop(str(booking_id), None)

    def find_by_id(self, id: BookingId) -> Booking | None:
        with self.lock:
            item = self._items.get(str(id))
            return self._snapshot(item) if item else None

    def find_by_payment_reference(self, reference: str) -> Booking | None:
        with self.lock:
            for item in self._items.values():
                if item.payment_reference == reference:
                    return self._snapshot(item)
        return None

    def reserved_weight(
        self,
        announcement_id: AnnouncementId,
        exclude: BookingId | None = None,
    ) -> Decimal:
        with self.lock:
            return sum(
                (
                    b.weight_kg
                    for b in self._items.values()
                    if b.announcement_id == announcement_id
                    and b.holds_capacity
                    and b.id != exclude
                ),
                Decimal("0"),
            )

    def count_pending_by_sender(self, sender_id: UserId) -> int:
        with self.lock:
            return sum(
                1
                for b in self._items.values()
                if b.sender_id == sender_id and b.status == BookingStatus.PENDING
            )

    def list_delivered_before(self, cutoff: datetime) -> list[Booking]:
        with self.lock:
            return [
                self._snapshot(b)
                for b in self._items.values()
                if b.status == BookingStatus.DELIVERED
                and b.status_changed_at <= cutoff
                and not b.has_open_dispute
            ]

    def list_stale_release_claims(self, claimed_before: datetime) -> list[Booking]:
        with self.lock:
            return [
                self._snapshot(b)
                for b in self._items.values()
                if b.is_release_claim_stale(claimed_before)
            ]

    @staticmethod
    def _snapshot(booking: Booking) -> Booking:
        snapshot = copy.deepcopy(booking)
        snapshot.flush_domain_events()
        return snapshot


class InMemoryTransactionRepository(TransactionRepository):
    def __init__(self, bookings: InMemoryBookingRepository) -> None:
        self._bookings = bookings
        self._entries: dict[tuple[str, str], Transaction] = {}

    def append(self, transaction: Transaction) -> None:
        with self._bookings.lock:
            key = (str(transaction.booking_id), str(transaction.id))
            if key in self._entries:
                raise DuplicateResourceException(
                    f"Transaction already exists: {transaction.id}"
                )
            self._entries[key] = transaction

    def list_by_booking(self, booking_id: BookingId) -> list[Transaction]:
        with self._bookings.lock:
            entries = [
                t for (b, _), t in self._entries.items() if b == str(booking_id)
            ]
        return sorted(entries, key=lambda t: t.created_at)

    def record_capture(
        self,
        booking: Booking,
        transaction: Transaction,
        expected_status: BookingStatus,
    ) -> None:
        with self._bookings.lock:
            current = self._bookings.find_by_id(booking.id)
            if current is not None and current.is_paid:
                raise OptimisticLockException(f"Booking already paid: {booking.id}")
            self._write_with_entry(booking, transaction, expected_status)

    def record_refund(
        self,
        booking: Booking,
        transaction: Transaction,
        expected_status: BookingStatus,
    ) -> None:
        with self._bookings.lock:
            self._write_with_entry(booking, transaction, expected_status)

    def _write_with_entry(
        self,
        booking: Booking,
        transaction: Transaction,
        expected_status: BookingStatus,
    ) -> None:
        self._bookings.ensure_writable(booking, expected_status)
        if (str(transaction.booking_id), str(transaction.id)) in self._entries:
            raise DuplicateResourceException(
                f"Transaction already exists: {transaction.id}"
            )
        self._bookings.update(booking, expected_status)
        self.append(transaction)


class RecordingNotifier(Notifier):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.sent: list[dict] = []

    def notify(self, user_id, type, title, body, related_booking_id=None) -> None:
        with self._lock:
            self.sent.append(
                {
                    "user_id": user_id,
                    "type": type,
                    "title": title,
                    "related_booking_id": related_booking_id,
                }
            )

    def types_for(self, user_id: UserId) -> list:
        return [n["type"] for n in self.sent if n["user_id"] == user_id]


class StaticKycStatusProvider(KycStatusProvider):
    def __init__(self, default: KycVerification | None = None) -> None:
        self.default = default
        self.verifications: dict[str, KycVerification | None] = {}

    def get_verification(self, user_id: UserId) -> KycVerification | None:
        return self.verifications.get(str(user_id), self.default)


class StaticPayoutAccountProvider(PayoutAccountProvider):
    def __init__(self) -> None:
        self.accounts: dict[str, PayoutAccount] = {}

    def get_payout_account(self, user_id: UserId) -> PayoutAccount | None:
        return self.accounts.get(str(user_id))


class FakePaymentProcessor(PaymentProcessor):
    """送金と返金の呼び出しを記録するプロセッサ（失敗させる予約を指定できる）"""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.transfers: list[dict] = []
        self.holds: dict[str, Hold] = {}
        self.failing_bookings: set[str] = set()
        self.refunds: list[dict] = []
        self.cancelled_holds: list[str] = []
        self.uncancellable_holds: set[str] = set()

    def create_hold(self, amount_minor, currency, metadata, idempotency_key) -> Hold:
        hold = Hold(
            reference=f"pi_{metadata['booking_id']}",
            client_token=f"pi_{metadata['booking_id']}_secret",
            status="requires_payment_method",
            amount_minor=amount_minor,
        )
        self.holds[hold.reference] = hold
        return hold

    def retrieve_hold(self, reference: str) -> Hold:
        return self.holds[reference]

    def transfer(
        self, amount_minor, currency, destination, idempotency_key, metadata
    ) -> TransferReceipt:
        if metadata["booking_id"] in self.failing_bookings:
            raise ProcessorException("Insufficient platform balance")
        with self._lock:
            self.transfers.append(
                {
                    "amount_minor": amount_minor,
                    "currency": currency,
                    "destination": destination,
                    "idempotency_key": idempotency_key,
                }
            )
        return TransferReceipt(transfer_id=f"tr_{metadata['booking_id']}")

    def cancel_hold(self, reference: str) -> None:
        if reference in self.uncancellable_holds:
            raise ProcessorException("PaymentIntent already succeeded")
        self.cancelled_holds.append(reference)

    def refund(self, reference: str, idempotency_key: str) -> str:
        with self._lock:
            self.refunds.append(
                {"reference": reference, "idempotency_key": idempotency_key}
            )
        return f"re_{reference}"

    def parse_event(self, payload: str, signature: str):
        return None


class FixedClock:
    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


# --- フィクスチャ ---


@pytest.fixture
def sender_id():
    return UserId(value="sender-1")


@pytest.fixture
def traveler_id():
    return UserId(value="traveler-1")


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def settings():
    return EngineSettings(table_name="sendbox-test")


@pytest.fixture
def announcement_repository():
    return InMemoryAnnouncementRepository()


@pytest.fixture
def booking_repository(announcement_repository):
    return InMemoryBookingRepository(announcement_repository)


@pytest.fixture
def transaction_repository(booking_repository):
    return InMemoryTransactionRepository(booking_repository)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def dispatcher(notifier):
    return NotificationDispatcher(notifier)


@pytest.fixture
def kyc_provider():
    return StaticKycStatusProvider(KycVerification(status=KycStatus.APPROVED))


@pytest.fixture
def kyc_gate(kyc_provider):
    return KycGate(kyc_provider)


@pytest.fixture
def capacity_ledger(booking_repository, announcement_repository):
    return CapacityLedger(booking_repository, announcement_repository)


@pytest.fixture
def payment_processor():
    return FakePaymentProcessor()


@pytest.fixture
def payout_accounts(traveler_id):
    provider = StaticPayoutAccountProvider()
    provider.accounts[str(traveler_id)] = PayoutAccount(
        account_id="acct_traveler", payouts_enabled=True
    )
    return provider


@pytest.fixture
def create_announcement(announcement_repository):
    """Announcement を生成して保存する Factory fixture"""

    def _factory(
        announcement_id: str = "announcement-1",
        traveler_id: str = "traveler-1",
        max_weight_kg: Decimal = Decimal("10"),
        price_per_kg: Decimal = Decimal("10"),
        status: AnnouncementStatus = AnnouncementStatus.ACTIVE,
    ) -> Announcement:
        announcement = Announcement(
            id=AnnouncementId(value=announcement_id),
            traveler_id=UserId(value=traveler_id),
            max_weight_kg=max_weight_kg,
            price_per_kg=price_per_kg,
            currency=Currency.eur(),
            status=status,
        )
        announcement_repository.save(announcement)
        return announcement

    return _factory


@pytest.fixture
def create_booking():
    """指定ステータスまで進んだ Booking を生成する Factory fixture"""

    def _factory(
        status: BookingStatus = BookingStatus.PENDING,
        booking_id: str = "booking-1",
        announcement_id: str = "announcement-1",
        sender_id: str = "sender-1",
        traveler_id: str = "traveler-1",
        weight_kg: Decimal = Decimal("5"),
        price_per_kg: Decimal = Decimal("10"),
        declared_value: Decimal = Decimal("100"),
        insurance_opted: bool = False,
        at: datetime = T0,
        qr_code: str = "qr-secret",
        dispute_opened: bool = False,
        released: bool = False,
    ) -> Booking:
        timeline = BookingTimeline(created_at=at)
        reached = (
            _PROGRESSION
            if status in BookingStatus.released()
            else _PROGRESSION[: _PROGRESSION.index(status) + 1]
            if status in _PROGRESSION
            else [BookingStatus.PENDING]
        )
        if BookingStatus.ACCEPTED in reached:
            timeline.accepted_at = at
        if BookingStatus.PAID in reached:
            timeline.paid_at = at
        if BookingStatus.IN_TRANSIT in reached:
            timeline.in_transit_at = at
        if BookingStatus.DELIVERED in reached:
            timeline.delivered_at = at
        if status == BookingStatus.REFUSED:
            timeline.refused_at = at
        if status == BookingStatus.CANCELLED:
            timeline.cancelled_at = at
        if status == BookingStatus.DELIVERY_CONFIRMED:
            timeline.delivery_confirmed_at = at
        if status == BookingStatus.AUTO_RELEASED:
            timeline.auto_released_at = at
        if status in BookingStatus.released():
            timeline.release_claimed_at = at
            if released:
                timeline.released_at = at
        if dispute_opened:
            timeline.dispute_opened_at = at

        is_paid = timeline.paid_at is not None
        return Booking(
            id=BookingId(value=booking_id),
            announcement_id=AnnouncementId(value=announcement_id),
            sender_id=UserId(value=sender_id),
            traveler_id=UserId(value=traveler_id),
            weight_kg=weight_kg,
            price_per_kg=price_per_kg,
            declared_value=declared_value,
            insurance_opted=insurance_opted,
            package_description="Two paperback books",
            amounts=compute_amounts(
                weight_kg, price_per_kg, declared_value, insurance_opted
            ),
            currency=Currency.eur(),
            timeline=timeline,
            status=status,
            status_changed_at=at,
            payment_reference=f"pi_{booking_id}" if is_paid else None,
            qr_code=qr_code if is_paid else None,
            dispute_reason="Package damaged" if dispute_opened else None,
        )

    return _factory
