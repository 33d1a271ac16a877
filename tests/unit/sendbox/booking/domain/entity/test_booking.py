from datetime import datetime, timedelta, timezone

import pytest

from sendbox.booking.domain.enum import BookingStatus, ReleaseTrigger
from sendbox.notification.domain import NotificationType
from sendbox.shared.domain import UserId
from sendbox.shared.domain.exception import (
    BusinessRuleViolationException,
    ForbiddenException,
    InvalidStateException,
    ValidationFailedException,
)

T0 = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)
LATER = T0 + timedelta(hours=2)


def _notification_types(booking):
    return [event.type for event in booking.flush_domain_events()]


class TestBookingRequestDecisions:
    def test_traveler_accepts_pending_request(self, create_booking, traveler_id):
        booking = create_booking()

        booking.accept(traveler_id, LATER)

        assert booking.status == BookingStatus.ACCEPTED
        assert booking.timeline.accepted_at == LATER
        assert booking.status_changed_at == LATER
        assert _notification_types(booking) == [NotificationType.BOOKING_ACCEPTED]

    def test_sender_cannot_accept(self, create_booking, sender_id):
        booking = create_booking()

        with pytest.raises(ForbiddenException):
            booking.accept(sender_id, LATER)

    def test_accept_twice_is_rejected(self, create_booking, traveler_id):
        booking = create_booking(status=BookingStatus.ACCEPTED)

        with pytest.raises(InvalidStateException):
            booking.accept(traveler_id, LATER)

    def test_refuse_records_reason(self, create_booking, traveler_id):
        booking = create_booking()

        booking.refuse(traveler_id, "  Bag is full  ", LATER)

        assert booking.status == BookingStatus.REFUSED
        assert booking.reason == "Bag is full"
        assert not booking.holds_capacity

    def test_refuse_requires_meaningful_reason(self, create_booking, traveler_id):
        booking = create_booking()

        with pytest.raises(ValidationFailedException) as exc_info:
            booking.refuse(traveler_id, "no", LATER)

        assert exc_info.value.field == "reason"
        assert booking.status == BookingStatus.PENDING

    @pytest.mark.parametrize(
        "status", [BookingStatus.PENDING, BookingStatus.ACCEPTED]
    )
    def test_sender_cancels_before_payment(self, create_booking, sender_id, status):
        booking = create_booking(status=status)

        booking.cancel(sender_id, None, LATER)

        assert booking.status == BookingStatus.CANCELLED
        assert booking.reason == "Cancelled by sender"
        assert booking.timeline.cancelled_at == LATER

    def test_paid_booking_cannot_be_cancelled(self, create_booking, sender_id):
        booking = create_booking(status=BookingStatus.PAID)

        with pytest.raises(InvalidStateException):
            booking.cancel(sender_id, "Changed my mind", LATER)

    def test_traveler_cannot_cancel(self, create_booking, traveler_id):
        booking = create_booking()

        with pytest.raises(ForbiddenException):
            booking.cancel(traveler_id, None, LATER)


class TestBookingPayment:
    def test_mark_paid_sets_qr_code_once(self, create_booking):
        booking = create_booking(status=BookingStatus.ACCEPTED)

        booking.mark_paid("pi_123", "qr-abc", LATER)

        assert booking.status == BookingStatus.PAID
        assert booking.is_paid
        assert booking.qr_code == "qr-abc"
        assert booking.payment_reference == "pi_123"
        with pytest.raises(InvalidStateException):
            booking.mark_paid("pi_123", "qr-def", LATER)
        assert booking.qr_code == "qr-abc"

    def test_pending_booking_cannot_be_paid(self, create_booking):
        booking = create_booking()

        with pytest.raises(InvalidStateException):
            booking.mark_paid("pi_123", "qr-abc", LATER)

    def test_payment_failure_keeps_status(self, create_booking, sender_id):
        booking = create_booking(status=BookingStatus.ACCEPTED)

        booking.record_payment_failure("Card declined")

        assert booking.status == BookingStatus.ACCEPTED
        events = booking.flush_domain_events()
        assert events[0].user_id == sender_id
        assert events[0].type == NotificationType.PAYMENT_FAILED

    def test_late_payment_refund_notice_keeps_status(self, create_booking, sender_id):
        booking = create_booking(status=BookingStatus.CANCELLED)

        booking.notify_late_payment_refund()

        assert booking.status == BookingStatus.CANCELLED
        assert not booking.is_paid
        events = booking.flush_domain_events()
        assert events[0].user_id == sender_id
        assert events[0].type == NotificationType.PAYMENT_REFUNDED

    @pytest.mark.parametrize(
        "status",
        [
            BookingStatus.ACCEPTED,
            BookingStatus.PAID,
            BookingStatus.IN_TRANSIT,
            BookingStatus.DELIVERED,
        ],
    )
    def test_refund_cancels_booking(self, create_booking, status):
        booking = create_booking(status=status)

        booking.refund(LATER)

        assert booking.status == BookingStatus.CANCELLED
        assert booking.reason == "Payment refunded"

    def test_released_booking_cannot_be_refunded(self, create_booking):
        booking = create_booking(status=BookingStatus.AUTO_RELEASED, released=True)

        with pytest.raises(InvalidStateException):
            booking.refund(LATER)


class TestBookingCustody:
    def test_handover_with_valid_qr_code(self, create_booking, traveler_id):
        booking = create_booking(status=BookingStatus.PAID)

        booking.mark_in_transit(traveler_id, "qr-secret", LATER)

        assert booking.status == BookingStatus.IN_TRANSIT
        assert booking.timeline.in_transit_at == LATER

    def test_handover_with_wrong_qr_code(self, create_booking, traveler_id):
        booking = create_booking(status=BookingStatus.PAID)

        with pytest.raises(ValidationFailedException, match="Invalid QR code"):
            booking.mark_in_transit(traveler_id, "forged", LATER)
        assert booking.status == BookingStatus.PAID

    def test_handover_before_payment(self, create_booking, traveler_id):
        booking = create_booking(status=BookingStatus.ACCEPTED)

        with pytest.raises(InvalidStateException):
            booking.mark_in_transit(traveler_id, "qr-secret", LATER)

    def test_delivery_releases_capacity(self, create_booking, traveler_id):
        booking = create_booking(status=BookingStatus.IN_TRANSIT)

        booking.mark_delivered(traveler_id, "qr-secret", LATER)

        assert booking.status == BookingStatus.DELIVERED
        assert booking.timeline.delivered_at == LATER
        assert not booking.holds_capacity

    def test_only_traveler_scans(self, create_booking, sender_id):
        booking = create_booking(status=BookingStatus.IN_TRANSIT)

        with pytest.raises(ForbiddenException):
            booking.mark_delivered(sender_id, "qr-secret", LATER)

    def test_outsider_cannot_scan(self, create_booking):
        booking = create_booking(status=BookingStatus.IN_TRANSIT)

        with pytest.raises(ForbiddenException):
            booking.mark_delivered(UserId(value="someone-else"), "qr-secret", LATER)


class TestBookingRelease:
    def test_dispute_blocks_release(self, create_booking, sender_id):
        booking = create_booking(status=BookingStatus.DELIVERED)

        booking.open_dispute(sender_id, "Package arrived damaged", LATER)

        assert booking.has_open_dispute
        with pytest.raises(BusinessRuleViolationException):
            booking.claim_release(ReleaseTrigger.AUTO_RELEASE, LATER)

    def test_dispute_only_after_delivery(self, create_booking, sender_id):
        booking = create_booking(status=BookingStatus.IN_TRANSIT)

        with pytest.raises(InvalidStateException):
            booking.open_dispute(sender_id, "Package arrived damaged", LATER)

    def test_second_dispute_is_rejected(self, create_booking, sender_id):
        booking = create_booking(status=BookingStatus.DELIVERED, dispute_opened=True)

        with pytest.raises(InvalidStateException):
            booking.open_dispute(sender_id, "Still damaged", LATER)

    @pytest.mark.parametrize(
        "trigger, status",
        [
            (ReleaseTrigger.CONFIRMATION, BookingStatus.DELIVERY_CONFIRMED),
            (ReleaseTrigger.AUTO_RELEASE, BookingStatus.AUTO_RELEASED),
        ],
    )
    def test_claim_release(self, create_booking, trigger, status):
        booking = create_booking(status=BookingStatus.DELIVERED)

        booking.claim_release(trigger, LATER)

        assert booking.status == status
        assert booking.is_release_claimed
        assert not booking.is_released
        assert booking.timeline.release_claimed_at == LATER

    def test_revert_release_claim_restores_delivered(self, create_booking):
        booking = create_booking(status=BookingStatus.DELIVERED)
        booking.claim_release(ReleaseTrigger.AUTO_RELEASE, LATER)

        booking.revert_release_claim()

        assert booking.status == BookingStatus.DELIVERED
        assert booking.status_changed_at == T0
        assert booking.timeline.auto_released_at is None
        assert booking.timeline.release_claimed_at is None

    def test_mark_released_only_once(self, create_booking, traveler_id):
        booking = create_booking(status=BookingStatus.DELIVERY_CONFIRMED)

        booking.mark_released("tr_1", LATER)

        assert booking.is_released
        assert booking.payout_reference == "tr_1"
        assert _notification_types(booking) == [NotificationType.FUNDS_RELEASED]
        with pytest.raises(InvalidStateException):
            booking.mark_released("tr_2", LATER)

    def test_stale_claim_detection(self, create_booking):
        booking = create_booking(status=BookingStatus.AUTO_RELEASED)

        assert booking.is_release_claim_stale(T0 + timedelta(minutes=1))
        assert not booking.is_release_claim_stale(T0 - timedelta(minutes=1))

        booking.renew_release_claim(LATER)

        assert booking.timeline.release_claimed_at == LATER
        assert not booking.is_release_claim_stale(T0 + timedelta(minutes=1))
