from enum import Enum


class NotificationType(str, Enum):
    """通知種別"""

    BOOKING_REQUEST = "booking_request"
    BOOKING_ACCEPTED = "booking_accepted"
    BOOKING_REFUSED = "booking_refused"
    BOOKING_CANCELLED = "booking_cancelled"
    PAYMENT_CONFIRMED = "payment_confirmed"
    PAYMENT_FAILED = "payment_failed"
    PAYMENT_REFUNDED = "payment_refunded"
    BOOKING_IN_TRANSIT = "booking_in_transit"
    BOOKING_DELIVERED = "booking_delivered"
    DISPUTE_OPENED = "dispute_opened"
    FUNDS_RELEASED = "funds_released"
    SYSTEM_ALERT = "system_alert"
