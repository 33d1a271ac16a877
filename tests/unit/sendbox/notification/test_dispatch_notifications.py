from sendbox.notification.applications.dispatch_notifications import (
    NotificationDispatcher,
)
from sendbox.notification.domain import Notification, NotificationType, Notifier
from sendbox.shared.domain import UserId


class _FlakyNotifier(Notifier):
    def __init__(self) -> None:
        self.sent = []

    def notify(self, user_id, type, title, body, related_booking_id=None) -> None:
        if type == NotificationType.PAYMENT_FAILED:
            raise ConnectionError("push gateway down")
        self.sent.append(type)


class TestNotificationDispatcher:
    def test_failure_does_not_stop_other_notifications(self):
        notifier = _FlakyNotifier()
        user = UserId(value="sender-1")
        events = [
            Notification(user, NotificationType.PAYMENT_FAILED, "Payment failed", "..."),
            Notification(user, NotificationType.BOOKING_ACCEPTED, "Accepted", "..."),
        ]

        delivered = NotificationDispatcher(notifier).dispatch(events)

        assert delivered == 1
        assert notifier.sent == [NotificationType.BOOKING_ACCEPTED]

    def test_non_notification_events_are_skipped(self):
        notifier = _FlakyNotifier()

        assert NotificationDispatcher(notifier).dispatch([object()]) == 0
        assert notifier.sent == []
