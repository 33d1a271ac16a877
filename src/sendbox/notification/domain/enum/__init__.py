from .notification_type import NotificationType as NotificationType
