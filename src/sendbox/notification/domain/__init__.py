from .enum import NotificationType as NotificationType
from .gateway import Notifier as Notifier
from .value_object import Notification as Notification
