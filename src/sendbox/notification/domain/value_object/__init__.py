from .notification import Notification as Notification
