from .notifier import Notifier as Notifier
