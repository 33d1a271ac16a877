from typing import TypeVar

from .entity import Entity

ID = TypeVar("ID")


class AggregateRoot(Entity[ID]):
    """状態遷移の起点となる集約ルート

    遷移に伴う通知はイベントとして蓄積し、永続化に成功した後で
    flush_domain_events により取り出して配信する。
    """

    def __init__(self, id: ID) -> None:
        super().__init__(id)
        self._pending_events: list = []

    def record_event(self, event: object) -> None:
        self._pending_events.append(event)

    def flush_domain_events(self) -> list:
        events = list(self._pending_events)
        self._pending_events.clear()
        return events
