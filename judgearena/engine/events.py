"""
Outbound notification channel.

Engine components publish typed events; the dispatcher fans each one out
to every registered sink on a best-effort basis. A sink that fails is
logged and skipped so one broken observer cannot block the others.
"""

import threading
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, List, Optional

from ..models.models import ContestState
from ..utils.logger_config import get_logger

logger = get_logger("events")


@dataclass(frozen=True)
class Event:
    name: ClassVar[str] = "event"

    def payload(self) -> Optional[Any]:
        return None


@dataclass(frozen=True)
class ContestStateChanged(Event):
    name: ClassVar[str] = "contestStatusUpdate"
    state: ContestState

    def payload(self) -> Optional[Any]:
        return self.state.value


@dataclass(frozen=True)
class DashboardRefresh(Event):
    name: ClassVar[str] = "dashboardUpdate"


@dataclass(frozen=True)
class ProblemListChanged(Event):
    name: ClassVar[str] = "problemListUpdate"


@dataclass(frozen=True)
class FirstBloodAlert(Event):
    name: ClassVar[str] = "newAlert"
    alert_id: int
    problem_id: str
    participant: str
    message: str

    def payload(self) -> Optional[Any]:
        return {"id": self.alert_id, "message": self.message, "type": "firstblood"}


@dataclass(frozen=True)
class ParticipantKicked(Event):
    name: ClassVar[str] = "userKicked"
    participant: str

    def payload(self) -> Optional[Any]:
        return self.participant


@dataclass(frozen=True)
class ForceLogout(Event):
    name: ClassVar[str] = "forceLogout"


EventSink = Callable[[Event], None]


class EventDispatcher:
    def __init__(self):
        self._sinks: List[EventSink] = []
        self._lock = threading.Lock()

    def subscribe(self, sink: EventSink) -> None:
        with self._lock:
            self._sinks.append(sink)

    def unsubscribe(self, sink: EventSink) -> None:
        with self._lock:
            if sink in self._sinks:
                self._sinks.remove(sink)

    def publish(self, event: Event) -> None:
        with self._lock:
            sinks = list(self._sinks)

        logger.debug(f"Publishing {event.name} to {len(sinks)} sink(s)")
        for sink in sinks:
            try:
                sink(event)
            except Exception as e:  # pylint: disable=broad-except
                logger.warning(f"Event sink {sink!r} failed on {event.name}: {e}")
