"""A small event model for infused documents.

BeautifulSoup trees carry no listeners, so the runtime keeps them here. Any
object can be an event target; events bubble along ``parent`` links when the
target has them.
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from pyinfuse.runtime.tasks import TaskScheduler

logger = logging.getLogger(__name__)

Listener = Callable[["Event"], Any]


@dataclass(eq=False)
class Event:
    type: str
    detail: Any = None
    bubbles: bool = True
    target: Any = None
    current_target: Any = None
    propagation_stopped: bool = field(default=False, repr=False)

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


class EventDispatcher:
    def __init__(self, scheduler: Optional[TaskScheduler] = None) -> None:
        self.scheduler = scheduler or TaskScheduler()
        # id(target) -> (target, {event type -> listeners})
        self._targets: Dict[int, Tuple[Any, Dict[str, List[Listener]]]] = {}

    def add_event_listener(self, target: Any, event_type: str, listener: Listener) -> None:
        _, listeners = self._targets.setdefault(id(target), (target, {}))
        bucket = listeners.setdefault(event_type, [])
        if listener not in bucket:
            bucket.append(listener)

    def remove_event_listener(
        self, target: Any, event_type: str, listener: Listener
    ) -> None:
        entry = self._targets.get(id(target))
        if entry is None:
            return
        listeners = entry[1]
        bucket = listeners.get(event_type, [])
        listeners[event_type] = [existing for existing in bucket if existing != listener]
        if not listeners[event_type]:
            del listeners[event_type]
        if not listeners:
            del self._targets[id(target)]

    def listener_count(self, target: Any, event_type: Optional[str] = None) -> int:
        entry = self._targets.get(id(target))
        if entry is None:
            return 0
        if event_type is None:
            return sum(len(bucket) for bucket in entry[1].values())
        return len(entry[1].get(event_type, []))

    def dispatch_event(self, target: Any, event: Event) -> Event:
        """Call the listeners of ``target`` and, if the event bubbles, its ancestors."""
        event.target = target
        node = target
        while node is not None and not event.propagation_stopped:
            entry = self._targets.get(id(node))
            if entry is not None:
                event.current_target = node
                for listener in list(entry[1].get(event.type, [])):
                    result = listener(event)
                    if inspect.isawaitable(result):
                        self.scheduler.schedule(result, _ignore)
            if not event.bubbles:
                break
            node = getattr(node, "parent", None)
        event.current_target = None
        return event

    def clear(self) -> None:
        self._targets.clear()


def _ignore(_: Any) -> None:
    pass
