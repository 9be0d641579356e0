"""Declarative re-infusion triggers.

A watch spec maps event specs to the parts to re-infuse::

    "change"                                  # all parts on "change"
    "click button.add; input"                 # delegated click, plus input
    [("change", "class"), ("input", [0, 2])]  # pairs of (events, parts)
    {"change": ".value", "reset": "*"}        # same, as a mapping

An event spec is ``eventType[ selector][; eventType2[ selector2]]``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from pyinfuse.core import dom
from pyinfuse.runtime.cleanup import CleanupRegistry
from pyinfuse.runtime.events import Event, EventDispatcher

logger = logging.getLogger(__name__)

ALL_PARTS = "*"

Reinfuse = Callable[[Any, Any, Optional[Event]], None]


@dataclass(frozen=True, eq=False)
class WatchOptions:
    selector: Optional[str] = None
    parts: Any = ALL_PARTS


class WatchEntry:
    """Watchers of one event type on one target; owns exactly one listener."""

    def __init__(self, target: Any, event_type: str, reinfuse: Reinfuse) -> None:
        self.target = target
        self.event_type = event_type
        self._reinfuse = reinfuse
        # id(watcher) -> (watcher, options)
        self.watchers: Dict[int, Tuple[Any, List[WatchOptions]]] = {}

    def add_watcher(self, watcher: Any, options: WatchOptions) -> bool:
        """Register ``options`` for ``watcher``; True if the watcher is new."""
        entry = self.watchers.get(id(watcher))
        is_new = entry is None
        if entry is None:
            entry = (watcher, [])
            self.watchers[id(watcher)] = entry
        entry[1].append(options)
        return is_new

    def remove_watcher(self, watcher: Any) -> None:
        self.watchers.pop(id(watcher), None)

    def handle_event(self, event: Event) -> None:
        for watcher, options_list in list(self.watchers.values()):
            for options in list(options_list):
                if options.selector is None or dom.matches(event.target, options.selector):
                    self._reinfuse(watcher, options.parts, event)

    def __len__(self) -> int:
        return len(self.watchers)


class WatchRegistry:
    """At most one :class:`WatchEntry` per (target, event type) pair."""

    def __init__(
        self,
        events: EventDispatcher,
        cleanup: CleanupRegistry,
        reinfuse: Reinfuse,
    ) -> None:
        self.events = events
        self.cleanup = cleanup
        self._reinfuse = reinfuse
        self._entries: Dict[Tuple[int, str], WatchEntry] = {}

    def get(self, target: Any, event_type: str) -> Optional[WatchEntry]:
        return self._entries.get((id(target), event_type))

    def watch_for(self, target: Any, event_type: str) -> WatchEntry:
        key = (id(target), event_type)
        entry = self._entries.get(key)
        if entry is not None:
            return entry

        entry = WatchEntry(target, event_type, self._reinfuse)
        self._entries[key] = entry
        self.events.add_event_listener(target, event_type, entry.handle_event)

        def teardown() -> None:
            entry.watchers.clear()
            self.events.remove_event_listener(target, event_type, entry.handle_event)
            if self._entries.get(key) is entry:
                del self._entries[key]

        self.cleanup.add(target, teardown)
        logger.debug("Watching %r events on %s", event_type, _describe(target))
        return entry

    def add_watcher(
        self,
        target: Any,
        event_type: str,
        watcher: Any,
        selector: Optional[str] = None,
        parts: Any = ALL_PARTS,
    ) -> WatchEntry:
        entry = self.watch_for(target, event_type)
        if entry.add_watcher(watcher, WatchOptions(selector=selector, parts=parts)):
            self.cleanup.add(watcher, lambda: entry.remove_watcher(watcher))
        return entry

    def register(self, watcher: Any, target: Any, spec: Any) -> int:
        """Register every event of a watch spec; returns the number of events."""
        count = 0
        for event_type, selector, parts in iter_event_specs(spec):
            self.add_watcher(target, event_type, watcher, selector, parts)
            count += 1
        return count

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def _spec_pairs(spec: Any) -> List[Tuple[str, Any]]:
    if isinstance(spec, str):
        return [(spec, ALL_PARTS)]
    if isinstance(spec, Mapping):
        return list(spec.items())
    return [(key, parts) for key, parts in spec]


def iter_event_specs(spec: Any) -> Iterator[Tuple[str, Optional[str], Any]]:
    """Yield ``(event type, selector, parts)`` for every event of ``spec``."""
    for key, parts in _spec_pairs(spec):
        for event_and_selector in str(key).strip().split(";"):
            event_and_selector = event_and_selector.strip()
            if not event_and_selector:
                continue
            event_type, _, selector = event_and_selector.partition(" ")
            yield event_type, selector.strip() or None, parts


def _describe(target: Any) -> str:
    if dom.is_element(target):
        return f"<{target.name}>"
    return type(target).__name__
