import logging
from typing import Any, Callable, Dict, List, Tuple

from pyinfuse.config import DEFAULT_CONFIG, InfuseConfig
from pyinfuse.core import dom

logger = logging.getLogger(__name__)

CleanupFunction = Callable[[], Any]


class CleanupRegistry:
    """Per-element queues of teardown callbacks.

    Elements with a queue carry the sweep flag attribute so that a subtree can
    be swept with a single selector query. A queue runs once and is then
    discarded.
    """

    def __init__(self, config: InfuseConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        # id(target) -> (target, callbacks)
        self._queues: Dict[int, Tuple[Any, List[CleanupFunction]]] = {}

    def add(self, target: Any, callback: CleanupFunction) -> None:
        entry = self._queues.get(id(target))
        if entry is None:
            entry = (target, [])
            self._queues[id(target)] = entry
            if dom.is_element(target):
                dom.set_attribute(target, self.config.sweep_flag, "")
        if not any(existing is callback for existing in entry[1]):
            entry[1].append(callback)

    def has_queue(self, target: Any) -> bool:
        return id(target) in self._queues

    def queue_length(self, target: Any) -> int:
        entry = self._queues.get(id(target))
        return len(entry[1]) if entry is not None else 0

    def sweep_element(self, target: Any) -> bool:
        """Drain the queue of ``target``; returns False if it had none.

        Every callback runs even if an earlier one raises; the first error is
        re-raised once the queue is drained.
        """
        entry = self._queues.pop(id(target), None)
        if entry is None:
            return False
        errors: List[BaseException] = []
        try:
            for callback in entry[1]:
                try:
                    callback()
                except Exception as exc:
                    errors.append(exc)
        finally:
            if dom.is_element(target):
                dom.remove_attribute(target, self.config.sweep_flag)
        if errors:
            for extra in errors[1:]:
                logger.error("Additional cleanup error: %r", extra)
            raise errors[0]
        return True

    def sweep(self, root: Any) -> int:
        """Sweep flagged descendants of ``root`` and ``root`` itself."""
        targets = dom.query_all(root, f"[{self.config.sweep_flag}]")
        swept = sum(1 for target in targets if self.sweep_element(target))
        if self.sweep_element(root):
            swept += 1
        if swept:
            logger.debug("Swept %d element(s)", swept)
        return swept

    def clear(self) -> None:
        self._queues.clear()

    def __len__(self) -> int:
        return len(self._queues)
