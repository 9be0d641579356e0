import itertools
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pyinfuse.runtime.context import CompiledContext


@dataclass(eq=False)
class ElementRecord:
    """Runtime state of one infused element."""

    handle: int
    element: Any
    context: Optional[CompiledContext] = None
    # Values of property parts (".name").
    properties: Dict[str, Any] = field(default_factory=dict)
    # Text nodes of the element by child index, taken before nested
    # templates are expanded.
    text_nodes: Dict[int, Any] = field(default_factory=dict)


class ElementArena:
    """Element records addressed by integer handles.

    Records are created when the runtime first touches an element and removed
    explicitly when the element is swept; nothing here relies on garbage
    collection.
    """

    def __init__(self) -> None:
        self._handles = itertools.count(1)
        self._records: Dict[int, ElementRecord] = {}  # handle -> record
        self._by_element: Dict[int, int] = {}  # id(element) -> handle

    def record(self, element: Any) -> ElementRecord:
        """Create a fresh record for ``element``, replacing any previous one."""
        self.release(element)
        record = ElementRecord(handle=next(self._handles), element=element)
        self._records[record.handle] = record
        self._by_element[id(element)] = record.handle
        return record

    def get(self, element: Any) -> Optional[ElementRecord]:
        handle = self._by_element.get(id(element))
        if handle is None:
            return None
        return self._records.get(handle)

    def by_handle(self, handle: int) -> Optional[ElementRecord]:
        return self._records.get(handle)

    def is_live(self, handle: int) -> bool:
        return handle in self._records

    def release(self, element: Any) -> Optional[ElementRecord]:
        handle = self._by_element.pop(id(element), None)
        if handle is None:
            return None
        return self._records.pop(handle, None)

    def clear(self) -> None:
        self._records.clear()
        self._by_element.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, element: Any) -> bool:
        return id(element) in self._by_element
