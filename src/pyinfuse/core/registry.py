"""Side-tables filled by the compiler and read by the runtime."""

import enum
import logging
from typing import Callable, Dict, List, Optional

from bs4 import Tag

from pyinfuse.runtime.exceptions import UnknownContextError

logger = logging.getLogger(__name__)

ContextFunction = Callable[..., object]


class TemplateState(enum.Enum):
    UNPARSED = "unparsed"
    PARSING = "parsing"
    PARSED = "parsed"


class ContextRegistry:
    """Compiled context functions and parsed templates for one session.

    Context functions are keyed by context id (the ``data-cid`` attribute),
    templates by template id (``data-tid``). Both live until the template that
    produced them is retired or the registry is cleared.
    """

    def __init__(self) -> None:
        self._contexts: Dict[str, ContextFunction] = {}
        self._sources: Dict[str, str] = {}
        self._templates: Dict[str, Tag] = {}
        self._states: Dict[str, TemplateState] = {}
        self._owned: Dict[str, List[str]] = {}  # tid -> cids compiled for it

    def add_context(
        self,
        cid: str,
        function: ContextFunction,
        source: str = "",
        tid: Optional[str] = None,
    ) -> None:
        self._contexts[cid] = function
        self._sources[cid] = source
        if tid is not None:
            self._owned.setdefault(tid, []).append(cid)

    def get_context(self, cid: str) -> ContextFunction:
        try:
            return self._contexts[cid]
        except KeyError:
            raise UnknownContextError(f"No context function with id {cid!r}") from None

    def has_context(self, cid: str) -> bool:
        return cid in self._contexts

    def source_of(self, cid: str) -> str:
        """Generated Python source of a context function."""
        try:
            return self._sources[cid]
        except KeyError:
            raise UnknownContextError(f"No context function with id {cid!r}") from None

    def begin_template(self, tid: str) -> None:
        self._states[tid] = TemplateState.PARSING

    def add_template(self, tid: str, template: Tag) -> None:
        self._templates[tid] = template

    def finish_template(self, tid: str) -> None:
        self._states[tid] = TemplateState.PARSED

    def get_template(self, tid: str) -> Tag:
        try:
            return self._templates[tid]
        except KeyError:
            raise UnknownContextError(f"No parsed template with id {tid!r}") from None

    def state(self, tid: str) -> TemplateState:
        return self._states.get(tid, TemplateState.UNPARSED)

    @property
    def templates(self) -> Dict[str, Tag]:
        return dict(self._templates)

    def retire_template(self, tid: str) -> None:
        """Forget a template and every context function compiled for it."""
        for cid in self._owned.pop(tid, []):
            self._contexts.pop(cid, None)
            self._sources.pop(cid, None)
        self._templates.pop(tid, None)
        self._states.pop(tid, None)
        logger.debug("Retired template %s", tid)

    def clear(self) -> None:
        self._contexts.clear()
        self._sources.clear()
        self._templates.clear()
        self._states.clear()
        self._owned.clear()

    def __len__(self) -> int:
        return len(self._contexts)
