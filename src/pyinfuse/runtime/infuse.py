"""Infusion runtime.

An :class:`Infuser` clones parsed templates, runs the context function of
every compiled element and writes part values into the clone::

    registry = ContextRegistry()
    TemplateParser(registry).parse_template(template)

    infuser = Infuser(registry)
    fragment = infuser.infuse(host, template)

Parts are re-infused when watched events fire, or explicitly with
:meth:`Infuser.infuse_element`. Sweeping an element releases everything the
runtime allocated for it.
"""

import inspect
import logging
from collections.abc import Iterable, Mapping, Set
from typing import Any, Callable, Dict, List, Mapping as MappingType, Optional, Tuple

from bs4 import Tag

from pyinfuse.config import DEFAULT_CONFIG, InfuseConfig
from pyinfuse.core import dom
from pyinfuse.core.naming import camel_case
from pyinfuse.core.registry import ContextRegistry
from pyinfuse.runtime.arena import ElementArena, ElementRecord
from pyinfuse.runtime.cleanup import CleanupRegistry
from pyinfuse.runtime.context import CompiledContext, PartKey
from pyinfuse.runtime.events import Event, EventDispatcher
from pyinfuse.runtime.exceptions import (
    InfuseRuntimeError,
    InvalidPartError,
    IterationError,
    NotInfusedError,
)
from pyinfuse.runtime.tasks import TaskScheduler
from pyinfuse.runtime.watch import ALL_PARTS, WatchRegistry

logger = logging.getLogger(__name__)

MISSING_COLLECTION = 'The template attribute "each" is either invalid or missing.'
INVALID_COLLECTION = (
    'Evaluating the "each" expression resulted in an invalid value. The expression '
    "must return an iterable, for instance: a list, a dict, or a set."
)


def iterate_collection(collection: Any) -> List[Tuple[Any, Any]]:
    """``(value, key)`` pairs of an iteration collection.

    Mappings give ``(value, key)``, sets ``(value, value)`` and other
    iterables ``(value, index)``.
    """
    if isinstance(collection, (str, bytes)) or not isinstance(collection, Iterable):
        raise IterationError(INVALID_COLLECTION)
    if isinstance(collection, Mapping):
        return [(value, key) for key, value in collection.items()]
    if isinstance(collection, Set):
        return [(value, value) for value in collection]
    return [(value, index) for index, value in enumerate(collection)]


class Infuser:
    """One runtime session over the templates of a :class:`ContextRegistry`."""

    def __init__(
        self,
        registry: ContextRegistry,
        config: InfuseConfig = DEFAULT_CONFIG,
        tags: Optional[MappingType[str, Callable[..., Any]]] = None,
    ) -> None:
        self.registry = registry
        self.config = config
        self.tags: Dict[str, Callable[..., Any]] = dict(tags or {})
        self.arena = ElementArena()
        self.scheduler = TaskScheduler()
        self.events = EventDispatcher(self.scheduler)
        self.cleanup = CleanupRegistry(config)
        self.watches = WatchRegistry(self.events, self.cleanup, self.infuse_element)

    # Templates

    def infuse(
        self,
        host: Any,
        template: Tag,
        data: Any = None,
        iteration: Optional[MappingType[str, Any]] = None,
    ) -> dom.Fragment:
        """Clone and infuse ``template``.

        A template with an iteration binding is cloned once per entry of its
        ``each``/``of`` collection and the clones are joined together.
        """
        data = {} if data is None else data
        scope = dict(iteration or {})

        cid = dom.get_attribute(template, self.config.context_function_id)
        if cid is None:
            return self._infuse_content(host, template, data, scope)

        context = self._template_context(template, cid, host, data, scope)
        scope.update(context.scope_constants())

        collection_part = next(
            (
                context.parts[name]
                for name in self.config.collection_attributes
                if name in context.parts
            ),
            None,
        )
        if collection_part is None:
            if context.iteration_bindings:
                raise IterationError(MISSING_COLLECTION)
            return self._infuse_content(host, template, data, scope)

        collection = collection_part(None)
        entries = iterate_collection(collection)
        names = context.iteration_bindings

        fragment = dom.new_fragment()
        for value, key in entries:
            item_scope = dict(scope)
            for name, binding in zip(names, (value, key, collection)):
                if name:
                    item_scope[name] = binding
            dom.append_fragment(
                fragment, self._infuse_content(host, template, data, item_scope)
            )

        logger.debug("Infused %d iteration(s) of %s", len(entries), cid)
        return fragment

    def _template_context(
        self, template: Tag, cid: str, host: Any, data: Any, scope: Dict[str, Any]
    ) -> CompiledContext:
        function = self.registry.get_context(cid)
        descriptor = function(template, host, data, dict(scope), self.tags)
        if inspect.isawaitable(descriptor):
            if inspect.iscoroutine(descriptor):
                descriptor.close()
            raise InfuseRuntimeError(
                f"The context function of template {cid!r} must not be asynchronous"
            )
        return CompiledContext.from_descriptor(descriptor)

    def _infuse_content(
        self, host: Any, template: Tag, data: Any, scope: Dict[str, Any]
    ) -> dom.Fragment:
        fragment = dom.clone_content(template)

        for element in dom.query_all(fragment, f"[{self.config.context_function_id}]"):
            self.initialize_element(element, host, data, scope)

        placeholder_id = self.config.placeholder_id
        for placeholder in dom.query_all(fragment, f"[{placeholder_id}]"):
            nested = self.registry.get_template(
                dom.get_attribute(placeholder, placeholder_id)
            )
            dom.replace_with_fragment(
                placeholder, self.infuse(host, nested, data, scope)
            )

        return fragment

    # Elements

    def initialize_element(
        self,
        element: Tag,
        host: Any,
        data: Any = None,
        iteration: Optional[MappingType[str, Any]] = None,
    ) -> ElementRecord:
        """Create the context of a cloned element and infuse it."""
        attribute = self.config.context_function_id
        cid = dom.get_attribute(element, attribute)
        if cid is None:
            raise NotInfusedError(f"<{element.name}> has no {attribute} attribute")
        dom.remove_attribute(element, attribute)

        function = self.registry.get_context(cid)
        record = self.arena.record(element)
        record.text_nodes = {
            index: node
            for index, node in enumerate(dom.child_nodes(element))
            if dom.is_text(node)
        }
        self.cleanup.add(element, lambda: self.arena.release(element))

        try:
            descriptor = function(
                element,
                host,
                {} if data is None else data,
                dict(iteration or {}),
                self.tags,
            )
            if inspect.isawaitable(descriptor):
                handle = record.handle
                self.scheduler.schedule(
                    descriptor, lambda result: self._apply_async_context(handle, result)
                )
            else:
                self._activate(record, descriptor)
        except Exception:
            # Nothing stays allocated for an element that failed to infuse.
            self.cleanup.sweep_element(element)
            raise
        return record

    def _apply_async_context(self, handle: int, descriptor: Any) -> None:
        if not self.arena.is_live(handle):
            logger.debug("Dropped context for swept element (handle %d)", handle)
            return
        self._activate(self.arena.by_handle(handle), descriptor)

    def _activate(self, record: ElementRecord, descriptor: Any) -> None:
        element = record.element
        context = CompiledContext.from_descriptor(descriptor)
        record.context = context

        self.infuse_element(element)

        for event_type, listener in context.event_listeners.items():
            self.events.add_event_listener(element, event_type, listener)
            self.cleanup.add(
                element,
                _remover(self.events, element, event_type, listener),
            )

        for name, spec in context.watches.items():
            if name == "this":
                target = element
            elif name in context.constants:
                target = context.constants[name]
            else:
                raise InfuseRuntimeError(
                    f"Cannot watch {name!r}: it is not a constant of <{element.name}>"
                )
            self.watches.register(element, target, spec)

    def infuse_element(
        self, element: Any, parts: Any = ALL_PARTS, event: Optional[Event] = None
    ) -> None:
        """Infuse all parts of ``element``, or only the given ones.

        ``parts`` is ``"*"``, a single part key or a list of keys. Attribute
        keys are plain names, boolean attributes end with ``?``, properties
        start with ``.`` and text nodes are zero-based child indexes.
        """
        record = self.arena.get(element)
        if record is None or record.context is None:
            raise NotInfusedError(f"{element!r} has no live context")
        context_parts = record.context.parts

        if parts == ALL_PARTS:
            selected = list(context_parts.items())
        else:
            keys = parts if isinstance(parts, (list, tuple)) else [parts]
            selected = []
            for key in keys:
                key = self._normalise_part(key, context_parts)
                function = context_parts.get(key)
                if not callable(function):
                    raise InvalidPartError(key)
                selected.append((key, function))

        handle = record.handle
        for key, function in selected:
            value = function(event)
            if inspect.isawaitable(value):
                self.scheduler.schedule(
                    value,
                    lambda result, key=key: self._apply_async_part(handle, key, result),
                )
            else:
                self._write_part(record, key, value)

    @staticmethod
    def _normalise_part(key: Any, context_parts: MappingType[PartKey, Any]) -> Any:
        if isinstance(key, str):
            if key.startswith("."):
                return "." + camel_case(key[1:])
            if key not in context_parts and key.isdigit():
                return int(key)
        return key

    def _apply_async_part(self, handle: int, key: PartKey, value: Any) -> None:
        if not self.arena.is_live(handle):
            logger.debug("Dropped value of part %r for swept element", key)
            return
        self._write_part(self.arena.by_handle(handle), key, value)

    def _write_part(self, record: ElementRecord, key: PartKey, value: Any) -> None:
        element = record.element
        if isinstance(key, int):
            node = record.text_nodes.get(key)
            if node is None:
                raise InvalidPartError(key)
            record.text_nodes[key] = dom.set_text(
                node, "" if value is None else str(value)
            )
        elif key.startswith("."):
            record.properties[key[1:]] = value
        elif key.endswith("?"):
            name = key[:-1]
            if not value:
                dom.remove_attribute(element, name)
            else:
                dom.set_attribute(element, name, "" if value is True else str(value))
        else:
            dom.set_attribute(element, key, "" if value is None else str(value))

    # Lookups

    def context_of(self, element: Any) -> Optional[CompiledContext]:
        record = self.arena.get(element)
        return record.context if record is not None else None

    def property_of(self, element: Any, name: str, default: Any = None) -> Any:
        record = self.arena.get(element)
        if record is None:
            return default
        return record.properties.get(camel_case(name.lstrip(".")), default)

    # Events

    def dispatch(
        self, target: Any, event_type: str, detail: Any = None, bubbles: bool = True
    ) -> Event:
        return self.events.dispatch_event(
            target, Event(event_type, detail=detail, bubbles=bubbles)
        )

    # Teardown

    def sweep(self, root: Any) -> int:
        """Release everything allocated for ``root`` and its descendants."""
        return self.cleanup.sweep(root)

    clear = sweep

    def detach(self, element: Tag) -> Tag:
        dom.remove(element)
        self.sweep(element)
        return element

    async def settle(self) -> None:
        await self.scheduler.settle()

    def close(self) -> None:
        self.scheduler.cancel()
        self.cleanup.clear()
        self.events.clear()
        self.watches.clear()
        self.arena.clear()


def _remover(
    events: EventDispatcher, target: Any, event_type: str, listener: Callable[..., Any]
) -> Callable[[], None]:
    def remove() -> None:
        events.remove_event_listener(target, event_type, listener)

    return remove
