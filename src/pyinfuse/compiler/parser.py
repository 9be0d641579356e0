"""Template graph walker.

Compiles every element of a ``<template>`` in place: directive attributes are
removed, parsed text nodes are replaced by a placeholder character, and each
element that needs a context gets a ``data-cid`` attribute pointing at its
compiled context function. Nested templates are parsed recursively and moved
right after their parent, leaving a ``<template data-pid="...">`` behind.
"""

import logging
from typing import Iterator, List, Optional

from bs4 import Tag

from pyinfuse.compiler.codegen.context import (
    CompileScope,
    bind_context,
    generate_context_source,
)
from pyinfuse.compiler.directives import ExtractionResult, extract
from pyinfuse.compiler.exceptions import InfuseSyntaxError
from pyinfuse.compiler.tags import TagMatcher
from pyinfuse.config import DEFAULT_CONFIG, InfuseConfig
from pyinfuse.core import dom
from pyinfuse.core.naming import IdGenerator, UniqueIdFn
from pyinfuse.core.registry import ContextRegistry, TemplateState

logger = logging.getLogger(__name__)


def _descendants(root: Tag) -> Iterator[Tag]:
    """Depth-first descendant elements; nested templates are not entered."""
    stack: List[Tag] = list(reversed(list(dom.child_elements(root))))
    while stack:
        element = stack.pop()
        yield element
        if not dom.is_template(element):
            stack.extend(reversed(list(dom.child_elements(element))))


class TemplateParser:
    """Compiles templates into the side-tables of a :class:`ContextRegistry`."""

    def __init__(
        self,
        registry: ContextRegistry,
        config: InfuseConfig = DEFAULT_CONFIG,
        unique_id: Optional[UniqueIdFn] = None,
    ) -> None:
        self.registry = registry
        self.config = config
        self.unique_id = unique_id or IdGenerator()
        self.tags = TagMatcher.from_names(config.tags) if config.tags else None

    def parse_template(
        self, template: Tag, scope: CompileScope = CompileScope()
    ) -> str:
        """Parse ``template`` and its descendants, returning its template id."""
        if not dom.is_template(template):
            raise TypeError("The template must be a <template> element")

        tid = dom.get_attribute(template, self.config.template_id)
        if tid is not None:
            if self.registry.state(tid) is not TemplateState.UNPARSED:
                return tid
        else:
            tid = self.unique_id("template", template)
            dom.set_attribute(template, self.config.template_id, tid)

        self.registry.begin_template(tid)
        logger.debug("Parsing template %s", tid)

        result = self.parse_element(template, scope, tid)
        inner_scope = scope
        if result is not None:
            self._check_template_context(template, result)
            inner_scope = scope.extend(result.scope_names())

        self.registry.add_template(tid, template)

        for element in list(_descendants(template)):
            if dom.is_template(element):
                self._move_nested_template(template, element, inner_scope)
            else:
                self.parse_element(element, inner_scope, tid)

        self.registry.finish_template(tid)
        return tid

    def parse_element(
        self,
        element: Tag,
        scope: CompileScope = CompileScope(),
        tid: Optional[str] = None,
    ) -> Optional[ExtractionResult]:
        """Compile one element, or return ``None`` if it has nothing to compile."""
        result = extract(element, self.config, self.tags)
        if not result.has_context:
            return None

        attribute = self.config.context_function_id
        cid = dom.get_attribute(element, attribute)
        if cid is None:
            cid = self.unique_id(element.name.lower(), element)
            dom.set_attribute(element, attribute, cid)

        source = generate_context_source(result, scope, self.config)
        function = bind_context(source, cid, element)
        self.registry.add_context(cid, function, source.source, tid)

        for name in result.consumed_attributes:
            dom.remove_attribute(element, name)
        if result.consumed_text_nodes:
            nodes = list(dom.child_nodes(element))
            for index in result.consumed_text_nodes:
                dom.set_text(nodes[index], self.config.text_placeholder)

        logger.debug(
            "Compiled <%s> as %s (%d parts)", element.name, cid, len(result.parts)
        )
        return result

    def _check_template_context(self, template: Tag, result: ExtractionResult) -> None:
        collection_is_async = any(
            part.is_async
            for key, part in result.parts.items()
            if key in self.config.collection_attributes
        )
        if result.is_async or collection_is_async:
            raise InfuseSyntaxError(
                "Template constants, watches and collections cannot use await",
                element=template,
            )

    def _move_nested_template(
        self, template: Tag, nested: Tag, scope: CompileScope
    ) -> None:
        self.parse_template(nested, scope)

        pid = dom.get_attribute(nested, self.config.template_id)
        placeholder = dom.create_element(
            "template", template, {self.config.placeholder_id: pid}
        )
        dom.insert_before(nested, placeholder)
        nested.extract()

        # A detached template keeps its nested templates in the registry only.
        anchor = _outermost_template(template)
        if anchor.parent is not None:
            dom.insert_after(anchor, nested)


def _outermost_template(template: Tag) -> Tag:
    outermost = template
    for ancestor in template.parents:
        if dom.is_template(ancestor):
            outermost = ancestor
    return outermost
