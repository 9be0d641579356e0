"""Directive extraction.

Reads the attributes and text nodes of one element and sorts them into
constants, event listeners, watches, iteration bindings and parts, keeping
track of what was consumed so the markup can be stripped afterwards.
"""

import textwrap
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from bs4 import Tag

from pyinfuse.compiler.exceptions import InfuseSyntaxError
from pyinfuse.compiler.fragments import has_async, join_fragments, tokenize
from pyinfuse.compiler.tags import ASYNC_MARKER, TagMatcher
from pyinfuse.config import DEFAULT_CONFIG, InfuseConfig, NameRule
from pyinfuse.core import dom
from pyinfuse.core.naming import camel_case, is_valid_name

PartKey = Union[str, int]

RESERVED_NAMES = ("this", "host", "data", "iteration")


def search_name(name: str, rule: NameRule) -> Optional[str]:
    """Extract a variable or event name from an attribute name.

    ``rule`` is either a prefix (``"const-"``) or a compiled regular
    expression whose first group is the name::

        search_name("const-foo", "const-")                         # "foo"
        search_name("foo-const", re.compile(r"^(\\w+)-const$"))     # "foo"

    Returns ``None`` when the attribute does not follow the rule.
    """
    if isinstance(rule, str):
        if len(name) > len(rule) and name.startswith(rule):
            return name[len(rule) :]
        return None

    if rule.groups < 1:
        raise InfuseSyntaxError(
            f"The name rule {rule.pattern!r} must have a group around the name"
        )
    match = rule.search(name)
    if match is None:
        return None
    return match.group(1) or None


@dataclass(frozen=True)
class PartSource:
    code: str
    is_async: bool = False


@dataclass(frozen=True)
class HandlerSource:
    # Python statements, dedented.
    code: str
    is_async: bool = False


@dataclass(frozen=True)
class IterationBindings:
    value: Optional[str] = None
    key: Optional[str] = None
    collection: Optional[str] = None

    @property
    def names(self) -> Tuple[Optional[str], ...]:
        return (self.value, self.key, self.collection)

    def declared(self) -> List[str]:
        return [name for name in self.names if name]

    def __bool__(self) -> bool:
        return any(self.names)


@dataclass
class ExtractionResult:
    constants: Dict[str, str] = field(default_factory=dict)
    parts: Dict[PartKey, PartSource] = field(default_factory=dict)
    event_listeners: Dict[str, HandlerSource] = field(default_factory=dict)
    watches: Dict[str, str] = field(default_factory=dict)
    iteration_bindings: IterationBindings = field(default_factory=IterationBindings)
    # True if a constant or a watch awaits.
    is_async: bool = False
    consumed_attributes: List[str] = field(default_factory=list)
    consumed_text_nodes: List[int] = field(default_factory=list)
    is_template: bool = False

    @property
    def has_context(self) -> bool:
        if self.parts or self.event_listeners:
            return True
        return self.is_template and bool(self.constants or self.iteration_bindings)

    def scope_names(self) -> List[str]:
        """Names this element makes available to its descendants."""
        return self.iteration_bindings.declared() + list(self.constants)


def _checked_name(
    name: str, attribute: str, element: Tag, config: InfuseConfig
) -> str:
    if not is_valid_name(name) or name in RESERVED_NAMES + (config.tags_name,):
        raise InfuseSyntaxError(
            f"Invalid name {name!r} in attribute {attribute!r}", element=element
        )
    return name


def _handler_code(value: str) -> str:
    lines = value.splitlines()
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    if len(lines) > 1 and not lines[0][:1].isspace():
        # The first line starts right after the opening quote, so its
        # indentation says nothing about the indentation of the others.
        rest = textwrap.dedent("\n".join(lines[1:]))
        if lines[0].rstrip().endswith(":"):
            rest = textwrap.indent(rest, "    ")
        return lines[0].rstrip() + "\n" + rest
    return textwrap.dedent("\n".join(lines)).strip()


def _is_literal_collection(value: str) -> bool:
    return (value.startswith("[") and value.endswith("]")) or (
        value.startswith("{") and value.endswith("}")
    )


def _iteration_bindings(value: str, element: Tag, config: InfuseConfig) -> IterationBindings:
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        value = value[1:-1]

    names: List[Optional[str]] = []
    for raw in value.split(",")[:3]:
        raw = raw.strip()
        names.append(
            _checked_name(camel_case(raw), config.iteration_attribute, element, config)
            if raw
            else None
        )
    return IterationBindings(*names)


def extract(
    element: Tag,
    config: InfuseConfig = DEFAULT_CONFIG,
    tags: Optional[TagMatcher] = None,
) -> ExtractionResult:
    """Collect the directives of ``element``.

    Attribute precedence is constant, watch, event listener, iteration and
    finally generic part. Plain attributes without ``${}`` or back-tick
    syntax are left alone.
    """
    is_template = dom.is_template(element)
    result = ExtractionResult(is_template=is_template)

    for name in list(element.attrs):
        value = dom.get_attribute(element, name) or ""
        constant_name = search_name(name, config.constant_exp)
        watch_name = search_name(name, config.watch_exp)
        event_name = search_name(name, config.event_handler_exp)

        if constant_name is not None:
            fragments = tokenize(value, tags)
            if has_async(fragments):
                result.is_async = True
            key = _checked_name(camel_case(constant_name), name, element, config)
            result.constants[key] = (
                join_fragments(fragments, config.tags_name) if fragments else repr(value)
            )

        elif watch_name is not None:
            fragments = tokenize(value, tags)
            if has_async(fragments):
                result.is_async = True
            if fragments:
                code = join_fragments(fragments, config.tags_name)
            elif _is_literal_collection(value.strip()):
                code = value.strip()
            else:
                code = repr(value)
            result.watches[camel_case(watch_name)] = code

        elif event_name is not None:
            body = value.strip()
            if body.startswith("${") and body.endswith("}"):
                raise InfuseSyntaxError(
                    f'Event handlers should not start with "${{" and end with "}}": '
                    f'{name}="{body}".',
                    element=element,
                )
            if config.camel_case_events:
                event_name = camel_case(event_name)
            code = _handler_code(value)
            result.event_listeners[event_name] = HandlerSource(
                code=code, is_async=ASYNC_MARKER in code
            )

        elif is_template and name == config.iteration_attribute:
            result.iteration_bindings = _iteration_bindings(value, element, config)

        else:
            fragments = tokenize(value, tags)
            if fragments is None:
                continue
            key = name
            if name.startswith("."):
                key = "." + camel_case(name[1:])
            result.parts[key] = PartSource(
                code=join_fragments(fragments, config.tags_name),
                is_async=has_async(fragments),
            )

        result.consumed_attributes.append(name)

    if not is_template:
        for index, node in enumerate(dom.child_nodes(element)):
            if not dom.is_text(node) or len(node) < config.text_node_min_length:
                continue
            fragments = tokenize(str(node), tags)
            if fragments is None:
                continue
            result.parts[index] = PartSource(
                code=join_fragments(fragments, config.tags_name),
                is_async=has_async(fragments),
            )
            result.consumed_text_nodes.append(index)

    return result
