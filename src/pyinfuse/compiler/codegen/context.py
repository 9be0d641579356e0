"""Context function generation.

Renders the Python source of one context function from an extraction result
and binds it into a callable::

    def infuse_context(this, host, data, iteration, tags):
        item = iteration.get('item')
        total = (host.total)

        def _part_1(event=None):
            return 'Total: ' + str((total))

        return {"constants": {...}, "parts": {0: _part_1}}
"""

import linecache
import logging
import sys
import textwrap
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Tuple

from jinja2 import Environment, PackageLoader

from pyinfuse.compiler.directives import ExtractionResult
from pyinfuse.compiler.exceptions import InfuseSyntaxError
from pyinfuse.config import DEFAULT_CONFIG, InfuseConfig

logger = logging.getLogger(__name__)

_env = Environment(
    loader=PackageLoader("pyinfuse", "templates"),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["pyrepr"] = repr

FUNCTION_NAME = "infuse_context"


@dataclass(frozen=True)
class CompileScope:
    """Names declared by enclosing templates, outermost first."""

    names: Tuple[str, ...] = ()

    def extend(self, names: Iterable[str]) -> "CompileScope":
        merged = list(self.names)
        for name in names:
            if name not in merged:
                merged.append(name)
        return CompileScope(tuple(merged))

    def __iter__(self):
        return iter(self.names)

    def __contains__(self, name: object) -> bool:
        return name in self.names


@dataclass(frozen=True)
class ContextSource:
    source: str
    is_async: bool = False


def generate_context_source(
    result: ExtractionResult,
    scope: CompileScope = CompileScope(),
    config: InfuseConfig = DEFAULT_CONFIG,
) -> ContextSource:
    """Render the source of the context function for ``result``."""
    parts = [
        {
            "key": key,
            "function": f"_part_{n}",
            "code": part.code,
            "is_async": part.is_async,
        }
        for n, (key, part) in enumerate(result.parts.items(), 1)
    ]
    listeners = [
        {
            "event": event,
            "function": f"_listener_{n}",
            "body": textwrap.indent(handler.code or "pass", " " * 8),
            "is_async": handler.is_async,
        }
        for n, (event, handler) in enumerate(result.event_listeners.items(), 1)
    ]

    constant_names: List[str] = list(scope)
    for name in result.constants:
        if name not in constant_names:
            constant_names.append(name)

    bindings = result.iteration_bindings
    source = _env.get_template("context.py.jinja").render(
        is_async=result.is_async,
        tags_name=config.tags_name,
        event_name=config.event_name,
        scope=list(scope),
        constants=list(result.constants.items()),
        constant_names=constant_names,
        parts=parts,
        listeners=listeners,
        watches=list(result.watches.items()),
        iteration_bindings=bindings.names if bindings else None,
    )
    return ContextSource(source=source + "\n", is_async=result.is_async)


def bind_context(
    context: ContextSource, cid: str, element: Any = None
) -> Callable[..., Any]:
    """Compile generated source and return its context function."""
    filename = f"<infuse:{cid}>"
    try:
        code = compile(context.source, filename, "exec")
    except SyntaxError as exc:
        raise InfuseSyntaxError(
            f"Invalid expression: {exc.msg}", element=element, line=exc.lineno
        ) from exc

    # Keep the source around so tracebacks can show generated lines.
    linecache.cache[filename] = (
        len(context.source),
        None,
        context.source.splitlines(True),
        filename,
    )

    module = type(sys)(f"pyinfuse_context_{cid}")
    exec(code, module.__dict__)
    logger.debug("Bound context function %s", cid)
    return getattr(module, FUNCTION_NAME)
