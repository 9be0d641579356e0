from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyinfuse")
except PackageNotFoundError:
    __version__ = "unknown"

from pyinfuse.config import DEFAULT_CONFIG, InfuseConfig
from pyinfuse.compiler.document import compile_document, parse_document
from pyinfuse.compiler.exceptions import InfuseSyntaxError
from pyinfuse.compiler.parser import TemplateParser
from pyinfuse.core.naming import IdGenerator
from pyinfuse.core.registry import ContextRegistry
from pyinfuse.runtime.events import Event
from pyinfuse.runtime.exceptions import (
    InfuseRuntimeError,
    InvalidPartError,
    IterationError,
    NotInfusedError,
    UnknownContextError,
)
from pyinfuse.runtime.host import Host
from pyinfuse.runtime.infuse import Infuser
from pyinfuse.runtime.logging import configure_logging

__all__ = [
    "ContextRegistry",
    "DEFAULT_CONFIG",
    "Event",
    "Host",
    "IdGenerator",
    "InfuseConfig",
    "InfuseRuntimeError",
    "InfuseSyntaxError",
    "Infuser",
    "InvalidPartError",
    "IterationError",
    "NotInfusedError",
    "TemplateParser",
    "UnknownContextError",
    "compile_document",
    "configure_logging",
    "parse_document",
]
