from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

PartKey = Union[str, int]

# Names every context exposes besides the declared constants.
BUILTIN_NAMES = ("this", "host", "data")


@dataclass
class CompiledContext:
    """What a context function returned for one element instance."""

    constants: Dict[str, Any] = field(default_factory=dict)
    parts: Dict[PartKey, Callable[..., Any]] = field(default_factory=dict)
    event_listeners: Dict[str, Callable[..., Any]] = field(default_factory=dict)
    watches: Dict[str, Any] = field(default_factory=dict)
    iteration_bindings: Tuple[Optional[str], ...] = ()

    @classmethod
    def from_descriptor(cls, descriptor: Mapping[str, Any]) -> "CompiledContext":
        return cls(
            constants=dict(descriptor.get("constants") or {}),
            parts=dict(descriptor.get("parts") or {}),
            event_listeners=dict(descriptor.get("event_listeners") or {}),
            watches=dict(descriptor.get("watches") or {}),
            iteration_bindings=tuple(descriptor.get("iteration_bindings") or ()),
        )

    def scope_constants(self) -> Dict[str, Any]:
        """Constants to hand down to the content of a template."""
        return {
            name: value
            for name, value in self.constants.items()
            if name not in BUILTIN_NAMES
        }
