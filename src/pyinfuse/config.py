"""Configuration options for the compiler and the runtime."""

import dataclasses
from dataclasses import dataclass
from typing import Any, Pattern, Tuple, Union

# A directive name rule: either a string prefix ("const-") or a regular
# expression whose first capturing group is the name.
NameRule = Union[str, Pattern[str]]


@dataclass(frozen=True)
class InfuseConfig:
    """Attribute-name conventions and runtime knobs.

    Defaults describe the stock markup conventions (``const-``, ``on<event>``,
    ``watch-``, ``for``/``each``); override them with :meth:`with_options`.
    """

    # Directive rules
    constant_exp: NameRule = "const-"
    event_handler_exp: NameRule = "on"
    watch_exp: NameRule = "watch-"
    camel_case_events: bool = False
    iteration_attribute: str = "for"
    collection_attributes: Tuple[str, ...] = ("each", "of")

    # Attributes written back into the markup
    context_function_id: str = "data-cid"
    template_id: str = "data-tid"
    placeholder_id: str = "data-pid"
    sweep_flag: str = "data-sweep"

    # Names used inside generated context functions
    event_name: str = "event"
    tags_name: str = "tags"

    # Tag function names known at compile time
    tags: Tuple[str, ...] = ()

    # Text node scanning
    text_node_min_length: int = 4
    text_placeholder: str = "_"

    # Document ids
    hash_length: int = 7

    def __post_init__(self) -> None:
        # Accept any iterable of names, store tuples so the config stays hashable.
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(
            self, "collection_attributes", tuple(self.collection_attributes)
        )
        if self.text_node_min_length < 1:
            raise ValueError("text_node_min_length must be a positive integer")
        if self.hash_length < 1:
            raise ValueError("hash_length must be a positive integer")

    def with_options(self, **options: Any) -> "InfuseConfig":
        """Return a copy with the given options replaced."""
        known = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise TypeError(f"Unknown configuration option(s): {', '.join(unknown)}")
        return dataclasses.replace(self, **options)


DEFAULT_CONFIG = InfuseConfig()
