"""Identifier helpers shared by the compiler and the runtime."""

import itertools
import keyword
from typing import Any, Callable, Optional

UniqueIdFn = Callable[[str, Any], str]


def camel_case(hyphenated: str) -> str:
    """Turn a hyphenated name into camel case ("first-name" -> "firstName")."""
    head, *rest = hyphenated.split("-")
    return head + "".join(word[:1].upper() + word[1:] for word in rest)


def is_valid_name(name: str) -> bool:
    return name.isidentifier() and not keyword.iskeyword(name)


class IdGenerator:
    """Per-session unique id factory.

    Ids are ``<prefix><n>``, optionally followed by ``_<suffix>`` so that ids
    generated for one document never collide with those of another.
    """

    def __init__(self, suffix: Optional[str] = None) -> None:
        self.suffix = suffix
        self._counter = itertools.count(1)

    def __call__(self, prefix: str = "", element: Any = None) -> str:
        uid = f"{prefix}{next(self._counter)}"
        if self.suffix:
            uid = f"{uid}_{self.suffix}"
        return uid

    @classmethod
    def for_hash(cls, full_hash: str, hash_length: int = 7) -> "IdGenerator":
        """Generator whose ids end with the first ``hash_length`` chars of a hash."""
        return cls(suffix=full_hash[:hash_length])
