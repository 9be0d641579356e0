"""Detection of tag functions in front of back-tick interpolation blocks."""

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Pattern

ASYNC_MARKER = "await "


@dataclass(frozen=True)
class TagMatch:
    tag: str
    awaited: bool
    # Length of the matched suffix ("await " included) in the preceding text.
    length: int


@dataclass(frozen=True)
class TagMatcher:
    """Matches registered tag names at the end of a literal text.

    Build one with :meth:`from_names` and hand it to ``tokenize``; the same
    matcher can be reused for any number of strings.
    """

    longest: int
    shortest: int
    pattern: Pattern[str]

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "TagMatcher":
        if isinstance(names, str):
            raise ValueError("Tag names must be given as a sequence of strings")

        tags = list(names or ())
        if not tags or not all(isinstance(tag, str) and tag for tag in tags):
            raise ValueError("Tag names must be a non-empty sequence of strings")

        # Longest first so that "currency" wins over "cy".
        ordered = sorted(tags, key=len, reverse=True)
        alternatives = "|".join(re.escape(tag) for tag in ordered)
        return cls(
            longest=len(ordered[0]),
            shortest=len(ordered[-1]),
            pattern=re.compile(f"({re.escape(ASYNC_MARKER)})?({alternatives})$"),
        )

    def match_suffix(self, text: str) -> Optional[TagMatch]:
        """Return the tag (and optional async marker) that ``text`` ends with."""
        if len(text) < self.shortest:
            return None
        window = text[-(self.longest + len(ASYNC_MARKER)) :]
        match = self.pattern.search(window)
        if match is None:
            return None
        return TagMatch(
            tag=match.group(2),
            awaited=match.group(1) is not None,
            length=len(match.group(0)),
        )
