"""Fragment tokenizer.

Splits attribute values and text node contents into literal text,
``${ expression }`` spans and back-tick interpolation blocks::

    tokenize("btn btn-${ host.kind }")
    # [Literal('btn btn-'), ExpressionSpan('host.kind')]

    tokenize("i18n`total`: $${ order.total }", TagMatcher.from_names(["i18n"]))
    # [InterpolationBlock('`total`', tag='i18n'), Literal(': $'),
    #  ExpressionSpan('order.total')]

``tokenize`` returns ``None`` when there is nothing to compile, which lets
callers skip the element part entirely.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from pyinfuse.compiler.tags import ASYNC_MARKER, TagMatcher


@dataclass(frozen=True)
class Literal:
    text: str

    @property
    def raw(self) -> str:
        return self.text


@dataclass(frozen=True)
class ExpressionSpan:
    code: str
    has_async: bool = False
    # Source text including the ${ } delimiters.
    raw: str = ""


@dataclass(frozen=True)
class InterpolationBlock:
    # Block text including both back-ticks.
    code: str
    tag: Optional[str] = None
    # "await " preceded the tag name.
    awaited: bool = False
    # The block is awaited or one of its inner expressions awaits.
    has_async: bool = False
    # Source text including the tag name and the async marker.
    raw: str = ""


Fragment = Union[Literal, ExpressionSpan, InterpolationBlock]


def tokenize(
    source: str, tags: Optional[TagMatcher] = None
) -> Optional[List[Fragment]]:
    """Split ``source`` into fragments, or return ``None`` if it has none."""
    fragments: List[Fragment] = []
    length = len(source)
    # Start of the pending literal text.
    head = 0
    block_start = -1
    block_async = False
    expression_start = -1
    # Braces opened inside the current expression.
    braces = 0

    for i, char in enumerate(source):
        prev = source[i - 1] if i else ""

        if char == "`" and expression_start == -1:
            if block_start == -1:
                # A doubled back-tick does not open a block.
                if source[i + 1 : i + 2] != "`":
                    block_start = i
                    block_async = False
                continue

            if prev == "\\":
                continue

            end = block_start
            match = None
            if tags is not None and head < block_start:
                match = tags.match_suffix(source[head:block_start])
                if match is not None:
                    end = block_start - match.length
            if head < end:
                fragments.append(Literal(source[head:end]))

            awaited = match is not None and match.awaited
            fragments.append(
                InterpolationBlock(
                    code=source[block_start : i + 1],
                    tag=match.tag if match is not None else None,
                    awaited=awaited,
                    has_async=awaited or block_async,
                    raw=source[end : i + 1],
                )
            )
            head = i + 1
            block_start = -1

        elif char == "{":
            if expression_start != -1:
                braces += 1
            elif prev == "$":
                expression_start = i - 1

        elif char == "}" and expression_start != -1:
            if braces:
                braces -= 1
            elif block_start != -1:
                # Expressions inside a block stay part of the block.
                if ASYNC_MARKER in source[expression_start + 2 : i]:
                    block_async = True
                expression_start = -1
            else:
                if head < expression_start:
                    fragments.append(Literal(source[head:expression_start]))
                code = source[expression_start + 2 : i].strip()
                fragments.append(
                    ExpressionSpan(
                        code=code,
                        has_async=ASYNC_MARKER in code,
                        raw=source[expression_start : i + 1],
                    )
                )
                head = i + 1
                expression_start = -1

    if head < length:
        fragments.append(Literal(source[head:]))

    if not fragments or (len(fragments) == 1 and isinstance(fragments[0], Literal)):
        return None
    return fragments


def has_async(fragments: Optional[Sequence[Fragment]]) -> bool:
    return bool(fragments) and any(
        not isinstance(fragment, Literal) and fragment.has_async
        for fragment in fragments
    )


def reconstitute(fragments: Sequence[Fragment]) -> str:
    """Concatenate the source text of ``fragments``."""
    return "".join(fragment.raw for fragment in fragments)


def split_block(body: str) -> Tuple[List[str], List[str]]:
    """Split the inside of a back-tick block into strings and expressions.

    There is always one more string than there are expressions, as expected
    by tag functions.
    """
    strings: List[str] = []
    expressions: List[str] = []
    chunk: List[str] = []
    i = 0
    length = len(body)

    while i < length:
        char = body[i]
        if char == "\\" and body[i + 1 : i + 2] == "`":
            chunk.append("`")
            i += 2
            continue
        if char == "$" and body[i + 1 : i + 2] == "{":
            braces = 0
            j = i + 2
            while j < length:
                if body[j] == "{":
                    braces += 1
                elif body[j] == "}":
                    if not braces:
                        break
                    braces -= 1
                j += 1
            if j < length:
                strings.append("".join(chunk))
                chunk = []
                expressions.append(body[i + 2 : j].strip())
                i = j + 1
                continue
        chunk.append(char)
        i += 1

    strings.append("".join(chunk))
    return strings, expressions


def block_source(block: InterpolationBlock, tags_name: str = "tags") -> str:
    """Python source that evaluates an interpolation block."""
    strings, expressions = split_block(block.code[1:-1])

    if block.tag is not None:
        arguments = [repr(tuple(strings))]
        arguments.extend(f"({expression})" for expression in expressions)
        src = f"{tags_name}[{block.tag!r}]({', '.join(arguments)})"
    else:
        pieces: List[str] = []
        for k, text in enumerate(strings):
            if text:
                pieces.append(repr(text))
            if k < len(expressions):
                pieces.append(f"str(({expressions[k]}))")
        src = f"({' + '.join(pieces)})" if pieces else "''"

    return f"(await {src})" if block.awaited else src


def join_fragments(fragments: Sequence[Fragment], tags_name: str = "tags") -> str:
    """Python expression that evaluates all ``fragments`` together.

    A single fragment keeps the type of its value; several fragments are
    concatenated into a string.
    """
    coerce = len(fragments) > 1
    sources: List[str] = []

    for fragment in fragments:
        if isinstance(fragment, Literal):
            sources.append(repr(fragment.text))
        elif isinstance(fragment, ExpressionSpan):
            src = f"({fragment.code})"
            sources.append(f"str({src})" if coerce else src)
        else:
            src = block_source(fragment, tags_name)
            # Untagged blocks are already strings.
            if coerce and fragment.tag is not None:
                src = f"str({src})"
            sources.append(src)

    return " + ".join(sources)
