"""Read-only queries over inline and block content."""

from __future__ import annotations

import re
from typing import Iterable, Iterator, List, Optional, Sequence

from ..text.normalize import strip_double_braces
from ..types import (
    Block,
    BlockQuote,
    Container,
    Heading,
    Image,
    Inline,
    Inscription,
    Link,
    ListBlock,
    Marker,
    Note,
    OpaqueBlock,
    OpaqueInline,
    OriginMarker,
    Paragraph,
    RawOutput,
    Rule,
    Space,
    Span,
    Styled,
    Text,
    unhandled,
)

_INTERNAL_TARGET = re.compile(r"^#|^index_split_\d+\.html|\.x?html|filepos\d+")
_QUOTES = {"quoted-single": ("‘", "’"), "quoted-double": ("“", "”")}


def stringify(inlines: Iterable[Inline]) -> str:
    """Plain text of an inline sequence; footnote bodies are left out."""

    return "".join(_inline_text(inline) for inline in inlines)


def _inline_text(inline: Inline) -> str:
    if isinstance(inline, Text):
        return inline.text
    if isinstance(inline, Space):
        return " "
    if isinstance(inline, Styled):
        body = stringify(inline.children)
        if inline.style in _QUOTES:
            left, right = _QUOTES[inline.style]
            return f"{left}{body}{right}"
        return body
    if isinstance(inline, (Span, Link, Image)):
        return stringify(inline.children)
    if isinstance(inline, Note):
        return ""
    if isinstance(inline, OpaqueInline):
        return inline.text
    unhandled(inline)


def stringify_blocks(blocks: Iterable[Block]) -> str:
    parts = [block_text(block) for block in blocks]
    return " ".join(part for part in parts if part)


def block_text(block: Block) -> str:
    """Plain text of a block, nested blocks joined by single spaces."""

    if isinstance(block, (Paragraph, Heading)):
        return stringify(block.children)
    if isinstance(block, ListBlock):
        return " ".join(filter(None, (stringify_blocks(item) for item in block.items)))
    if isinstance(block, BlockQuote):
        return stringify_blocks(block.blocks)
    if isinstance(block, Container):
        return stringify_blocks(block.children)
    if isinstance(block, Inscription):
        return " ".join(line for line in block.lines if line)
    if isinstance(block, OpaqueBlock):
        return block.text
    if isinstance(block, (Rule, RawOutput, OriginMarker, Marker)):
        return ""
    unhandled(block)


def clean_text(block: Block) -> str:
    return strip_double_braces(block_text(block))


def iter_inlines(inlines: Iterable[Inline]) -> Iterator[Inline]:
    """Depth-first walk over inlines, not entering footnote bodies."""

    for inline in inlines:
        yield inline
        if isinstance(inline, (Styled, Span, Link, Image)):
            yield from iter_inlines(inline.children)


def iter_block_inlines(block: Block) -> Iterator[Inline]:
    if isinstance(block, (Paragraph, Heading)):
        yield from iter_inlines(block.children)
    elif isinstance(block, ListBlock):
        for item in block.items:
            for child in item:
                yield from iter_block_inlines(child)
    elif isinstance(block, BlockQuote):
        for child in block.blocks:
            yield from iter_block_inlines(child)
    elif isinstance(block, Container):
        for child in block.children:
            yield from iter_block_inlines(child)


def is_internal_target(target: str) -> bool:
    return bool(target) and bool(_INTERNAL_TARGET.search(target))


def has_internal_link(block: Block) -> bool:
    return any(
        isinstance(inline, Link) and is_internal_target(inline.target)
        for inline in iter_block_inlines(block)
    )


def normalize_anchor(href: str | None) -> Optional[str]:
    """``"./#ch1"`` -> ``"ch1"``; empty input gives ``None``."""

    if not href:
        return None
    anchor = href
    if anchor.startswith("./"):
        anchor = anchor[2:]
    anchor = anchor.lstrip("#")
    return anchor


def sanitize_id(identifier: str) -> str:
    return re.sub(r"\s+", "_", (identifier or "").replace("#", "_"))


def link_title(link: Link) -> str:
    return strip_double_braces(stringify(link.children))


def first_link(inlines: Sequence[Inline]) -> Optional[Link]:
    """First top-level link, or a link that is the sole child of a wrapper."""

    for inline in inlines:
        if isinstance(inline, Link):
            return inline
        if isinstance(inline, (Styled, Span)):
            if len(inline.children) == 1 and isinstance(inline.children[0], Link):
                return inline.children[0]
    return None


def first_link_in_blocks(blocks: Sequence[Block]) -> Optional[Link]:
    """First top-level link of the first paragraph that has one."""

    for block in blocks:
        if isinstance(block, Paragraph):
            for inline in block.children:
                if isinstance(inline, Link):
                    return inline
    return None


def child_list(blocks: Sequence[Block]) -> Optional[ListBlock]:
    for block in blocks:
        if isinstance(block, ListBlock):
            return block
    return None


def top_level_links(paragraph: Paragraph) -> List[Link]:
    return [inline for inline in paragraph.children if isinstance(inline, Link)]


def strong_only_text(block: Block | None) -> Optional[str]:
    """Text of a paragraph made only of bold runs and whitespace."""

    if not isinstance(block, Paragraph):
        return None
    parts: List[str] = []
    saw_strong = False
    for inline in block.children:
        if isinstance(inline, Space):
            parts.append(" ")
        elif isinstance(inline, Styled) and inline.style == "strong":
            text = strip_double_braces(stringify(inline.children))
            if text:
                saw_strong = True
                parts.append(text)
        else:
            return None
    if not saw_strong:
        return None
    text = strip_double_braces(" ".join(parts))
    return text or None
