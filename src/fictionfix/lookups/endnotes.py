"""Endnote definitions and their conversion into inline footnotes."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..logging_utils import log_event
from ..parsing.flatten import origin_of
from ..parsing.inlines import first_link, normalize_anchor
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

LOGGER = logging.getLogger(__name__)

_BARE_NOTE = re.compile(r"^fn\d+$")
_QUALIFIED_NOTE = re.compile(r"#fn\d+$")


def note_key(anchor: str | None, origin: str | None) -> Optional[str]:
    """Lookup key for a note anchor; bare ``fnN`` ids are qualified by origin."""

    key = normalize_anchor(anchor)
    if not key:
        return None
    if _BARE_NOTE.match(key) and origin:
        key = f"{origin}#{key}"
    return key


def is_note_key(key: str | None) -> bool:
    return bool(key) and bool(_BARE_NOTE.match(key) or _QUALIFIED_NOTE.search(key))


@dataclass(frozen=True, slots=True)
class EndnoteMap:
    """Read-only anchor -> note body lookup."""

    notes: Mapping[str, Tuple[Block, ...]] = field(default_factory=dict)

    def resolve(self, target: str | None, origin: str | None) -> Optional[Tuple[Block, ...]]:
        key = note_key(target, origin)
        if key is None:
            return None
        return self.notes.get(key)

    def __len__(self) -> int:
        return len(self.notes)

    @classmethod
    def build(cls, notes: Mapping[str, Sequence[Block]]) -> "EndnoteMap":
        return cls(notes=MappingProxyType({key: tuple(body) for key, body in notes.items()}))


EMPTY_NOTES = EndnoteMap.build({})


def _wraps(inline: Inline, link: Link) -> bool:
    return isinstance(inline, (Styled, Span)) and any(child is link for child in inline.children)


def _leads(inlines: Sequence[Inline], link: Link) -> bool:
    for inline in inlines:
        if isinstance(inline, Space):
            continue
        return inline is link or _wraps(inline, link)
    return False


def _definition_link_key(inlines: Sequence[Inline], link: Link, origin: str | None) -> Optional[str]:
    """Key from the link id; the target only counts when the link opens the paragraph."""

    key = note_key(link.id, origin)
    if is_note_key(key):
        return key
    if _leads(inlines, link):
        key = note_key(link.target, origin)
        if is_note_key(key):
            return key
    return None


def _split_after_colon(inlines: Sequence[Inline], link: Link) -> Optional[List[Inline]]:
    """Inline content after the first literal colon that follows ``link``."""

    seen_link = False
    for index, inline in enumerate(inlines):
        if not seen_link:
            if inline is link or _wraps(inline, link):
                seen_link = True
            continue
        if isinstance(inline, Text) and ":" in inline.text:
            remainder = inline.text.split(":", 1)[1].lstrip()
            after: List[Inline] = []
            if remainder:
                after.append(Text(remainder))
            after.extend(inlines[index + 1 :])
            while after and isinstance(after[0], Space):
                after.pop(0)
            return after
    return None


def note_definition(block: Block, origin: str | None) -> Optional[Tuple[str, List[Inline]]]:
    """``(key, body)`` when ``block`` defines an endnote, else ``None``."""

    if not isinstance(block, Paragraph):
        return None
    link = first_link(block.children)
    if link is None:
        return None
    key = _definition_link_key(block.children, link, origin)
    if key is None:
        return None
    body = _split_after_colon(block.children, link)
    if body is None:
        return None
    return key, body


def is_note_definition(block: Block, origin: str | None) -> bool:
    return note_definition(block, origin) is not None


def build_endnote_map(blocks: Sequence[Block]) -> EndnoteMap:
    """Collect note definitions from the flattened stream."""

    notes: Dict[str, List[Block]] = {}
    origin: Optional[str] = None
    for block in blocks:
        origin = origin_of(block) or origin
        definition = note_definition(block, origin)
        if definition is None:
            continue
        key, body = definition
        if body:
            notes[key] = [Paragraph(body)]
    log_event("endnotes_collected", count=len(notes))
    return EndnoteMap.build(notes)


# --- link rewriting -------------------------------------------------------------------


def _attach_inlines(inlines: Sequence[Inline], notes: EndnoteMap, origin: str | None) -> List[Inline]:
    return [_attach_inline(inline, notes, origin) for inline in inlines]


def _attach_inline(inline: Inline, notes: EndnoteMap, origin: str | None) -> Inline:
    if isinstance(inline, (Text, Space, OpaqueInline, Image, Note)):
        return inline
    if isinstance(inline, Styled):
        return Styled(inline.style, _attach_inlines(inline.children, notes, origin))
    if isinstance(inline, Span):
        return Span(
            id=inline.id,
            classes=list(inline.classes),
            attributes=list(inline.attributes),
            children=_attach_inlines(inline.children, notes, origin),
        )
    if isinstance(inline, Link):
        children = _attach_inlines(inline.children, notes, origin)
        body = notes.resolve(inline.target, origin)
        if body is not None:
            log_event("footnote_attached", target=inline.target)
            children.append(Note(list(body)))
        return Link(
            target=inline.target,
            children=children,
            id=inline.id,
            classes=list(inline.classes),
            attributes=list(inline.attributes),
            title=inline.title,
        )
    unhandled(inline)


def attach_footnotes(block: Block, notes: EndnoteMap, origin: str | None) -> Block:
    """Give every link that resolves to a note an inline footnote child."""

    if not len(notes):
        return block
    if isinstance(block, Paragraph):
        return Paragraph(_attach_inlines(block.children, notes, origin), id=block.id, plain=block.plain)
    if isinstance(block, Heading):
        return Heading(
            level=block.level,
            children=_attach_inlines(block.children, notes, origin),
            id=block.id,
            classes=list(block.classes),
            attributes=list(block.attributes),
        )
    if isinstance(block, ListBlock):
        return ListBlock(
            items=[[attach_footnotes(child, notes, origin) for child in item] for item in block.items],
            ordered=block.ordered,
            list_attributes=block.list_attributes,
        )
    if isinstance(block, BlockQuote):
        return BlockQuote([attach_footnotes(child, notes, origin) for child in block.blocks])
    if isinstance(block, Container):
        return Container(
            id=block.id,
            classes=list(block.classes),
            attributes=list(block.attributes),
            children=[attach_footnotes(child, notes, origin) for child in block.children],
        )
    if isinstance(block, (Rule, RawOutput, OriginMarker, Marker, Inscription, OpaqueBlock)):
        return block
    unhandled(block)
