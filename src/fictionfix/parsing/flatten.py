"""Collapse generic wrapper containers into one ordered block sequence."""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional

from ..types import Block, Container, OriginMarker, Paragraph, Span

LOGGER = logging.getLogger(__name__)

FILE_MARKER_CLASS = "_filemarker"
PAGEBREAK_CLASSES = frozenset({"mbp_pagebreak", "pagebreak"})

_SOURCE_FILE = re.compile(r"^([^#]+\.x?html)")
_SOURCE_SUFFIX = re.compile(r"\.x?html$")
_CALIBRE_PAGEBREAK_ID = re.compile(r"calibre_pb_\d+")


def source_from_identifier(identifier: str | None) -> Optional[str]:
    """``"chapter06.xhtml#p12"`` -> ``"chapter06.xhtml"``."""

    if not identifier:
        return None
    match = _SOURCE_FILE.match(identifier)
    return match.group(1) if match else None


def is_pagebreak_container(container: Container) -> bool:
    if any(cls in PAGEBREAK_CLASSES for cls in container.classes):
        return True
    return bool(_CALIBRE_PAGEBREAK_ID.search(container.id or ""))


def origin_of(block: Block) -> Optional[str]:
    """Source sub-document a block announces, if any.

    Flattened streams announce sources through :class:`OriginMarker`; some
    converters instead leave an anchor span (or paragraph id) named after the
    file at the top of each chapter file.
    """

    if isinstance(block, OriginMarker):
        return block.source
    if isinstance(block, Container):
        if FILE_MARKER_CLASS in block.classes and block.id:
            return block.id
        return source_from_identifier(block.id)
    if isinstance(block, Paragraph):
        if block.id and _SOURCE_SUFFIX.search(block.id):
            return block.id
        for inline in block.children:
            if isinstance(inline, Span) and inline.id and _SOURCE_SUFFIX.search(inline.id):
                return inline.id
    return None


def flatten_blocks(blocks: Iterable[Block]) -> List[Block]:
    """Splice container children in place, marking source-file boundaries."""

    out: List[Block] = []

    def walk(block: Block) -> None:
        if not isinstance(block, Container):
            out.append(block)
            return
        source = origin_of(block)
        if source:
            out.append(OriginMarker(source))
        if is_pagebreak_container(block) and not block.children:
            return
        for child in block.children:
            walk(child)

    for block in blocks:
        walk(block)
    LOGGER.debug("flattened %d blocks", len(out))
    return out
