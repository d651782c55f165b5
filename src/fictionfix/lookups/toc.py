"""Build anchor lookups from an in-book table of contents page."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..config import ThresholdConfig
from ..inference.shapes import is_by_line, is_toc_title
from ..logging_utils import log_event
from ..parsing.flatten import origin_of
from ..parsing.inlines import (
    child_list,
    clean_text,
    first_link_in_blocks,
    link_title,
    normalize_anchor,
    top_level_links,
)
from ..types import Block, Heading, ListBlock, Paragraph

LOGGER = logging.getLogger(__name__)

CHAPTER = "chapter"
SECTION = "section"

_TOC_SOURCE = re.compile(r"(contents|toc)\.xhtml$")


@dataclass(frozen=True, slots=True)
class TocEntry:
    """One navigable target listed on the ToC page."""

    level: str
    title: str
    ordinal: Optional[int] = None
    parent: Optional[str] = None

    @property
    def heading_level(self) -> int:
        return 2 if self.level == CHAPTER else 3

    @property
    def prefix(self) -> str:
        return f"{self.ordinal}: " if self.ordinal is not None else ""


@dataclass(frozen=True, slots=True)
class TocIndex:
    """Read-only ToC lookups: anchor -> entry, chapter title -> child titles."""

    entries: Mapping[str, TocEntry] = field(default_factory=dict)
    sections_by_chapter: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    def lookup(self, anchor: str | None) -> Optional[TocEntry]:
        key = normalize_anchor(anchor)
        if not key:
            return None
        return self.entries.get(key)

    def child_sections(self, chapter: str | None) -> Tuple[str, ...]:
        if not chapter:
            return ()
        return self.sections_by_chapter.get(chapter, ())

    def __len__(self) -> int:
        return len(self.entries)

    @classmethod
    def build(
        cls,
        entries: Mapping[str, TocEntry],
        sections_by_chapter: Mapping[str, Sequence[str]] | None = None,
    ) -> "TocIndex":
        sections = {title: tuple(children) for title, children in (sections_by_chapter or {}).items()}
        return cls(entries=MappingProxyType(dict(entries)), sections_by_chapter=MappingProxyType(sections))


EMPTY_TOC = TocIndex.build({})


def find_toc_start(blocks: Sequence[Block]) -> Optional[int]:
    for index, block in enumerate(blocks):
        if isinstance(block, (Paragraph, Heading)) and is_toc_title(clean_text(block)):
            return index
    return None


def is_foreign_origin(source: str | None, toc_source: str | None) -> bool:
    """An origin that is neither the ToC page's own file nor a contents file."""

    if not source:
        return False
    if _TOC_SOURCE.search(source):
        return False
    return source != toc_source


def _prefer_title(current: str, candidate: str) -> str:
    """Duplicate anchor: prefer a non-attribution title, else the longer one."""

    if is_by_line(candidate):
        return current
    if is_by_line(current):
        return candidate
    if len(candidate) > len(current):
        return candidate
    return current


def _add_chapter(entries: Dict[str, TocEntry], target: str, title: str) -> None:
    existing = entries.get(target)
    if existing is None:
        entries[target] = TocEntry(level=CHAPTER, title=title)
        return
    preferred = _prefer_title(existing.title, title)
    if preferred != existing.title:
        entries[target] = TocEntry(
            level=existing.level, title=preferred, ordinal=existing.ordinal, parent=existing.parent
        )


def _read_list(toc: ListBlock, entries: Dict[str, TocEntry], sections: Dict[str, List[str]]) -> None:
    for item in toc.items:
        link = first_link_in_blocks(item)
        if link is None:
            continue
        title = link_title(link)
        target = normalize_anchor(link.target)
        if not title or not target:
            continue
        entries.setdefault(target, TocEntry(level=CHAPTER, title=title))
        children = child_list(item)
        if children is None:
            continue
        section_titles: List[str] = []
        sections[title] = section_titles
        for child in children.items:
            child_link = first_link_in_blocks(child)
            if child_link is None:
                continue
            child_title = link_title(child_link)
            child_target = normalize_anchor(child_link.target)
            if not child_title or not child_target:
                continue
            section_titles.append(child_title)
            entries[child_target] = TocEntry(
                level=SECTION, title=child_title, ordinal=len(section_titles), parent=title
            )


def extract_toc(blocks: Sequence[Block], thresholds: ThresholdConfig | None = None) -> TocIndex:
    """Scan a bounded window after the ToC title and build the lookups."""

    limits = thresholds or ThresholdConfig()
    start = find_toc_start(blocks)
    if start is None:
        return EMPTY_TOC

    toc_source: Optional[str] = None
    for block in blocks[:start]:
        toc_source = origin_of(block) or toc_source

    entries: Dict[str, TocEntry] = {}
    sections: Dict[str, List[str]] = {}
    streak = 0
    stop = min(len(blocks), start + 1 + limits.toc_window)

    for index in range(start + 1, stop):
        block = blocks[index]
        if is_foreign_origin(origin_of(block), toc_source):
            LOGGER.debug("ToC scan stopped at origin %s (block %d)", origin_of(block), index)
            break

        if isinstance(block, ListBlock):
            streak = 0
            _read_list(block, entries, sections)
            continue

        if isinstance(block, Paragraph):
            links = top_level_links(block)
            if len(links) == 1:
                streak = 0
                target = normalize_anchor(links[0].target)
                title = link_title(links[0])
                if target and title:
                    _add_chapter(entries, target, title)
                continue
            length = len(clean_text(block))
            streak += 2 if length > limits.toc_long_paragraph else 1
        else:
            streak += 1
        if streak >= limits.toc_break_points:
            LOGGER.debug("ToC scan stopped after %d non-ToC points (block %d)", streak, index)
            break

    log_event("toc_extracted", start=start, entries=len(entries), chapters_with_sections=len(sections))
    return TocIndex.build(entries, sections)
