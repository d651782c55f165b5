"""Decide whether level-1 headings are parts or chapters."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from ..config import FeatureConfig
from ..logging_utils import log_event
from ..parsing.inlines import clean_text
from ..types import Block, Heading
from .shapes import (
    chapter_title_from_text,
    is_all_caps_title,
    is_explicit_part_header,
    is_numeral_heading,
    looks_like_author_name,
)

LOGGER = logging.getLogger(__name__)

PART = "part"
CHAPTER = "chapter"


@dataclass(slots=True)
class HeadingCounts:
    """Per-level heading tallies gathered in one scan."""

    h1: int = 0
    h2: int = 0
    part_markers: int = 0
    h1_chapter_like: int = 0
    h2_chapter_like: int = 0
    h2_author_like: int = 0


def _is_chapter_like(title: str) -> bool:
    if chapter_title_from_text(title, allow_all_caps=True):
        return True
    return is_numeral_heading(title) or is_all_caps_title(title)


def count_headings(blocks: Sequence[Block], features: FeatureConfig | None = None) -> HeadingCounts:
    allow_by = features.author_line_allows_by_prefix if features else False
    counts = HeadingCounts()
    for block in blocks:
        if not isinstance(block, Heading) or block.level not in (1, 2):
            continue
        title = clean_text(block)
        if is_explicit_part_header(title):
            counts.part_markers += 1
        if block.level == 1:
            counts.h1 += 1
            if _is_chapter_like(title):
                counts.h1_chapter_like += 1
        else:
            counts.h2 += 1
            if looks_like_author_name(title, allow_by):
                counts.h2_author_like += 1
            if _is_chapter_like(title):
                counts.h2_chapter_like += 1
    return counts


def decide_role(counts: HeadingCounts) -> str:
    """First matching rule wins; anything undecided is a part."""

    if counts.h1 == 0:
        return PART
    if counts.part_markers:
        return PART
    if counts.h1_chapter_like >= 2:
        return CHAPTER
    if counts.h2_chapter_like >= 2:
        return PART
    if counts.h1 >= 4 and counts.h2 == 0:
        return CHAPTER
    if counts.h1 >= 3 and counts.h2 >= 2 and counts.h2_author_like >= counts.h2_chapter_like + 1:
        return CHAPTER
    if (
        counts.h1 >= 4
        and counts.h2 >= 4
        and counts.h2_author_like / counts.h2 > 0.6
        and counts.h2_chapter_like == 0
    ):
        return CHAPTER
    return PART


def infer_heading_role(blocks: Sequence[Block], features: FeatureConfig | None = None) -> str:
    """Role of level-1 headings; an explicit ``heading_role`` wins."""

    if features is not None and features.heading_role in (PART, CHAPTER):
        log_event("heading_role", role=features.heading_role, source="config")
        return features.heading_role
    counts = count_headings(blocks, features)
    role = decide_role(counts)
    LOGGER.debug("level-1 headings inferred as %s (%s)", role, counts)
    log_event("heading_role", role=role, source="inferred", h1=counts.h1, h2=counts.h2)
    return role
