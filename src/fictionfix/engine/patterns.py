"""Multi-block shape checks over the immutable input tuple.

Each helper takes the block sequence and a cursor position and looks at most
a couple of blocks ahead. They never mutate anything.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..config import FeatureConfig, ThresholdConfig
from ..inference.shapes import (
    chapter_title_from_text,
    is_blankish_text,
    is_notes_title,
    is_part_number_line,
    is_part_shaped,
    is_preface_marker,
    is_scene_break_text,
    is_toc_title,
    looks_like_about_author,
    looks_like_other_books,
    looks_like_titlepage_heading,
    part_title_from_single_line,
)
from ..parsing.inlines import clean_text, has_internal_link
from ..text.normalize import has_letters, squash
from ..types import MAIN_MATTER, SCENE_BREAK, Block, BlockQuote, Heading, ListBlock, Paragraph, Rule, is_marker


def block_at(blocks: Sequence[Block], index: int) -> Optional[Block]:
    if 0 <= index < len(blocks):
        return blocks[index]
    return None


def paragraph_text(block: Block | None) -> Optional[str]:
    if isinstance(block, Paragraph):
        return clean_text(block)
    return None


def is_blankish(block: Block | None) -> bool:
    return isinstance(block, Paragraph) and is_blankish_text(block.text)


def next_content_index(blocks: Sequence[Block], start: int) -> int:
    """First index at or after ``start`` that is not a blank paragraph."""

    index = start
    while index < len(blocks) and is_blankish(blocks[index]):
        index += 1
    return index


def is_scene_break_block(block: Block, thresholds: ThresholdConfig) -> bool:
    if isinstance(block, Rule) or is_marker(block, SCENE_BREAK):
        return True
    if isinstance(block, (Paragraph, BlockQuote)):
        return is_scene_break_text(clean_text(block), thresholds)
    return False


def is_empty_quote(block: Block) -> bool:
    if not isinstance(block, BlockQuote):
        return False
    text = squash(clean_text(block))
    return not text or set(text) == {"~"}


# --- navigation -----------------------------------------------------------------------


def is_nav_list(block: Block, min_items: int) -> bool:
    if not isinstance(block, ListBlock) or len(block.items) < min_items:
        return False
    for item in block.items:
        if not item or not isinstance(item[0], Paragraph):
            return False
        if not has_internal_link(item[0]):
            return False
    return True


def is_nav_quote(block: Block, min_items: int) -> bool:
    if not isinstance(block, BlockQuote):
        return False
    if any(is_nav_list(child, min_items) for child in block.blocks):
        return True
    if len(block.blocks) < min_items:
        return False
    return all(isinstance(child, Paragraph) and has_internal_link(child) for child in block.blocks)


# --- parts ----------------------------------------------------------------------------


def part_title_before_rule(blocks: Sequence[Block], index: int, thresholds: ThresholdConfig) -> Optional[str]:
    """Part-shaped paragraph immediately followed by a horizontal rule."""

    text = paragraph_text(block_at(blocks, index))
    if text is None or not isinstance(block_at(blocks, index + 1), Rule):
        return None
    return text if is_part_shaped(text, thresholds) else None


def part_number_then_title(blocks: Sequence[Block], index: int) -> Optional[str]:
    """``Part One`` paragraph followed by the part's title paragraph."""

    first = paragraph_text(block_at(blocks, index))
    second = paragraph_text(block_at(blocks, index + 1))
    if first is None or second is None or not is_part_number_line(first):
        return None
    if not second or len(second) > 120 or not has_letters(second):
        return None
    if is_toc_title(second) or is_notes_title(second):
        return None
    return second


def part_title_before_preface(blocks: Sequence[Block], index: int) -> Optional[str]:
    """Book/part title paragraph immediately followed by Foreword, Preface and the like."""

    first = paragraph_text(block_at(blocks, index))
    second = paragraph_text(block_at(blocks, index + 1))
    if first is None or second is None:
        return None
    if not first or len(first) > 80 or not has_letters(first):
        return None
    if is_toc_title(first) or is_notes_title(first):
        return None
    return first if is_preface_marker(second) else None


# --- frontmatter skipping -------------------------------------------------------------


def is_structural_start(
    blocks: Sequence[Block],
    index: int,
    features: FeatureConfig,
    thresholds: ThresholdConfig,
) -> bool:
    """Block that ends a frontmatter skip run."""

    block = block_at(blocks, index)
    if is_marker(block, MAIN_MATTER):
        return True
    if isinstance(block, Heading):
        title = clean_text(block)
        if is_toc_title(title) or looks_like_other_books(title) or looks_like_about_author(title):
            return False
        return not looks_like_titlepage_heading(title, features.title)
    text = paragraph_text(block)
    if text is None:
        return False
    if chapter_title_from_text(text, allow_all_caps=True) or part_title_from_single_line(text, thresholds):
        return True
    if part_number_then_title(blocks, index) is not None:
        return True
    return part_title_before_rule(blocks, index, thresholds) is not None
