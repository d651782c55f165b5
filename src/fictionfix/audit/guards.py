"""Guardrail assertions for the rewritten block stream."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Sequence

from ..types import BACK_MATTER, MAIN_MATTER, SCENE_BREAK, Block, Container, Heading, OriginMarker, is_marker

LOGGER = logging.getLogger(__name__)


def run_audits(blocks: Sequence[Block]) -> None:
    _assert_marker_order(blocks)
    _assert_no_adjacent_scene_breaks(blocks)
    _assert_heading_levels(blocks)
    _assert_no_internal_nodes(blocks)
    _log_marker_counts(blocks)


def _assert_marker_order(blocks: Sequence[Block]) -> None:
    main_at = [index for index, block in enumerate(blocks) if is_marker(block, MAIN_MATTER)]
    back_at = [index for index, block in enumerate(blocks) if is_marker(block, BACK_MATTER)]
    if not main_at:
        raise AssertionError("Main-matter marker missing from output")
    if len(main_at) > 1:
        raise AssertionError("More than one main-matter marker emitted")
    if len(back_at) > 1:
        raise AssertionError("More than one back-matter marker emitted")
    if back_at and back_at[0] < main_at[0]:
        raise AssertionError("Back-matter marker precedes main-matter marker")


def _assert_no_adjacent_scene_breaks(blocks: Sequence[Block]) -> None:
    for previous, current in zip(blocks, blocks[1:]):
        if is_marker(previous, SCENE_BREAK) and is_marker(current, SCENE_BREAK):
            raise AssertionError("Adjacent scene-break markers emitted")


def _assert_heading_levels(blocks: Sequence[Block]) -> None:
    for block in blocks:
        if isinstance(block, Heading) and block.level not in (1, 2, 3):
            raise AssertionError(f"Heading level {block.level} outside part/chapter/section range")


def _assert_no_internal_nodes(blocks: Sequence[Block]) -> None:
    for block in blocks:
        if isinstance(block, OriginMarker):
            raise AssertionError("Origin marker leaked into output")
        if isinstance(block, Container):
            raise AssertionError("Container survived flattening")


def _log_marker_counts(blocks: Sequence[Block]) -> None:
    counter: Counter[str] = Counter(type(block).__name__ for block in blocks)
    LOGGER.info("output block kinds: %s", dict(counter))
