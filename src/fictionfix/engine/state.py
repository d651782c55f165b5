"""Per-pass engine state and the context handed to every cascade rule."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from ..config import FeatureConfig, FixConfig, ThresholdConfig
from ..inference.roles import PART
from ..inference.shapes import is_backmatter_division, is_frontmatter_division, is_scene_break_text
from ..logging_utils import log_event
from ..lookups.endnotes import EMPTY_NOTES, EndnoteMap
from ..lookups.toc import EMPTY_TOC, TocIndex, is_foreign_origin
from ..parsing.flatten import origin_of
from ..parsing.inlines import clean_text, strong_only_text
from ..text.normalize import has_letters
from ..types import (
    BACK_MATTER,
    MAIN_MATTER,
    SCENE_BREAK,
    Block,
    BlockQuote,
    Heading,
    Marker,
    Paragraph,
    is_marker,
)
from .patterns import block_at, is_structural_start

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class EngineState:
    """Mutable classification state for exactly one rewrite pass."""

    origin: Optional[str] = None
    mainmatter_started: bool = False
    backmatter_started: bool = False
    current_chapter: Optional[str] = None
    just_started_chapter: bool = False
    skipping_toc: bool = False
    toc_started_at: int = -1
    toc_source: Optional[str] = None
    skipping_frontmatter: bool = False
    frontmatter_guard: int = 0
    terminated: bool = False


@dataclass(slots=True)
class PassContext:
    """Input tuple, read-only lookups, state and output of one pass."""

    blocks: Tuple[Block, ...]
    config: FixConfig
    toc: TocIndex = EMPTY_TOC
    notes: EndnoteMap = EMPTY_NOTES
    role: str = PART
    state: EngineState = field(default_factory=EngineState)
    out: List[Block] = field(default_factory=list)
    decisions: Counter[str] = field(default_factory=Counter)

    @property
    def features(self) -> FeatureConfig:
        return self.config.features

    @property
    def thresholds(self) -> ThresholdConfig:
        return self.config.thresholds

    def block(self, index: int) -> Optional[Block]:
        return block_at(self.blocks, index)

    def text(self, index: int) -> str:
        block = self.block(index)
        return clean_text(block) if block is not None else ""

    # --- output ------------------------------------------------------------------------

    def emit(self, block: Block) -> None:
        self.out.append(block)

    def last_is_scene_break(self) -> bool:
        return bool(self.out) and is_marker(self.out[-1], SCENE_BREAK)

    def emit_scene_break(self) -> bool:
        if self.last_is_scene_break():
            return False
        self.out.append(Marker(SCENE_BREAK))
        return True

    def ensure_mainmatter(self) -> None:
        if self.state.mainmatter_started:
            return
        self.out.append(Marker(MAIN_MATTER))
        self.state.mainmatter_started = True
        self.state.skipping_frontmatter = False
        log_event("marker_inserted", kind=MAIN_MATTER, position=len(self.out) - 1)

    def ensure_backmatter(self) -> None:
        self.ensure_mainmatter()
        if self.state.backmatter_started:
            return
        self.out.append(Marker(BACK_MATTER))
        self.state.backmatter_started = True
        log_event("marker_inserted", kind=BACK_MATTER, position=len(self.out) - 1)

    def enter_division(self, title: str) -> None:
        """Open main or back matter for a part/chapter-level title."""

        if is_backmatter_division(title):
            self.ensure_backmatter()
        elif not is_frontmatter_division(title):
            self.ensure_mainmatter()

    def open_part(self) -> None:
        self.state.current_chapter = None
        self.state.just_started_chapter = False

    def open_chapter(self, title: str, expect_attribution: bool = True) -> None:
        self.state.current_chapter = title
        self.state.just_started_chapter = expect_attribution

    def decide(self, rule: str, index: int, **payload: Any) -> None:
        self.decisions[rule] += 1
        if rule != "passthrough":
            log_event("decision", rule=rule, index=index, text=self.text(index)[:80], **payload)

    # --- transitions -------------------------------------------------------------------

    def observe(self, index: int) -> None:
        """State changes a block causes before any rule runs; consumes nothing."""

        block = self.block(index)
        if block is None:
            return
        state = self.state

        source = origin_of(block)
        if source:
            state.origin = source

        if state.skipping_toc:
            foreign = is_foreign_origin(source, state.toc_source)
            expired = index - state.toc_started_at > self.thresholds.toc_window
            if foreign or expired or isinstance(block, Heading):
                state.skipping_toc = False
                log_event("toc_suppression_end", index=index, origin=source, expired=expired)

        if state.skipping_frontmatter:
            state.frontmatter_guard += 1
            if state.mainmatter_started or state.frontmatter_guard > self.thresholds.frontmatter_skip_guard:
                state.skipping_frontmatter = False
                LOGGER.debug("frontmatter skip guard released at block %d", index)
            elif is_structural_start(self.blocks, index, self.features, self.thresholds):
                state.skipping_frontmatter = False
                log_event("frontmatter_skip_end", index=index)

        if state.just_started_chapter and isinstance(block, (Paragraph, BlockQuote)):
            text = clean_text(block)
            if has_letters(text) and not is_scene_break_text(text, self.thresholds):
                if strong_only_text(block) is None:
                    state.just_started_chapter = False

    def consume(self, start: int, stop: int) -> None:
        """Track origins announced inside a multi-block span a rule consumed."""

        for index in range(start + 1, min(stop, len(self.blocks))):
            block = self.blocks[index]
            source = origin_of(block)
            if source:
                self.state.origin = source
