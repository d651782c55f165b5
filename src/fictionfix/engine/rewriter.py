"""Single forward classification and rewrite pass."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from ..config import FixConfig, load_config
from ..inference.roles import PART
from ..logging_utils import log_event
from ..lookups.endnotes import EMPTY_NOTES, EndnoteMap
from ..lookups.toc import EMPTY_TOC, TocIndex
from ..types import MAIN_MATTER, Block, Marker
from .cascade import first_match
from .state import PassContext

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RewriteResult:
    """Rewritten blocks and how often each rule fired."""

    blocks: List[Block]
    decisions: Dict[str, int] = field(default_factory=dict)


class Rewriter:
    """Run the rule cascade over a flattened, prepared block sequence."""

    def __init__(self, config: FixConfig | None = None):
        self.config = config or load_config()

    def rewrite(
        self,
        blocks: Sequence[Block],
        *,
        toc: TocIndex = EMPTY_TOC,
        notes: EndnoteMap = EMPTY_NOTES,
        role: str = PART,
    ) -> RewriteResult:
        ctx = PassContext(blocks=tuple(blocks), config=self.config, toc=toc, notes=notes, role=role)
        total = len(ctx.blocks)
        i = 0
        while i < total and not ctx.state.terminated:
            ctx.observe(i)
            rule = first_match(ctx, i)
            next_i = rule.apply(ctx, i)
            ctx.decide(rule.name, i)
            if next_i <= i:
                LOGGER.warning("rule %s did not advance at block %d; forcing progress", rule.name, i)
                next_i = i + 1
            ctx.consume(i, next_i)
            i = next_i

        if ctx.state.terminated:
            LOGGER.debug("pass cut off at back-matter marketing, %d blocks dropped", total - i)
        if not ctx.state.mainmatter_started:
            ctx.out.insert(0, Marker(MAIN_MATTER))
            ctx.state.mainmatter_started = True
            log_event("marker_inserted", kind=MAIN_MATTER, position=0)
        return RewriteResult(blocks=ctx.out, decisions=dict(ctx.decisions))
