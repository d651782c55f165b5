"""Lightweight telemetry for a rewrite pass."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping, Sequence

from ..parsing.inlines import iter_block_inlines
from ..types import SCENE_BREAK, Block, Heading, Note, is_marker


@dataclass(slots=True)
class FixMetrics:
    """Simple container for pass metrics."""

    parts: int
    chapters: int
    sections: int
    scene_breaks: int
    footnotes: int
    input_blocks: int
    output_blocks: int
    decisions: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def compute_metrics(
    blocks: Sequence[Block],
    decisions: Mapping[str, int] | None = None,
    input_blocks: int = 0,
) -> FixMetrics:
    levels = [block.level for block in blocks if isinstance(block, Heading)]
    footnotes = sum(
        1 for block in blocks for inline in iter_block_inlines(block) if isinstance(inline, Note)
    )
    return FixMetrics(
        parts=levels.count(1),
        chapters=levels.count(2),
        sections=levels.count(3),
        scene_breaks=sum(1 for block in blocks if is_marker(block, SCENE_BREAK)),
        footnotes=footnotes,
        input_blocks=input_blocks,
        output_blocks=len(blocks),
        decisions=dict(decisions or {}),
    )
