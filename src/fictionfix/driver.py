"""High-level orchestration for the fiction fixer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

from .audit.guards import run_audits
from .config import FixConfig, load_config
from .engine.rewriter import Rewriter
from .inference.roles import infer_heading_role
from .logging_utils import configure_logger, log_event
from .lookups.endnotes import EMPTY_NOTES, build_endnote_map
from .lookups.toc import extract_toc
from .parsing.flatten import flatten_blocks
from .parsing.unwrap import prepare_block
from .telemetry.metrics import FixMetrics, compute_metrics
from .types import Block, Document

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class FixResult:
    """Outcome of one document pass."""

    blocks: List[Block]
    metrics: FixMetrics
    role: str
    toc_entries: int
    endnotes: int


def fix_blocks(blocks: Sequence[Block], config: FixConfig | None = None) -> FixResult:
    """Flatten, build lookups, infer the heading role and rewrite."""

    cfg = config or load_config()
    if cfg.logging.debug:
        configure_logger(debug=True)

    flat = flatten_blocks(blocks)
    toc = extract_toc(flat, cfg.thresholds)
    notes = build_endnote_map(flat) if cfg.features.convert_endnotes else EMPTY_NOTES
    prepared = [prepare_block(block, remove_images=cfg.features.drop_images) for block in flat]
    role = infer_heading_role(prepared, cfg.features)

    result = Rewriter(cfg).rewrite(prepared, toc=toc, notes=notes, role=role)
    run_audits(result.blocks)
    metrics = compute_metrics(result.blocks, result.decisions, input_blocks=len(flat))
    LOGGER.info(
        "role=%s | toc entries=%d | endnotes=%d | parts=%d chapters=%d sections=%d",
        role,
        len(toc),
        len(notes),
        metrics.parts,
        metrics.chapters,
        metrics.sections,
    )
    log_event("pass_complete", role=role, blocks_in=len(flat), blocks_out=len(result.blocks))
    return FixResult(
        blocks=result.blocks,
        metrics=metrics,
        role=role,
        toc_entries=len(toc),
        endnotes=len(notes),
    )


def fix_document(document: Document, config: FixConfig | None = None) -> tuple[Document, FixResult]:
    """Apply document metadata overrides, then :func:`fix_blocks`."""

    cfg = (config or load_config()).with_metadata(document.meta)
    result = fix_blocks(document.blocks, cfg)
    fixed = Document(blocks=result.blocks, meta=document.meta, api_version=document.api_version)
    return fixed, result
