"""Block-stream preparation: flattening, span unwrapping and inline queries."""

from .flatten import flatten_blocks, origin_of
from .inlines import block_text, stringify
from .unwrap import prepare_block, unwrap_style_spans

__all__ = [
    "flatten_blocks",
    "origin_of",
    "block_text",
    "stringify",
    "prepare_block",
    "unwrap_style_spans",
]
