"""fictionfix: rebuild novel structure from generically converted e-books."""

from .config import FeatureConfig, FixConfig, LoggingConfig, ThresholdConfig, load_config
from .driver import FixResult, fix_blocks, fix_document

__all__ = [
    "FeatureConfig",
    "FixConfig",
    "LoggingConfig",
    "ThresholdConfig",
    "load_config",
    "FixResult",
    "fix_blocks",
    "fix_document",
]
