"""Classification and rewrite engine."""

from .cascade import CASCADE, RULE_NAMES, Rule, first_match
from .rewriter import RewriteResult, Rewriter
from .state import EngineState, PassContext

__all__ = [
    "CASCADE",
    "RULE_NAMES",
    "Rule",
    "first_match",
    "RewriteResult",
    "Rewriter",
    "EngineState",
    "PassContext",
]
