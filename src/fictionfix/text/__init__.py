"""Text helpers used by the shape matchers."""

from .normalize import normalize_ws, squash, strip_double_braces

__all__ = ["normalize_ws", "squash", "strip_double_braces"]
