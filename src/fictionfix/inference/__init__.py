"""Shape matchers and document-level role inference."""

from .roles import CHAPTER, PART, decide_role, infer_heading_role

__all__ = ["CHAPTER", "PART", "decide_role", "infer_heading_role"]
