"""Whitespace and invisible-character cleanup for matcher text."""

# Every shape matcher compares normalised text, never the raw runs. The
# mapping below covers what Calibre and InDesign exports leave behind.

from __future__ import annotations

import re

_TO_SPACE = {
    "\u00a0": " ",  # no-break space
    "\u2007": " ",  # figure space
    "\u202f": " ",  # narrow no-break space
    "\u2028": " ",  # line separator
    "\u2029": " ",  # paragraph separator
}
_REMOVE = ("\u200b", "\u200c", "\u200d", "\u2060", "\ufeff")

_TRANSLATION = str.maketrans({**_TO_SPACE, **{ch: None for ch in _REMOVE}})
_WS_RUN = re.compile(r"\s+")
_DOUBLE_BRACES = re.compile(r"^\{\{(.+)\}\}$", re.DOTALL)
_NON_KEY = re.compile(r"[\W_]+")


def normalize_ws(text: str | None) -> str:
    """Map invisible/format code points to a space or drop them."""

    if not text:
        return ""
    return text.translate(_TRANSLATION)


def squash(text: str | None) -> str:
    """Normalise, collapse whitespace runs to one space and trim."""

    return _WS_RUN.sub(" ", normalize_ws(text)).strip()


def strip_double_braces(text: str | None) -> str:
    """Squash and drop a wrapping ``{{ ... }}`` left over from style spans."""

    squashed = squash(text)
    match = _DOUBLE_BRACES.match(squashed)
    if match:
        return squash(match.group(1))
    return squashed


def has_letters(text: str | None) -> bool:
    return any(ch.isalpha() for ch in text or "")


def letters_count(text: str | None) -> int:
    return sum(1 for ch in text or "" if ch.isalpha())


def has_lowercase(text: str | None) -> bool:
    return any(ch.islower() for ch in text or "")


def letters_only_lower(text: str | None) -> str:
    """``"Acknowledgements:"`` -> ``"acknowledgements"``."""

    return "".join(ch for ch in (text or "").lower() if ch.isalpha())


def normalize_key(text: str | None) -> str:
    """Comparison key: lowercase letters and digits only."""

    return _NON_KEY.sub("", strip_double_braces(text).lower())


__all__ = [
    "normalize_ws",
    "squash",
    "strip_double_braces",
    "has_letters",
    "letters_count",
    "has_lowercase",
    "letters_only_lower",
    "normalize_key",
]
