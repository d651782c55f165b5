"""Pure text-shape matchers for fiction-book structure.

Every function here takes text (or a text pair) and returns a decision or a
cleaned title. None of them look at engine state, so the cascade can be
reasoned about one predicate at a time.
"""

from __future__ import annotations

import re
import string
from typing import Optional

from ..config import ThresholdConfig
from ..text.normalize import (
    has_letters,
    has_lowercase,
    letters_count,
    letters_only_lower,
    normalize_key,
    squash,
    strip_double_braces,
)

DEFAULT_THRESHOLDS = ThresholdConfig()

WORD_NUMBERS = frozenset(
    {
        "one", "two", "three", "four", "five", "six", "seven", "eight", "nine", "ten",
        "eleven", "twelve", "thirteen", "fourteen", "fifteen", "sixteen", "seventeen",
        "eighteen", "nineteen", "twenty",
    }
)
# Chapter markers also run past twenty ("Thirty", "Forty-Two").
TENS_NUMBERS = frozenset({"twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety", "hundred"})

TOC_TITLES = frozenset({"table of contents", "contents"})
NOTES_TITLES = frozenset({"notes", "endnotes", "glossary", "notes and references"})

# "Word:" lead-ins that are still headings rather than glossary/endnote entries.
DIVISION_LEADINS = frozenset(
    {"acknowledgements", "acknowledgments", "foreword", "preface", "introduction", "dedication", "copyright"}
)
SINGLE_WORD_DIVISIONS = DIVISION_LEADINS | {"prologue", "epilogue", "afterword"}
PREFACE_MARKERS = frozenset(
    {"foreword", "preface", "introduction", "prologue", "afterword", "acknowledgements", "acknowledgments"}
)
FRONTMATTER_DIVISIONS = frozenset(
    {
        "foreword", "preface", "introduction", "acknowledgements", "acknowledgments",
        "dedication", "copyright", "abouttheauthor", "about",
    }
)
BACKMATTER_DIVISIONS = frozenset({"epilogue", "notes", "endnotes"})

SCENE_BREAK_LITERALS = frozenset({"***", "* * *", "⁂", "❦"})
_SCENE_BREAK_CHARS = frozenset("*._~-–—•·⋆⁂❦")
_BLANK_CHARS = frozenset(string.punctuation)

_QUOTE_CHARS = "`\"'‘’“”"
_BY_LINE = re.compile(r"^by\s|\sby\s")
_DEFINITION_LEADIN = re.compile(r"^([A-Za-z0-9][A-Za-z0-9\-]+):\s*")
_BARE_NUMERAL = re.compile(r"^\d{1,4}$")
_ROMAN = re.compile(r"^[IVXLCDM]+$")
_NUMBERED_TITLE = re.compile(r"^\d+\.\s*(.+)$")
_CHAPTER_WITH_TITLE = re.compile(r"^chapter\s+([\w.]+(?:-[\w.]+)*)(?:\s*[:\-–—]\s*|\s+)(.+)$", re.IGNORECASE)
_CHAPTER_MARKER_ONLY = re.compile(r"^chapter\s+([\w.]+(?:-[\w.]+)*)$", re.IGNORECASE)
_TRAILING_COLON = re.compile(r":\s*$")
_SENTENCE_PUNCT = re.compile(r"[.!?,:;]")
_LEADING_DASHES = re.compile(r"^\s*[-–—]+")
_PART_NUMBER_LINE = re.compile(r"^(?:part|book)\s+([a-z]+|\d+)[:.\-]?$")
_PART_WITH_TITLE = re.compile(r"^(?:part|book)\s+(\w+)\s*[:.\-]\s*(.+)$", re.IGNORECASE)
_PART_SPACE_TITLE = re.compile(r"^(?:part|book)\s+(\w+)\s+(.+)$", re.IGNORECASE)
_ROMAN_ANY_CASE = re.compile(r"^[ivxlcdm]+$", re.IGNORECASE)
_NUMBERED_SECTION = re.compile(r"^\d+\s+(.+)$")
_POV_TRAILER = re.compile(r"[-–—.]+$")
_VOWEL = re.compile(r"[aeiou]")
_NAME_PUNCTUATION = frozenset(".'’-& ")
_INSCRIPTION_LEADIN = re.compile(r"inscription\s*:")


# --- simple title classes -------------------------------------------------------------


def is_toc_title(text: str) -> bool:
    return squash(text).lower() in TOC_TITLES


def is_notes_title(text: str) -> bool:
    return squash(text).lower() in NOTES_TITLES


def is_by_line(text: str) -> bool:
    return bool(_BY_LINE.search(text.lower()))


def is_scene_break_text(text: str, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS) -> bool:
    t = squash(text)
    if t in SCENE_BREAK_LITERALS:
        return True
    if not t or len(t) > thresholds.scene_break_max_chars:
        return False
    return all(ch in _SCENE_BREAK_CHARS or ch.isspace() for ch in t)


def is_blankish_text(text: str) -> bool:
    t = squash(text)
    if not t:
        return True
    return len(t) <= 6 and all(ch == "~" or ch.isspace() or ch in _BLANK_CHARS for ch in t)


def is_frontmatter_division(title: str | None) -> bool:
    return letters_only_lower(title) in FRONTMATTER_DIVISIONS


def is_backmatter_division(title: str | None) -> bool:
    marker = letters_only_lower(title)
    return marker in BACKMATTER_DIVISIONS or "afterword" in marker


# --- chapters -------------------------------------------------------------------------


def chapter_title_from_text(text: str, allow_all_caps: bool = False) -> Optional[str]:
    """Return the chapter title a line stands for, or ``None``."""

    t = strip_double_braces(text)
    if not t:
        return None
    if _BARE_NUMERAL.match(t):
        return t
    if not has_letters(t):
        return None

    if t[0] in _QUOTE_CHARS:
        return None
    if t[-1] in _QUOTE_CHARS and len(t) < 80:
        return None

    leadin = _DEFINITION_LEADIN.match(t)
    if leadin and letters_only_lower(leadin.group(1)) not in DIVISION_LEADINS:
        return None

    lowered = t.lower()
    if lowered in ("notes", "endnotes"):
        return None
    if is_by_line(t):
        return None

    if _ROMAN.match(t) and len(t) <= 8 and t != "I":
        return t
    if lowered in WORD_NUMBERS:
        return t

    numbered = _NUMBERED_TITLE.match(t)
    if numbered:
        return squash(numbered.group(1))

    marker_only = _CHAPTER_MARKER_ONLY.match(t)
    if marker_only and _is_chapter_marker(marker_only.group(1)):
        return t
    chapter = _CHAPTER_WITH_TITLE.match(t)
    if chapter and _is_chapter_marker(chapter.group(1)):
        return squash(chapter.group(2))

    if lowered in SINGLE_WORD_DIVISIONS:
        return t

    if _TRAILING_COLON.search(t):
        base = squash(_TRAILING_COLON.sub("", t))
        marker = letters_only_lower(base)
        if marker in SINGLE_WORD_DIVISIONS or "afterword" in base.lower():
            return base

    if allow_all_caps and is_all_caps_title(t, max_chars=80, allow_punctuation=False):
        return t
    return None


def _is_chapter_marker(token: str) -> bool:
    """Numeric, Roman or spelled-out marker, hyphenated compounds included."""

    for piece in token.rstrip(".").split("-"):
        if any(ch.isdigit() for ch in piece):
            continue
        if _ROMAN_ANY_CASE.match(piece) or piece.lower() in WORD_NUMBERS or piece.lower() in TENS_NUMBERS:
            continue
        return False
    return bool(token.strip(".-"))


def is_all_caps_title(text: str, max_chars: int = 90, allow_punctuation: bool = True) -> bool:
    """Multi-word ALL-CAPS line (single caps words are usually POV names)."""

    t = squash(text)
    if not t or len(t) > max_chars:
        return False
    if t != t.upper() or letters_count(t) < 4 or " " not in t:
        return False
    if allow_punctuation:
        return True
    if any(ch.isdigit() for ch in t):
        return False
    return all(ch.isupper() or ch.isspace() for ch in t)


def is_numeral_heading(text: str) -> bool:
    t = strip_double_braces(text)
    if t.isdigit():
        return True
    return bool(_ROMAN.match(t)) and len(t) <= 8


# --- parts ----------------------------------------------------------------------------


def _is_part_token(token: str) -> bool:
    return token.isdigit() or bool(_ROMAN_ANY_CASE.match(token)) or token.lower() in WORD_NUMBERS


def is_part_number_line(text: str) -> bool:
    """``Part One`` / ``PART I.`` / ``Book 2:`` on a line of its own."""

    t = strip_double_braces(text).lower()
    match = _PART_NUMBER_LINE.match(t)
    return bool(match) and _is_part_token(match.group(1))


def is_part_shaped(text: str, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS) -> bool:
    """Short, title-cased, unpunctuated line."""

    t = strip_double_braces(text)
    if len(t) > 80 or not has_letters(t):
        return False
    if is_toc_title(t) or is_notes_title(t):
        return False
    if _LEADING_DASHES.match(t) or _SENTENCE_PUNCT.search(t):
        return False
    words = 0
    caps = 0
    for token in t.split():
        letters = "".join(ch for ch in token if ch.isalpha())
        if not letters:
            continue
        words += 1
        if letters[0].isupper():
            caps += 1
    if words == 0 or words > thresholds.part_max_words:
        return False
    if words == 1:
        return True
    if caps < 2:
        return False
    return caps / words >= thresholds.part_caps_ratio


def part_title_from_single_line(text: str, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS) -> Optional[str]:
    """``Part 3: Title`` -> ``Title``; also ``Part II The Return`` when the rest is title-shaped."""

    t = strip_double_braces(text)
    if not t or len(t) > 160 or not has_letters(t):
        return None
    if is_toc_title(t) or is_notes_title(t):
        return None
    match = _PART_WITH_TITLE.match(t)
    if match and _is_part_token(match.group(1)):
        rest = squash(match.group(2))
        if 0 < len(rest) <= 120 and has_letters(rest):
            return rest
    match = _PART_SPACE_TITLE.match(t)
    if match and _is_part_token(match.group(1)):
        rest = squash(match.group(2))
        if has_letters(rest) and is_part_shaped(rest, thresholds):
            return rest
    return None


def is_explicit_part_header(text: str) -> bool:
    t = strip_double_braces(text)
    if not t:
        return False
    return part_title_from_single_line(t) is not None or is_part_number_line(t)


def is_preface_marker(text: str) -> bool:
    return letters_only_lower(strip_double_braces(text)) in PREFACE_MARKERS


# --- sections -------------------------------------------------------------------------


def section_title_from_text(text: str) -> Optional[str]:
    """``12 THE LONG NIGHT`` -> ``THE LONG NIGHT``."""

    t = strip_double_braces(text)
    if not t or not has_letters(t) or t[0] in _QUOTE_CHARS:
        return None
    match = _NUMBERED_SECTION.match(t)
    if not match:
        return None
    rest = match.group(1)
    if rest == rest.upper() and letters_count(rest) >= 4:
        return squash(rest)
    return None


def pov_title_from_text(text: str, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS) -> Optional[str]:
    """Point-of-view divider such as ``HENRY—`` -> ``HENRY``."""

    t = strip_double_braces(text)
    if not t or len(t) > thresholds.pov_max_chars or not has_letters(t):
        return None
    if has_lowercase(t) or any(ch.isdigit() for ch in t):
        return None
    base = squash(_POV_TRAILER.sub("", t))
    if not base:
        return None
    words = base.split()
    if len(words) > thresholds.pov_max_words:
        return None
    if len(words) == 1 and len(words[0]) > thresholds.pov_max_token_chars:
        return None
    if not _VOWEL.search(base.lower()):
        return None
    return base


# --- attribution / titlepage ------------------------------------------------------------


def clean_author_line(text: str, allow_by_prefix: bool = False) -> str:
    t = strip_double_braces(text)
    if allow_by_prefix and t[:3].lower() == "by ":
        t = t[3:].lstrip()
    return t


def looks_like_author_name(text: str, allow_by_prefix: bool = False) -> bool:
    """Personal-name attribution line (``Ursula K. Le Guin``)."""

    t = strip_double_braces(text)
    if not t or len(t) > 60 or any(ch.isdigit() for ch in t):
        return False
    lowered = t.lower()
    if "edited by" in lowered or re.search(r"\sby\s", lowered):
        return False
    if re.match(r"^by\s", lowered):
        if not allow_by_prefix:
            return False
        t = squash(t[2:])
    if " " not in t:
        return False
    if len(t.split()) > 7 or letters_count(t) < 4:
        return False
    return all(ch.isalpha() or ch in _NAME_PUNCTUATION for ch in t)


def looks_like_titlepage_heading(text: str, doc_title: str = "") -> bool:
    t = strip_double_braces(text)
    if not t:
        return False
    title_key = normalize_key(doc_title)
    if title_key and normalize_key(t) == title_key:
        return True
    lowered = t.lower()
    return bool(re.match(r"^(edited\s+by|an\s+imprint\s+of|original\s+speculative)", lowered))


# --- front/back matter junk -----------------------------------------------------------


def looks_like_copyright(text: str) -> bool:
    t = strip_double_braces(text).lower()
    if not t:
        return False
    if any(cue in t for cue in ("isbn", "all rights reserved", "copyright", "library of congress")):
        return True
    if "cataloging" in t and "publication" in t:
        return True
    if "printed in" in t or "first published" in t:
        return True
    return "edition" in t and bool(re.search(r"\d{4}", t))


def looks_like_other_books(text: str) -> bool:
    t = strip_double_braces(text).lower()
    return t.startswith(("also by", "other books", "more from", "books by", "from the author", "a note from"))


def looks_like_about_author(text: str) -> bool:
    t = strip_double_braces(text).lower()
    return t.startswith("about the author")


def looks_like_marketing_start(text: str) -> bool:
    t = strip_double_braces(text).lower()
    return t.startswith(
        ("also by", "the latest novel", "more from", "about the author", "other books", "an unusual novella")
    )


# --- inscriptions ---------------------------------------------------------------------


def is_inscription_leadin(text: str) -> bool:
    return bool(_INSCRIPTION_LEADIN.search(squash(text).lower()))


def is_inscription_line(text: str) -> bool:
    t = strip_double_braces(text)
    return bool(t) and letters_count(t) >= 6 and not has_lowercase(t)
