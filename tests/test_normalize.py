from __future__ import annotations

import pytest

from fictionfix.text import normalize as normalize_module

from fictionfix.text.normalize import (
    letters_only_lower,
    normalize_key,
    normalize_ws,
    squash,
    strip_double_braces,
)

SAMPLES = [
    "",
    "plain text",
    "  padded  line  ",
    "zero\u200bwidth\ufeff joiners\u200d",
    "line\u2028separated\u2029paragraph",
    "narrow\u202fno-break\u2007figure\u00a0space",
    "\t tabs \n and newlines \r\n",
]


def test_normalize_ws_maps_invisible_code_points():
    assert normalize_ws("a\u00a0b\u202fc") == "a b c"
    assert normalize_ws("a\u200bb\u2060c\ufeff") == "abc"
    assert normalize_ws(None) == ""


@pytest.mark.parametrize("text", SAMPLES)
def test_normalization_is_idempotent(text):
    once = squash(text)
    assert squash(once) == once
    assert normalize_ws(normalize_ws(text)) == normalize_ws(text)


def test_squash_collapses_and_trims():
    assert squash("  padded \u00a0 line  ") == "padded line"


def test_strip_double_braces():
    assert strip_double_braces("{{ Chapter One }}") == "Chapter One"
    assert strip_double_braces("{not wrapped}") == "{not wrapped}"


def test_comparison_keys():
    assert normalize_key("The  Long-Night!") == "thelongnight"
    assert letters_only_lower("About the Author:") == "abouttheauthor"


def test_exported_names_exist():
    assert set(normalize_module.__all__) == {
        "normalize_ws",
        "squash",
        "strip_double_braces",
        "has_letters",
        "letters_count",
        "has_lowercase",
        "letters_only_lower",
        "normalize_key",
    }
    assert all(callable(getattr(normalize_module, name)) for name in normalize_module.__all__)
