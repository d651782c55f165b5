from __future__ import annotations

import pytest

from fictionfix.config import ThresholdConfig
from fictionfix.inference.shapes import (
    chapter_title_from_text,
    is_blankish_text,
    is_part_number_line,
    is_part_shaped,
    is_scene_break_text,
    looks_like_author_name,
    looks_like_copyright,
    looks_like_titlepage_heading,
    part_title_from_single_line,
    pov_title_from_text,
    section_title_from_text,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("7", "7"),
        ("IV", "IV"),
        ("Twelve", "Twelve"),
        ("Chapter One", "Chapter One"),
        ("CHAPTER 3: The Return", "The Return"),
        ("Chapter IV The Storm", "The Storm"),
        ("Chapter Thirty", "Chapter Thirty"),
        ("Chapter Twenty-One", "Chapter Twenty-One"),
        ("Chapter Twenty-One: The Fall", "The Fall"),
        ("Chapter Forty: Home", "Home"),
        ("Chapter 12a - Aftermath", "Aftermath"),
        ("1. The Beginning", "The Beginning"),
        ("Prologue", "Prologue"),
        ("Acknowledgements:", "Acknowledgements"),
    ],
)
def test_chapter_shapes_accepted(text, expected):
    assert chapter_title_from_text(text) == expected


@pytest.mark.parametrize(
    "text",
    [
        "I",
        "“Hello,” she said.",
        "Ansible: a device for instant communication",
        "Notes",
        "Stories by Jane Doe",
        "Chapter and verse were quoted",
        "THE LONG NIGHT",
        "She walked home.",
    ],
)
def test_chapter_shapes_rejected(text):
    assert chapter_title_from_text(text) is None


def test_all_caps_chapters_only_when_enabled():
    assert chapter_title_from_text("THE LONG NIGHT", allow_all_caps=True) == "THE LONG NIGHT"
    assert chapter_title_from_text("HENRY", allow_all_caps=True) is None


def test_part_shapes():
    thresholds = ThresholdConfig()
    assert is_part_shaped("The Return of Kings", thresholds)
    assert is_part_shaped("Winter", thresholds)
    assert not is_part_shaped("the end of it all", thresholds)
    assert not is_part_shaped("Then, He Left", thresholds)
    assert is_part_number_line("PART ONE")
    assert is_part_number_line("Book 2:")
    assert not is_part_number_line("Part of it")


def test_single_line_part_titles():
    assert part_title_from_single_line("Part 3: The Return") == "The Return"
    assert part_title_from_single_line("Book IV. Ashes") == "Ashes"
    assert part_title_from_single_line("Part II The Return") == "The Return"
    assert part_title_from_single_line("Part of the problem was money") is None


def test_pov_lines():
    assert pov_title_from_text("HENRY—") == "HENRY"
    assert pov_title_from_text("MARY ANNE.") == "MARY ANNE"
    assert pov_title_from_text("Henry—") is None
    assert pov_title_from_text("GATTACAGATTACA") is None
    assert pov_title_from_text("TTGG") is None


def test_numbered_caps_sections():
    assert section_title_from_text("12 THE LONG NIGHT") == "THE LONG NIGHT"
    assert section_title_from_text("12 the long night") is None


def test_attribution_and_titlepage_lines():
    assert looks_like_author_name("Ursula K. Le Guin")
    assert not looks_like_author_name("by Jane Doe")
    assert looks_like_author_name("by Jane Doe", allow_by_prefix=True)
    assert not looks_like_author_name("Edited by Jane Doe")
    assert looks_like_titlepage_heading("The Left Hand of Darkness", "The Left Hand of Darkness")
    assert looks_like_titlepage_heading("Edited by John Joseph Adams")


def test_junk_and_break_text():
    assert looks_like_copyright("All rights reserved. ISBN 978-0-00-000000-0")
    assert looks_like_copyright("First edition 2019")
    assert not looks_like_copyright("The rain kept on through the night.")
    assert is_scene_break_text("* * *")
    assert is_scene_break_text("⁂")
    assert is_scene_break_text("— —")
    assert not is_scene_break_text("Hello")
    assert is_blankish_text("~")
    assert is_blankish_text("   ")
    assert not is_blankish_text("Hi")
