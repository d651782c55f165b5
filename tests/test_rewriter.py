from __future__ import annotations

from fictionfix.config import FeatureConfig, FixConfig
from fictionfix.driver import fix_blocks, fix_document
from fictionfix.engine.rewriter import Rewriter
from fictionfix.io.pandoc_json import dumps, loads
from fictionfix.types import (
    BACK_MATTER,
    MAIN_MATTER,
    SCENE_BREAK,
    Container,
    Document,
    Heading,
    Inscription,
    Link,
    ListBlock,
    Marker,
    Note,
    Paragraph,
    Rule,
    Styled,
    Text,
    heading,
    is_marker,
)


def para(text: str, **kwargs) -> Paragraph:
    return Paragraph([Text(text)], **kwargs)


def bold(text: str) -> Paragraph:
    return Paragraph([Styled("strong", [Text(text)])])


def link_para(target: str, title: str) -> Paragraph:
    return Paragraph([Link(target=target, children=[Text(title)])])


def run(blocks, **features):
    return fix_blocks(blocks, FixConfig(features=FeatureConfig(**features))).blocks


def outline(blocks) -> list:
    shape = []
    for block in blocks:
        if isinstance(block, Marker):
            shape.append(block.kind)
        elif isinstance(block, Heading):
            shape.append((block.level, block.text))
        elif isinstance(block, Inscription):
            shape.append(("inscription", tuple(block.lines)))
        elif isinstance(block, Paragraph):
            shape.append(block.text)
        else:
            shape.append(type(block).__name__)
    return shape


def test_asterism_paragraph_becomes_one_scene_break():
    blocks = [heading(2, "Chapter One"), para("It began."), para("* * *"), para("It ended.")]
    out = run(blocks)
    assert outline(out) == [MAIN_MATTER, (2, "Chapter One"), "It began.", SCENE_BREAK, "It ended."]
    assert sum(1 for block in out if is_marker(block, SCENE_BREAK)) == 1


def test_consecutive_breaks_collapse():
    blocks = [heading(2, "Chapter One"), para("Before."), Rule(), para("* * *"), para("⁂"), para("After.")]
    assert outline(run(blocks)) == [MAIN_MATTER, (2, "Chapter One"), "Before.", SCENE_BREAK, "After."]


def test_pov_line_after_open_chapter():
    blocks = [heading(2, "Chapter One"), para("HENRY—"), para("He woke early.")]
    assert outline(run(blocks)) == [MAIN_MATTER, (2, "Chapter One"), (3, "HENRY"), "He woke early."]
    disabled = run(blocks, promote_pov_sections=False)
    assert outline(disabled) == [MAIN_MATTER, (2, "Chapter One"), "HENRY—", "He woke early."]


def test_copyright_paragraph_dropped_before_main_matter():
    blocks = [
        para("All rights reserved. ISBN 978-0-00-000000-0"),
        heading(2, "Chapter One"),
        para("Text."),
    ]
    assert outline(run(blocks)) == [MAIN_MATTER, (2, "Chapter One"), "Text."]
    kept = run(blocks, drop_copyright_blocks=False)
    assert "All rights reserved. ISBN 978-0-00-000000-0" in outline(kept)


def test_toc_mapped_link_and_anchor_paragraphs():
    toc_list = ListBlock(
        items=[[link_para("#A", "Chapter One"), ListBlock(items=[[link_para("#B", "Intro")]])]]
    )
    blocks = [
        para("Contents"),
        toc_list,
        Container(
            id="chapter01.xhtml",
            children=[link_para("#A", "Chapter One"), para("Story text."), para("Intro", id="B"), para("More.")],
        ),
    ]
    out = run(blocks)
    assert outline(out) == [MAIN_MATTER, (2, "Chapter One"), "Story text.", (3, "1: Intro"), "More."]
    assert out[1].id == "A"
    assert out[3].id == "B"


def test_endnote_link_gains_footnote_and_notes_section_is_removed():
    body = Paragraph([Text("A claim"), Link(target="#fn3", children=[Text("3")]), Text(".")])
    definition = Paragraph(
        [Link(target="#fnref3", id="fn3", children=[Text("3")]), Text(": This is the note text.")]
    )
    blocks = [
        Container(
            id="chapter01.xhtml",
            children=[heading(2, "Chapter One"), body, heading(2, "Notes"), definition],
        )
    ]
    result = fix_blocks(blocks, FixConfig(features=FeatureConfig(convert_endnotes=True)))
    assert outline(result.blocks) == [MAIN_MATTER, (2, "Chapter One"), "A claim3."]
    link = result.blocks[2].children[1]
    assert link.target == "#fn3"
    assert isinstance(link.children[-1], Note)
    assert link.children[-1].text == "This is the note text."
    assert result.endnotes == 1
    assert result.metrics.footnotes == 1

    untouched = run(blocks)
    assert (2, "Notes") in outline(untouched)


def test_empty_document_still_gets_main_matter():
    assert outline(run([])) == [MAIN_MATTER]
    assert outline(run([para("Just prose.")])) == [MAIN_MATTER, "Just prose."]


def test_back_matter_follows_main_matter():
    blocks = [heading(2, "Chapter 1"), para("x"), heading(2, "Epilogue"), para("y")]
    assert outline(run(blocks)) == [MAIN_MATTER, (2, "Chapter 1"), "x", BACK_MATTER, (2, "Epilogue"), "y"]


def test_backmatter_marketing_cuts_off_the_rest():
    blocks = [
        heading(2, "Chapter 1"),
        para("x"),
        heading(2, "Epilogue"),
        para("The end."),
        para("Also by Jane Doe"),
        para("A Book List"),
    ]
    assert outline(run(blocks))[-1] == "The end."
    assert outline(run(blocks, drop_marketing=False))[-1] == "A Book List"


def test_frontmatter_junk_is_skipped_until_structure():
    blocks = [
        para("Also by Jane Doe"),
        para("The Dragon Saga"),
        para("Winter Tales"),
        heading(2, "Chapter 1"),
        para("Text"),
    ]
    assert outline(run(blocks)) == [MAIN_MATTER, (2, "Chapter 1"), "Text"]


def test_part_inference_from_paragraphs():
    blocks = [para("Part One"), para("The Gathering"), para("Chapter 1"), para("Text")]
    assert outline(run(blocks)) == [MAIN_MATTER, (1, "The Gathering"), (2, "Chapter 1"), "Text"]
    ruled = [para("The Long Dark"), Rule(), para("Chapter 1"), para("Text")]
    assert outline(run(ruled)) == [MAIN_MATTER, (1, "The Long Dark"), (2, "Chapter 1"), "Text"]
    single = [para("Part 2: The Return"), para("Chapter 1"), para("Text")]
    assert outline(run(single)) == [MAIN_MATTER, (1, "The Return"), (2, "Chapter 1"), "Text"]


def test_bold_title_author_pair():
    blocks = [bold("The Star"), bold("Ursula Le Guin"), para("It was a dark night.")]
    assert outline(run(blocks)) == [MAIN_MATTER, (2, "The Star"), (3, "Ursula Le Guin"), "It was a dark night."]


def test_author_heading_under_story_becomes_section():
    blocks = [heading(2, "The Star"), heading(2, "Ursula Le Guin"), para("It was a dark night.")]
    assert outline(run(blocks)) == [MAIN_MATTER, (2, "The Star"), (3, "Ursula Le Guin"), "It was a dark night."]


def test_chapter_role_demotes_headings():
    blocks = [heading(1, "The Star"), heading(2, "Ursula Le Guin"), para("Text")]
    out = run(blocks, heading_role="chapter")
    assert outline(out) == [MAIN_MATTER, (2, "The Star"), (3, "Ursula Le Guin"), "Text"]
    parts = run(blocks, heading_role="part")
    assert outline(parts)[1] == (1, "The Star")


def test_deep_headings_are_clamped():
    out = run([heading(2, "Chapter 1"), heading(5, "Deep Section"), para("Text")])
    assert (3, "Deep Section") in outline(out)


def test_inscription_lines_are_collected():
    blocks = [
        heading(2, "Chapter 1"),
        para("The inscription:"),
        para("HERE LIES THE KING"),
        para("* * *"),
        para("LONG MAY HE REST"),
        para("She stepped back."),
    ]
    assert outline(run(blocks)) == [
        MAIN_MATTER,
        (2, "Chapter 1"),
        "The inscription:",
        ("inscription", ("HERE LIES THE KING", "", "LONG MAY HE REST")),
        "She stepped back.",
    ]


def test_navigation_list_is_dropped():
    nav = ListBlock(items=[[link_para(f"chapter{n}.xhtml", f"Chapter {n}")] for n in range(1, 5)])
    blocks = [nav, heading(2, "Chapter 1"), para("Text")]
    assert outline(run(blocks)) == [MAIN_MATTER, (2, "Chapter 1"), "Text"]


def test_rewriter_state_does_not_leak_between_runs():
    config = FixConfig()
    rewriter = Rewriter(config)
    first = rewriter.rewrite([heading(2, "Epilogue"), para("x")])
    second = rewriter.rewrite([para("prose")])
    assert outline(first.blocks) == [MAIN_MATTER, BACK_MATTER, (2, "Epilogue"), "x"]
    assert outline(second.blocks) == [MAIN_MATTER, "prose"]
    assert first.decisions["heading"] == 1
    assert second.decisions == {"passthrough": 1}


def test_second_pass_over_own_output_is_stable():
    document = Document(
        blocks=[
            para("Part One"),
            para("The Gathering"),
            para("Chapter 1"),
            para("Text."),
            para("* * *"),
            para("More."),
            heading(2, "Epilogue"),
            para("End."),
        ]
    )
    first, _ = fix_document(document, FixConfig())
    second, result = fix_document(loads(dumps(first)), FixConfig())
    assert outline(second.blocks) == outline(first.blocks) == [
        MAIN_MATTER,
        (1, "The Gathering"),
        (2, "Chapter 1"),
        "Text.",
        SCENE_BREAK,
        "More.",
        BACK_MATTER,
        (2, "Epilogue"),
        "End.",
    ]
    assert result.metrics.decisions["matter_marker"] == 2


def test_input_markers_are_merged():
    blocks = [
        Marker(MAIN_MATTER),
        heading(2, "Chapter 1"),
        para("a"),
        Marker(SCENE_BREAK),
        Marker(SCENE_BREAK),
        para("* * *"),
        para("b"),
        Marker(BACK_MATTER),
        heading(2, "Epilogue"),
        Marker(BACK_MATTER),
        para("c"),
    ]
    assert outline(run(blocks)) == [
        MAIN_MATTER,
        (2, "Chapter 1"),
        "a",
        SCENE_BREAK,
        "b",
        BACK_MATTER,
        (2, "Epilogue"),
        "c",
    ]


def test_input_back_matter_marker_implies_main_matter():
    assert outline(run([para("x"), Marker(BACK_MATTER), para("y")])) == ["x", MAIN_MATTER, BACK_MATTER, "y"]


def test_frontmatter_skip_guard_releases_after_limit():
    limit = FixConfig().thresholds.frontmatter_skip_guard
    blocks = [para("Also by Jane Doe")]
    blocks += [para("A forgettable blurb line.") for _ in range(limit + 5)]
    blocks.append(para("Real prose."))
    out = outline(run(blocks))
    assert out[0] == MAIN_MATTER
    assert out[1:] == ["A forgettable blurb line."] * 5 + ["Real prose."]


def test_toc_suppression_ends_when_window_elapses():
    window = FixConfig().thresholds.toc_window
    blocks = [para("Contents")]
    blocks += [para("Line.") for _ in range(window + 5)]
    blocks.append(para("Story begins."))
    out = outline(run(blocks))
    assert out[0] == MAIN_MATTER
    assert out[1:] == ["Line."] * 5 + ["Story begins."]


def test_only_heading_and_bold_chapters_expect_an_attribution():
    after_shape = [para("Chapter 3"), bold("Ursula Le Guin"), para("Text.")]
    assert outline(run(after_shape)) == [MAIN_MATTER, (2, "Chapter 3"), "Ursula Le Guin", "Text."]
    after_heading = [heading(2, "Chapter 3"), bold("Ursula Le Guin"), para("Text.")]
    assert outline(run(after_heading)) == [MAIN_MATTER, (2, "Chapter 3"), (3, "Ursula Le Guin"), "Text."]
