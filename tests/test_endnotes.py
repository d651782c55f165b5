from __future__ import annotations

from fictionfix.lookups.endnotes import attach_footnotes, build_endnote_map, is_note_definition, note_key
from fictionfix.types import Heading, Link, Note, OriginMarker, Paragraph, Space, Styled, Text


def make_definition(number: int, body: str) -> Paragraph:
    return Paragraph(
        [Link(target=f"#fnref{number}", id=f"fn{number}", children=[Text(str(number))]), Text(f": {body}")]
    )


def test_note_keys_are_qualified_by_origin():
    assert note_key("#fn3", "chapter01.xhtml") == "chapter01.xhtml#fn3"
    assert note_key("#fn3", None) == "fn3"
    assert note_key("notes.xhtml#fn3", "chapter01.xhtml") == "notes.xhtml#fn3"
    assert note_key("", "chapter01.xhtml") is None


def test_build_map_collects_body_after_colon():
    blocks = [
        OriginMarker("chapter01.xhtml"),
        Paragraph([Text("Body")]),
        make_definition(3, "This is the note text."),
    ]
    notes = build_endnote_map(blocks)
    assert len(notes) == 1
    body = notes.resolve("#fn3", "chapter01.xhtml")
    assert body[0].text == "This is the note text."
    assert notes.resolve("#fn3", "chapter02.xhtml") is None


def test_definition_requires_colon_and_note_anchor():
    assert is_note_definition(make_definition(1, "text"), None)
    no_colon = Paragraph([Link(target="#r1", id="fn1", children=[Text("1")]), Text(" text")])
    assert not is_note_definition(no_colon, None)
    plain_link = Paragraph([Link(target="#ch1", id="ch1", children=[Text("1")]), Text(": text")])
    assert not is_note_definition(plain_link, None)
    assert not is_note_definition(Heading(level=2, children=[Text("fn1: x")]), None)


def test_wrapped_and_target_keyed_definitions():
    wrapped = Paragraph([Styled("emph", [Link(target="#r2", id="fn2", children=[Text("2")])]), Text(":"), Space(), Text("Two")])
    leading = Paragraph([Link(target="#fn4", children=[Text("4")]), Text(". Four: more")])
    trailing = Paragraph([Text("He said"), Space(), Link(target="#fn5", children=[Text("5")]), Text(" then: this")])
    assert is_note_definition(wrapped, None)
    assert is_note_definition(leading, None)
    assert not is_note_definition(trailing, None)
    notes = build_endnote_map([wrapped, leading])
    assert notes.resolve("fn2", None)[0].children == [Text("Two")]
    assert notes.resolve("fn4", None)[0].children == [Text("more")]


def test_attach_footnotes_keeps_link_and_appends_note():
    notes = build_endnote_map([OriginMarker("c.xhtml"), make_definition(3, "This is the note text.")])
    body = Paragraph([Text("See"), Space(), Styled("emph", [Link(target="#fn3", children=[Text("3")])])])
    result = attach_footnotes(body, notes, "c.xhtml")
    link = result.children[2].children[0]
    assert link.target == "#fn3"
    assert link.children[0] == Text("3")
    assert isinstance(link.children[-1], Note)
    assert link.children[-1].text == "This is the note text."
    assert len(body.children[2].children[0].children) == 1
    untouched = attach_footnotes(body, notes, "other.xhtml")
    assert untouched == body
