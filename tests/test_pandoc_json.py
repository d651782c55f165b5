from __future__ import annotations

import orjson
import pytest

from fictionfix.io.pandoc_json import decode_block, dumps, encode_block, inscription_latex, loads
from fictionfix.types import (
    MAIN_MATTER,
    SCENE_BREAK,
    Container,
    Heading,
    Inscription,
    Link,
    Marker,
    Note,
    OpaqueBlock,
    OriginMarker,
    Paragraph,
    Space,
    Styled,
    Text,
)


def make_document(blocks, meta=None) -> bytes:
    return orjson.dumps({"pandoc-api-version": [1, 23, 1], "meta": meta or {}, "blocks": blocks})


def test_decode_paragraph_lifts_anchor_span():
    block = decode_block(
        {
            "t": "Para",
            "c": [
                {"t": "Span", "c": [["ch01", [], []], []]},
                {"t": "Str", "c": "It"},
                {"t": "Space"},
                {"t": "Strong", "c": [{"t": "Str", "c": "began."}]},
            ],
        }
    )
    assert isinstance(block, Paragraph)
    assert block.id == "ch01"
    assert block.children == [Text("It"), Space(), Styled("strong", [Text("began.")])]
    assert encode_block(block)["c"][0] == {"t": "Span", "c": [["ch01", [], []], []]}


def test_decode_structures():
    header = decode_block({"t": "Header", "c": [2, ["c1", ["x"], [["k", "v"]]], [{"t": "Str", "c": "One"}]]})
    assert header == Heading(level=2, children=[Text("One")], id="c1", classes=["x"], attributes=[("k", "v")])

    div = decode_block({"t": "Div", "c": [["chapter01.xhtml", [], []], [{"t": "HorizontalRule"}]]})
    assert isinstance(div, Container)
    assert div.id == "chapter01.xhtml"

    link = decode_block(
        {"t": "Plain", "c": [{"t": "Link", "c": [["", [], []], [{"t": "Str", "c": "3"}], ["#fn3", ""]]}]}
    )
    assert link.plain
    assert link.children == [Link(target="#fn3", children=[Text("3")])]


def test_latex_markers_round_trip():
    block = decode_block({"t": "RawBlock", "c": ["latex", "\\scenebreak"]})
    assert block == Marker(SCENE_BREAK)
    assert encode_block(Marker(MAIN_MATTER)) == {"t": "RawBlock", "c": ["latex", "\\mainmatter"]}
    other = decode_block({"t": "RawBlock", "c": ["html", "<hr/>"]})
    assert encode_block(other) == {"t": "RawBlock", "c": ["html", "<hr/>"]}


def test_unknown_kinds_pass_through_untouched():
    table = {"t": "Table", "c": [["", [], []], "anything"]}
    block = decode_block(table)
    assert isinstance(block, OpaqueBlock)
    assert encode_block(block) == table


def test_inscription_and_note_encoding():
    assert inscription_latex(["ONE LINE", "", "TWO"]) == (
        "\\begin{tabletcurse}\n\n  ONE LINE\n\n\n  TWO\n\n\\end{tabletcurse}"
    )
    encoded = encode_block(Inscription(["ONE LINE"]))
    assert encoded["t"] == "RawBlock"
    assert encoded["c"][0] == "latex"

    para = Paragraph([Link(target="#fn3", children=[Text("3"), Note([Paragraph([Text("Body text")])])])])
    inlines = encode_block(para)["c"][0]["c"][1]
    assert inlines[1] == {"t": "Note", "c": [{"t": "Para", "c": [{"t": "Str", "c": "Body"}, {"t": "Space"}, {"t": "Str", "c": "text"}]}]}


def test_origin_marker_encodes_as_file_marker_div():
    assert encode_block(OriginMarker("chapter01.xhtml")) == {
        "t": "Div",
        "c": [["chapter01.xhtml", ["_filemarker"], []], []],
    }


def test_document_round_trip_keeps_meta_and_version():
    raw = make_document(
        [{"t": "Para", "c": [{"t": "Str", "c": "Hello"}, {"t": "Space"}, {"t": "Str", "c": "there"}]}],
        meta={"title": {"t": "MetaString", "c": "Book"}},
    )
    document = loads(raw)
    assert document.meta == {"title": {"t": "MetaString", "c": "Book"}}
    assert orjson.loads(dumps(document)) == orjson.loads(raw)


@pytest.mark.parametrize(
    "raw",
    [
        b"not json",
        b"[]",
        b'{"meta": {}}',
        b'{"blocks": [{"c": []}]}',
        b'{"blocks": [{"t": "Header", "c": [1]}]}',
    ],
)
def test_malformed_input_raises_value_error(raw):
    with pytest.raises(ValueError):
        loads(raw)
