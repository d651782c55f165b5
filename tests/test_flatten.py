from __future__ import annotations

from fictionfix.parsing.flatten import flatten_blocks, origin_of
from fictionfix.types import Container, OriginMarker, Paragraph, Rule, Span, Text


def make_para(text: str, **kwargs) -> Paragraph:
    return Paragraph([Text(text)], **kwargs)


def test_file_container_emits_origin_marker_then_children():
    doc = [
        Container(
            id="chapter01.xhtml",
            children=[make_para("One"), Container(children=[make_para("Two"), Rule()])],
        ),
        make_para("Three"),
    ]
    flat = flatten_blocks(doc)
    assert isinstance(flat[0], OriginMarker)
    assert flat[0].source == "chapter01.xhtml"
    assert [block.text for block in flat if isinstance(block, Paragraph)] == ["One", "Two", "Three"]
    assert isinstance(flat[3], Rule)
    assert not any(isinstance(block, Container) for block in flat)


def test_filemarker_class_and_anchor_suffix():
    marker = Container(id="part0003.html", classes=["_filemarker"])
    assert origin_of(marker) == "part0003.html"
    suffixed = Container(id="chapter06.xhtml#p12", children=[make_para("x")])
    assert origin_of(suffixed) == "chapter06.xhtml"


def test_empty_pagebreak_container_is_dropped():
    flat = flatten_blocks([Container(classes=["mbp_pagebreak"]), Container(id="calibre_pb_4"), make_para("kept")])
    assert flat == [make_para("kept")]


def test_paragraph_origin_from_anchor_span_or_id():
    anchored = Paragraph([Span(id="chapter02.xhtml"), Text("Body")])
    assert origin_of(anchored) == "chapter02.xhtml"
    assert origin_of(make_para("x", id="notes.xhtml")) == "notes.xhtml"
    assert origin_of(make_para("x", id="ch2")) is None
