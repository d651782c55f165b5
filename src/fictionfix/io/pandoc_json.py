"""Pandoc JSON AST <-> fixer node codec."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Sequence

import orjson

from ..parsing.flatten import FILE_MARKER_CLASS
from ..parsing.inlines import stringify
from ..types import (
    BACK_MATTER,
    MAIN_MATTER,
    SCENE_BREAK,
    Block,
    BlockQuote,
    Container,
    Document,
    Heading,
    Image,
    Inline,
    Inscription,
    Link,
    ListBlock,
    Marker,
    Note,
    OpaqueBlock,
    OpaqueInline,
    OriginMarker,
    Paragraph,
    RawOutput,
    Rule,
    Space,
    Span,
    Styled,
    Text,
    unhandled,
)

MARKER_LATEX = {
    MAIN_MATTER: "\\mainmatter",
    BACK_MATTER: "\\backmatter",
    SCENE_BREAK: "\\scenebreak",
}
_LATEX_MARKERS = {text: kind for kind, text in MARKER_LATEX.items()}

INSCRIPTION_ENV = "tabletcurse"

_STYLE_TAGS = {
    "Emph": "emph",
    "Strong": "strong",
    "Underline": "underline",
    "Strikeout": "strikeout",
    "Superscript": "superscript",
    "Subscript": "subscript",
    "SmallCaps": "smallcaps",
}
_TAG_STYLES = {style: tag for tag, style in _STYLE_TAGS.items()}
_QUOTE_TAGS = {"SingleQuote": "quoted-single", "DoubleQuote": "quoted-double"}
_TAG_QUOTES = {style: tag for tag, style in _QUOTE_TAGS.items()}
_SPACE_TAGS = {"Space": "space", "SoftBreak": "soft", "LineBreak": "line"}
_TAG_SPACES = {kind: tag for tag, kind in _SPACE_TAGS.items()}
_SPACE_RUN = re.compile(r"( +)")

Attr = List[Any]


# --- decoding -------------------------------------------------------------------------


def _node(value: Any) -> tuple[str, Any]:
    if not isinstance(value, Mapping) or "t" not in value:
        raise ValueError(f"Malformed Pandoc node: {value!r}")
    return value["t"], value.get("c")


def _attr(value: Sequence[Any]) -> tuple[str, List[str], List[tuple[str, str]]]:
    identifier, classes, attributes = value
    return identifier, list(classes), [(key, val) for key, val in attributes]


def decode_inlines(values: Sequence[Any]) -> List[Inline]:
    return [decode_inline(value) for value in values]


def decode_inline(value: Any) -> Inline:
    tag, content = _node(value)
    if tag == "Str":
        return Text(content)
    if tag in _SPACE_TAGS:
        return Space(_SPACE_TAGS[tag])
    if tag in _STYLE_TAGS:
        return Styled(_STYLE_TAGS[tag], decode_inlines(content))
    if tag == "Quoted":
        quote_type, children = content
        return Styled(_QUOTE_TAGS[_node(quote_type)[0]], decode_inlines(children))
    if tag == "Span":
        identifier, classes, attributes = _attr(content[0])
        return Span(id=identifier, classes=classes, attributes=attributes, children=decode_inlines(content[1]))
    if tag in ("Link", "Image"):
        identifier, classes, attributes = _attr(content[0])
        target, title = content[2]
        node_type = Link if tag == "Link" else Image
        return node_type(
            target=target,
            children=decode_inlines(content[1]),
            id=identifier,
            classes=classes,
            attributes=attributes,
            title=title,
        )
    if tag == "Note":
        return Note(decode_blocks(content))
    if tag in ("Code", "Math"):
        return OpaqueInline(tag, content, content[1])
    if tag == "Cite":
        return OpaqueInline(tag, content, stringify(decode_inlines(content[1])))
    return OpaqueInline(tag, content)


def _lift_anchor(children: List[Inline]) -> tuple[str, List[Inline]]:
    """Split a leading empty anchor span off a paragraph's inlines."""

    if children:
        first = children[0]
        if isinstance(first, Span) and first.id and not first.classes and not first.attributes and not first.children:
            return first.id, children[1:]
    return "", children


def decode_blocks(values: Sequence[Any]) -> List[Block]:
    return [decode_block(value) for value in values]


def decode_block(value: Any) -> Block:
    tag, content = _node(value)
    if tag in ("Para", "Plain"):
        identifier, children = _lift_anchor(decode_inlines(content))
        return Paragraph(children, id=identifier, plain=tag == "Plain")
    if tag == "Header":
        level, attr, children = content
        identifier, classes, attributes = _attr(attr)
        return Heading(
            level=level,
            children=decode_inlines(children),
            id=identifier,
            classes=classes,
            attributes=attributes,
        )
    if tag == "BulletList":
        return ListBlock(items=[decode_blocks(item) for item in content])
    if tag == "OrderedList":
        return ListBlock(
            items=[decode_blocks(item) for item in content[1]],
            ordered=True,
            list_attributes=content[0],
        )
    if tag == "BlockQuote":
        return BlockQuote(decode_blocks(content))
    if tag == "HorizontalRule":
        return Rule()
    if tag == "Div":
        identifier, classes, attributes = _attr(content[0])
        return Container(id=identifier, classes=classes, attributes=attributes, children=decode_blocks(content[1]))
    if tag == "RawBlock":
        fmt, text = content
        if fmt == "latex" and text.strip() in _LATEX_MARKERS:
            return Marker(_LATEX_MARKERS[text.strip()])
        return RawOutput(fmt, text)
    if tag == "CodeBlock":
        return OpaqueBlock(tag, content, content[1])
    if tag == "LineBlock":
        return OpaqueBlock(tag, content, " ".join(stringify(decode_inlines(line)) for line in content))
    return OpaqueBlock(tag, content)


def decode_document(data: Mapping[str, Any]) -> Document:
    if not isinstance(data, Mapping):
        raise ValueError("Pandoc JSON document must be an object")
    blocks = data.get("blocks")
    if not isinstance(blocks, list):
        raise ValueError("Pandoc JSON document has no 'blocks' list")
    meta = data.get("meta") or {}
    if not isinstance(meta, Mapping):
        raise ValueError("Pandoc JSON 'meta' must be an object")
    version = list(data.get("pandoc-api-version") or [1, 23, 1])
    try:
        decoded = decode_blocks(blocks)
    except (TypeError, KeyError, IndexError) as exc:
        raise ValueError(f"Malformed Pandoc JSON block: {exc}") from exc
    return Document(blocks=decoded, meta=dict(meta), api_version=version)


# --- encoding -------------------------------------------------------------------------


def _encode_attr(identifier: str, classes: Sequence[str], attributes: Sequence[tuple[str, str]]) -> Attr:
    return [identifier, list(classes), [[key, val] for key, val in attributes]]


def _encode_text(text: str) -> List[Dict[str, Any]]:
    if " " not in text:
        return [{"t": "Str", "c": text}]
    out: List[Dict[str, Any]] = []
    for piece in _SPACE_RUN.split(text):
        if not piece:
            continue
        if piece.startswith(" "):
            out.append({"t": "Space"})
        else:
            out.append({"t": "Str", "c": piece})
    return out


def encode_inlines(inlines: Sequence[Inline]) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for inline in inlines:
        if isinstance(inline, Text):
            out.extend(_encode_text(inline.text))
        else:
            out.append(encode_inline(inline))
    return out


def encode_inline(inline: Inline) -> Dict[str, Any]:
    if isinstance(inline, Text):
        return {"t": "Str", "c": inline.text}
    if isinstance(inline, Space):
        return {"t": _TAG_SPACES[inline.kind]}
    if isinstance(inline, Styled):
        if inline.style in _TAG_QUOTES:
            return {"t": "Quoted", "c": [{"t": _TAG_QUOTES[inline.style]}, encode_inlines(inline.children)]}
        return {"t": _TAG_STYLES[inline.style], "c": encode_inlines(inline.children)}
    if isinstance(inline, Span):
        return {
            "t": "Span",
            "c": [_encode_attr(inline.id, inline.classes, inline.attributes), encode_inlines(inline.children)],
        }
    if isinstance(inline, (Link, Image)):
        return {
            "t": "Link" if isinstance(inline, Link) else "Image",
            "c": [
                _encode_attr(inline.id, inline.classes, inline.attributes),
                encode_inlines(inline.children),
                [inline.target, inline.title],
            ],
        }
    if isinstance(inline, Note):
        return {"t": "Note", "c": encode_blocks(inline.blocks)}
    if isinstance(inline, OpaqueInline):
        return _opaque(inline.kind, inline.payload)
    unhandled(inline)


def _opaque(kind: str, payload: Any) -> Dict[str, Any]:
    if payload is None:
        return {"t": kind}
    return {"t": kind, "c": payload}


def inscription_latex(lines: Sequence[str]) -> str:
    body = [f"\\begin{{{INSCRIPTION_ENV}}}", ""]
    for line in lines:
        if line:
            body.extend([f"  {line}", ""])
        else:
            body.append("")
    body.append(f"\\end{{{INSCRIPTION_ENV}}}")
    return "\n".join(body)


def encode_blocks(blocks: Sequence[Block]) -> List[Dict[str, Any]]:
    return [encode_block(block) for block in blocks]


def encode_block(block: Block) -> Dict[str, Any]:
    if isinstance(block, Paragraph):
        children = encode_inlines(block.children)
        if block.id:
            children.insert(0, {"t": "Span", "c": [_encode_attr(block.id, [], []), []]})
        return {"t": "Plain" if block.plain else "Para", "c": children}
    if isinstance(block, Heading):
        return {
            "t": "Header",
            "c": [block.level, _encode_attr(block.id, block.classes, block.attributes), encode_inlines(block.children)],
        }
    if isinstance(block, ListBlock):
        items = [encode_blocks(item) for item in block.items]
        if block.ordered:
            attributes = block.list_attributes or [1, {"t": "Decimal"}, {"t": "Period"}]
            return {"t": "OrderedList", "c": [attributes, items]}
        return {"t": "BulletList", "c": items}
    if isinstance(block, BlockQuote):
        return {"t": "BlockQuote", "c": encode_blocks(block.blocks)}
    if isinstance(block, Rule):
        return {"t": "HorizontalRule"}
    if isinstance(block, Container):
        return {
            "t": "Div",
            "c": [_encode_attr(block.id, block.classes, block.attributes), encode_blocks(block.children)],
        }
    if isinstance(block, RawOutput):
        return {"t": "RawBlock", "c": [block.format, block.text]}
    if isinstance(block, Marker):
        return {"t": "RawBlock", "c": ["latex", MARKER_LATEX[block.kind]]}
    if isinstance(block, Inscription):
        return {"t": "RawBlock", "c": ["latex", inscription_latex(block.lines)]}
    if isinstance(block, OriginMarker):
        return {"t": "Div", "c": [_encode_attr(block.source, [FILE_MARKER_CLASS], []), []]}
    if isinstance(block, OpaqueBlock):
        return _opaque(block.kind, block.payload)
    unhandled(block)


def encode_document(document: Document) -> Dict[str, Any]:
    return {
        "pandoc-api-version": list(document.api_version),
        "meta": dict(document.meta),
        "blocks": encode_blocks(document.blocks),
    }


def loads(data: bytes | str) -> Document:
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as exc:
        raise ValueError("Failed to parse Pandoc JSON") from exc
    return decode_document(parsed)


def dumps(document: Document) -> bytes:
    return orjson.dumps(encode_document(document))
