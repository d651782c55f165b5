"""Strip style-only inline wrappers and drop decorative images."""

from __future__ import annotations

from typing import List

from ..types import (
    Block,
    BlockQuote,
    Container,
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

BOLD_CLASSES = frozenset({"bold"})
ITALIC_CLASSES = frozenset({"italic", "italics"})
STYLE_ONLY_CLASSES = frozenset({"underline"})
VENDOR_PREFIX = "calibre"


def _is_style_class(cls: str) -> bool:
    return (
        cls in BOLD_CLASSES
        or cls in ITALIC_CLASSES
        or cls in STYLE_ONLY_CLASSES
        or cls.startswith(VENDOR_PREFIX)
    )


def unwrap_span(span: Span, children: List[Inline]) -> List[Inline]:
    """Reduce a style-only span to semantic wrapping, or keep it."""

    if span.id or span.attributes:
        return [Span(id=span.id, classes=list(span.classes), attributes=list(span.attributes), children=children)]
    if not span.classes:
        return children
    if not all(_is_style_class(cls) for cls in span.classes):
        return [Span(classes=list(span.classes), children=children)]
    bold = any(cls in BOLD_CLASSES for cls in span.classes)
    italic = any(cls in ITALIC_CLASSES for cls in span.classes)
    if bold and italic:
        return [Styled("strong", [Styled("emph", children)])]
    if bold:
        return [Styled("strong", children)]
    if italic:
        return [Styled("emph", children)]
    return children


def _map_inlines(inlines: List[Inline], drop_images: bool) -> List[Inline]:
    out: List[Inline] = []
    for inline in inlines:
        out.extend(_map_inline(inline, drop_images))
    return out


def _map_inline(inline: Inline, drop_images: bool) -> List[Inline]:
    if isinstance(inline, (Text, Space, OpaqueInline)):
        return [inline]
    if isinstance(inline, Styled):
        return [Styled(inline.style, _map_inlines(inline.children, drop_images))]
    if isinstance(inline, Span):
        return unwrap_span(inline, _map_inlines(inline.children, drop_images))
    if isinstance(inline, Link):
        return [
            Link(
                target=inline.target,
                children=_map_inlines(inline.children, drop_images),
                id=inline.id,
                classes=list(inline.classes),
                attributes=list(inline.attributes),
                title=inline.title,
            )
        ]
    if isinstance(inline, Image):
        return [] if drop_images else [inline]
    if isinstance(inline, Note):
        return [Note([_map_block(block, drop_images) for block in inline.blocks])]
    unhandled(inline)


def _map_block(block: Block, drop_images: bool) -> Block:
    if isinstance(block, Paragraph):
        return Paragraph(_map_inlines(block.children, drop_images), id=block.id, plain=block.plain)
    if isinstance(block, Heading):
        return Heading(
            level=block.level,
            children=_map_inlines(block.children, drop_images),
            id=block.id,
            classes=list(block.classes),
            attributes=list(block.attributes),
        )
    if isinstance(block, ListBlock):
        return ListBlock(
            items=[[_map_block(child, drop_images) for child in item] for item in block.items],
            ordered=block.ordered,
            list_attributes=block.list_attributes,
        )
    if isinstance(block, BlockQuote):
        return BlockQuote([_map_block(child, drop_images) for child in block.blocks])
    if isinstance(block, Container):
        return Container(
            id=block.id,
            classes=list(block.classes),
            attributes=list(block.attributes),
            children=[_map_block(child, drop_images) for child in block.children],
        )
    if isinstance(block, (Rule, RawOutput, OriginMarker, Marker, Inscription, OpaqueBlock)):
        return block
    unhandled(block)


def unwrap_style_spans(block: Block) -> Block:
    return _map_block(block, drop_images=False)


def prepare_block(block: Block, *, remove_images: bool = True) -> Block:
    """Unwrap style spans and, optionally, drop images (covers, ornaments)."""

    return _map_block(block, drop_images=remove_images)
