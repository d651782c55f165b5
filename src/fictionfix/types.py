"""Document node types shared by every stage of the fixer.

Blocks and inlines are closed unions of slotted dataclasses. Code that
dispatches over node kinds uses ``isinstance`` chains that end in
:func:`unhandled`, so a node class added here without updating the walkers
fails loudly instead of falling through.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, NoReturn, Union

MAIN_MATTER = "main_matter"
BACK_MATTER = "back_matter"
SCENE_BREAK = "scene_break"

MARKER_KINDS = (MAIN_MATTER, BACK_MATTER, SCENE_BREAK)

STYLES = (
    "emph",
    "strong",
    "underline",
    "strikeout",
    "superscript",
    "subscript",
    "smallcaps",
    "quoted-single",
    "quoted-double",
)


# --- inlines --------------------------------------------------------------------------


@dataclass(slots=True)
class Text:
    text: str


@dataclass(slots=True)
class Space:
    """Inter-word whitespace: ``space``, ``soft`` (soft break) or ``line`` (hard break)."""

    kind: str = "space"


@dataclass(slots=True)
class Styled:
    style: str
    children: List["Inline"] = field(default_factory=list)


@dataclass(slots=True)
class Span:
    id: str = ""
    classes: List[str] = field(default_factory=list)
    attributes: List[tuple[str, str]] = field(default_factory=list)
    children: List["Inline"] = field(default_factory=list)


@dataclass(slots=True)
class Link:
    target: str
    children: List["Inline"] = field(default_factory=list)
    id: str = ""
    classes: List[str] = field(default_factory=list)
    attributes: List[tuple[str, str]] = field(default_factory=list)
    title: str = ""


@dataclass(slots=True)
class Note:
    """Inline footnote carrying its own block content."""

    blocks: List["Block"] = field(default_factory=list)

    @property
    def text(self) -> str:
        from .parsing.inlines import stringify_blocks

        return stringify_blocks(self.blocks)


@dataclass(slots=True)
class Image:
    target: str
    children: List["Inline"] = field(default_factory=list)
    id: str = ""
    classes: List[str] = field(default_factory=list)
    attributes: List[tuple[str, str]] = field(default_factory=list)
    title: str = ""


@dataclass(slots=True)
class OpaqueInline:
    """Inline kinds the fixer never inspects (code, math, raw, citations)."""

    kind: str
    payload: Any = None
    text: str = ""


Inline = Union[Text, Space, Styled, Span, Link, Note, Image, OpaqueInline]


# --- blocks ---------------------------------------------------------------------------


@dataclass(slots=True)
class Heading:
    level: int
    children: List[Inline] = field(default_factory=list)
    id: str = ""
    classes: List[str] = field(default_factory=list)
    attributes: List[tuple[str, str]] = field(default_factory=list)

    @property
    def text(self) -> str:
        from .parsing.inlines import stringify

        return stringify(self.children)


@dataclass(slots=True)
class Paragraph:
    children: List[Inline] = field(default_factory=list)
    id: str = ""
    plain: bool = False

    @property
    def text(self) -> str:
        from .parsing.inlines import stringify

        return stringify(self.children)


@dataclass(slots=True)
class ListBlock:
    items: List[List["Block"]] = field(default_factory=list)
    ordered: bool = False
    list_attributes: Any = None


@dataclass(slots=True)
class BlockQuote:
    blocks: List["Block"] = field(default_factory=list)


@dataclass(slots=True)
class Rule:
    pass


@dataclass(slots=True)
class Container:
    id: str = ""
    classes: List[str] = field(default_factory=list)
    attributes: List[tuple[str, str]] = field(default_factory=list)
    children: List["Block"] = field(default_factory=list)


@dataclass(slots=True)
class RawOutput:
    format: str
    text: str


@dataclass(slots=True)
class OriginMarker:
    """Records the source sub-document that the following blocks came from."""

    source: str


@dataclass(slots=True)
class Marker:
    kind: str

    def __post_init__(self) -> None:
        if self.kind not in MARKER_KINDS:
            raise ValueError(f"Unknown marker kind: {self.kind!r}")


@dataclass(slots=True)
class Inscription:
    """Inscription lines; an empty string separates stanzas."""

    lines: List[str] = field(default_factory=list)


@dataclass(slots=True)
class OpaqueBlock:
    """Block kinds passed through untouched (code, tables, figures, ...)."""

    kind: str
    payload: Any = None
    text: str = ""


Block = Union[
    Heading,
    Paragraph,
    ListBlock,
    BlockQuote,
    Rule,
    Container,
    RawOutput,
    OriginMarker,
    Marker,
    Inscription,
    OpaqueBlock,
]


@dataclass(slots=True)
class Document:
    """A block sequence plus the source metadata mapping (Pandoc ``meta``)."""

    blocks: List[Block] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)
    api_version: List[int] = field(default_factory=lambda: [1, 23, 1])


def unhandled(node: object) -> NoReturn:
    raise TypeError(f"Unhandled node kind: {type(node).__name__}")


def is_marker(block: object, kind: str) -> bool:
    return isinstance(block, Marker) and block.kind == kind


def heading(level: int, title: str, id: str = "", classes: List[str] | None = None) -> Heading:
    """Build a heading whose content is a single text run."""

    return Heading(level=level, children=[Text(title)], id=id, classes=list(classes or []))
