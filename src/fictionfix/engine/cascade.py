"""Ordered classification rules for the rewrite pass.

Each :class:`Rule` pairs a pure predicate with a handler. The rewriter tries
``CASCADE`` top-down at every cursor position; the first predicate that holds
wins and its handler returns the next cursor position.
"""

from __future__ import annotations

import re
from typing import Callable, List, NamedTuple, Optional, Tuple

from ..inference.roles import CHAPTER
from ..inference.shapes import (
    chapter_title_from_text,
    clean_author_line,
    is_backmatter_division,
    is_blankish_text,
    is_explicit_part_header,
    is_frontmatter_division,
    is_inscription_leadin,
    is_inscription_line,
    is_notes_title,
    is_part_number_line,
    is_scene_break_text,
    is_toc_title,
    looks_like_about_author,
    looks_like_author_name,
    looks_like_copyright,
    looks_like_marketing_start,
    looks_like_other_books,
    looks_like_titlepage_heading,
    part_title_from_single_line,
    pov_title_from_text,
    section_title_from_text,
)
from ..lookups.endnotes import attach_footnotes, is_note_definition
from ..lookups.toc import SECTION, TocEntry
from ..parsing.inlines import (
    clean_text,
    has_internal_link,
    iter_block_inlines,
    link_title,
    normalize_anchor,
    sanitize_id,
    strong_only_text,
)
from ..text.normalize import has_letters, squash, strip_double_braces
from ..types import (
    BACK_MATTER,
    MAIN_MATTER,
    BlockQuote,
    Heading,
    Inscription,
    Link,
    ListBlock,
    Marker,
    OriginMarker,
    Paragraph,
    Space,
    Span,
    Text,
    heading,
)
from .patterns import (
    is_empty_quote,
    is_nav_list,
    is_nav_quote,
    is_scene_break_block,
    next_content_index,
    part_number_then_title,
    part_title_before_preface,
    part_title_before_rule,
)
from .state import PassContext

Predicate = Callable[[PassContext, int], bool]
Handler = Callable[[PassContext, int], int]


class Rule(NamedTuple):
    name: str
    matches: Predicate
    apply: Handler


_EXTERNAL_TARGET = re.compile(r"^(https?://|mailto:)")
_BY_LINE = re.compile(r"^by\s|\sby\s")


def _paragraph(ctx: PassContext, i: int) -> Optional[Paragraph]:
    block = ctx.block(i)
    return block if isinstance(block, Paragraph) else None


def _prose_or_heading(ctx: PassContext, i: int) -> bool:
    return isinstance(ctx.block(i), (Paragraph, Heading))


def _drop(ctx: PassContext, i: int) -> int:
    return i + 1


def _emit_heading(ctx: PassContext, level: int, title: str, id: str = "") -> None:
    ctx.emit(heading(level, title, id=id))


# --- 1-4: front/back matter pruning ---------------------------------------------------


def _skipping_frontmatter(ctx: PassContext, i: int) -> bool:
    return ctx.state.skipping_frontmatter


def _is_copyright_block(ctx: PassContext, i: int) -> bool:
    if not ctx.features.drop_copyright_blocks or ctx.state.mainmatter_started:
        return False
    return _prose_or_heading(ctx, i) and looks_like_copyright(ctx.text(i))


def _is_frontmatter_junk(ctx: PassContext, i: int) -> bool:
    if ctx.state.mainmatter_started or not _prose_or_heading(ctx, i):
        return False
    features = ctx.features
    text = ctx.text(i)
    if features.drop_other_books_lists and looks_like_other_books(text):
        return True
    if features.drop_about_author and looks_like_about_author(text):
        return True
    return features.drop_frontmatter_marketing and looks_like_marketing_start(text)


def _start_frontmatter_skip(ctx: PassContext, i: int) -> int:
    ctx.state.skipping_frontmatter = True
    ctx.state.frontmatter_guard = 0
    return i + 1


def _is_backmatter_marketing(ctx: PassContext, i: int) -> bool:
    if not ctx.features.drop_marketing or not ctx.state.backmatter_started:
        return False
    return _paragraph(ctx, i) is not None and looks_like_marketing_start(ctx.text(i))


def _cut_off(ctx: PassContext, i: int) -> int:
    ctx.state.terminated = True
    return len(ctx.blocks)


# --- 5-8: markers, navigation, ToC page ----------------------------------------------


def _is_origin_marker(ctx: PassContext, i: int) -> bool:
    return isinstance(ctx.block(i), OriginMarker)


def _is_matter_marker(ctx: PassContext, i: int) -> bool:
    block = ctx.block(i)
    return isinstance(block, Marker) and block.kind in (MAIN_MATTER, BACK_MATTER)


def _reopen_matter(ctx: PassContext, i: int) -> int:
    if ctx.block(i).kind == MAIN_MATTER:
        ctx.ensure_mainmatter()
    else:
        ctx.ensure_backmatter()
    return i + 1


def _is_navigation(ctx: PassContext, i: int) -> bool:
    block = ctx.block(i)
    limit = ctx.thresholds.nav_min_items
    return is_nav_list(block, limit) or is_nav_quote(block, limit)


def _is_toc_title(ctx: PassContext, i: int) -> bool:
    return _prose_or_heading(ctx, i) and is_toc_title(ctx.text(i))


def _enter_toc(ctx: PassContext, i: int) -> int:
    ctx.state.skipping_toc = True
    ctx.state.toc_started_at = i
    ctx.state.toc_source = ctx.state.origin
    return i + 1


def _is_toc_page_body(ctx: PassContext, i: int) -> bool:
    if not ctx.state.skipping_toc:
        return False
    block = ctx.block(i)
    if isinstance(block, (ListBlock, BlockQuote)):
        return True
    if isinstance(block, Paragraph):
        if has_internal_link(block):
            return True
        return len(squash(block.text)) <= ctx.thresholds.toc_suppress_max_chars
    return False


# --- 9: existing headings -------------------------------------------------------------


def _part_marker_pair_title(ctx: PassContext, i: int) -> Optional[Tuple[int, str]]:
    block = ctx.block(i)
    if not isinstance(block, Heading) or block.level != 2 or not is_part_number_line(ctx.text(i)):
        return None
    k = next_content_index(ctx.blocks, i + 1)
    following = ctx.block(k)
    if not isinstance(following, Heading) or following.level != 2:
        return None
    title = clean_text(following)
    if not title or not has_letters(title) or is_toc_title(title):
        return None
    if looks_like_author_name(title, ctx.features.author_line_allows_by_prefix):
        return None
    return k, title


def _is_part_marker_pair(ctx: PassContext, i: int) -> bool:
    return _part_marker_pair_title(ctx, i) is not None


def _emit_part_marker_pair(ctx: PassContext, i: int) -> int:
    k, title = _part_marker_pair_title(ctx, i)
    ctx.ensure_mainmatter()
    _emit_heading(ctx, 1, title, ctx.block(i).id)
    ctx.open_part()
    return k + 1


def _is_notes_pair(ctx: PassContext, i: int) -> bool:
    """Notes title directly above a note definition (dropped when converting)."""

    if not ctx.features.convert_endnotes or not is_notes_title(ctx.text(i)):
        return False
    following = ctx.block(i + 1)
    return following is not None and is_note_definition(following, ctx.state.origin)


def _is_heading(ctx: PassContext, i: int) -> bool:
    return isinstance(ctx.block(i), Heading) and not _is_notes_pair(ctx, i)


def _rewrite_heading(ctx: PassContext, i: int) -> int:
    block = ctx.block(i)
    features = ctx.features
    allow_by = features.author_line_allows_by_prefix
    title = clean_text(block)
    level = min(block.level, 3)

    if not ctx.state.mainmatter_started and looks_like_titlepage_heading(title, features.title):
        ctx.decide("titlepage_heading", i)
        return i + 1

    explicit_part = False
    part_title = part_title_from_single_line(title, ctx.thresholds)
    if part_title:
        title, level, explicit_part = part_title, 1, True

    if ctx.role == CHAPTER:
        if level == 1 and not explicit_part and not is_explicit_part_header(title):
            level = 2
        elif level == 2:
            level = 3

    if level == 3:
        cleaned = clean_author_line(title, allow_by)
        if cleaned != title and looks_like_author_name(cleaned, allow_by):
            title = cleaned

    if level == 2 and is_part_number_line(title):
        level = 1

    if level == 2 and ctx.state.just_started_chapter:
        cleaned = clean_author_line(title, allow_by)
        if looks_like_author_name(cleaned, allow_by):
            title, level = cleaned, 3

    if level <= 2:
        ctx.enter_division(title)
    if level == 1:
        ctx.open_part()
    elif level == 2:
        ctx.open_chapter(title)

    children = list(block.children) if title == clean_text(block) else [Text(title)]
    ctx.emit(
        Heading(
            level=level,
            children=children,
            id=block.id,
            classes=list(block.classes),
            attributes=list(block.attributes),
        )
    )
    return i + 1


# --- 10-13: scene breaks, blanks, inscriptions, endnote sections ---------------------


def _is_scene_break(ctx: PassContext, i: int) -> bool:
    return is_scene_break_block(ctx.block(i), ctx.thresholds)


def _emit_scene_break(ctx: PassContext, i: int) -> int:
    ctx.emit_scene_break()
    return i + 1


def _is_blank(ctx: PassContext, i: int) -> bool:
    block = ctx.block(i)
    if isinstance(block, Paragraph):
        return is_blankish_text(block.text)
    return is_empty_quote(block)


def _is_inscription(ctx: PassContext, i: int) -> bool:
    return _paragraph(ctx, i) is not None and is_inscription_leadin(ctx.text(i))


def _collect_inscription(ctx: PassContext, i: int) -> int:
    ctx.emit(ctx.block(i))
    lines: List[str] = []
    j = i + 1
    while isinstance(ctx.block(j), Paragraph):
        text = squash(ctx.block(j).text)
        if is_scene_break_text(text, ctx.thresholds):
            lines.append("")
        elif is_inscription_line(text):
            lines.append(strip_double_braces(text))
        else:
            break
        j += 1
    if lines:
        ctx.emit(Inscription(lines))
    return j


def _is_endnote_section(ctx: PassContext, i: int) -> bool:
    if not ctx.features.convert_endnotes or not _prose_or_heading(ctx, i):
        return False
    if _is_notes_pair(ctx, i):
        return True
    return is_note_definition(ctx.block(i), ctx.state.origin)


# --- 14: title-shaped paragraphs ------------------------------------------------------


def _no_open_chapter(ctx: PassContext, i: int) -> bool:
    return ctx.state.current_chapter is None and _paragraph(ctx, i) is not None


def _emit_part(ctx: PassContext, i: int, title: str, consumed: int) -> int:
    ctx.ensure_mainmatter()
    _emit_heading(ctx, 1, title, ctx.block(i).id)
    ctx.open_part()
    return i + consumed


def _is_part_single_line(ctx: PassContext, i: int) -> bool:
    return _no_open_chapter(ctx, i) and part_title_from_single_line(ctx.text(i), ctx.thresholds) is not None


def _emit_part_single_line(ctx: PassContext, i: int) -> int:
    return _emit_part(ctx, i, part_title_from_single_line(ctx.text(i), ctx.thresholds), 1)


def _is_part_number_then_title(ctx: PassContext, i: int) -> bool:
    return _no_open_chapter(ctx, i) and part_number_then_title(ctx.blocks, i) is not None


def _emit_part_number_then_title(ctx: PassContext, i: int) -> int:
    return _emit_part(ctx, i, part_number_then_title(ctx.blocks, i), 2)


def _is_part_title_before_rule(ctx: PassContext, i: int) -> bool:
    return _no_open_chapter(ctx, i) and part_title_before_rule(ctx.blocks, i, ctx.thresholds) is not None


def _emit_part_title_before_rule(ctx: PassContext, i: int) -> int:
    return _emit_part(ctx, i, part_title_before_rule(ctx.blocks, i, ctx.thresholds), 2)


def _is_part_title_before_preface(ctx: PassContext, i: int) -> bool:
    return _no_open_chapter(ctx, i) and part_title_before_preface(ctx.blocks, i) is not None


def _emit_part_title_before_preface(ctx: PassContext, i: int) -> int:
    return _emit_part(ctx, i, part_title_before_preface(ctx.blocks, i), 1)


class _LinkHeading(NamedTuple):
    link: Link
    pagebreaks: List[Span]
    title: str
    level: int


def _link_heading(ctx: PassContext, i: int) -> Optional[_LinkHeading]:
    """Paragraph whose only content is one internal link (plus page-break spans)."""

    block = _paragraph(ctx, i)
    if block is None:
        return None
    links: List[Link] = []
    pagebreaks: List[Span] = []
    for inline in block.children:
        if isinstance(inline, Span) and inline.classes and inline.classes[0] == "pagebreak":
            pagebreaks.append(inline)
        elif isinstance(inline, Link):
            links.append(inline)
        elif isinstance(inline, Space):
            continue
        else:
            return None
    if len(links) != 1:
        return None
    link = links[0]
    if _EXTERNAL_TARGET.match(link.target or ""):
        return None
    entry: Optional[TocEntry] = ctx.toc.lookup(link.target) or ctx.toc.lookup(link.id)
    if not normalize_anchor(link.id) and entry is None:
        return None
    title = link_title(link) or (entry.title if entry else "")
    if not title or not has_letters(title) or _BY_LINE.search(title.lower()):
        return None
    level = entry.heading_level if entry else 2
    return _LinkHeading(link, pagebreaks, title, level)


def _is_toc_link_heading(ctx: PassContext, i: int) -> bool:
    return _link_heading(ctx, i) is not None


def _emit_toc_link_heading(ctx: PassContext, i: int) -> int:
    found = _link_heading(ctx, i)
    anchor = normalize_anchor(found.link.id) or normalize_anchor(found.link.target) or ""
    if found.pagebreaks:
        ctx.emit(Paragraph(list(found.pagebreaks)))
    if found.level <= 2 and not is_frontmatter_division(found.title):
        ctx.ensure_mainmatter()
    _emit_heading(ctx, found.level, found.title, sanitize_id(anchor))
    if found.level == 2:
        ctx.open_chapter(found.title, expect_attribution=False)
    return i + 1


def _anchor_entry(ctx: PassContext, i: int) -> Optional[TocEntry]:
    block = _paragraph(ctx, i)
    if block is None or not block.id:
        return None
    return ctx.toc.lookup(block.id)


def _is_toc_anchor_heading(ctx: PassContext, i: int) -> bool:
    return _anchor_entry(ctx, i) is not None


def _emit_toc_anchor_heading(ctx: PassContext, i: int) -> int:
    entry = _anchor_entry(ctx, i)
    title = ctx.text(i) or entry.title
    if entry.level == SECTION and entry.prefix and not title[:1].isdigit():
        title = entry.prefix + title
    level = entry.heading_level
    if level == 2:
        ctx.open_chapter(title, expect_attribution=False)
    if level <= 2 and not is_frontmatter_division(title):
        ctx.ensure_mainmatter()
    _emit_heading(ctx, level, title, sanitize_id(ctx.block(i).id))
    return i + 1


def _is_numbered_caps_section(ctx: PassContext, i: int) -> bool:
    return _paragraph(ctx, i) is not None and section_title_from_text(ctx.text(i)) is not None


def _emit_numbered_caps_section(ctx: PassContext, i: int) -> int:
    _emit_heading(ctx, 3, section_title_from_text(ctx.text(i)), ctx.block(i).id)
    return i + 1


def _toc_child_index(ctx: PassContext, i: int) -> Optional[int]:
    if _paragraph(ctx, i) is None:
        return None
    text = ctx.text(i)
    if not text:
        return None
    for position, title in enumerate(ctx.toc.child_sections(ctx.state.current_chapter), start=1):
        if text == title:
            return position
    return None


def _is_toc_child_section(ctx: PassContext, i: int) -> bool:
    return _toc_child_index(ctx, i) is not None


def _emit_toc_child_section(ctx: PassContext, i: int) -> int:
    position = _toc_child_index(ctx, i)
    title = ctx.text(i)
    if not title[:1].isdigit():
        title = f"{position}: {title}"
    _emit_heading(ctx, 3, title, ctx.block(i).id)
    return i + 1


# --- 15: bold-only faux headings ------------------------------------------------------


def _bold_text(ctx: PassContext, i: int) -> Optional[str]:
    return strong_only_text(ctx.block(i))


def _is_edited_by(text: str) -> bool:
    return bool(re.match(r"^edited\s+by", text.lower()))


def _bold_author(ctx: PassContext, text: str) -> Optional[str]:
    allow_by = ctx.features.author_line_allows_by_prefix
    cleaned = clean_author_line(text, allow_by)
    if _is_edited_by(text) or not looks_like_author_name(cleaned, allow_by):
        return None
    return cleaned


def _is_bold_author_section(ctx: PassContext, i: int) -> bool:
    text = _bold_text(ctx, i)
    return bool(text) and ctx.state.just_started_chapter and _bold_author(ctx, text) is not None


def _emit_bold_author_section(ctx: PassContext, i: int) -> int:
    _emit_heading(ctx, 3, _bold_author(ctx, _bold_text(ctx, i)), ctx.block(i).id)
    return i + 1


def _is_bold_titlepage(ctx: PassContext, i: int) -> bool:
    text = _bold_text(ctx, i)
    if not text or ctx.state.mainmatter_started:
        return False
    return looks_like_titlepage_heading(text, ctx.features.title)


def _title_author_pair(ctx: PassContext, i: int) -> Optional[Tuple[int, str]]:
    """Bold title, bold author, then something that is not a third bold line."""

    text = _bold_text(ctx, i)
    if not text or _is_edited_by(text):
        return None
    j = next_content_index(ctx.blocks, i + 1)
    second = _bold_text(ctx, j)
    if not second:
        return None
    author = _bold_author(ctx, second)
    if author is None:
        return None
    k = next_content_index(ctx.blocks, j + 1)
    if _bold_text(ctx, k):
        return None
    return j, author


def _is_bold_title_author_pair(ctx: PassContext, i: int) -> bool:
    return _title_author_pair(ctx, i) is not None


def _emit_bold_title_author_pair(ctx: PassContext, i: int) -> int:
    j, author = _title_author_pair(ctx, i)
    title = _bold_text(ctx, i)
    ctx.enter_division(title)
    _emit_heading(ctx, 2, title, ctx.block(i).id)
    ctx.open_chapter(title)
    _emit_heading(ctx, 3, author, ctx.block(j).id)
    return j + 1


def _is_bold_division(ctx: PassContext, i: int) -> bool:
    text = _bold_text(ctx, i)
    return bool(text) and (is_frontmatter_division(text) or is_backmatter_division(text))


def _emit_chapter(ctx: PassContext, i: int, title: str, expect_attribution: bool = True) -> int:
    ctx.enter_division(title)
    _emit_heading(ctx, 2, title, ctx.block(i).id)
    ctx.open_chapter(title, expect_attribution)
    return i + 1


def _emit_bold_division(ctx: PassContext, i: int) -> int:
    return _emit_chapter(ctx, i, _bold_text(ctx, i))


def _bold_chapter_title(ctx: PassContext, i: int) -> Optional[str]:
    text = _bold_text(ctx, i)
    if not text:
        return None
    return chapter_title_from_text(text, allow_all_caps=True)


def _is_bold_chapter(ctx: PassContext, i: int) -> bool:
    return _bold_chapter_title(ctx, i) is not None


def _emit_bold_chapter(ctx: PassContext, i: int) -> int:
    return _emit_chapter(ctx, i, _bold_chapter_title(ctx, i))


# --- 16-19: POV sections, chapter shapes, endnote links, passthrough -----------------


def _pov_title(ctx: PassContext, i: int) -> Optional[str]:
    if not ctx.features.promote_pov_sections or ctx.state.current_chapter is None:
        return None
    if _paragraph(ctx, i) is None:
        return None
    return pov_title_from_text(ctx.text(i), ctx.thresholds)


def _is_pov_section(ctx: PassContext, i: int) -> bool:
    return _pov_title(ctx, i) is not None


def _emit_pov_section(ctx: PassContext, i: int) -> int:
    _emit_heading(ctx, 3, _pov_title(ctx, i), ctx.block(i).id)
    return i + 1


def _chapter_title(ctx: PassContext, i: int) -> Optional[str]:
    if _paragraph(ctx, i) is None:
        return None
    return chapter_title_from_text(ctx.text(i), allow_all_caps=ctx.features.allow_all_caps_chapters)


def _is_chapter_shape(ctx: PassContext, i: int) -> bool:
    return _chapter_title(ctx, i) is not None


def _emit_chapter_shape(ctx: PassContext, i: int) -> int:
    return _emit_chapter(ctx, i, _chapter_title(ctx, i), expect_attribution=False)


def _has_endnote_links(ctx: PassContext, i: int) -> bool:
    if not ctx.features.convert_endnotes or not len(ctx.notes):
        return False
    origin = ctx.state.origin
    return any(
        isinstance(inline, Link) and ctx.notes.resolve(inline.target, origin) is not None
        for inline in iter_block_inlines(ctx.block(i))
    )


def _emit_with_footnotes(ctx: PassContext, i: int) -> int:
    ctx.emit(attach_footnotes(ctx.block(i), ctx.notes, ctx.state.origin))
    return i + 1


def _always(ctx: PassContext, i: int) -> bool:
    return True


def _passthrough(ctx: PassContext, i: int) -> int:
    ctx.emit(ctx.block(i))
    return i + 1


CASCADE: Tuple[Rule, ...] = (
    Rule("frontmatter_skip", _skipping_frontmatter, _drop),
    Rule("copyright_block", _is_copyright_block, _drop),
    Rule("frontmatter_junk_start", _is_frontmatter_junk, _start_frontmatter_skip),
    Rule("backmatter_marketing_cutoff", _is_backmatter_marketing, _cut_off),
    Rule("origin_marker", _is_origin_marker, _drop),
    Rule("matter_marker", _is_matter_marker, _reopen_matter),
    Rule("navigation_list", _is_navigation, _drop),
    Rule("toc_title", _is_toc_title, _enter_toc),
    Rule("toc_page_body", _is_toc_page_body, _drop),
    Rule("part_marker_heading_pair", _is_part_marker_pair, _emit_part_marker_pair),
    Rule("heading", _is_heading, _rewrite_heading),
    Rule("scene_break", _is_scene_break, _emit_scene_break),
    Rule("blank", _is_blank, _drop),
    Rule("inscription", _is_inscription, _collect_inscription),
    Rule("endnote_section", _is_endnote_section, _drop),
    Rule("part_single_line", _is_part_single_line, _emit_part_single_line),
    Rule("part_number_then_title", _is_part_number_then_title, _emit_part_number_then_title),
    Rule("part_title_before_rule", _is_part_title_before_rule, _emit_part_title_before_rule),
    Rule("part_title_before_preface", _is_part_title_before_preface, _emit_part_title_before_preface),
    Rule("toc_link_heading", _is_toc_link_heading, _emit_toc_link_heading),
    Rule("toc_anchor_heading", _is_toc_anchor_heading, _emit_toc_anchor_heading),
    Rule("numbered_caps_section", _is_numbered_caps_section, _emit_numbered_caps_section),
    Rule("toc_child_section", _is_toc_child_section, _emit_toc_child_section),
    Rule("bold_author_section", _is_bold_author_section, _emit_bold_author_section),
    Rule("bold_titlepage", _is_bold_titlepage, _drop),
    Rule("bold_title_author_pair", _is_bold_title_author_pair, _emit_bold_title_author_pair),
    Rule("bold_division", _is_bold_division, _emit_bold_division),
    Rule("bold_chapter", _is_bold_chapter, _emit_bold_chapter),
    Rule("pov_section", _is_pov_section, _emit_pov_section),
    Rule("chapter_shape", _is_chapter_shape, _emit_chapter_shape),
    Rule("endnote_links", _has_endnote_links, _emit_with_footnotes),
    Rule("passthrough", _always, _passthrough),
)

RULE_NAMES = tuple(rule.name for rule in CASCADE)


def first_match(ctx: PassContext, i: int) -> Rule:
    for rule in CASCADE:
        if rule.matches(ctx, i):
            return rule
    raise AssertionError("cascade has no fallthrough rule")
