"""Read-only lookups built from the flattened stream before rewriting."""

from .endnotes import EMPTY_NOTES, EndnoteMap, attach_footnotes, build_endnote_map, is_note_definition
from .toc import EMPTY_TOC, TocEntry, TocIndex, extract_toc

__all__ = [
    "EMPTY_NOTES",
    "EndnoteMap",
    "attach_footnotes",
    "build_endnote_map",
    "is_note_definition",
    "EMPTY_TOC",
    "TocEntry",
    "TocIndex",
    "extract_toc",
]
