"""Document codecs."""

from .pandoc_json import decode_document, dumps, encode_document, loads

__all__ = ["decode_document", "dumps", "encode_document", "loads"]
