"""Command-line entrypoint; also usable as ``pandoc --filter fictionfix``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

import orjson

from .config import load_config
from .driver import fix_document
from .io.pandoc_json import dumps, loads

LOGGER = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Rebuild novel structure in a Pandoc JSON document")
    parser.add_argument("format", nargs="?", default=None, help="Target format (passed by pandoc; ignored)")
    parser.add_argument("--input", type=Path, default=None, help="Pandoc JSON input (default: stdin)")
    parser.add_argument("--output", type=Path, default=None, help="Pandoc JSON output (default: stdout)")
    parser.add_argument("--config", type=Path, default=None, help="Optional configuration YAML")
    parser.add_argument("--log-level", default="WARNING", help="Python logging level (default: WARNING)")
    parser.add_argument("--debug", action="store_true", help="Emit the per-decision trace on stderr")
    parser.add_argument("--metrics", action="store_true", help="Print pass metrics as JSON on stderr")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING), stream=sys.stderr)
    config = load_config(args.config) if args.config else load_config()
    if args.debug:
        config.logging.debug = True

    raw = args.input.read_bytes() if args.input else sys.stdin.buffer.read()
    document, result = fix_document(loads(raw), config)
    payload = dumps(document)

    if args.output:
        args.output.write_bytes(payload)
    else:
        sys.stdout.buffer.write(payload)
        sys.stdout.buffer.flush()

    if args.metrics:
        summary = {"role": result.role, "toc_entries": result.toc_entries, "endnotes": result.endnotes}
        summary.update(result.metrics.to_dict())
        sys.stderr.write(orjson.dumps(summary, option=orjson.OPT_INDENT_2).decode("utf-8") + "\n")
    LOGGER.info("Processed %d output blocks (role=%s)", len(document.blocks), result.role)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
