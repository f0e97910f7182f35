"""Copybook parsing entrypoints.

``parse_lines`` runs the whole pipeline over lines already in memory:
tokenize -> build hierarchy -> resolve layout -> extract record layouts.
``parse_file`` is the only entrypoint that reads from disk.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from cblayout.config import ParserConfig
from cblayout.copybook.errors import CopybookError
from cblayout.copybook.hierarchy import build_hierarchy
from cblayout.copybook.layout import resolve_layout
from cblayout.copybook.model import ParseResult
from cblayout.copybook.records import extract_record_layouts, total_length
from cblayout.copybook.tokenizer import scan_record_length, tokenize

logger = logging.getLogger(__name__)


def parse_lines(
    lines: Iterable[str], source_name: str = "<memory>", config: ParserConfig | None = None
) -> ParseResult:
    cfg = config or ParserConfig()
    lines = list(lines)
    clauses = tokenize(lines, fixed_format=cfg.fixed_format)
    logger.debug("%s: %d clauses", source_name, len(clauses))
    if not clauses:
        raise CopybookError(f"No data items found in {source_name}")

    forest = build_hierarchy(clauses)
    roots = resolve_layout(forest, default_usage=cfg.default_usage)
    layouts = extract_record_layouts(roots, include_variants=cfg.extract_variants)

    directive = scan_record_length(lines, fixed_format=cfg.fixed_format)
    if directive is not None and not cfg.honor_record_length:
        logger.debug("%s: ignoring REC LEN %d", source_name, directive)
        directive = None
    return ParseResult(
        source_name=source_name,
        total_length=total_length(layouts, directive),
        fields=roots,
        record_layouts=layouts,
        record_length_directive=directive,
    )


def parse_copybook(
    text: str, source_name: str = "<memory>", config: ParserConfig | None = None
) -> ParseResult:
    return parse_lines(text.splitlines(), source_name=source_name, config=config)


def parse_file(path: Path, config: ParserConfig | None = None) -> ParseResult:
    if not path.is_file():
        raise CopybookError(f"Invalid or non-existent copybook file: {path}")
    try:
        text = path.read_text(errors="replace")
    except OSError as exc:
        raise CopybookError(f"Cannot read copybook file {path}: {exc}") from exc
    return parse_copybook(text, source_name=path.name, config=config)
