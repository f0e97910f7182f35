"""Copybook tokenizer: raw lines -> ordered data-item clauses.

Handles:
- blank and comment lines (``*`` as first non-blank character)
- clauses continued over several physical lines until the closing period
- ``LEVEL NAME [PIC ..] [USAGE ..] [OCCURS n] [REDEFINES x] [VALUE lit]`` with
  the optional parts in any order
- level-88 condition names (only NAME and VALUE are read)
- optional fixed-format layout (sequence area, indicator column, col 72 cut)

A clause that cannot be read is skipped; tokenizing never raises for bad input.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum

from cblayout.copybook.picture import normalize_usage

logger = logging.getLogger(__name__)

LEVEL_RE = re.compile(r"^(\d{2})(?:\s|$)")
NAME_RE = re.compile(r"^[A-Z0-9][A-Z0-9_-]*$", re.IGNORECASE)
WORD_RE = re.compile(r"'[^']*'|\"[^\"]*\"|\S+")
REC_LEN_RE = re.compile(r"^\*+\s*REC\s*LEN\s*:?\s*(\d+)", re.IGNORECASE)

CONDITION_LEVEL = 88
RENAMES_LEVEL = 66
STANDALONE_LEVEL = 77

CLAUSE_KEYWORDS = frozenset(
    {"PIC", "PICTURE", "USAGE", "OCCURS", "REDEFINES", "VALUE", "VALUES"}
)


class ClauseKind(str, Enum):
    ELEMENTARY = "ELEMENTARY"
    GROUP = "GROUP"
    CONDITION = "CONDITION"


@dataclass(frozen=True)
class Clause:
    level: int
    name: str
    kind: ClauseKind
    picture: str | None = None
    usage: str | None = None
    occurs: int = 0
    redefines: str | None = None
    value: str | None = None
    line_number: int = 0

    @property
    def is_condition_name(self) -> bool:
        return self.level == CONDITION_LEVEL


def _is_keyword(word: str) -> bool:
    upper = word.upper()
    return upper in CLAUSE_KEYWORDS or normalize_usage(upper) is not None


def _unquote(literal: str) -> str:
    literal = literal.strip()
    if len(literal) >= 2 and literal[0] == literal[-1] and literal[0] in "'\"":
        inner = literal[1:-1]
        if literal[0] not in inner:
            return inner
    return literal


def _int_or_none(word: str | None) -> int | None:
    if word is not None and word.isdecimal():
        return int(word)
    return None


def lex_clause(text: str, line_number: int = 0) -> Clause | None:
    """Read one complete clause; ``None`` when it has no level/name."""
    text = text.strip()
    if text.endswith("."):
        text = text[:-1].rstrip()
    words = WORD_RE.findall(text)
    if not words or not words[0].isdecimal() or len(words[0]) > 2:
        return None
    level = int(words[0])
    if len(words) < 2:
        return None

    if _is_keyword(words[1]):
        name, i = "FILLER", 1
    elif NAME_RE.match(words[1]):
        name, i = words[1].upper(), 2
    else:
        return None

    picture: str | None = None
    usage: str | None = None
    occurs = 0
    redefines: str | None = None
    value: str | None = None
    condition = level == CONDITION_LEVEL
    size = len(words)

    while i < size:
        upper = words[i].upper()
        nxt = words[i + 1] if i + 1 < size else None

        if upper in {"VALUE", "VALUES"}:
            i += 1
            if i < size and words[i].upper() in {"IS", "ARE"}:
                i += 1
            literal: list[str] = []
            while i < size and (condition or not _is_keyword(words[i])):
                literal.append(words[i])
                i += 1
            if literal:
                value = _unquote(" ".join(literal))
            continue

        if condition:
            i += 1
            continue

        if upper in {"PIC", "PICTURE"}:
            i += 1
            if i < size and words[i].upper() == "IS":
                i += 1
            if i < size:
                picture = words[i]
            i += 1
        elif upper == "USAGE":
            i += 1
            if i < size and words[i].upper() == "IS":
                i += 1
            if i < size:
                usage = normalize_usage(words[i])
                if usage is None:
                    logger.debug("line %d: unknown usage %r, using DISPLAY", line_number, words[i])
                    usage = "DISPLAY"
            i += 1
        elif normalize_usage(upper) is not None:
            usage = normalize_usage(upper)
            i += 1
        elif upper == "OCCURS":
            count = _int_or_none(nxt)
            i += 2 if count is not None else 1
            if count is not None:
                occurs = count
                if i + 1 < size and words[i].upper() == "TO":
                    upper_bound = _int_or_none(words[i + 1])
                    if upper_bound is not None:
                        occurs = upper_bound
                    i += 2
                if i < size and words[i].upper() == "TIMES":
                    i += 1
        elif upper == "REDEFINES":
            if nxt is not None:
                redefines = nxt.upper()
            i += 2
        else:
            i += 1

    if condition:
        kind = ClauseKind.CONDITION
    elif picture is not None:
        kind = ClauseKind.ELEMENTARY
    else:
        kind = ClauseKind.GROUP
    return Clause(
        level=level,
        name=name,
        kind=kind,
        picture=picture,
        usage=usage,
        occurs=occurs,
        redefines=redefines,
        value=value,
        line_number=line_number,
    )


def _fixed_format(line: str) -> str:
    """Drop the sequence area and text past column 72; keep the indicator."""
    line = line.rstrip("\n")[:72]
    if len(line) < 7:
        return ""
    indicator = line[6]
    if indicator in "*/":
        return "*" + line[7:]
    return line[7:]


def _logical_lines(lines: Iterable[str], fixed_format: bool) -> Iterator[tuple[int, str]]:
    for number, raw in enumerate(lines, start=1):
        line = _fixed_format(raw) if fixed_format else raw
        yield number, line.strip()


def tokenize(lines: Iterable[str], *, fixed_format: bool = False) -> list[Clause]:
    """Turn copybook lines into clauses, joining continuation lines."""
    clauses: list[Clause] = []
    pending: list[str] = []
    pending_line = 0

    def flush() -> None:
        nonlocal pending
        if not pending:
            return
        text = " ".join(pending)
        clause = lex_clause(text, pending_line)
        if clause is None:
            logger.debug("line %d: skipping unreadable clause %r", pending_line, text)
        else:
            clauses.append(clause)
        pending = []

    for number, stripped in _logical_lines(lines, fixed_format):
        if not stripped or stripped.startswith("*"):
            continue
        if LEVEL_RE.match(stripped):
            flush()
            pending = [stripped]
            pending_line = number
        elif pending:
            pending.append(stripped)
        else:
            logger.debug("line %d: continuation without a clause: %r", number, stripped)
            continue
        if pending and pending[-1].endswith("."):
            flush()
    flush()
    return clauses


def scan_record_length(lines: Iterable[str], *, fixed_format: bool = False) -> int | None:
    """Find a ``* REC LEN : n`` comment directive; first match wins."""
    for _number, stripped in _logical_lines(lines, fixed_format):
        match = REC_LEN_RE.match(stripped)
        if match:
            return int(match.group(1))
    return None
