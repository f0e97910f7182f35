"""PICTURE and USAGE analysis.

``analyze`` is a pure function from (picture, usage) to the derived storage
attributes of an elementary item:
- character length: repeat groups like X(10) plus bare X/9/A/Z characters
- physical length: bytes occupied under the USAGE encoding
  (DISPLAY, COMP-3/PACKED-DECIMAL, COMP/BINARY, COMP-1, COMP-2, INDEX, POINTER)
- category, sign, implied decimal point and decimal places

Malformed pictures never raise: a broken parenthesized group counts as one
character and scanning continues.
"""

from __future__ import annotations

from dataclasses import dataclass

from cblayout.copybook.model import Category

DISPLAY = "DISPLAY"
PACKED_USAGES = frozenset({"COMP-3", "PACKED-DECIMAL"})
BINARY_USAGES = frozenset({"COMP", "BINARY", "COMP-4", "COMP-5"})
FLOAT_LENGTHS = {"COMP-1": 4, "COMP-2": 8}
# usages whose size does not depend on a PICTURE (and usually have none)
FIXED_LENGTHS = {**FLOAT_LENGTHS, "INDEX": 4, "POINTER": 4}
USAGE_KEYWORDS = frozenset(
    {DISPLAY, "COMP-3", "PACKED-DECIMAL"} | BINARY_USAGES | set(FIXED_LENGTHS)
)
COUNTED_CHARS = frozenset("XA9Z")
DIGIT_CHARS = frozenset("9")


@dataclass(frozen=True)
class PictureInfo:
    category: Category
    signed: bool = False
    decimal: bool = False
    decimal_places: int = 0
    character_length: int = 0
    physical_length: int = 0
    total_digits: int = 0


GROUP_INFO = PictureInfo(category=Category.GROUP)


def normalize_usage(word: str | None) -> str | None:
    """Map a USAGE word (COMP-3, COMPUTATIONAL-3, ...) to its canonical keyword."""
    if not word:
        return None
    upper = word.strip().upper().rstrip(".")
    if upper.startswith("COMPUTATIONAL"):
        upper = "COMP" + upper[len("COMPUTATIONAL") :]
    return upper if upper in USAGE_KEYWORDS else None


def _scan(picture: str, wanted: frozenset[str] | None = None) -> int:
    """Count positions described by ``picture``.

    Without ``wanted`` every repeat group counts and bare characters count
    when they are X, 9, A or Z. With ``wanted`` only those characters count.
    """
    total = 0
    i = 0
    size = len(picture)
    bare = wanted or COUNTED_CHARS
    while i < size:
        ch = picture[i]
        if ch == "(" or (i + 1 < size and picture[i + 1] == "("):
            owner = None if ch == "(" else ch
            open_at = i if ch == "(" else i + 1
            close = picture.find(")", open_at + 1)
            inside = picture[open_at + 1 : close].strip() if close != -1 else ""
            repeat = int(inside) if owner and inside.isdecimal() and int(inside) > 0 else 1
            if wanted is None or owner in wanted:
                total += repeat
            if close == -1:
                # unbalanced: the rest of the picture is one fragment
                break
            i = close + 1
            continue
        if ch in bare:
            total += 1
        i += 1
    return total


def character_length(picture: str) -> int:
    """Number of character positions described by ``picture``."""
    return _scan(picture.upper().replace(" ", ""))


def digit_count(picture: str) -> int:
    """Number of ``9`` digit positions, with S and V stripped."""
    cleaned = picture.upper().replace(" ", "").replace("S", "").replace("V", "")
    return _scan(cleaned, DIGIT_CHARS)


def physical_length(char_length: int, digits: int, usage: str | None) -> int:
    usage = usage or DISPLAY
    if usage in PACKED_USAGES:
        return (digits + 2) // 2
    if usage in BINARY_USAGES:
        if digits <= 4:
            return 2
        if digits <= 9:
            return 4
        return 8
    if usage in FIXED_LENGTHS:
        return FIXED_LENGTHS[usage]
    return char_length


def classify(picture: str) -> Category:
    pic = picture.upper()
    if "9" in pic:
        return Category.NUMERIC
    if "X" in pic:
        return Category.ALPHANUMERIC
    if "A" in pic:
        return Category.ALPHABETIC
    return Category.ALPHANUMERIC


def fixed_usage(usage: str | None) -> str | None:
    """Canonical usage when it sizes an item without a PICTURE (COMP-1, INDEX, ...)."""
    canonical = normalize_usage(usage)
    return canonical if canonical in FIXED_LENGTHS else None


def analyze(picture: str | None, usage: str | None = None) -> PictureInfo:
    """Derive category, sign, decimals and lengths for an elementary item.

    Without a picture the result is GROUP_INFO, unless the usage alone fixes
    the size: COMP-1/COMP-2 floats and INDEX are numeric, POINTER is not.
    """
    if picture is None or not picture.strip():
        fixed = fixed_usage(usage)
        if fixed is None:
            return GROUP_INFO
        return PictureInfo(
            category=Category.ALPHANUMERIC if fixed == "POINTER" else Category.NUMERIC,
            signed=fixed in FLOAT_LENGTHS,
            physical_length=FIXED_LENGTHS[fixed],
        )
    pic = picture.upper().replace(" ", "")
    chars = max(character_length(pic), 1)
    decimal = "V" in pic
    places = character_length(pic.split("V", 1)[1]) if decimal else 0
    digits = digit_count(pic)
    canonical = normalize_usage(usage) or (usage.upper() if usage else None)
    return PictureInfo(
        category=classify(pic),
        signed="S" in pic,
        decimal=decimal,
        decimal_places=places,
        character_length=chars,
        physical_length=physical_length(chars, digits, canonical),
        total_digits=digits,
    )
