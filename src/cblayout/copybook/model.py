"""Resolved layout values handed from the resolver to serializers.

Everything here is a frozen dataclass built once per parse. Positions are
1-based and inclusive, so ``length == end - start + 1`` for every field (an
empty group has ``length == 0`` and ``end == start - 1``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Category(str, Enum):
    GROUP = "GROUP"
    NUMERIC = "NUMERIC"
    ALPHANUMERIC = "ALPHANUMERIC"
    ALPHABETIC = "ALPHABETIC"


@dataclass(frozen=True)
class ConditionName:
    """Level-88 alias attached to its owning field; occupies no storage."""

    name: str
    value: str | None


@dataclass(frozen=True)
class FieldPosition:
    name: str
    start: int
    end: int
    length: int
    picture: str | None
    category: Category
    usage: str | None = None
    level: int | None = None


@dataclass(frozen=True)
class ArrayElement:
    index: int
    start: int
    end: int
    length: int
    fields: tuple[FieldPosition, ...] = ()


@dataclass(frozen=True)
class Field:
    level: int
    name: str
    start: int
    end: int
    length: int
    category: Category
    picture: str | None = None
    usage: str | None = None
    signed: bool = False
    decimal: bool = False
    decimal_places: int = 0
    occurs: int = 0
    redefines: str | None = None
    value: str | None = None
    children: tuple[Field, ...] = ()
    elements: tuple[ArrayElement, ...] = ()
    condition_names: tuple[ConditionName, ...] = ()

    @property
    def is_group(self) -> bool:
        return self.category is Category.GROUP

    @property
    def numeric(self) -> bool:
        return self.category is Category.NUMERIC

    @property
    def single_length(self) -> int:
        """Length of one occurrence (the whole field when not an OCCURS table)."""
        if self.occurs > 0:
            return self.length // self.occurs
        return self.length

    def iter_fields(self):
        """Yield this field and every descendant in clause order."""
        yield self
        for child in self.children:
            yield from child.iter_fields()


@dataclass(frozen=True)
class RecordLayout:
    name: str
    fields: tuple[Field, ...]
    length: int
    redefines: str | None = None
    start: int = 1
    record_type_values: tuple[str, ...] = ()


@dataclass(frozen=True)
class ParseResult:
    source_name: str
    total_length: int
    fields: tuple[Field, ...]
    record_layouts: tuple[RecordLayout, ...]
    record_length_directive: int | None = None

    def field_count(self) -> int:
        """Fields in the tree, plus the elementary members of one occurrence of
        each OCCURS group (those groups keep no children)."""
        count = 0
        for root in self.fields:
            for field in root.iter_fields():
                count += 1
                if field.is_group and field.elements:
                    count += len(field.elements[0].fields)
        return count
