"""Physical layout resolver.

Walks each root of a ``Forest`` with a byte cursor that starts at 1 for every
root (01 records share one buffer) and produces immutable ``Field`` trees.

Rules:
- elementary items take ``physical_length`` bytes (times OCCURS) at the cursor
- groups span ``min(child.start) .. max(child.end)``; an OCCURS group repeats
  that span and the cursor moves past every occurrence
- REDEFINES moves the cursor back to the target's start; once the overlay is
  laid out the cursor returns to where it was, so overlays never grow a record
- a REDEFINES target that cannot be found overlays position 1
- USAGE on a group applies to descendants that do not declare their own
- an item without a PICTURE whose USAGE fixes its size (COMP-1, COMP-2,
  INDEX, POINTER) is elementary when nothing is nested under it
- OCCURS fields are materialized into ``ArrayElement`` values and lose their
  children
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from cblayout.copybook.errors import CopybookError
from cblayout.copybook.hierarchy import Forest
from cblayout.copybook.model import ArrayElement, Category, Field, FieldPosition
from cblayout.copybook.picture import DISPLAY, analyze, fixed_usage

logger = logging.getLogger(__name__)

RECORD_START = 1


def _positions(field_: Field, offset: int) -> list[FieldPosition]:
    """Elementary descendants of ``field_`` shifted by ``offset`` bytes."""
    if field_.elements:
        positions: list[FieldPosition] = []
        for element in field_.elements:
            for pos in element.fields:
                positions.append(
                    FieldPosition(
                        name=pos.name,
                        start=pos.start + offset,
                        end=pos.end + offset,
                        length=pos.length,
                        picture=pos.picture,
                        category=pos.category,
                        usage=pos.usage,
                        level=pos.level,
                    )
                )
        return positions
    if not field_.is_group:
        return [
            FieldPosition(
                name=field_.name,
                start=field_.start + offset,
                end=field_.end + offset,
                length=field_.length,
                picture=field_.picture,
                category=field_.category,
                usage=field_.usage,
                level=field_.level,
            )
        ]
    positions = []
    for child in field_.children:
        positions.extend(_positions(child, offset))
    return positions


def materialize_occurrences(
    start: int, single_length: int, occurs: int, template: list[Field]
) -> tuple[ArrayElement, ...]:
    """One ``ArrayElement`` per occurrence, built from the first occurrence."""
    elements: list[ArrayElement] = []
    for index in range(1, occurs + 1):
        element_start = start + (index - 1) * single_length
        offset = element_start - start
        fields: list[FieldPosition] = []
        for member in template:
            fields.extend(_positions(member, offset))
        elements.append(
            ArrayElement(
                index=index,
                start=element_start,
                end=element_start + single_length - 1,
                length=single_length,
                fields=tuple(fields),
            )
        )
    return tuple(elements)


@dataclass
class LayoutResolver:
    """Single-use resolver; holds the name -> start lookup for one parse."""

    forest: Forest
    default_usage: str = DISPLAY
    starts: dict[str, int] = field(default_factory=dict)

    def resolve(self) -> tuple[Field, ...]:
        if not self.forest.roots:
            raise CopybookError("copybook has no record definitions")
        roots: list[Field] = []
        for index in self.forest.roots:
            resolved, _cursor = self._resolve(index, RECORD_START, None)
            roots.append(resolved)
        return tuple(roots)

    def _overlay_base(self, name: str, target: str, line_number: int) -> int:
        base = self.starts.get(target)
        if base is None:
            logger.warning(
                "line %d: %s redefines unknown %s; overlaying record start",
                line_number,
                name,
                target,
            )
            return RECORD_START
        return base

    def _resolve(self, index: int, cursor: int, inherited_usage: str | None) -> tuple[Field, int]:
        node = self.forest.nodes[index]
        clause = node.clause
        saved_cursor = cursor
        if clause.redefines:
            cursor = self._overlay_base(clause.name, clause.redefines, clause.line_number)
        usage = clause.usage or inherited_usage

        if clause.picture is not None or (not node.children and fixed_usage(usage)):
            resolved = self._elementary(index, cursor, usage)
        else:
            resolved = self._group(index, cursor, usage)

        self.starts[clause.name] = resolved.start
        next_cursor = resolved.end + 1
        if clause.redefines:
            next_cursor = saved_cursor
        return resolved, next_cursor

    def _elementary(self, index: int, cursor: int, usage: str | None) -> Field:
        node = self.forest.nodes[index]
        clause = node.clause
        usage = usage or self.default_usage
        info = analyze(clause.picture, usage)
        single = info.physical_length
        occurs = clause.occurs
        length = single * occurs if occurs else single
        resolved = Field(
            level=clause.level,
            name=clause.name,
            start=cursor,
            end=cursor + length - 1,
            length=length,
            category=info.category,
            picture=clause.picture,
            usage=usage,
            signed=info.signed,
            decimal=info.decimal,
            decimal_places=info.decimal_places,
            occurs=occurs,
            redefines=clause.redefines,
            value=clause.value,
            condition_names=tuple(node.condition_names),
        )
        if occurs:
            # the template is one occurrence of the item itself
            one = Field(
                level=clause.level,
                name=clause.name,
                start=cursor,
                end=cursor + single - 1,
                length=single,
                category=info.category,
                picture=clause.picture,
                usage=usage,
            )
            elements = materialize_occurrences(cursor, single, occurs, [one])
            resolved = replace(resolved, elements=elements)
        return resolved

    def _group(self, index: int, cursor: int, usage: str | None) -> Field:
        node = self.forest.nodes[index]
        clause = node.clause
        children: list[Field] = []
        child_cursor = cursor
        for child_index in node.children:
            child, child_cursor = self._resolve(child_index, child_cursor, usage)
            children.append(child)

        if children:
            start = min(child.start for child in children)
            last = max(child.end for child in children)
        else:
            logger.debug("line %d: group %s has no items", clause.line_number, clause.name)
            start = cursor
            last = cursor - 1
        single = last - start + 1

        elements: tuple[ArrayElement, ...] = ()
        if clause.occurs and children:
            length = single * clause.occurs
            elements = materialize_occurrences(start, single, clause.occurs, children)
            children = []
        else:
            length = single
        return Field(
            level=clause.level,
            name=clause.name,
            start=start,
            end=start + length - 1,
            length=length,
            category=Category.GROUP,
            usage=clause.usage,
            occurs=clause.occurs,
            redefines=clause.redefines,
            value=clause.value,
            children=tuple(children),
            elements=elements,
            condition_names=tuple(node.condition_names),
        )


def resolve_layout(forest: Forest, default_usage: str = DISPLAY) -> tuple[Field, ...]:
    """Assign positions to every field of every root in ``forest``."""
    return LayoutResolver(forest, default_usage=default_usage).resolve()
