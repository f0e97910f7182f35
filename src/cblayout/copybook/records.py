"""Record layouts over resolved roots.

Every root becomes a ``RecordLayout`` starting at position 1 (all 01 records
share one buffer). A copybook that tags record kinds with a leading
discriminator (an elementary item carrying 88-level values) followed by
REDEFINES siblings also yields one layout per sibling.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from cblayout.copybook.model import Field, RecordLayout

logger = logging.getLogger(__name__)


def _root_layout(root: Field) -> RecordLayout:
    fields = root.children if root.is_group and root.children else (root,)
    return RecordLayout(
        name=root.name,
        fields=fields,
        length=root.length,
        redefines=root.redefines,
        start=1,
    )


def _discriminator(root: Field) -> Field | None:
    if not root.children:
        return None
    first = root.children[0]
    if first.is_group or not first.condition_names:
        return None
    return first


def variant_layouts(root: Field) -> list[RecordLayout]:
    """Layouts for REDEFINES siblings that follow a type discriminator."""
    discriminator = _discriminator(root)
    if discriminator is None:
        return []
    siblings = root.children[1:]
    targets = {child.redefines for child in siblings if child.redefines}
    if not targets:
        return []
    values = tuple(cond.value for cond in discriminator.condition_names if cond.value is not None)

    layouts: list[RecordLayout] = []
    for sibling in siblings:
        if sibling.name not in targets and not sibling.redefines:
            continue
        fields = (discriminator, sibling)
        layouts.append(
            RecordLayout(
                name=sibling.name,
                fields=fields,
                length=max(f.end for f in fields),
                redefines=sibling.redefines,
                start=1,
                record_type_values=values,
            )
        )
    return layouts


def extract_record_layouts(
    roots: Sequence[Field], *, include_variants: bool = True
) -> tuple[RecordLayout, ...]:
    """One layout per root, capping REDEFINES roots at the base record length."""
    layouts: list[RecordLayout] = []
    base_length = 0
    for root in roots:
        layout = _root_layout(root)
        if root.redefines is None:
            base_length = max(base_length, layout.length)
        elif base_length and layout.length > base_length:
            logger.warning(
                "%s (%d bytes) is longer than the record it redefines; capping at %d",
                root.name,
                layout.length,
                base_length,
            )
            layout = RecordLayout(
                name=layout.name,
                fields=layout.fields,
                length=base_length,
                redefines=layout.redefines,
                start=1,
            )
        layouts.append(layout)
        if include_variants:
            layouts.extend(variant_layouts(root))
    return tuple(layouts)


def total_length(layouts: Sequence[RecordLayout], record_length: int | None = None) -> int:
    """Longest layout, or the REC LEN directive when it is consistent with it."""
    structural = max((layout.length for layout in layouts), default=0)
    if record_length is None:
        return structural
    if structural == 0 or record_length >= structural:
        return record_length
    logger.warning(
        "REC LEN %d is shorter than the %d-byte layout; ignoring it", record_length, structural
    )
    return structural
