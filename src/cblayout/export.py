"""Serializers for parse results.

- JSON (orjson): the nested field tree, camelCase keys, empty optional
  attributes omitted, condition names never written
- CSV / Arrow IPC: one flat row per elementary position, for slicing records
  downstream
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any

import orjson
import pyarrow as pa

from cblayout.copybook.model import (
    ArrayElement,
    Category,
    Field,
    FieldPosition,
    ParseResult,
    RecordLayout,
)

POSITION_COLUMNS = [
    "record",
    "path",
    "name",
    "level",
    "start",
    "end",
    "length",
    "picture",
    "data_type",
    "usage",
    "occurrence",
]


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None and v != [] and v != ()}


def _position_to_dict(pos: FieldPosition) -> dict[str, Any]:
    return _compact(
        {
            "level": pos.level,
            "name": pos.name,
            "startPosition": pos.start,
            "endPosition": pos.end,
            "length": pos.length,
            "picture": pos.picture,
            "dataType": pos.category.value,
            "usage": pos.usage,
        }
    )


def _element_to_dict(element: ArrayElement) -> dict[str, Any]:
    return _compact(
        {
            "index": element.index,
            "startPosition": element.start,
            "endPosition": element.end,
            "length": element.length,
            "fields": [_position_to_dict(p) for p in element.fields],
        }
    )


def field_to_dict(field: Field) -> dict[str, Any]:
    data_type = None if field.category is Category.GROUP else field.category.value
    return _compact(
        {
            "level": field.level,
            "name": field.name,
            "picture": field.picture,
            "startPosition": field.start,
            "endPosition": field.end,
            "length": field.length,
            "dataType": data_type,
            "usage": field.usage,
            "signed": field.signed,
            "numeric": field.numeric,
            "decimal": field.decimal,
            "decimalPlaces": field.decimal_places,
            "occursCount": field.occurs,
            "redefines": field.redefines,
            "value": field.value,
            "children": [field_to_dict(c) for c in field.children],
            "arrayElements": [_element_to_dict(e) for e in field.elements],
        }
    )


def layout_to_dict(layout: RecordLayout) -> dict[str, Any]:
    return _compact(
        {
            "name": layout.name,
            "redefines": layout.redefines,
            "startPosition": layout.start,
            "length": layout.length,
            "fields": [field_to_dict(f) for f in layout.fields],
            "recordTypeValues": list(layout.record_type_values),
        }
    )


def result_to_dict(result: ParseResult) -> dict[str, Any]:
    return {
        "fileName": result.source_name,
        "totalLength": result.total_length,
        "fields": [field_to_dict(f) for f in result.fields],
        "recordLayouts": [layout_to_dict(layout) for layout in result.record_layouts],
    }


def dumps_result(result: ParseResult, pretty: bool = True) -> bytes:
    option = orjson.OPT_INDENT_2 if pretty else 0
    return orjson.dumps(result_to_dict(result), option=option)


def write_json(result: ParseResult, path: Path, pretty: bool = True) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(dumps_result(result, pretty=pretty))


def _rows_for_field(record: str, field: Field, parent: str) -> list[dict[str, Any]]:
    path = f"{parent}.{field.name}" if parent else field.name
    if field.elements:
        rows = []
        for element in field.elements:
            for pos in element.fields:
                rows.append(
                    {
                        "record": record,
                        "path": f"{path}.{pos.name}" if pos.name != field.name else path,
                        "name": pos.name,
                        "level": pos.level,
                        "start": pos.start,
                        "end": pos.end,
                        "length": pos.length,
                        "picture": pos.picture,
                        "data_type": pos.category.value,
                        "usage": pos.usage,
                        "occurrence": element.index,
                    }
                )
        return rows
    if field.is_group:
        rows = []
        for child in field.children:
            rows.extend(_rows_for_field(record, child, path))
        return rows
    return [
        {
            "record": record,
            "path": path,
            "name": field.name,
            "level": field.level,
            "start": field.start,
            "end": field.end,
            "length": field.length,
            "picture": field.picture,
            "data_type": field.category.value,
            "usage": field.usage,
            "occurrence": None,
        }
    ]


def flatten_positions(result: ParseResult) -> list[dict[str, Any]]:
    """One row per elementary position, OCCURS tables expanded per occurrence."""
    rows: list[dict[str, Any]] = []
    for layout in result.record_layouts:
        for field in layout.fields:
            rows.extend(_rows_for_field(layout.name, field, ""))
    return rows


def positions_to_csv(rows: list[dict[str, Any]], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=POSITION_COLUMNS)
        writer.writeheader()
        for row in rows:
            writer.writerow({k: ("" if v is None else v) for k, v in row.items()})


def positions_to_arrow(rows: list[dict[str, Any]], path: Path) -> None:
    """Write flat positions to an Arrow IPC file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    table = pa.table(
        {
            "record": pa.array([r["record"] for r in rows], pa.string()),
            "path": pa.array([r["path"] for r in rows], pa.string()),
            "name": pa.array([r["name"] for r in rows], pa.string()),
            "level": pa.array([r["level"] for r in rows], pa.int32()),
            "start": pa.array([r["start"] for r in rows], pa.int64()),
            "end": pa.array([r["end"] for r in rows], pa.int64()),
            "length": pa.array([r["length"] for r in rows], pa.int64()),
            "picture": pa.array([r["picture"] for r in rows], pa.string()),
            "data_type": pa.array([r["data_type"] for r in rows], pa.string()),
            "usage": pa.array([r["usage"] for r in rows], pa.string()),
            "occurrence": pa.array([r["occurrence"] for r in rows], pa.int32()),
        }
    )
    with pa.OSFile(str(path), "wb") as sink:
        with pa.ipc.new_file(sink, table.schema) as writer:
            writer.write_table(table)
