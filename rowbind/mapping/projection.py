"""Raw JSON projection of arbitrary result sets."""

from __future__ import annotations

from typing import Any

from pydantic_core import to_json

from rowbind.adapters.protocol import RowCursor
from rowbind.core.enums import ResultShape
from rowbind.mapping.scan import RawValue, ScanTarget


def project(cursor: RowCursor, shape: ResultShape) -> bytes:
    """Serialize the current result set to JSON bytes.

    Values are the driver's own, keyed by column name in column order.
    ``HAS_ONE`` with at least one row yields the first row as an object;
    anything else yields an array, ``[]`` when there are no rows.
    """
    columns = cursor.columns()
    targets: list[ScanTarget] = [RawValue() for _ in columns]

    rows: list[dict[str, Any]] = []
    while cursor.next():
        cursor.scan(targets)
        rows.append({column: target.value for column, target in zip(columns, targets, strict=True)})

    if shape is ResultShape.HAS_ONE and rows:
        return to_json(rows[0], bytes_mode="base64")
    return to_json(rows, bytes_mode="base64")
