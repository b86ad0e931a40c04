"""Serialize a full collections map to JSON or sectioned CSV, and back.

CSV is lossy: every collection becomes a ``# Collection: <name>`` section
with a header row, and on import cell text is coerced back to booleans,
numbers, and embedded JSON objects/arrays where it looks like one. Use JSON
when values must survive a round trip exactly.
"""

from __future__ import annotations

import csv
import io
import json
import math
from typing import Any, Mapping

from docstore.errors import ImportFormatError
from docstore.values import Record, to_text

FORMATS: tuple[str, ...] = ("json", "csv")
COLLECTION_MARKER = "# Collection:"

Collections = dict[str, list[Record]]


def _check_format(fmt: str) -> str:
    fmt = fmt.lower()
    if fmt not in FORMATS:
        raise ValueError(f"Unsupported format '{fmt}'. Valid formats: {', '.join(FORMATS)}")
    return fmt


# --- JSON ---


def to_json(collections: Mapping[str, list[Record]]) -> str:
    return json.dumps(collections, indent=2, ensure_ascii=False)


def from_json(text: str) -> Collections:
    try:
        data = json.loads(text)
    except ValueError as e:
        raise ImportFormatError("json", f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ImportFormatError("json", "expected an object mapping collection names to arrays")
    for name, records in data.items():
        if not isinstance(records, list):
            raise ImportFormatError("json", f"collection '{name}' is not an array")
    return data


# --- CSV ---


def _header(records: list[Record]) -> list[str]:
    columns: list[str] = []
    seen: set[str] = set()
    for record in records:
        for key in record:
            if key not in seen:
                seen.add(key)
                columns.append(key)
    return columns


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return to_text(value)


def to_csv(collections: Mapping[str, list[Record]]) -> str:
    """Render every non-empty collection as its own CSV section."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    first = True
    for name, records in collections.items():
        if not records:
            continue
        if not first:
            buf.write("\n")
        first = False
        buf.write(f"{COLLECTION_MARKER} {name}\n")
        columns = _header(records)
        writer.writerow(columns)
        for record in records:
            writer.writerow([_cell(record.get(col)) for col in columns])
    return buf.getvalue()


def coerce_cell(text: str) -> Any:
    """Best-effort conversion of CSV cell text back to a JSON value."""
    if text == "":
        return ""
    if text == "true":
        return True
    if text == "false":
        return False
    stripped = text.strip()
    if stripped:
        try:
            return int(stripped)
        except ValueError:
            pass
        try:
            number = float(stripped)
        except ValueError:
            pass
        else:
            if math.isfinite(number):
                return number
    if text.startswith("{") or text.startswith("["):
        try:
            return json.loads(text)
        except ValueError:
            return text
    return text


def from_csv(text: str) -> Collections:
    """Parse sectioned CSV as produced by ``to_csv``."""
    result: Collections = {}
    current: str | None = None
    columns: list[str] = []

    reader = csv.reader(io.StringIO(text))
    try:
        rows = list(reader)
    except csv.Error as e:
        raise ImportFormatError("csv", str(e)) from e

    for lineno, row in enumerate(rows, start=1):
        if not any(cell.strip() for cell in row):
            continue
        if len(row) == 1 and row[0].strip().startswith(COLLECTION_MARKER):
            current = row[0].strip()[len(COLLECTION_MARKER) :].strip()
            if not current:
                raise ImportFormatError("csv", f"row {lineno}: collection marker without a name")
            result[current] = []
            columns = []
            continue
        if current is None:
            raise ImportFormatError(
                "csv", f"row {lineno}: data before any '{COLLECTION_MARKER}' marker"
            )
        if not columns:
            columns = [c.strip() for c in row]
            continue
        record = {
            col: coerce_cell(row[i] if i < len(row) else "") for i, col in enumerate(columns)
        }
        result[current].append(record)
    return result


# --- Dispatch ---


def dumps(collections: Mapping[str, list[Record]], fmt: str = "json") -> str:
    if _check_format(fmt) == "csv":
        return to_csv(collections)
    return to_json(collections)


def loads(text: str, fmt: str = "json") -> Collections:
    if _check_format(fmt) == "csv":
        return from_csv(text)
    return from_json(text)


def format_for_path(path: str, default: str = "json") -> str:
    """Pick a format from a file extension."""
    lowered = path.lower()
    if lowered.endswith(".csv"):
        return "csv"
    if lowered.endswith(".json"):
        return "json"
    return default
