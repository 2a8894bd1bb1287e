"""CSV reading shared by the product and recipe importers.

Recipe preparation text routinely holds commas and line breaks, so fields
are tokenized with the `csv` module (quoted fields may span lines, `""` is
an escaped quote) rather than by splitting lines.
"""
import csv
import io
import logging
from typing import Dict, Iterable, List, Optional

from kitchen.domain.errors import ParseError

logger = logging.getLogger(__name__)

TRUE_VALUES = ("true", "1", "yes", "y")


def clean_csv_text(text) -> str:
    if isinstance(text, bytes):
        text = text.decode("utf-8-sig")
    text = (text or "").lstrip("﻿")
    return text.replace("\r\n", "\n").replace("\r", "\n").strip()


def detect_separator(header_line: str) -> str:
    return ";" if header_line.count(";") > header_line.count(",") else ","


def normalize_header(name: str) -> str:
    return "".join(name.strip().strip('"').lower().split()).replace("_", "")


def parse_csv_with_quotes(text: str, separator: Optional[str] = None) -> List[List[str]]:
    """Rows of fields; blank rows are dropped."""
    text = clean_csv_text(text)
    if not text:
        return []
    separator = separator or detect_separator(text.split("\n", 1)[0])
    try:
        rows = list(csv.reader(io.StringIO(text, newline=""), delimiter=separator, quotechar='"', strict=False))
    except csv.Error as e:
        raise ParseError(f"Malformed CSV: {e}") from e
    return [[field.strip() for field in row] for row in rows if any(field.strip() for field in row)]


def parse_boolean(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in TRUE_VALUES


def unescape_newlines(value: str) -> str:
    return (value or "").replace("\\n", "\n")


class CsvTable:
    """Header-indexed view over parsed rows; `row_number` is 1-based and counts the header."""

    def __init__(self, text: str, required: Iterable[str], label: str = "CSV"):
        rows = parse_csv_with_quotes(text)
        if not rows:
            raise ParseError(f"{label} file is empty")
        self.headers = [normalize_header(h) for h in rows[0]]
        missing = [h for h in required if h not in self.headers]
        if missing:
            raise ParseError(f"{label} is missing required headers: {', '.join(missing)}", missing=missing)
        self.rows = rows[1:]
        self.label = label
        logger.debug(f"{label}: {len(self.rows)} data rows, headers {self.headers}")

    def records(self):
        for index, row in enumerate(self.rows, start=2):
            yield index, {header: (row[i] if i < len(row) else "") for i, header in enumerate(self.headers)}


class ImportResult:
    """Outcome of one import call: nothing is rejected wholesale because of a bad row."""

    def __init__(self):
        self.imported_count = 0
        self.updated_count = 0
        self.skipped: List[Dict[str, object]] = []
        self.new_units: List[str] = []
        self.new_cuisines: List[str] = []
        self.new_seasons: List[str] = []

    def skip(self, reason: str, row: Optional[int] = None, recipe: Optional[str] = None, **extra):
        entry: Dict[str, object] = {"reason": reason}
        if row is not None:
            entry["row"] = row
        if recipe is not None:
            entry["recipe"] = recipe
        entry.update(extra)
        self.skipped.append(entry)
        logger.warning(f"Import skipped {entry}")

    def to_dict(self) -> dict:
        return {
            "importedCount": self.imported_count,
            "updatedCount": self.updated_count,
            "skipped": list(self.skipped),
            "newUnits": list(self.new_units),
            "newCuisines": list(self.new_cuisines),
            "newSeasons": list(self.new_seasons),
        }
