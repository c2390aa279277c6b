"""
csv_io.py - Reading input CSVs and splitting code lists

Input files always have a header row; each data row becomes a dict
keyed by header name. Cells such as course_code or questions may hold a
comma-separated list ("C1, C2" or '"C1,C2"'), which parse_codes() turns
into a clean list.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List

from sunbird_bulk.errors import missing_input_file_error


@dataclass
class InputRecord:
    """One CSV data row plus its position in the file"""
    row_number: int
    values: Dict[str, str]

    def get(self, column: str, default: str = "") -> str:
        value = self.values.get(column)
        if value is None:
            return default
        return value.strip()


@dataclass
class CsvInput:
    header: List[str]
    records: List[InputRecord]


def read_records(path: Path, setting: str = "input path") -> CsvInput:
    """
    Load a CSV into header-keyed records.

    Blank lines are skipped; short rows get empty strings for the
    missing columns. Raises PrerequisiteError if the file is absent.
    """
    path = Path(path)
    if not path.is_file():
        raise missing_input_file_error(path, setting)

    with path.open(encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        header = [h.strip() for h in (reader.fieldnames or [])]
        records: List[InputRecord] = []
        for index, raw in enumerate(reader, start=1):
            values = {}
            for original, name in zip(reader.fieldnames or [], header):
                values[name] = raw.get(original) or ""
            if not any(v.strip() for v in values.values()):
                continue
            records.append(InputRecord(row_number=index, values=values))

    return CsvInput(header=header, records=records)


def parse_codes(value: str) -> List[str]:
    """
    Split a comma-separated code list.

    Quotes are removed, each code trimmed, empty codes dropped. Order is
    kept and duplicates are left for the caller to deal with.
    """
    if not value:
        return []
    cleaned = value.replace('"', "")
    return [code.strip() for code in cleaned.split(",") if code.strip()]


def join_codes(codes: Iterable[str]) -> str:
    return ",".join(codes)
