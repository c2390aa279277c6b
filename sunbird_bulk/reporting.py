"""
reporting.py - Per-row status reports

Every input row ends up as exactly one line in a status report CSV:
the input columns followed by status and reason (and, for quizzes,
how far the publish workflow got).

The report is rewritten in full on every flush, so after a crash the
file on disk still holds every row processed up to the last flush.
"""

from __future__ import annotations

import csv
import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence


logger = logging.getLogger(__name__)


class Status(str, Enum):
    SUCCESS = "Success"
    FAILURE = "Failure"
    SKIPPED = "Skipped"

    def __str__(self) -> str:
        return self.value


@dataclass
class Outcome:
    """Result for one report row"""
    row: Dict[str, str]
    status: Status
    reason: str = "none"
    stage: Optional[str] = None

    def cells(self, columns: Sequence[str], with_stage: bool) -> List[str]:
        values = [self.row.get(c, "") for c in columns]
        values.append(str(self.status))
        values.append(self.reason)
        if with_stage:
            values.append(self.stage or "")
        return values


class StatusReporter:
    """
    Accumulates outcomes and writes them to one CSV file.

    columns: the input columns to echo back, in order
    status_column / reason_column: names of the two trailing columns
    """

    def __init__(
        self,
        path: Path,
        columns: Sequence[str],
        status_column: str = "status",
        reason_column: str = "reason",
        stage_column: Optional[str] = None,
    ):
        self.path = Path(path)
        self.columns = list(columns)
        self.status_column = status_column
        self.reason_column = reason_column
        self.stage_column = stage_column
        self.outcomes: List[Outcome] = []

    @property
    def header(self) -> List[str]:
        header = self.columns + [self.status_column, self.reason_column]
        if self.stage_column:
            header.append(self.stage_column)
        return header

    def record(self, outcome: Outcome) -> None:
        self.outcomes.append(outcome)

    def record_all(self, outcomes: Sequence[Outcome]) -> None:
        for outcome in outcomes:
            self.record(outcome)

    def flush(self) -> Path:
        """Overwrite the report with the header and every outcome so far."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with_stage = bool(self.stage_column)
        with self.path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, lineterminator="\n")
            writer.writerow(self.header)
            for outcome in self.outcomes:
                writer.writerow(outcome.cells(self.columns, with_stage))
        logger.debug(f"[report] Wrote {len(self.outcomes)} row(s) to {self.path}")
        return self.path

    def summary(self) -> Dict[str, int]:
        counts = Counter(str(o.status) for o in self.outcomes)
        return {str(s): counts.get(str(s), 0) for s in Status}


def read_report(path: Path) -> List[Dict[str, str]]:
    """Read a status report back as header-keyed rows."""
    with Path(path).open(encoding="utf-8", newline="") as f:
        return list(csv.DictReader(f))
