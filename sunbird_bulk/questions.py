"""
questions.py - Create MCQ assessment items from the question CSV

Input (QUESTION_CSV_PATH, default data/questions.csv):

    code,question_text,score,option_1,option_1_is_correct,option_2,option_2_is_correct
    Q-01,What is 2 + 2?,1,3,false,4,true

Existing questions are not recreated; their identifier and score go
into the question bank so quizzes can still use them. The bank is saved
to data/question_mapping.json for the quiz phase.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from sunbird_bulk import payloads
from sunbird_bulk.config_utils import BulkConfig
from sunbird_bulk.csv_io import InputRecord, read_records
from sunbird_bulk.errors import InputError
from sunbird_bulk.pipeline import EntityGroup, EntityRunner, Workflow, group_by_entity
from sunbird_bulk.reporting import StatusReporter
from sunbird_bulk.sunbird_client import SunbirdClient


logger = logging.getLogger(__name__)

CODE = "code"
QUESTION_TEXT = "question_text"
SCORE = "score"

REPORT_NAME = "questions_status.csv"
MAPPING_NAME = "question_mapping.json"

OPTION_COLUMN = re.compile(r"^option_(\d+)$")


@dataclass
class QuestionBank:
    """question code -> {"identifier": ..., "score": ...}"""
    entries: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def add(self, code: str, identifier: str, score: Any) -> None:
        self.entries[code] = {"identifier": identifier, "score": score}

    def __contains__(self, code: str) -> bool:
        return code in self.entries

    def identifier(self, code: str) -> Optional[str]:
        entry = self.entries.get(code)
        return entry["identifier"] if entry else None

    def score(self, code: str) -> float:
        entry = self.entries.get(code) or {}
        try:
            return float(entry.get("score") or 0)
        except (TypeError, ValueError):
            return 0.0

    def save(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.entries, indent=2), encoding="utf-8")
        logger.info(f"[question] Question mapping saved to {path}")
        return path


def parse_score(value: str) -> Optional[int]:
    """Leading integer of the cell; None unless it is a positive number."""
    match = re.match(r"^\s*([+-]?\d+)", value or "")
    if not match:
        return None
    number = int(match.group(1))
    return number if number > 0 else None


def read_options(record: InputRecord) -> List[Dict[str, Any]]:
    """option_N / option_N_is_correct pairs, in header order."""
    options = []
    for column in record.values:
        match = OPTION_COLUMN.match(column)
        if not match:
            continue
        correct_column = f"option_{match.group(1)}_is_correct"
        if correct_column not in record.values:
            continue
        options.append({
            "text": record.get(column),
            "isCorrect": record.get(correct_column).lower() == "true",
        })
    return options


class QuestionWorkflow(Workflow):
    label = "question"
    requires_dependencies = False

    def __init__(self, client: SunbirdClient, config: BulkConfig, bank: QuestionBank):
        super().__init__()
        self.client = client
        self.config = config
        self.bank = bank

    def exists(self, group: EntityGroup) -> Optional[str]:
        content = self.client.find_content(group.key)
        if content is None:
            return None
        if content.get("type") == "mcq" and content.get("itemType") == "UNIT" and content.get("identifier"):
            self.bank.add(group.key, content["identifier"], content.get("max_score"))
            return f"Question with code {group.key} already exists"
        return f"Content with code {group.key} already exists"

    def execute(self, group: EntityGroup, resolved: Dict[str, Any]) -> str:
        record = group.first
        title = record.get(QUESTION_TEXT)
        if not title:
            raise InputError("Question name input is missing")
        max_score = parse_score(record.get(SCORE))
        if max_score is None:
            raise InputError("Question Max score input is invalid")

        item = payloads.mcq_question_item(self.config, group.key, title, read_options(record), max_score)
        node_id = self.client.create_question(item)
        self.bank.add(group.key, node_id, max_score)
        logger.info(f"[question]   Mapped question code {group.key} to node_id {node_id} with score {max_score}")
        return node_id


def run(config: BulkConfig, client: SunbirdClient, sleep=None) -> QuestionBank:
    source = read_records(config.question_csv, "QUESTION_CSV_PATH")
    logger.info(f"[question] {len(source.records)} row(s) in {config.question_csv.name}")

    reporter = StatusReporter(config.reports_dir / REPORT_NAME, source.header)
    grouping = group_by_entity(
        source.records,
        CODE,
        missing_key_reason="Question Code input is missing",
    )

    bank = QuestionBank()
    runner_kwargs = {"sleep": sleep} if sleep else {}
    runner = EntityRunner(reporter, config.wait_interval, **runner_kwargs)
    runner.run(grouping, QuestionWorkflow(client, config, bank))

    bank.save(config.data_dir / MAPPING_NAME)

    counts = reporter.summary()
    logger.info(
        f"[question] Completed: {counts['Success']} created, "
        f"{counts['Failure']} failed, {counts['Skipped']} skipped"
    )
    logger.info(f"[question] Question status report saved to {reporter.path}")
    return bank
