#!/usr/bin/env python3
"""
# sunbird-bulk
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

quizzes.py

Creates questions, then quizzes built from them, and publishes the
quizzes.

Input (QUIZ_CSV_PATH, default data/assessment_create.csv):

    code,quiz_name,max_attempts,language,quiz_type,questions
    QZ-01,Week 1 check,3,English,PracticeQuestionSet,"Q-01,Q-02"

Rows sharing a quiz code become one quiz holding the union of their
question codes. Steps per quiz:

1. Skip if content with that code already exists
2. Look up every question code in the question bank
3. Create the ECML content                        (stage: Draft)
4. Read each question's assessment item back
5. Update the content with the questionset body
6. Send for review                                 (stage: In Review)
7. Publish                                         (stage: Live)

Outputs:
- reports/questions_status.csv (question phase)
- reports/quiz_question_status.csv (is each question of each quiz there)
- reports/quiz_report.csv (every quiz row + status, reason, stage)
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from sunbird_bulk import payloads, questions
from sunbird_bulk.auth import AuthSession
from sunbird_bulk.config_utils import BulkConfig, get_config
from sunbird_bulk.csv_io import InputRecord, parse_codes, read_records
from sunbird_bulk.errors import InputError, SunbirdBulkError
from sunbird_bulk.log_utils import setup_logging
from sunbird_bulk.pipeline import EntityGroup, EntityRunner, Workflow, group_by_entity
from sunbird_bulk.questions import QuestionBank
from sunbird_bulk.reporting import StatusReporter
from sunbird_bulk.sunbird_client import SunbirdClient


logger = logging.getLogger(__name__)

CODE = "code"
QUIZ_NAME = "quiz_name"
MAX_ATTEMPTS = "max_attempts"
LANGUAGE = "language"
QUIZ_TYPE = "quiz_type"
QUESTIONS = "questions"

DEFAULT_LANGUAGE = "English"

REPORT_NAME = "quiz_report.csv"
QUESTION_STATUS_NAME = "quiz_question_status.csv"
QUESTION_STATUS_HEADER = [
    "quiz_code",
    "question_code",
    "question_creation_status",
    "question_attachment_status",
    "error_message",
]

STAGE_DRAFT = "Draft"
STAGE_REVIEW = "In Review"
STAGE_LIVE = "Live"


def check_quiz_row(record: InputRecord) -> Optional[str]:
    if not record.get(QUIZ_NAME):
        return "Quiz name is missing"
    if questions.parse_score(record.get(MAX_ATTEMPTS)) is None:
        return "Quiz max attempts input is missing"
    if not record.get(QUIZ_TYPE):
        return "Quiz content type input is missing"
    return None


class QuizWorkflow(Workflow):
    """search -> resolve questions -> create -> read items -> update -> review -> publish"""

    label = "quiz"
    dependency_kind = "question"

    def __init__(self, client: SunbirdClient, config: BulkConfig, bank: QuestionBank):
        super().__init__()
        self.client = client
        self.config = config
        self.bank = bank

    def exists(self, group: EntityGroup) -> Optional[str]:
        if self.client.find_content(group.key) is not None:
            return f"Content with code {group.key} already exists"
        return None

    def resolve_dependency(self, code: str) -> str:
        identifier = self.bank.identifier(code)
        if not identifier:
            raise InputError(f"question with code {code} does not exist.")
        return identifier

    def execute(self, group: EntityGroup, resolved: Dict[str, Any]) -> str:
        first = group.first
        name = first.get(QUIZ_NAME)
        content = payloads.quiz_content(
            self.config,
            group.key,
            name,
            questions.parse_score(first.get(MAX_ATTEMPTS)),
            first.get(QUIZ_TYPE),
            first.get(LANGUAGE) or DEFAULT_LANGUAGE,
        )
        self.stage = STAGE_DRAFT
        created = self.client.create_content(content)
        logger.info(f"[quiz]   Created quiz {group.key} ({created.identifier})")

        quiz_questions: List[payloads.QuizQuestion] = []
        for code, identifier in resolved.items():
            item = self.client.read_assessment_item(identifier)
            quiz_questions.append(payloads.QuizQuestion(identifier, item, self.bank.score(code)))

        update = payloads.quiz_update(self.config, created.version_key or "", name, quiz_questions)
        self.client.update_content(created.identifier, update)
        total = sum(q.score for q in quiz_questions)
        logger.info(f"[quiz]   Quiz {group.key} updated with {len(quiz_questions)} question(s), total score {total:g}")

        self.client.review_content(created.identifier)
        self.stage = STAGE_REVIEW
        logger.info(f"[quiz]   Quiz {group.key} sent for review")

        self.client.publish_content(created.identifier)
        self.stage = STAGE_LIVE
        logger.info(f"[quiz]   Quiz {group.key} published")
        return created.identifier


def write_question_status(records: List[InputRecord], bank: QuestionBank, path: Path) -> Path:
    """One line per (quiz, question code): was the question available to attach."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerow(QUESTION_STATUS_HEADER)
        for record in records:
            quiz_code = record.get(CODE)
            for question_code in parse_codes(record.get(QUESTIONS)):
                found = question_code in bank
                status = "TRUE" if found else "FALSE"
                message = "none" if found else f'["QUESTION {question_code} NOT FOUND"]'
                writer.writerow([quiz_code, question_code, status, status, message])
    logger.info(f"[quiz] Quiz-question status report saved to {path}")
    return path


def run(config: BulkConfig, client: SunbirdClient, bank: QuestionBank, sleep=None) -> StatusReporter:
    source = read_records(config.quiz_csv, "QUIZ_CSV_PATH")
    logger.info(f"[quiz] {len(source.records)} row(s) in {config.quiz_csv.name}")

    write_question_status(source.records, bank, config.reports_dir / QUESTION_STATUS_NAME)

    reporter = StatusReporter(config.reports_dir / REPORT_NAME, source.header, stage_column="stage")
    grouping = group_by_entity(
        source.records,
        CODE,
        QUESTIONS,
        missing_key_reason="Quiz code input is missing",
        missing_deps_reason="Question codes input are missing",
        check=check_quiz_row,
    )

    runner_kwargs = {"sleep": sleep} if sleep else {}
    runner = EntityRunner(reporter, config.wait_interval, **runner_kwargs)
    runner.run(grouping, QuizWorkflow(client, config, bank))

    counts = reporter.summary()
    logger.info(
        f"[quiz] Completed: {counts['Success']} published, "
        f"{counts['Failure']} failed, {counts['Skipped']} skipped"
    )
    logger.info(f"[quiz] Quiz status report saved to {reporter.path}")
    return reporter


def main(verbose: int = 0):
    setup_logging(verbose)

    try:
        config = get_config()
        setup_logging(max(verbose, config.verbose))
        auth = AuthSession(config)
        auth.refresh()
        client = SunbirdClient(auth)

        logger.info("[question] Starting question processing...")
        bank = questions.run(config, client)

        logger.info("[quiz] Starting quiz processing...")
        run(config, client, bank)
    except SunbirdBulkError as e:
        logger.error(str(e))
        raise SystemExit(1)
    except Exception:
        logger.exception("[quiz] Quiz creation stopped unexpectedly")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
