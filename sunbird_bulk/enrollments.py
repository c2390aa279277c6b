#!/usr/bin/env python3
"""
# sunbird-bulk
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

enrollments.py

Enrolls learners in every course of their learner profiles. Run after
learner_profiles.py, in a separate process.

Input (USER_LEARNER_CSV, default data/user_learner.csv):

    user_id,learner_profile
    learner1@example.org,"LP-01,LP-02"

Requires (checked before any remote call; the run exits 1 otherwise):
- COURSE_MAPPING, BATCH_MAPPING, NODEID_TO_CODE_MAPPING from the profile
  phase (.env or reports/learner-profile-mappings.json)
- reports/learner-profile-status.csv

For each user: log in as the learner, then for each profile that was
created successfully, enroll in the first open batch of every course.
One report row per (user, profile, course) in reports/enrollment-status.csv.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Set

from sunbird_bulk.auth import AuthSession
from sunbird_bulk.config_utils import BulkConfig, get_config
from sunbird_bulk.csv_io import InputRecord, parse_codes, read_records
from sunbird_bulk.errors import RemoteAPIError, SunbirdBulkError, failure_reason, missing_profile_report_error
from sunbird_bulk.handoff import HandoffStore, ProfileMappings
from sunbird_bulk.learner_profiles import HANDOFF_NAME, REPORT_NAME as PROFILE_REPORT_NAME
from sunbird_bulk.log_utils import setup_logging, status_icon
from sunbird_bulk.reporting import Outcome, Status, StatusReporter, read_report
from sunbird_bulk.sunbird_client import SunbirdClient


logger = logging.getLogger(__name__)

USER_ID = "user_id"
PROFILES = "learner_profile"

REPORT_NAME = "enrollment-status.csv"
REPORT_COLUMNS = ["userId", "learnerProfile", "courseCode"]

ALREADY_ENROLLED = "user has already enrolled"


def load_created_profiles(report_path) -> Set[str]:
    """Profile codes the profile phase reported as Success."""
    if not report_path.exists():
        raise missing_profile_report_error(report_path)
    created = set()
    for row in read_report(report_path):
        if row.get("status") == "Success":
            created.add((row.get("learner_profile_code") or "").strip())
    created.discard("")
    return created


class EnrollmentRunner:
    def __init__(
        self,
        auth: AuthSession,
        client: SunbirdClient,
        mappings: ProfileMappings,
        created_profiles: Set[str],
        reporter: StatusReporter,
        wait_interval: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.auth = auth
        self.client = client
        self.mappings = mappings
        self.created_profiles = created_profiles
        self.reporter = reporter
        self.wait_interval = wait_interval
        self.sleep = sleep
        # login -> course node ids enrolled during this run
        self.enrolled: Dict[str, Set[str]] = {}

    def run(self, records: List[InputRecord]) -> None:
        for record in records:
            self.process_user(record)
            self.reporter.flush()
            if self.wait_interval > 0:
                self.sleep(self.wait_interval)
        self.reporter.flush()

    def _add(self, login: str, profile: str, course_code: str, status: Status, reason: str) -> None:
        row = {"userId": login, "learnerProfile": profile, "courseCode": course_code}
        self.reporter.record(Outcome(row=row, status=status, reason=reason))

    def process_user(self, record: InputRecord) -> None:
        login = record.get(USER_ID)
        profiles = parse_codes(record.get(PROFILES))
        if not login:
            logger.warning(f"[enroll] Row {record.row_number}: user id is missing")
            for profile in profiles or [""]:
                self._add("", profile, "none", Status.FAILURE, "User id input is missing")
            return
        if not profiles:
            self._add(login, "", "none", Status.FAILURE, "Learner profile input is missing")
            return

        logger.info(f"[enroll] Processing enrollments for user: {login} with profiles: {', '.join(profiles)}")
        try:
            session = self.auth.learner_session(login)
        except SunbirdBulkError as e:
            reason = failure_reason(e)
            logger.error(f"[enroll] Error processing enrollments for {login}: {reason}")
            for profile in profiles:
                self._add(login, profile, "none", Status.FAILURE, reason)
            return

        enrolled = self.enrolled.setdefault(login, set())
        for index, profile in enumerate(profiles):
            try:
                self.process_profile(login, profile, session, enrolled)
            except Exception as e:
                # Remaining profiles of this user fail; the next user still runs
                reason = failure_reason(e)
                logger.error(f"[enroll] Error processing enrollments for {login}: {reason}")
                logger.debug(f"[enroll] {type(e).__name__} for {login} / {profile}", exc_info=e)
                for remaining in profiles[index:]:
                    self._add(login, remaining, "none", Status.FAILURE, reason)
                return

    def process_profile(self, login, profile, session, enrolled: Set[str]) -> None:
        logger.info(f"[enroll]   Processing learner profile: {profile}")
        if profile not in self.created_profiles:
            logger.info(f"[enroll]   Learner profile {profile} was not successfully created, skipping")
            self._add(login, profile, "none", Status.SKIPPED, "Learner profile does not exist")
            return

        courses = self.mappings.courses.get(profile) or {}
        if not courses:
            self._add(login, profile, "none", Status.FAILURE, "No course codes found for the given learner code")
            return

        for node_id in courses:
            course_code = self.mappings.course_code(node_id)
            status, reason = self.enrol_course(node_id, course_code, profile, session, enrolled)
            logger.info(
                f"[enroll]     {course_code} ({node_id}): {status}" + ("" if reason == "none" else f" - {reason}"),
                extra={"icon": status_icon(str(status))},
            )
            self._add(login, profile, course_code, status, reason)

    def enrol_course(self, node_id, course_code, profile, session, enrolled: Set[str]):
        if node_id in enrolled:
            return Status.SKIPPED, "User has already enrolled to this course"

        try:
            batch_id = self.mappings.batches.get(profile, {}).get(node_id) or self.client.first_open_batch(node_id)
        except RemoteAPIError as e:
            return Status.FAILURE, failure_reason(e)
        if not batch_id:
            return Status.FAILURE, "No batch found for course"

        try:
            self.client.enrol(node_id, batch_id, session.user_id, session.access_token)
        except SunbirdBulkError as e:
            reason = failure_reason(e)
            if ALREADY_ENROLLED in reason.lower():
                enrolled.add(node_id)
                return Status.SKIPPED, reason
            return Status.FAILURE, reason or "Failed to enroll in course"

        enrolled.add(node_id)
        return Status.SUCCESS, "none"


def run(config: BulkConfig, auth: AuthSession, client: SunbirdClient, sleep=None) -> StatusReporter:
    reporter = StatusReporter(
        config.reports_dir / REPORT_NAME,
        REPORT_COLUMNS,
        status_column="enrollmentStatus",
    )
    source = read_records(config.user_learner_csv, "USER_LEARNER_CSV")
    logger.info(f"[enroll] {len(source.records)} user row(s) in {config.user_learner_csv.name}")

    mappings = HandoffStore(config.env_file, config.reports_dir / HANDOFF_NAME).load()
    created = load_created_profiles(config.reports_dir / PROFILE_REPORT_NAME)

    runner_kwargs = {"sleep": sleep} if sleep else {}
    runner = EnrollmentRunner(auth, client, mappings, created, reporter, config.wait_interval, **runner_kwargs)
    runner.run(source.records)

    counts = reporter.summary()
    logger.info(
        f"[enroll] Completed: {counts['Success']} enrolled, "
        f"{counts['Failure']} failed, {counts['Skipped']} skipped"
    )
    logger.info(f"[enroll] Results have been saved to {reporter.path}")
    return reporter


def check_prerequisites(config: BulkConfig) -> None:
    """Fail before logging in if the profile phase hasn't run."""
    HandoffStore(config.env_file, config.reports_dir / HANDOFF_NAME).load()
    load_created_profiles(config.reports_dir / PROFILE_REPORT_NAME)


def main(verbose: int = 0):
    setup_logging(verbose)

    try:
        config = get_config()
        setup_logging(max(verbose, config.verbose))
        check_prerequisites(config)
        auth = AuthSession(config)
        auth.refresh()
        run(config, auth, SunbirdClient(auth))
    except SunbirdBulkError as e:
        logger.error(str(e))
        raise SystemExit(1)
    except Exception:
        logger.exception("[enroll] Enrollment stopped unexpectedly")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
