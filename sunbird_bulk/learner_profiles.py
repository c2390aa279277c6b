#!/usr/bin/env python3
"""
# sunbird-bulk
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

learner_profiles.py

Creates learner profiles (collections of courses) from the learner /
course CSV and publishes them.

Input (LEARNER_COURSE_CSV, default data/learner_course.csv):

    learner_profile_code,learner_profile,course_code,expiry_date
    LP-01,Data Basics,"C-101,C-102",2026-12-31
    LP-01,Data Basics,"C-102,C-103",2026-12-31

Rows sharing a learner_profile_code become one profile whose courses are
the union of the rows' course codes. For each profile:

1. Skip if content with that code already exists
2. Resolve every course code to a course node id
3. Create the collection, attach the named courses, publish

Outputs:
- reports/learner-profile-status.csv (every input row + status, reason)
- COURSE_MAPPING / BATCH_MAPPING / NODEID_TO_CODE_MAPPING in .env and
  reports/learner-profile-mappings.json, for the enrollment phase
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from sunbird_bulk import payloads
from sunbird_bulk.auth import AuthSession
from sunbird_bulk.config_utils import BulkConfig, get_config
from sunbird_bulk.csv_io import read_records
from sunbird_bulk.errors import SunbirdBulkError
from sunbird_bulk.handoff import HandoffStore, ProfileMappings
from sunbird_bulk.log_utils import setup_logging
from sunbird_bulk.pipeline import EntityGroup, EntityRunner, Workflow, group_by_entity
from sunbird_bulk.reporting import StatusReporter
from sunbird_bulk.sunbird_client import SunbirdClient


logger = logging.getLogger(__name__)

PROFILE_CODE = "learner_profile_code"
PROFILE_NAME = "learner_profile"
COURSE_CODES = "course_code"
EXPIRY_DATE = "expiry_date"

REPORT_NAME = "learner-profile-status.csv"
HANDOFF_NAME = "learner-profile-mappings.json"


class LearnerProfileWorkflow(Workflow):
    """search -> resolve courses -> create -> update -> publish"""

    label = "profile"
    dependency_kind = "course"

    def __init__(self, client: SunbirdClient, config: BulkConfig, mappings: ProfileMappings):
        super().__init__()
        self.client = client
        self.config = config
        self.mappings = mappings

    def exists(self, group: EntityGroup) -> Optional[str]:
        if self.client.find_content(group.key) is not None:
            return f"Content with the code {group.key} already exists"
        return None

    def resolve_dependency(self, code: str) -> Tuple[str, str]:
        logger.info(f"[profile]   Searching for course code: {code}")
        return self.client.search_course(code)

    def execute(self, group: EntityGroup, resolved: Dict[str, Any]) -> str:
        first = group.first
        name = first.get(PROFILE_NAME) or group.key
        node_ids = [node_id for node_id, _ in resolved.values()]

        collection = payloads.learner_profile_collection(
            self.config, group.key, name, first.get(EXPIRY_DATE), node_ids
        )
        created = self.client.create_collection(collection)
        logger.info(f"[profile]   Created learner profile {group.key} ({created.identifier})")

        courses = {node_id: course_name for node_id, course_name in resolved.values()}
        update = payloads.learner_profile_update(self.config, created.version_key or "", name, courses)
        self.client.update_content(created.identifier, update)

        self.client.publish_content(created.identifier)
        logger.info(f"[profile]   Published learner profile {group.key}")
        return created.identifier

    def on_success(self, group: EntityGroup, resolved: Dict[str, Any], result: Any) -> None:
        self.mappings.add_profile(group.key, resolved)


def run(config: BulkConfig, client: SunbirdClient, sleep=None) -> StatusReporter:
    """Process the learner/course CSV; returns the reporter for inspection."""
    source = read_records(config.learner_course_csv, "LEARNER_COURSE_CSV")
    logger.info(f"[profile] {len(source.records)} row(s) in {config.learner_course_csv.name}")

    reporter = StatusReporter(config.reports_dir / REPORT_NAME, source.header)
    grouping = group_by_entity(
        source.records,
        PROFILE_CODE,
        COURSE_CODES,
        missing_key_reason="Learner profile code input is missing",
        missing_deps_reason="No course codes found for the given learner code",
    )

    mappings = ProfileMappings()
    workflow = LearnerProfileWorkflow(client, config, mappings)
    runner_kwargs = {"sleep": sleep} if sleep else {}
    runner = EntityRunner(reporter, config.wait_interval, **runner_kwargs)
    runner.run(grouping, workflow)

    store = HandoffStore(config.env_file, config.reports_dir / HANDOFF_NAME)
    store.export(mappings)

    counts = reporter.summary()
    logger.info(
        f"[profile] Completed: {counts['Success']} succeeded, "
        f"{counts['Failure']} failed, {counts['Skipped']} skipped"
    )
    logger.info(f"[profile] Results have been saved to {reporter.path}")
    logger.info("[profile] You can now run: sunbird-bulk enroll")
    return reporter


def main(verbose: int = 0):
    setup_logging(verbose)

    try:
        config = get_config()
        setup_logging(max(verbose, config.verbose))
        auth = AuthSession(config)
        auth.refresh()
        run(config, SunbirdClient(auth))
    except SunbirdBulkError as e:
        logger.error(str(e))
        raise SystemExit(1)
    except Exception:
        logger.exception("[profile] Learner profile creation stopped unexpectedly")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
