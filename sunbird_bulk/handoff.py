"""
handoff.py - Carry learner profile mappings from the profile phase to
the enrollment phase.

The two phases run as separate processes. The profile phase ends by
exporting three mappings:

    COURSE_MAPPING           {profile code: {course node id: course name}}
    BATCH_MAPPING            {profile code: {course node id: batch id | null}}
    NODEID_TO_CODE_MAPPING   {course node id: course code}

Each is written as a quoted JSON assignment into the .env file
(replacing any earlier line for the same key) and, together, into a
JSON handoff file next to the reports.

The enrollment phase loads them back. Values already in the process
environment win; otherwise the .env file is read, and if none of the
keys turn up there either, the JSON handoff file. Loading is
all-or-nothing: a missing, unparseable or wrongly shaped key is a
PrerequisiteError.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values, set_key

from sunbird_bulk.errors import missing_mappings_error


logger = logging.getLogger(__name__)

COURSE_MAPPING = "COURSE_MAPPING"
BATCH_MAPPING = "BATCH_MAPPING"
NODEID_TO_CODE_MAPPING = "NODEID_TO_CODE_MAPPING"
HANDOFF_KEYS = (COURSE_MAPPING, BATCH_MAPPING, NODEID_TO_CODE_MAPPING)


@dataclass
class ProfileMappings:
    """Everything the enrollment phase needs to know about created profiles"""
    courses: Dict[str, Dict[str, str]] = field(default_factory=dict)
    batches: Dict[str, Dict[str, Optional[str]]] = field(default_factory=dict)
    node_to_code: Dict[str, str] = field(default_factory=dict)

    def add_profile(self, profile_code: str, courses: Mapping[str, tuple]) -> None:
        """
        Record a created profile.

        courses: course code -> (node id, course name)
        """
        self.courses[profile_code] = {}
        self.batches[profile_code] = {}
        for course_code, (node_id, name) in courses.items():
            self.courses[profile_code][node_id] = name
            self.batches[profile_code][node_id] = None
            self.node_to_code[node_id] = course_code

    def course_code(self, node_id: str) -> str:
        return self.node_to_code.get(node_id, "unknown")

    def as_dict(self) -> Dict[str, dict]:
        return {
            COURSE_MAPPING: self.courses,
            BATCH_MAPPING: self.batches,
            NODEID_TO_CODE_MAPPING: self.node_to_code,
        }


class HandoffStore:
    """Read / write ProfileMappings through the env file and a JSON file"""

    def __init__(self, env_file: Path, handoff_file: Path):
        self.env_file = Path(env_file)
        self.handoff_file = Path(handoff_file)

    def export(self, mappings: ProfileMappings) -> None:
        payload = mappings.as_dict()

        self.env_file.parent.mkdir(parents=True, exist_ok=True)
        self.env_file.touch(exist_ok=True)
        for key, value in payload.items():
            # Single quotes keep the JSON's double quotes intact
            set_key(str(self.env_file), key, json.dumps(value, separators=(",", ":")), quote_mode="always")

        self.handoff_file.parent.mkdir(parents=True, exist_ok=True)
        self.handoff_file.write_text(json.dumps(payload, indent=2), encoding="utf-8")

        logger.info(f"[handoff] Wrote {', '.join(HANDOFF_KEYS)} to {self.env_file}")
        logger.info(f"[handoff] Mapping copy saved to {self.handoff_file}")

    def load(self, environ: Optional[Mapping[str, str]] = None) -> ProfileMappings:
        environ = os.environ if environ is None else environ

        source: Dict[str, Optional[str]] = {}
        if self.env_file.exists():
            source.update(dotenv_values(self.env_file))
        source.update({k: environ[k] for k in HANDOFF_KEYS if environ.get(k)})

        if any(source.get(k) for k in HANDOFF_KEYS):
            return self._parse({k: source.get(k) for k in HANDOFF_KEYS})

        if self.handoff_file.exists():
            try:
                data = json.loads(self.handoff_file.read_text(encoding="utf-8"))
            except ValueError as e:
                raise missing_mappings_error(list(HANDOFF_KEYS), cause=e)
            if not isinstance(data, dict):
                raise missing_mappings_error(list(HANDOFF_KEYS))
            return self._build({k: data.get(k) for k in HANDOFF_KEYS})

        raise missing_mappings_error(list(HANDOFF_KEYS))

    def _parse(self, raw: Dict[str, Optional[str]]) -> ProfileMappings:
        missing = [k for k, v in raw.items() if not v]
        if missing:
            raise missing_mappings_error(missing)
        parsed = {}
        for key, text in raw.items():
            try:
                parsed[key] = json.loads(text.strip().strip("'"))
            except ValueError as e:
                raise missing_mappings_error([key], cause=e)
        return self._build(parsed)

    def _build(self, data: Dict[str, object]) -> ProfileMappings:
        bad = [k for k, v in data.items() if not _well_formed(k, v)]
        if bad:
            raise missing_mappings_error(bad)
        mappings = ProfileMappings(
            courses=data[COURSE_MAPPING],
            batches=data[BATCH_MAPPING],
            node_to_code=data[NODEID_TO_CODE_MAPPING],
        )
        logger.info(f"[handoff] Loaded mappings for {len(mappings.courses)} learner profile(s)")
        for profile, courses in mappings.courses.items():
            logger.debug(f"[handoff]   {profile}: {len(courses)} course(s)")
        return mappings


def _well_formed(key: str, value: object) -> bool:
    """Profile mappings hold one object per profile; node_to_code holds strings."""
    if not isinstance(value, dict):
        return False
    if key == NODEID_TO_CODE_MAPPING:
        return all(isinstance(code, str) for code in value.values())
    return all(isinstance(entry, dict) for entry in value.values())
