# sunbird_bulk/tests/conftest.py
"""
Pytest configuration and shared fixtures for sunbird-bulk tests
"""
import base64
import json
import os
from pathlib import Path
from typing import List

import pytest

from sunbird_bulk.config_utils import BulkConfig
from sunbird_bulk.sunbird_client import CreatedContent, SunbirdClient


ENV_PREFIXES = ("SUNBIRD_",)
ENV_NAMES = (
    "LEARNER_COURSE_CSV",
    "USER_LEARNER_CSV",
    "QUESTION_CSV_PATH",
    "QUIZ_CSV_PATH",
    "COURSE_MAPPING",
    "BATCH_MAPPING",
    "NODEID_TO_CODE_MAPPING",
)


@pytest.fixture(autouse=True)
def clean_env(mocker, monkeypatch, tmp_path):
    """Isolate every test from the developer's environment and ~/.sunbird_bulk"""
    # patch.dict restores os.environ afterwards, including keys load_dotenv adds
    mocker.patch.dict(os.environ)
    for name in list(os.environ):
        if name.startswith(ENV_PREFIXES) or name in ENV_NAMES:
            del os.environ[name]
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))


@pytest.fixture
def work_dir(tmp_path) -> Path:
    """A working directory with empty data/ and reports/ folders"""
    root = tmp_path / "work"
    (root / "data").mkdir(parents=True)
    (root / "reports").mkdir()
    return root


@pytest.fixture
def config(work_dir) -> BulkConfig:
    """Fully populated config pointing at work_dir, with no pacing delay"""
    return BulkConfig(
        base_url="https://sunbird.test",
        api_key="test-api-key-123456",
        username="creator@example.org",
        password="secret",
        client_secret="client-secret",
        channel_id="channel-1",
        created_by="creator-1",
        wait_interval=0,
        learner_course_csv=work_dir / "data" / "learner_course.csv",
        user_learner_csv=work_dir / "data" / "user_learner.csv",
        question_csv=work_dir / "data" / "questions.csv",
        quiz_csv=work_dir / "data" / "assessment_create.csv",
        reports_dir=work_dir / "reports",
        data_dir=work_dir / "data",
        env_file=work_dir / ".env",
    )


@pytest.fixture
def client(mocker):
    """SunbirdClient double where nothing exists yet and every call succeeds"""
    fake = mocker.create_autospec(SunbirdClient, instance=True)
    fake.find_content.return_value = None
    fake.search_course.side_effect = lambda code: (f"do_{code}", f"Course {code}")
    fake.create_collection.return_value = CreatedContent("do_profile", "v1")
    fake.create_content.return_value = CreatedContent("do_quiz", "v1")
    fake.create_question.side_effect = lambda item: f"do_{item['metadata']['code']}"
    fake.read_assessment_item.side_effect = lambda identifier: {
        "identifier": identifier,
        "body": json.dumps({"data": {"data": {"question": identifier}, "config": {"max_score": 1}}}),
    }
    fake.first_open_batch.return_value = "batch-1"
    return fake


@pytest.fixture
def no_sleep():
    return lambda seconds: None


def _write_csv(path: Path, lines: List[str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def write_csv():
    """Write header + data lines to a CSV file"""
    return _write_csv


def _make_jwt(sub: str) -> str:
    def part(data: dict) -> str:
        raw = base64.urlsafe_b64encode(json.dumps(data).encode("utf-8"))
        return raw.decode("ascii").rstrip("=")

    return f"{part({'alg': 'none'})}.{part({'sub': sub})}.signature"


@pytest.fixture
def make_jwt():
    """Build an unsigned JWT with the given sub claim"""
    return _make_jwt

