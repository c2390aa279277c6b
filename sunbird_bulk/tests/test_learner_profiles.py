# sunbird_bulk/tests/test_learner_profiles.py
"""
Tests for learner_profiles.py
"""
import json

import pytest
from dotenv import dotenv_values

from sunbird_bulk import learner_profiles
from sunbird_bulk.errors import RemoteAPIError, RemoteNotFoundError
from sunbird_bulk.reporting import read_report


HEADER = "learner_profile_code,learner_profile,course_code,expiry_date"


@pytest.fixture
def profile_csv(config, write_csv):
    return write_csv(config.learner_course_csv, [
        HEADER,
        'P1,Data Basics,"C1,C2",2026-12-31',
        'P1,Data Basics,"C2,C3",2026-12-31',
        'P2,Advanced,C4,2027-06-30',
        ',Nameless,C5,2027-06-30',
    ])


def _report(config):
    return read_report(config.reports_dir / learner_profiles.REPORT_NAME)


class TestRun:
    """Tests for the learner profile phase"""

    def test_creates_each_profile_once(self, config, client, profile_csv, no_sleep):
        learner_profiles.run(config, client, sleep=no_sleep)

        assert client.create_collection.call_count == 2
        first_collection = client.create_collection.call_args_list[0].args[0]
        assert first_collection["code"] == "P1"
        assert first_collection["primaryCategory"] == "Learner Profile"
        assert [c["identifier"] for c in first_collection["children"]] == ["do_C1", "do_C2", "do_C3"]
        assert client.publish_content.call_count == 2

    def test_report_has_row_per_input_row(self, config, client, profile_csv, no_sleep):
        learner_profiles.run(config, client, sleep=no_sleep)
        rows = _report(config)

        assert [r["learner_profile_code"] for r in rows] == ["", "P1", "P1", "P2"]
        assert [r["status"] for r in rows] == ["Failure", "Success", "Success", "Success"]
        assert rows[0]["reason"] == "Learner profile code input is missing"
        assert rows[1]["course_code"] == "C1,C2"

    def test_exports_mappings(self, config, client, profile_csv, no_sleep):
        learner_profiles.run(config, client, sleep=no_sleep)

        values = dotenv_values(config.env_file)
        courses = json.loads(values["COURSE_MAPPING"])
        assert courses["P1"] == {"do_C1": "Course C1", "do_C2": "Course C2", "do_C3": "Course C3"}
        assert json.loads(values["BATCH_MAPPING"])["P2"] == {"do_C4": None}
        assert json.loads(values["NODEID_TO_CODE_MAPPING"])["do_C3"] == "C3"
        assert (config.reports_dir / learner_profiles.HANDOFF_NAME).exists()

    def test_missing_course_fails_profile(self, config, client, profile_csv, no_sleep):
        def search_course(code):
            if code == "C3":
                raise RemoteNotFoundError(message=f"Course not found for code: {code}")
            return f"do_{code}", f"Course {code}"

        client.search_course.side_effect = search_course
        learner_profiles.run(config, client, sleep=no_sleep)
        rows = [r for r in _report(config) if r["learner_profile_code"] == "P1"]

        assert [r["status"] for r in rows] == ["Failure", "Failure"]
        assert all("C3" in r["reason"] for r in rows)
        courses = json.loads(dotenv_values(config.env_file)["COURSE_MAPPING"])
        assert "P1" not in courses
        assert "P2" in courses

    def test_existing_profile_skipped(self, config, client, profile_csv, no_sleep):
        client.find_content.side_effect = lambda code: {"identifier": "do_old"} if code == "P1" else None
        learner_profiles.run(config, client, sleep=no_sleep)
        rows = [r for r in _report(config) if r["learner_profile_code"] == "P1"]

        assert [r["status"] for r in rows] == ["Skipped", "Skipped"]
        assert rows[0]["reason"] == "Content with the code P1 already exists"
        created_codes = [c.args[0]["code"] for c in client.create_collection.call_args_list]
        assert created_codes == ["P2"]

    def test_publish_failure_keeps_going(self, config, client, profile_csv, no_sleep):
        client.publish_content.side_effect = [
            RemoteAPIError("publish failed", status_code=500, errmsg="Publish queue unavailable"),
            {},
        ]
        learner_profiles.run(config, client, sleep=no_sleep)
        rows = _report(config)

        assert rows[1]["status"] == "Failure"
        assert rows[1]["reason"] == "Publish queue unavailable"
        assert rows[3]["status"] == "Success"


class TestMain:
    def test_missing_credentials_exit_1(self, work_dir, monkeypatch):
        monkeypatch.chdir(work_dir)
        with pytest.raises(SystemExit) as exc_info:
            learner_profiles.main()
        assert exc_info.value.code == 1

    def test_bad_config_exits_1_without_traceback(self, work_dir, monkeypatch, capsys):
        monkeypatch.chdir(work_dir)
        (work_dir / "sunbird.yaml").write_text("base_url: [unclosed\n")
        with pytest.raises(SystemExit) as exc_info:
            learner_profiles.main()
        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "ConfigurationError" in err
        assert "Traceback" not in err
