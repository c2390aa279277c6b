# sunbird_bulk/tests/test_enrollments.py
"""
Tests for enrollments.py
"""
import pytest

from sunbird_bulk import enrollments
from sunbird_bulk.auth import AuthSession, LearnerSession
from sunbird_bulk.csv_io import InputRecord
from sunbird_bulk.errors import AuthenticationError, PrerequisiteError, RemoteAPIError
from sunbird_bulk.handoff import HandoffStore, ProfileMappings
from sunbird_bulk.learner_profiles import HANDOFF_NAME, REPORT_NAME as PROFILE_REPORT
from sunbird_bulk.reporting import StatusReporter, read_report


@pytest.fixture
def auth(mocker):
    fake = mocker.create_autospec(AuthSession, instance=True)
    fake.learner_session.side_effect = lambda login: LearnerSession(f"uid-{login}", f"token-{login}")
    return fake


@pytest.fixture
def profiles_done(config, write_csv):
    """State left behind by a profile run: P1 and P2 created, P3 failed"""
    mappings = ProfileMappings()
    mappings.add_profile("P1", {"C1": ("do_c1", "Course 1"), "C2": ("do_c2", "Course 2")})
    mappings.add_profile("P2", {"C2": ("do_c2", "Course 2")})
    HandoffStore(config.env_file, config.reports_dir / HANDOFF_NAME).export(mappings)
    write_csv(config.reports_dir / PROFILE_REPORT, [
        "learner_profile_code,learner_profile,course_code,expiry_date,status,reason",
        'P1,One,"C1,C2",2026-12-31,Success,none',
        "P2,Two,C2,2026-12-31,Success,none",
        "P3,Three,C9,2026-12-31,Failure,Failed processing course C9: Course not found for code: C9",
    ])
    return mappings


def _report(config):
    return read_report(config.reports_dir / enrollments.REPORT_NAME)


class TestRun:
    """Tests for the enrollment phase"""

    def test_enrolls_in_every_course(self, config, auth, client, profiles_done, write_csv, no_sleep):
        write_csv(config.user_learner_csv, ["user_id,learner_profile", "ann@example.org,P1"])
        enrollments.run(config, auth, client, sleep=no_sleep)

        rows = _report(config)
        assert [(r["courseCode"], r["enrollmentStatus"]) for r in rows] == [("C1", "Success"), ("C2", "Success")]
        assert list(rows[0]) == ["userId", "learnerProfile", "courseCode", "enrollmentStatus", "reason"]
        client.enrol.assert_any_call("do_c1", "batch-1", "uid-ann@example.org", "token-ann@example.org")

    def test_course_shared_by_profiles_enrolled_once(self, config, auth, client, profiles_done, write_csv, no_sleep):
        write_csv(config.user_learner_csv, ["user_id,learner_profile", 'ann@example.org,"P1,P2"'])
        enrollments.run(config, auth, client, sleep=no_sleep)

        rows = _report(config)
        assert rows[2]["learnerProfile"] == "P2"
        assert rows[2]["enrollmentStatus"] == "Skipped"
        assert rows[2]["reason"] == "User has already enrolled to this course"
        assert client.enrol.call_count == 2

    def test_uncreated_profile_skipped(self, config, auth, client, profiles_done, write_csv, no_sleep):
        write_csv(config.user_learner_csv, ["user_id,learner_profile", "ann@example.org,P3"])
        enrollments.run(config, auth, client, sleep=no_sleep)

        row = _report(config)[0]
        assert row["enrollmentStatus"] == "Skipped"
        assert row["reason"] == "Learner profile does not exist"
        client.enrol.assert_not_called()

    def test_no_open_batch(self, config, auth, client, profiles_done, write_csv, no_sleep):
        client.first_open_batch.return_value = None
        write_csv(config.user_learner_csv, ["user_id,learner_profile", "ann@example.org,P2"])
        enrollments.run(config, auth, client, sleep=no_sleep)

        row = _report(config)[0]
        assert row["enrollmentStatus"] == "Failure"
        assert row["reason"] == "No batch found for course"

    def test_remote_already_enrolled_is_skipped(self, config, auth, client, profiles_done, write_csv, no_sleep):
        client.enrol.side_effect = RemoteAPIError(
            "enrol failed", status_code=400, errmsg="User has already enrolled in this batch"
        )
        write_csv(config.user_learner_csv, ["user_id,learner_profile", "ann@example.org,P2"])
        enrollments.run(config, auth, client, sleep=no_sleep)

        row = _report(config)[0]
        assert row["enrollmentStatus"] == "Skipped"
        assert row["reason"] == "User has already enrolled in this batch"

    def test_other_remote_error_is_failure(self, config, auth, client, profiles_done, write_csv, no_sleep):
        client.enrol.side_effect = RemoteAPIError("enrol failed", status_code=500, errmsg="Batch is closed")
        write_csv(config.user_learner_csv, ["user_id,learner_profile", "ann@example.org,P2"])
        enrollments.run(config, auth, client, sleep=no_sleep)

        row = _report(config)[0]
        assert row["enrollmentStatus"] == "Failure"
        assert row["reason"] == "Batch is closed"

    def test_login_failure_fails_each_profile(self, config, auth, client, profiles_done, write_csv, no_sleep):
        auth.learner_session.side_effect = AuthenticationError("Invalid credentials for bob@example.org")
        write_csv(config.user_learner_csv, ["user_id,learner_profile", 'bob@example.org,"P1,P2"'])
        enrollments.run(config, auth, client, sleep=no_sleep)

        rows = _report(config)
        assert [r["learnerProfile"] for r in rows] == ["P1", "P2"]
        assert {r["enrollmentStatus"] for r in rows} == {"Failure"}
        client.enrol.assert_not_called()

    def test_broken_profile_fails_user_and_next_user_runs(self, auth, client, tmp_path, no_sleep):
        mappings = ProfileMappings(
            courses={"P1": {"do_c1": "Course 1"}, "P2": {"do_c2": "Course 2"}},
            batches={"P1": None, "P2": {"do_c2": None}},
            node_to_code={"do_c1": "C1", "do_c2": "C2"},
        )
        reporter = StatusReporter(tmp_path / "enrollment.csv", enrollments.REPORT_COLUMNS, status_column="enrollmentStatus")
        runner = enrollments.EnrollmentRunner(auth, client, mappings, {"P1", "P2"}, reporter, 0, sleep=no_sleep)
        runner.run([
            InputRecord(row_number=1, values={"user_id": "ann@example.org", "learner_profile": "P1,P2"}),
            InputRecord(row_number=2, values={"user_id": "bob@example.org", "learner_profile": "P2"}),
        ])

        rows = read_report(reporter.path)
        assert [(r["userId"], r["learnerProfile"], r["enrollmentStatus"]) for r in rows] == [
            ("ann@example.org", "P1", "Failure"),
            ("ann@example.org", "P2", "Failure"),
            ("bob@example.org", "P2", "Success"),
        ]
        assert rows[0]["reason"]
        client.enrol.assert_called_once_with("do_c2", "batch-1", "uid-bob@example.org", "token-bob@example.org")

    def test_waits_after_every_user(self, config, auth, client, profiles_done, write_csv):
        config.wait_interval = 0.5
        naps = []
        write_csv(config.user_learner_csv, [
            "user_id,learner_profile",
            "ann@example.org,P1",
            "bob@example.org,P3",
        ])
        enrollments.run(config, auth, client, sleep=naps.append)
        assert naps == [0.5, 0.5]


class TestPrerequisites:
    def test_missing_mappings(self, config):
        with pytest.raises(PrerequisiteError):
            enrollments.check_prerequisites(config)

    def test_missing_profile_report(self, config, profiles_done):
        (config.reports_dir / PROFILE_REPORT).unlink()
        with pytest.raises(PrerequisiteError) as exc_info:
            enrollments.check_prerequisites(config)
        assert "learner-profile-status.csv" in exc_info.value.message

    def test_main_exits_before_login(self, work_dir, monkeypatch, mocker):
        monkeypatch.chdir(work_dir)
        refresh = mocker.patch.object(AuthSession, "refresh")
        with pytest.raises(SystemExit) as exc_info:
            enrollments.main()
        assert exc_info.value.code == 1
        refresh.assert_not_called()

    def test_main_reports_bad_config_without_traceback(self, work_dir, monkeypatch, mocker, capsys):
        monkeypatch.chdir(work_dir)
        (work_dir / "sunbird.yaml").write_text("base_url: [unclosed\n")
        refresh = mocker.patch.object(AuthSession, "refresh")
        with pytest.raises(SystemExit) as exc_info:
            enrollments.main()
        assert exc_info.value.code == 1
        refresh.assert_not_called()
        err = capsys.readouterr().err
        assert "sunbird.yaml" in err
        assert "Traceback" not in err

    def test_load_created_profiles(self, config, profiles_done):
        created = enrollments.load_created_profiles(config.reports_dir / PROFILE_REPORT)
        assert created == {"P1", "P2"}
