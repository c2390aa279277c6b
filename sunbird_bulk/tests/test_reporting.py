# sunbird_bulk/tests/test_reporting.py
"""
Tests for reporting.py
"""
import csv

from sunbird_bulk.reporting import Outcome, Status, StatusReporter, read_report


def _outcome(code, status=Status.SUCCESS, reason="none", stage=None):
    return Outcome(row={"code": code, "name": f"Name {code}"}, status=status, reason=reason, stage=stage)


class TestStatusReporter:
    """Tests for StatusReporter"""

    def test_header_appends_status_and_reason(self, tmp_path):
        reporter = StatusReporter(tmp_path / "r.csv", ["code", "name"])
        assert reporter.header == ["code", "name", "status", "reason"]

    def test_custom_column_names_and_stage(self, tmp_path):
        reporter = StatusReporter(
            tmp_path / "r.csv", ["userId"], status_column="enrollmentStatus", stage_column="stage"
        )
        assert reporter.header == ["userId", "enrollmentStatus", "reason", "stage"]

    def test_flush_creates_reports_dir(self, tmp_path):
        reporter = StatusReporter(tmp_path / "nested" / "reports" / "r.csv", ["code", "name"])
        reporter.record(_outcome("A"))
        path = reporter.flush()
        assert path.exists()
        assert read_report(path) == [{"code": "A", "name": "Name A", "status": "Success", "reason": "none"}]

    def test_partial_flush_holds_only_recorded_rows(self, tmp_path):
        """A flush after 3 of 10 rows leaves a header and exactly 3 rows"""
        reporter = StatusReporter(tmp_path / "r.csv", ["code", "name"])
        for i in range(10):
            reporter.record(_outcome(f"E{i}"))
            if i == 2:
                reporter.flush()
                break
        lines = (tmp_path / "r.csv").read_text(encoding="utf-8").splitlines()
        assert len(lines) == 4
        assert lines[0] == "code,name,status,reason"

    def test_flush_rewrites_whole_file(self, tmp_path):
        reporter = StatusReporter(tmp_path / "r.csv", ["code", "name"])
        reporter.record(_outcome("A"))
        reporter.flush()
        reporter.record(_outcome("B", Status.FAILURE, "boom"))
        reporter.flush()
        rows = read_report(tmp_path / "r.csv")
        assert [r["code"] for r in rows] == ["A", "B"]
        assert rows[1]["status"] == "Failure"
        assert rows[1]["reason"] == "boom"

    def test_quoting_round_trips(self, tmp_path):
        """Fields holding commas, quotes or newlines survive a write / read"""
        reporter = StatusReporter(tmp_path / "r.csv", ["code", "name"])
        tricky = Outcome(
            row={"code": "C1,C2", "name": 'The "best" course'},
            status=Status.FAILURE,
            reason="line one\nline two, with comma",
        )
        reporter.record(tricky)
        reporter.flush()

        with (tmp_path / "r.csv").open(encoding="utf-8", newline="") as f:
            rows = list(csv.reader(f))
        assert rows[1] == ["C1,C2", 'The "best" course', "Failure", "line one\nline two, with comma"]

    def test_records_are_not_deduplicated(self, tmp_path):
        reporter = StatusReporter(tmp_path / "r.csv", ["code", "name"])
        reporter.record_all([_outcome("A"), _outcome("A")])
        reporter.flush()
        assert len(read_report(tmp_path / "r.csv")) == 2

    def test_stage_column_written(self, tmp_path):
        reporter = StatusReporter(tmp_path / "r.csv", ["code", "name"], stage_column="stage")
        reporter.record(_outcome("A", Status.FAILURE, "publish failed", stage="In Review"))
        reporter.record(_outcome("B", Status.FAILURE, "bad input"))
        reporter.flush()
        rows = read_report(tmp_path / "r.csv")
        assert rows[0]["stage"] == "In Review"
        assert rows[1]["stage"] == ""

    def test_summary_counts_every_status(self, tmp_path):
        reporter = StatusReporter(tmp_path / "r.csv", ["code", "name"])
        reporter.record_all([
            _outcome("A"),
            _outcome("B", Status.SKIPPED, "exists"),
            _outcome("C", Status.SKIPPED, "exists"),
        ])
        assert reporter.summary() == {"Success": 1, "Failure": 0, "Skipped": 2}


class TestStatus:
    def test_str_is_value(self):
        assert str(Status.SKIPPED) == "Skipped"
        assert f"{Status.FAILURE}" == "Failure"
