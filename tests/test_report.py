import contextlib
import csv
import io
import json
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from pipeline.report import (
    CSV_COLUMNS,
    UserDirectory,
    UserInfo,
    execution_from_log,
    extract_user_id,
    group_by_day_and_user,
    print_report,
    report_stage,
    report_summary,
    report_window,
    resolve_user,
    write_report_files,
)
from tools.qtest.api import QTestApiError
from tools.qtest.types import ApiResponse

QA = UserInfo(email="qa@acme.io", name="QA Bot")
DEV = UserInfo(email="dev@acme.io", name="Dana Dev")


class FakeClient:
    def __init__(self, users=None, single=None):
        self.users = users
        self.single = single or {}
        self.gets = []

    def get_users(self):
        if self.users is None:
            raise QTestApiError("GET /api/v3/users returned HTTP 403", status_code=403)
        return self.users

    def get(self, path, params=None):
        self.gets.append(path)
        user_id = int(path.rsplit("/", 1)[-1])
        if user_id not in self.single:
            raise QTestApiError(f"GET {path} returned HTTP 404", status_code=404)
        return ApiResponse(status=200, data=self.single[user_id])


def _log(start="2024-03-10T09:00:00Z", end="2024-03-10T09:05:00Z", **extra):
    return {"id": 1, "exe_start_date": start, "exe_end_date": end, "status": {"name": "Passed"}, **extra}


def _execution(name="T1", user=QA, start="2024-03-10T09:00:00Z", end="2024-03-10T09:05:00Z", **location):
    location.setdefault("project_name", "Shop")
    return execution_from_log(_log(start, end), test_name=name, test_case_id=sum(map(ord, name)), user=user, **location)


class TestUserDirectory(unittest.TestCase):
    def test_listing_then_single_lookup_then_fallback(self) -> None:
        client = FakeClient(
            users=[{"id": 5, "email": "qa@acme.io", "display_name": "QA Bot"}],
            single={7: {"id": 7, "username": "dana", "first_name": "Dana", "last_name": "Dev"}},
        )
        users = UserDirectory(client)
        self.assertTrue(users.preload())

        self.assertEqual(QA, users.lookup(5))
        self.assertEqual(UserInfo(email="dana", name="Dana Dev"), users.lookup(7))
        self.assertEqual(UserInfo(email="user_9", name="User 9"), users.lookup(9))
        users.lookup(9)
        self.assertEqual(["/api/v3/users/7", "/api/v3/users/9"], client.gets)

    def test_listing_failure_is_reported(self) -> None:
        self.assertFalse(UserDirectory(FakeClient()).preload())


class TestUserResolution(unittest.TestCase):
    def test_user_id_then_tester_property(self) -> None:
        self.assertEqual(5, extract_user_id({"user_id": 5}))
        self.assertEqual(8, extract_user_id({"properties": [{"field_name": "Assigned To", "field_value": "8"}]}))
        self.assertIsNone(extract_user_id({"properties": [{"field_name": "Tester", "field_value": "Dana"}]}))
        self.assertIsNone(extract_user_id({}))

    def test_submitted_by_then_unknown(self) -> None:
        users = UserDirectory(FakeClient(users=[]))
        self.assertEqual("dev@acme.io", resolve_user({"submitted_by": "dev@acme.io"}, users).email)
        self.assertEqual(UserInfo(email="Unknown", name="Unknown"), resolve_user({}, users))


class TestReportExecution(unittest.TestCase):
    def test_duration_and_day_come_from_the_log(self) -> None:
        execution = _execution(start="2024-03-10T23:58:00Z", end="2024-03-11T00:01:30Z")

        self.assertEqual(3.5, execution.duration_minutes)
        self.assertEqual("2024-03-11", execution.execution_date)
        self.assertEqual("Passed", execution.status)
        self.assertNotIn("testStage", execution.to_dict())

    def test_unusable_timestamps_are_dropped(self) -> None:
        self.assertIsNone(execution_from_log(_log(start=None), test_name="T", test_case_id=1, user=QA, project_name="Shop"))
        self.assertIsNone(execution_from_log(_log(end="yesterday"), test_name="T", test_case_id=1, user=QA, project_name="Shop"))

    def test_window(self) -> None:
        now = datetime(2024, 3, 10, 15, 0, tzinfo=timezone.utc)
        start, end = report_window(7, now=now)
        self.assertEqual(datetime(2024, 3, 3, tzinfo=timezone.utc), start)
        self.assertEqual((2024, 3, 10, 23, 59, 59), (end.year, end.month, end.day, end.hour, end.minute, end.second))
        self.assertEqual(0, report_window(7, show_all=True, now=now)[0].timestamp())


class TestReportStage(unittest.TestCase):
    MAPPING = {
        "Shop / Sprint 1 / Login": "Full",
        "Shop / Login": "ProjectSuite",
        "Login": "Suite",
        "Sprint 2": "Cycle",
    }

    def test_most_specific_key_wins(self) -> None:
        def stage(cycle, suite):
            return report_stage(_execution(test_cycle=cycle, test_suite=suite), self.MAPPING)

        self.assertEqual("Full", stage("Sprint 1", "Login"))
        self.assertEqual("ProjectSuite", stage("Sprint 3", "Login"))
        self.assertEqual("ProjectSuite", stage(None, "Login"))
        self.assertEqual("Cycle", stage("Sprint 2", "Checkout"))
        self.assertIsNone(stage("Sprint 3", "Checkout"))

    def test_suite_alone(self) -> None:
        execution = _execution(project_name="Other", test_suite="Login")
        self.assertEqual("Suite", report_stage(execution, self.MAPPING))


class TestGrouping(unittest.TestCase):
    def test_newest_day_first_then_user(self) -> None:
        executions = [
            _execution("A", QA, end="2024-03-09T10:00:00Z"),
            _execution("B", QA, end="2024-03-10T10:00:00Z"),
            _execution("C", DEV, end="2024-03-10T11:00:00Z"),
            _execution("D", QA, end="2024-03-10T12:00:00Z"),
        ]
        reports = group_by_day_and_user(executions)

        self.assertEqual(
            [("2024-03-10", "Dana Dev"), ("2024-03-10", "QA Bot"), ("2024-03-09", "QA Bot")],
            [(r.date, r.user) for r in reports],
        )
        self.assertEqual(["B", "D"], [t.test_name for t in reports[1].tests])

    def test_console_groups_by_project_and_stage(self) -> None:
        mapped = _execution("A", test_suite="Login")
        mapped.test_stage = "Regression"
        unmapped = _execution("B", test_suite="Checkout")
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            print_report(group_by_day_and_user([mapped, unmapped]), "2024-03-03 to 2024-03-10 (7 days)")

        text = out.getvalue()
        self.assertIn("DATE: 2024-03-10", text)
        self.assertIn("Project: Shop (2 tests)", text)
        self.assertIn("📂 Regression (1 tests)", text)
        self.assertIn("📂 Unmapped (1 tests)", text)
        self.assertIn("Start: 09:00:00 | End: 09:05:00 | Duration: 5.0 min", text)

    def test_summary(self) -> None:
        a, b = _execution("A", QA), _execution("B", DEV, project_name="Other")
        a.test_stage = "Regression"
        summary = report_summary([a, b, _execution("A", QA)], with_stages=True)

        self.assertEqual(3, summary["totalExecutions"])
        self.assertEqual(2, summary["uniqueUsers"])
        self.assertEqual(2, summary["uniqueTests"])
        self.assertEqual(["Shop", "Other"], summary["projects"])
        self.assertEqual(["Regression"], summary["testStages"])
        self.assertNotIn("testStages", report_summary([a], with_stages=False))


class TestReportFiles(unittest.TestCase):
    def test_json_and_csv_are_written(self) -> None:
        older = _execution("A", end="2024-03-09T10:00:00Z", test_cycle="Sprint 1", test_suite="Login")
        newer = _execution("B", DEV, end="2024-03-10T10:00:00Z", test_suite="Checkout")
        with tempfile.TemporaryDirectory() as td:
            json_path, csv_path = write_report_files({"summary": {}}, [older, newer], Path(td), report_date="2024-03-10")
            document = json.loads(json_path.read_text(encoding="utf-8"))
            with csv_path.open(newline="", encoding="utf-8") as f:
                rows = list(csv.DictReader(f))

        self.assertEqual("test-execution-report-2024-03-10.json", json_path.name)
        self.assertEqual("test-execution-report-2024-03-10.csv", csv_path.name)
        self.assertEqual({"summary": {}}, document)
        self.assertEqual(CSV_COLUMNS, list(rows[0].keys()))
        self.assertEqual(["B", "A"], [r["Test Name"] for r in rows])
        self.assertEqual(("", "Checkout"), (rows[0]["Test Cycle"], rows[0]["Test Suite"]))
        self.assertEqual("Sprint 1", rows[1]["Test Cycle"])


if __name__ == "__main__":
    unittest.main()
