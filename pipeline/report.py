"""pipeline.report

Per-user daily execution report over qTest test logs.

Where ``extract`` turns test logs into Sealights event bundles, this module
answers "who ran what, when, and for how long":

- every log whose ``exe_end_date`` falls in the window becomes one
  :class:`ReportExecution` (test, user, start/end, duration, status, location)
- the executing user comes from ``user_id``, else a numeric ``Tester`` /
  ``Assigned To`` property, else the ``submitted_by`` email
- the logical test stage is looked up in ``testStageMapping`` by
  ``project / cycle / suite``, ``project / suite``, ``suite``, then ``cycle``
- executions are grouped by day (newest first) and user, and written as JSON
  and CSV next to the other artifacts
"""

from __future__ import annotations

import csv
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pipeline.models import PATH_SEPARATOR
from tools.io import write_json
from tools.qtest.api import API_PREFIX, QTestApiError
from tools.timeutil import iso_to_ms

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
UNMAPPED_STAGE = "Unmapped"
TESTER_FIELDS = ("tester", "assigned to")

CSV_COLUMNS = [
    "Date",
    "User",
    "User Email",
    "Project",
    "Test Cycle",
    "Test Suite",
    "Test Stage",
    "Test Name",
    "Test Case ID",
    "Duration (minutes)",
    "Status",
]


@dataclass(frozen=True)
class UserInfo:
    email: str
    name: str


def _user_info(user: Mapping[str, Any], user_id: int) -> UserInfo:
    full_name = f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()
    email = user.get("email") or user.get("username") or f"user_{user_id}"
    name = user.get("display_name") or full_name or user.get("username") or email
    return UserInfo(email=str(email), name=str(name))


class UserDirectory:
    """User id -> email/display name, seeded from the user listing.

    Ids missing from the listing are fetched one at a time and cached; a failed
    lookup is cached as ``user_<id>`` so it is not retried for every log.
    """

    def __init__(self, client) -> None:
        self._client = client
        self._users: Dict[int, UserInfo] = {}

    def __len__(self) -> int:
        return len(self._users)

    def preload(self) -> bool:
        try:
            users = self._client.get_users()
        except QTestApiError as e:
            logger.debug("user listing failed: %s", e)
            return False
        for user in users:
            if user.get("id"):
                self._users[int(user["id"])] = _user_info(user, int(user["id"]))
        return True

    def lookup(self, user_id: int) -> UserInfo:
        cached = self._users.get(user_id)
        if cached is not None:
            return cached
        try:
            data = self._client.get(f"{API_PREFIX}/users/{user_id}").data
        except QTestApiError as e:
            logger.debug("user %s lookup failed: %s", user_id, e)
            data = None
        if isinstance(data, dict):
            info = _user_info(data, user_id)
        else:
            info = UserInfo(email=f"user_{user_id}", name=f"User {user_id}")
        self._users[user_id] = info
        return info


def extract_user_id(log: Mapping[str, Any]) -> Optional[int]:
    if log.get("user_id"):
        return int(log["user_id"])
    for prop in log.get("properties") or []:
        if str(prop.get("field_name", "")).lower() not in TESTER_FIELDS:
            continue
        try:
            return int(prop.get("field_value"))
        except (TypeError, ValueError):
            return None
    return None


def resolve_user(log: Mapping[str, Any], users: UserDirectory) -> UserInfo:
    user_id = extract_user_id(log)
    if user_id:
        return users.lookup(user_id)
    if log.get("submitted_by"):
        return UserInfo(email=str(log["submitted_by"]), name=str(log["submitted_by"]))
    return UserInfo(email=UNKNOWN, name=UNKNOWN)


@dataclass
class ReportExecution:
    test_name: str
    test_case_id: int
    execution_date: str
    start_time: str
    end_time: str
    duration_minutes: float
    status: str
    user: str
    user_email: str
    project_name: str
    test_cycle: Optional[str] = None
    test_suite: Optional[str] = None
    test_stage: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "testName": self.test_name,
            "testCaseId": self.test_case_id,
            "executionDate": self.execution_date,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "durationMinutes": self.duration_minutes,
            "status": self.status,
            "user": self.user,
            "userEmail": self.user_email,
            "projectName": self.project_name,
        }
        for key, value in (("testCycle", self.test_cycle), ("testSuite", self.test_suite), ("testStage", self.test_stage)):
            if value:
                out[key] = value
        return out

    def csv_row(self) -> Dict[str, Any]:
        return {
            "Date": self.execution_date,
            "User": self.user,
            "User Email": self.user_email,
            "Project": self.project_name,
            "Test Cycle": self.test_cycle or "",
            "Test Suite": self.test_suite or "",
            "Test Stage": self.test_stage or "",
            "Test Name": self.test_name,
            "Test Case ID": self.test_case_id,
            "Duration (minutes)": self.duration_minutes,
            "Status": self.status,
        }


def duration_minutes(start_ms: int, end_ms: int) -> float:
    return round((end_ms - start_ms) / 60000, 2)


def report_window(days: int, *, show_all: bool = False, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """``[midnight days ago, end of today]`` in UTC; ``show_all`` starts at the epoch."""
    now = now or datetime.now(timezone.utc)
    end = datetime.combine(now.date(), time.max, tzinfo=timezone.utc)
    if show_all:
        return datetime.fromtimestamp(0, tz=timezone.utc), end
    start = datetime.combine(now.date() - timedelta(days=days), time.min, tzinfo=timezone.utc)
    return start, end


def execution_from_log(
    log: Mapping[str, Any],
    *,
    test_name: str,
    test_case_id: int,
    user: UserInfo,
    project_name: str,
    test_cycle: Optional[str] = None,
    test_suite: Optional[str] = None,
) -> Optional[ReportExecution]:
    """``None`` when either timestamp is missing or unparseable."""
    start, end = log.get("exe_start_date"), log.get("exe_end_date")
    if not start or not end:
        return None
    try:
        start_ms, end_ms = iso_to_ms(str(start)), iso_to_ms(str(end))
    except ValueError as e:
        logger.debug("dropping log %s: %s", log.get("id"), e)
        return None
    return ReportExecution(
        test_name=test_name,
        test_case_id=test_case_id,
        execution_date=datetime.fromtimestamp(end_ms / 1000, tz=timezone.utc).date().isoformat(),
        start_time=str(start),
        end_time=str(end),
        duration_minutes=duration_minutes(start_ms, end_ms),
        status=str((log.get("status") or {}).get("name") or UNKNOWN),
        user=user.name,
        user_email=user.email,
        project_name=project_name,
        test_cycle=test_cycle,
        test_suite=test_suite,
    )


def stage_keys(execution: ReportExecution) -> List[str]:
    keys: List[str] = []
    if execution.test_cycle and execution.test_suite:
        keys.append(PATH_SEPARATOR.join((execution.project_name, execution.test_cycle, execution.test_suite)))
    if execution.test_suite:
        keys.append(f"{execution.project_name}{PATH_SEPARATOR}{execution.test_suite}")
        keys.append(execution.test_suite)
    if execution.test_cycle:
        keys.append(execution.test_cycle)
    return keys


def report_stage(execution: ReportExecution, mapping: Mapping[str, str]) -> Optional[str]:
    for key in stage_keys(execution):
        if mapping.get(key):
            return mapping[key]
    return None


def apply_stage_mapping(executions: Iterable[ReportExecution], mapping: Mapping[str, str]) -> int:
    """Set ``test_stage`` in place; returns how many executions were mapped."""
    mapped = 0
    for execution in executions:
        execution.test_stage = report_stage(execution, mapping)
        if execution.test_stage:
            mapped += 1
    return mapped


@dataclass
class DailyUserReport:
    date: str
    user: str
    user_email: str
    tests: List[ReportExecution] = field(default_factory=list)

    def by_project(self) -> "OrderedDict[str, List[ReportExecution]]":
        grouped: "OrderedDict[str, List[ReportExecution]]" = OrderedDict()
        for test in self.tests:
            grouped.setdefault(test.project_name, []).append(test)
        return grouped

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "user": self.user,
            "userEmail": self.user_email,
            "tests": [t.to_dict() for t in self.tests],
        }


def group_by_day_and_user(executions: Sequence[ReportExecution]) -> List[DailyUserReport]:
    """One report per (day, user email); newest day first, then by user name."""
    groups: Dict[Tuple[str, str], DailyUserReport] = {}
    for execution in executions:
        key = (execution.execution_date, execution.user_email)
        if key not in groups:
            groups[key] = DailyUserReport(date=execution.execution_date, user=execution.user, user_email=execution.user_email)
        groups[key].tests.append(execution)
    reports = sorted(groups.values(), key=lambda r: r.user)
    return sorted(reports, key=lambda r: r.date, reverse=True)


def by_stage(tests: Sequence[ReportExecution]) -> "OrderedDict[str, List[ReportExecution]]":
    grouped: "OrderedDict[str, List[ReportExecution]]" = OrderedDict()
    for test in tests:
        grouped.setdefault(test.test_stage or UNMAPPED_STAGE, []).append(test)
    return grouped


def _clock_time(iso: str) -> str:
    try:
        return datetime.fromtimestamp(iso_to_ms(iso) / 1000, tz=timezone.utc).strftime("%H:%M:%S")
    except ValueError:
        return iso


def _print_tests(tests: Sequence[ReportExecution], indent: str) -> None:
    for t in tests:
        print(f"{indent}- [{t.status}] {t.test_name} (ID: {t.test_case_id})")
        print(
            f"{indent}  Start: {_clock_time(t.start_time)} | End: {_clock_time(t.end_time)} "
            f"| Duration: {t.duration_minutes} min"
        )


def print_report(reports: Sequence[DailyUserReport], period: str) -> None:
    rule = "=" * 100
    print(rule)
    print("TEST EXECUTION REPORT BY USER BY DAY")
    print(f"Period: {period}")
    print(rule)

    current_date = None
    for report in reports:
        if report.date != current_date:
            current_date = report.date
            print(f"\n{rule}\nDATE: {report.date}\n{rule}")
        print(f"\n  User: {report.user} ({report.user_email})")
        print(f"  Total Tests: {len(report.tests)}")
        print("  " + "-" * 96)
        for project_name, tests in report.by_project().items():
            print(f"\n    Project: {project_name} ({len(tests)} tests)")
            if any(t.test_stage for t in tests):
                for stage, stage_tests in by_stage(tests).items():
                    print(f"\n      📂 {stage} ({len(stage_tests)} tests)")
                    _print_tests(stage_tests, "        ")
            else:
                _print_tests(tests, "      ")
    print("\n" + rule)


def report_summary(executions: Sequence[ReportExecution], *, with_stages: bool) -> Dict[str, Any]:
    summary: Dict[str, Any] = {
        "totalExecutions": len(executions),
        "uniqueUsers": len({e.user_email for e in executions}),
        "uniqueTests": len({e.test_case_id for e in executions}),
        "projects": list(OrderedDict.fromkeys(e.project_name for e in executions)),
    }
    if with_stages:
        summary["testStages"] = list(OrderedDict.fromkeys(e.test_stage for e in executions if e.test_stage))
    return summary


def write_report_files(
    document: Dict[str, Any],
    executions: Sequence[ReportExecution],
    output_dir: Path,
    *,
    report_date: str,
) -> Tuple[Path, Path]:
    """Write ``test-execution-report-<date>.json`` and ``.csv``; returns both paths."""
    output_dir = Path(output_dir)
    json_path = output_dir / f"test-execution-report-{report_date}.json"
    csv_path = output_dir / f"test-execution-report-{report_date}.csv"
    write_json(json_path, document)

    rows = sorted(executions, key=lambda e: e.execution_date, reverse=True)
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        writer.writerows(e.csv_row() for e in rows)
    return json_path, csv_path
