"""pipeline.orchestrator

High-level flows behind the CLI modes.

Design principles
-----------------
- The CLI does all prompting (project, locations, status, user, stage) and
  hands a fully resolved request to one of the functions below.
- Setup problems (nothing to import, nothing to extract from) raise before any
  write happens; per-item failures inside the flows are recorded and the flow
  keeps going.
- Collaborators come in through :class:`Services`, assembled in
  :mod:`pipeline.wiring`, so tests can hand in fakes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pipeline.config import AppConfig
from pipeline.drift import ClockDriftEstimator
from pipeline.error_log import ErrorLogger
from pipeline.events import RawExecution, build_stage_bundle
from pipeline.exports import BundleWriter
from pipeline.hierarchy import DesignTreeReader, ExecutionTreeReader
from pipeline.mirroring import HierarchyMirror
from pipeline.models import PATH_SEPARATOR, CreatedLeaf, StageBundle, TreeNode
from pipeline.report import (
    DailyUserReport,
    ReportExecution,
    UserDirectory,
    apply_stage_mapping,
    execution_from_log,
    group_by_day_and_user,
    print_report,
    report_summary,
    report_window,
    resolve_user,
    write_report_files,
)
from pipeline.selection import SelectionResult, filter_by_stage_and_exclusion
from pipeline.status import ApplyResult, QTestStatus, SkipTarget, StatusApplier, save_results
from tools.qtest.api import API_PREFIX, QTestApiError, unwrap_items
from tools.sealights.clock import SealightsClock
from tools.sealights.recommendations import Recommendations, match_by_name
from tools.timeutil import iso_to_ms

logger = logging.getLogger(__name__)

UNKNOWN_USER_EMAIL = "unknown@unknown.com"
ALL_DAYS = 365 * 10


class EmptyResultError(RuntimeError):
    """A flow has nothing to work on (no test cases, no test runs, no project)."""


@dataclass(frozen=True)
class Services:
    config: AppConfig
    client: Any
    execution: ExecutionTreeReader
    design: DesignTreeReader
    status: StatusApplier
    sealights_clock: SealightsClock


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def recommendation_gate(recs: Recommendations) -> Optional[str]:
    """Why recommendations must not be applied, or ``None`` when they may."""
    if recs.is_full_run:
        reason = recs.metadata.get("fullRunReason") or "N/A"
        return f"full run required ({reason})"
    if not recs.is_ready:
        return f"recommendations are not ready (status: {recs.status or 'unknown'})"
    return None


def _print_error_summary(error_log: ErrorLogger) -> None:
    if not error_log.has_errors():
        return
    error_log.write_summary()
    summary = error_log.summary()
    print(f"\n⚠️  {summary['total']} error(s) logged to file")
    print(f"   Error log: {error_log.log_path}")
    print("\n   Breakdown:")
    for kind, n in summary["by_kind"].items():
        print(f"     - {kind}: {n}")


# ---------------------------------------------------------------------------
# Bulk import: mirror a design module, then skip the recommended runs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BulkImportRequest:
    anchor: TreeNode
    module: TreeNode
    include_unapproved: bool
    skip_status: QTestStatus
    user_email: str
    recommendations: Recommendations
    lab_id: Optional[str] = None


@dataclass
class BulkImportResult:
    source_leaf_total: int
    created: List[CreatedLeaf]
    selection: Optional[SelectionResult] = None
    applied: List[ApplyResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for leaf in self.created if leaf.created)

    @property
    def fail_count(self) -> int:
        return len(self.created) - self.success_count


def _print_selection(selection: SelectionResult, target_stage: str) -> None:
    for d in selection.stage_decisions:
        if d.kept:
            print(f"  ✓ {d.leaf.name}: \"{d.leaf.container_name}\" → \"{d.stage}\" (matched: \"{d.matched_key}\")")
        elif d.stage is None:
            print(f"  ⊗ {d.leaf.name}: \"{d.leaf.container_name}\" {d.reason}")
        else:
            print(f"  ⊗ {d.leaf.name}: \"{d.leaf.container_name}\" → \"{d.stage}\" ({d.reason})")
    for d in selection.exclusion_decisions:
        if d.kept:
            print(f"  ✅ Will skip: {d.leaf.name} ({d.reason})")
        else:
            print(f"  ⊗ Not updating: {d.leaf.name} ({d.reason})")

    print("\n📊 Filtering results:")
    print(f"  - Total test runs created: {len(selection.candidates)}")
    print(f"  - Test runs in testStage \"{target_stage}\": {len(selection.in_stage)}")
    print(f"  - Test runs to mark as skipped (in excludedTests): {len(selection.selected)}")
    print(f"  - Test runs not updated: {len(selection.in_stage) - len(selection.selected)}")


def run_bulk_import(req: BulkImportRequest, services: Services, error_log: ErrorLogger) -> BulkImportResult:
    print("\n📋 Fetching module hierarchy from Test Design...")
    subtree = services.design.build_subtree(req.module, include_unapproved=req.include_unapproved)
    total = subtree.leaf_total()
    if total == 0:
        raise EmptyResultError("No test cases found in selected module.")
    print(f"✅ Found {total} test case(s) across module hierarchy")

    print("\n📝 Creating test cycle hierarchy in Test Execution...")
    mirror = HierarchyMirror(services.client, error_log)
    created = mirror.mirror_into(subtree, req.anchor)
    result = BulkImportResult(source_leaf_total=total, created=created)

    print(f"\n✅ Successfully created {result.success_count} test run(s)")
    if result.fail_count:
        print(f"❌ Failed to create {result.fail_count} test run(s)")

    recs = req.recommendations
    target_stage = recs.test_stage
    print(f"\n✅ Target test stage from recommendations: \"{target_stage}\"")
    print(f"✅ Found {len(recs.exclusion_set())} excluded test(s)")
    selection = filter_by_stage_and_exclusion(
        created,
        target_stage,
        services.config.test_stage_mapping,
        recs.exclusion_set(),
    )
    result.selection = selection
    _print_selection(selection, target_stage)

    if selection.selected:
        print(f"\nApplying status \"{req.skip_status.name}\" to filtered test runs...")
        result.applied = services.status.apply_skip_status(
            req.anchor.project_id,
            [SkipTarget.from_leaf(leaf) for leaf in selection.selected],
            req.skip_status.id,
            error_log,
        )
        ok = sum(1 for r in result.applied if r.applied)
        for r in result.applied:
            if r.applied:
                print(f"  ✅ Updated {r.test_name} (ID: {r.test_run_id})")
        print(f"\n✅ Successfully updated {ok} test run(s) with \"{req.skip_status.name}\" status")
        if ok < len(result.applied):
            print(f"❌ Failed to update {len(result.applied) - ok} test run(s)")
    else:
        print("\n⚠️  No test runs matched the target testStage. No updates applied.")

    print("\n📊 Summary:")
    print(f"  - Source module: {req.module.format_path()}")
    print(f"  - Destination: {req.anchor.format_path()}")
    print(f"  - Test cases found: {total}")
    print(f"  - Test runs created: {result.success_count}")
    print(f"  - Failed: {result.fail_count}")
    print(f"  - User: {req.user_email}")
    _print_error_summary(error_log)
    return result


# ---------------------------------------------------------------------------
# Recommend: skip recommended runs in an existing suite
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecommendRequest:
    location: TreeNode
    test_stage: str
    skip_status: QTestStatus
    user_email: str
    recommendations: Recommendations
    lab_id: Optional[str] = None
    project_name: Optional[str] = None
    output_dir: Path = Path("output")


@dataclass
class RecommendResult:
    targets: List[SkipTarget] = field(default_factory=list)
    applied: List[ApplyResult] = field(default_factory=list)
    gate_reason: Optional[str] = None
    output_path: Optional[Path] = None


def run_recommendations(req: RecommendRequest, services: Services) -> RecommendResult:
    print("📋 Loading test runs from selected location...")
    runs = services.execution.test_runs(req.location)
    if not runs:
        raise EmptyResultError("No test runs found in selected location.")
    print(f"✅ Found {len(runs)} test runs")

    recs = req.recommendations
    print(f"\nSeaLights Status: {recs.status}")
    print(f"Test Selection Enabled: {'Yes' if recs.metadata.get('testSelectionEnabled') else 'No'}")
    print(f"Full Run Required: {'Yes' if recs.is_full_run else 'No'}")

    result = RecommendResult(gate_reason=recommendation_gate(recs))
    if result.gate_reason:
        print(f"\n⚠️  Not applying recommendations: {result.gate_reason}")
        return result

    result.targets = match_by_name(
        [SkipTarget.from_run(run) for run in runs],
        recs.exclusion_set(),
        name_attr="test_name",
    )
    if not result.targets:
        print("\n✅ No tests recommended for skipping. All tests should run.")
        return result

    print(f"\nThe following {len(result.targets)} test(s) can be skipped:\n")
    for i, t in enumerate(result.targets, start=1):
        print(f"  {i}. {t.test_name} (Run ID: {t.test_run_id})")

    print(f"\n✅ Applying recommendations to qTest using status \"{req.skip_status.name}\"...\n")
    result.applied = services.status.apply_skip_status(
        req.location.project_id, result.targets, req.skip_status.id
    )
    ok = 0
    for r in result.applied:
        if r.applied:
            ok += 1
            print(f"  ✅ Updated {r.test_name} (ID: {r.test_run_id})")
        else:
            print(f"  ❌ Failed to update {r.test_name} (ID: {r.test_run_id}): {r.error}")
    failed = len(result.applied) - ok

    print("\n📊 Summary:")
    print(f"  - Total recommendations: {len(result.targets)}")
    print(f"  - Successfully applied: {ok}")
    print(f"  - Failed: {failed}")

    document: Dict[str, Any] = {
        "timestamp": _now_iso(),
        "project": req.project_name or req.location.path[0],
        "projectId": req.location.project_id,
        "testStage": req.test_stage,
        "user": req.user_email,
        "labId": req.lab_id,
        "path": req.location.format_path(),
        "skipStatus": req.skip_status.name,
        "sealightsMetadata": recs.metadata,
        "recommendations": [r.to_dict() for r in result.applied],
        "summary": {
            "totalRecommendations": len(result.targets),
            "successfullyApplied": ok,
            "failed": failed,
        },
    }
    result.output_path = save_results(document, req.output_dir)
    print(f"\n💾 Output saved to: {result.output_path}")
    return result


# ---------------------------------------------------------------------------
# Extract: historical test logs -> per-stage event bundles
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExtractRequest:
    days: int = 7
    project_id: Optional[int] = None
    output_dir: Path = Path("output")


@dataclass
class ExtractResult:
    drift_ms: int = 0
    total_logs: int = 0
    bundles: List[StageBundle] = field(default_factory=list)
    summary_path: Optional[Path] = None

    @property
    def total_events(self) -> int:
        return sum(len(b.events) for b in self.bundles)


def _user_emails(client) -> Dict[int, str]:
    emails: Dict[int, str] = {}
    for user in client.get_users():
        email = user.get("email") or user.get("username")
        if user.get("id") and email:
            emails[int(user["id"])] = str(email)
    return emails


def _select_projects(client, project_id: Optional[int]) -> List[Dict[str, Any]]:
    print("🗂️  Fetching projects...")
    projects = client.get_projects()
    if project_id is None:
        print(f"   Found {len(projects)} projects\n")
        return projects
    projects = [p for p in projects if int(p.get("id", -1)) == project_id]
    if not projects:
        raise EmptyResultError(f"Project with ID {project_id} not found")
    print(f"   Filtering for project: {projects[0].get('name')} (ID: {project_id})\n")
    return projects


def _suites_to_extract(client, project_id: int) -> List[Dict[str, Any]]:
    """Suites inside every test cycle (named ``cycle / suite``) plus project-level suites.

    Each suite dict carries ``display_name`` and ``cycle_name`` (``None`` at project level).
    """
    suites: List[Dict[str, Any]] = []
    try:
        cycles = unwrap_items(client.get(f"{API_PREFIX}/projects/{project_id}/test-cycles").data)
    except QTestApiError as e:
        logger.debug("no test cycles in project %s: %s", project_id, e)
        cycles = []
    if cycles:
        print(f"   Found {len(cycles)} test cycles")

    for cycle in cycles:
        print(f"   📂 Checking test cycle: {cycle.get('name')} (ID: {cycle.get('id')})")
        try:
            resp = client.get(
                f"{API_PREFIX}/projects/{project_id}/test-suites",
                {"parentId": cycle["id"], "parentType": "test-cycle"},
            )
        except QTestApiError as e:
            print(f"      Error getting test suites from cycle: {e}")
            continue
        cycle_suites = unwrap_items(resp.data)
        if cycle_suites:
            print(f"      Found {len(cycle_suites)} test suites in cycle")
        for suite in cycle_suites:
            suites.append(
                {
                    **suite,
                    "display_name": f"{cycle.get('name')}{PATH_SEPARATOR}{suite.get('name')}",
                    "cycle_name": cycle.get("name"),
                }
            )

    project_suites = client.get_test_suites(project_id)
    if project_suites:
        print(f"   Found {len(project_suites)} test suites at project level")
    suites.extend({**s, "display_name": str(s.get("name")), "cycle_name": None} for s in project_suites)
    return suites


def _in_window(log: Dict[str, Any], start_ms: int, end_ms: int) -> bool:
    end_date = log.get("exe_end_date")
    if not end_date:
        return False
    try:
        ts = iso_to_ms(str(end_date))
    except ValueError:
        return False
    return start_ms <= ts <= end_ms


def _raw_execution(
    client,
    project_id: int,
    run: Dict[str, Any],
    log: Dict[str, Any],
    emails: Mapping[int, str],
) -> Optional[RawExecution]:
    test_case_id = (log.get("test_case") or {}).get("id") or log.get("test_case_version_id")
    if not test_case_id:
        return None
    user_id = log.get("user_id")
    email = emails.get(int(user_id), UNKNOWN_USER_EMAIL) if user_id else UNKNOWN_USER_EMAIL

    try:
        test_case = client.get_test_case(project_id, int(test_case_id))
        name = str(test_case.get("name") or run.get("name") or f"Test Case {test_case_id}")
        external_id = str(test_case.get("external_id") or test_case.get("id") or test_case_id)
    except QTestApiError:
        name = str(run.get("name") or f"Test Case {test_case_id}")
        external_id = str(test_case_id)

    return RawExecution(
        name=name,
        external_id=external_id,
        status=(log.get("status") or {}).get("name"),
        start=log.get("exe_start_date"),
        end=log.get("exe_end_date"),
        user_email=email,
    )


def _suite_executions(
    client,
    project_id: int,
    suite: Dict[str, Any],
    emails: Mapping[int, str],
    start_ms: int,
    end_ms: int,
) -> List[RawExecution]:
    runs = client.get_test_runs(project_id, int(suite["id"]))
    if not runs:
        print("      No test runs found")
        return []
    print(f"      Found {len(runs)} test runs")

    executions: List[RawExecution] = []
    for run in runs:
        try:
            logs = client.get_test_logs_for_run(project_id, int(run["id"]))
        except QTestApiError:
            print(f"      ⚠️  Error fetching test logs for run {run.get('id')}")
            continue
        for log in logs:
            if not _in_window(log, start_ms, end_ms):
                continue
            raw = _raw_execution(client, project_id, run, log, emails)
            if raw is not None:
                executions.append(raw)
    return executions


def run_extract(req: ExtractRequest, services: Services) -> ExtractResult:
    client = services.client
    config = services.config
    writer = BundleWriter(req.output_dir)

    end = datetime.now(timezone.utc)
    start = end - timedelta(days=req.days)
    start_ms, end_ms = int(start.timestamp() * 1000), int(end.timestamp() * 1000)
    print(f"📅 Date range: {start.date().isoformat()} to {end.date().isoformat()}")
    print(f"   ({req.days} days)\n")

    print("👥 Fetching users...")
    emails = _user_emails(client)
    print(f"   Found {len(emails)} users\n")

    projects = _select_projects(client, req.project_id)

    result = ExtractResult()
    result.drift_ms = ClockDriftEstimator(client, services.sealights_clock).estimate_drift()

    for project in projects:
        project_id, project_name = int(project["id"]), str(project["name"])
        print(f"\n📦 Processing project: {project_name} (ID: {project_id})")
        try:
            suites = _suites_to_extract(client, project_id)
        except QTestApiError as e:
            print(f"   ⚠️  Error processing project {project_name}: {e}")
            continue
        print(f"   📊 Total test suites to process: {len(suites)}")

        for suite in suites:
            suite_name = suite["display_name"]
            print(f"   📋 Processing test suite: {suite.get('name')}")
            try:
                executions = _suite_executions(client, project_id, suite, emails, start_ms, end_ms)
            except QTestApiError as e:
                print(f"   ⚠️  Error processing test suite {suite.get('name')}: {e}")
                continue
            if not executions:
                print("      No test logs in date range")
                continue

            print(f"      ✅ Found {len(executions)} test logs in date range")
            result.total_logs += len(executions)
            bundle = build_stage_bundle(
                executions,
                project_name=project_name,
                suite_name=suite_name,
                drift_ms=result.drift_ms,
                stage_mapping=config.test_stage_mapping,
                user_lab_mapping=config.user_lab_mapping,
            )
            path = writer.write_bundle(bundle)
            result.bundles.append(bundle)
            print(f"      💾 Wrote events to: {path}")

    print("\n========================================")
    print("📊 Extraction Summary")
    print("========================================")
    print(f"Total test logs extracted: {result.total_logs}")
    print(f"Total test stages: {len(result.bundles)}")
    print(f"Total events generated: {result.total_events}")

    if result.bundles:
        result.summary_path = writer.write_summary(result.bundles)
        print(f"\n💾 Summary written to: {result.summary_path}")
        print(f"📁 All files saved to: {writer.output_dir}/")
    else:
        print("\n⚠️  No test data found in the specified date range")
    return result


# ---------------------------------------------------------------------------
# Report: per-user daily execution report from test logs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReportRequest:
    days: int = 7
    project_id: Optional[int] = None
    test_stage: Optional[str] = None
    output_dir: Path = Path("output")

    @property
    def show_all(self) -> bool:
        return self.days >= ALL_DAYS


@dataclass
class ReportResult:
    executions: List[ReportExecution] = field(default_factory=list)
    reports: List[DailyUserReport] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)
    json_path: Optional[Path] = None
    csv_path: Optional[Path] = None


class _TestCaseNames:
    """Test case name lookups, cached per project and test case id."""

    def __init__(self, client) -> None:
        self._client = client
        self._names: Dict[tuple, Optional[str]] = {}

    def name(self, project_id: int, test_case_id: int) -> Optional[str]:
        key = (project_id, test_case_id)
        if key not in self._names:
            try:
                self._names[key] = self._client.get_test_case(project_id, test_case_id).get("name")
            except (QTestApiError, AttributeError) as e:
                logger.debug("test case %s lookup failed: %s", test_case_id, e)
                self._names[key] = None
        return self._names[key]


def _report_suite_executions(
    client,
    project_id: int,
    project_name: str,
    suite: Dict[str, Any],
    users: UserDirectory,
    names: _TestCaseNames,
    start_ms: int,
    end_ms: int,
) -> List[ReportExecution]:
    runs = client.get_test_runs(project_id, int(suite["id"]))
    print(f"      Found {len(runs)} test runs")

    executions: List[ReportExecution] = []
    for run in runs:
        try:
            logs = client.get_test_logs_for_run(project_id, int(run["id"]))
        except QTestApiError as e:
            if e.status_code != 404:
                print(f"        Warning: Could not fetch test logs for test run {run.get('id')}: {e}")
            continue
        for log in logs:
            if not _in_window(log, start_ms, end_ms):
                continue
            test_name = str(run.get("name") or "Unknown Test")
            test_case_id = int(run.get("test_case_id") or 0)
            log_case_id = (log.get("test_case") or {}).get("id")
            if log_case_id:
                test_case_id = int(log_case_id)
                test_name = names.name(project_id, test_case_id) or str(run.get("name") or f"Test Case {test_case_id}")
            execution = execution_from_log(
                log,
                test_name=test_name,
                test_case_id=test_case_id,
                user=resolve_user(log, users),
                project_name=project_name,
                test_cycle=suite.get("cycle_name"),
                test_suite=str(suite.get("name")),
            )
            if execution is not None:
                executions.append(execution)
    return executions


def run_report(req: ReportRequest, services: Services) -> ReportResult:
    client = services.client
    mapping = services.config.test_stage_mapping
    start, end = report_window(req.days, show_all=req.show_all)
    start_ms, end_ms = int(start.timestamp() * 1000), int(end.timestamp() * 1000)
    if req.show_all:
        period = f"ALL TIME (up to {end.date().isoformat()})"
        print("📅 Querying ALL test logs (no date filter)\n")
    else:
        period = f"{start.date().isoformat()} to {end.date().isoformat()} ({req.days} days)"
        print(f"📅 Querying test logs from {period}\n")

    print("👥 Fetching users...")
    users = UserDirectory(client)
    if users.preload():
        print(f"   Found {len(users)} users\n")
    else:
        print("   Unable to fetch users list, will use emails from test logs\n")

    projects = _select_projects(client, req.project_id)

    result = ReportResult()
    names = _TestCaseNames(client)
    for project in projects:
        project_id, project_name = int(project["id"]), str(project["name"])
        print(f"\n📦 Processing project: {project_name} (ID: {project_id})")
        try:
            suites = _suites_to_extract(client, project_id)
        except QTestApiError as e:
            print(f"   ⚠️  Error processing project {project_name}: {e}")
            continue
        for suite in suites:
            print(f"   📋 Checking test suite: {suite.get('name')} (ID: {suite.get('id')})")
            try:
                result.executions.extend(
                    _report_suite_executions(client, project_id, project_name, suite, users, names, start_ms, end_ms)
                )
            except QTestApiError as e:
                print(f"      Error querying test runs: {e}")

    print(f"\nTotal test executions found: {len(result.executions)}\n")
    if not result.executions:
        if req.show_all:
            print("No test executions found in the selected projects.")
        else:
            print(f"No test executions found in the last {req.days} days.")
            print("Try a longer time period (e.g., --days 90) or --all to see all test executions.")
        return result

    if mapping:
        print("🗺️  Applying test stage mapping...")
        mapped = apply_stage_mapping(result.executions, mapping)
        print(f"  Mapped {mapped}/{len(result.executions)} executions to test stages\n")

    if req.test_stage:
        print(f"🔍 Filtering by test stage: \"{req.test_stage}\"")
        before = len(result.executions)
        result.executions = [e for e in result.executions if e.test_stage == req.test_stage]
        print(f"  Filtered: {len(result.executions)}/{before} executions match\n")
        if not result.executions:
            print(f"⚠️  No test executions found for stage \"{req.test_stage}\"")
            if mapping:
                print(f"   Available stages: {', '.join(dict.fromkeys(mapping.values()))}")
            return result

    result.reports = group_by_day_and_user(result.executions)
    print_report(result.reports, period)

    result.summary = report_summary(result.executions, with_stages=bool(mapping))
    document: Dict[str, Any] = {
        "reportGenerated": _now_iso(),
        "options": {
            "days": req.days,
            "showAll": req.show_all,
            "projectId": req.project_id,
            "testStage": req.test_stage,
        },
        "period": {
            "start": "ALL TIME" if req.show_all else start.date().isoformat(),
            "end": end.date().isoformat(),
        },
        "summary": result.summary,
        "executionsByDateAndUser": [r.to_dict() for r in result.reports],
        "allExecutions": [e.to_dict() for e in result.executions],
    }
    result.json_path, result.csv_path = write_report_files(
        document,
        result.executions,
        req.output_dir,
        report_date=datetime.now(timezone.utc).date().isoformat(),
    )
    print(f"💾 JSON report saved to: {result.json_path}")
    print(f"💾 CSV report saved to: {result.csv_path}")

    print("\n📊 Summary:")
    print(f"  - Total executions: {result.summary['totalExecutions']}")
    print(f"  - Unique users: {result.summary['uniqueUsers']}")
    print(f"  - Unique tests: {result.summary['uniqueTests']}")
    print(f"  - Projects: {', '.join(result.summary['projects'])}")
    if result.summary.get("testStages"):
        print(f"  - Test stages: {', '.join(result.summary['testStages'])}")
    return result
