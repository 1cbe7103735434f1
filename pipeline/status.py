"""pipeline.status

Apply a "skip" status to selected test runs.

qTest Cloud has no "set status" call for a test run: the status changes when a
test log is submitted for it, and the log must reference the approved version
of the test case (``test_case_version_id``).

Status values come from the project's test-run field settings. The field id
and the active values are cached per project in a :class:`StatusContext` that
lives for one command invocation only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pipeline.error_log import ErrorLogger
from pipeline.models import CreatedLeaf
from tools.io import write_json
from tools.qtest.api import API_PREFIX, QTestApiError, unwrap_items
from tools.qtest.auth import AuthError

logger = logging.getLogger(__name__)

STATUS_FIELD_LABEL = "Status"
STATUS_FIELD_ORIGINAL_NAME = "StatusTestRun"


class StatusFieldError(RuntimeError):
    """The project exposes no usable test-run status field. Fatal."""


@dataclass(frozen=True)
class QTestStatus:
    id: int
    name: str
    color: Optional[str] = None


@dataclass(frozen=True)
class ApplyResult:
    test_run_id: int
    test_name: str
    applied: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "testRunId": self.test_run_id,
            "testName": self.test_name,
            "applied": self.applied,
        }
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass(frozen=True)
class SkipTarget:
    test_run_id: int
    test_name: str
    test_case_version_id: Optional[int] = None

    @classmethod
    def from_leaf(cls, leaf: CreatedLeaf) -> "SkipTarget":
        return cls(leaf.destination_id, leaf.name, leaf.test_case_version_id)

    @classmethod
    def from_run(cls, run: Dict[str, Any]) -> "SkipTarget":
        return cls(int(run["id"]), str(run.get("name") or ""), run.get("test_case_version_id"))


@dataclass
class StatusContext:
    """Per-invocation cache: project id -> status field id / active statuses."""

    field_ids: Dict[int, int] = field(default_factory=dict)
    statuses: Dict[int, List[QTestStatus]] = field(default_factory=dict)


def _status_field(fields: Sequence[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    for f in fields:
        if f.get("label") == STATUS_FIELD_LABEL or f.get("original_name") == STATUS_FIELD_ORIGINAL_NAME:
            return f
    return None


class StatusApplier:
    def __init__(self, client, context: Optional[StatusContext] = None) -> None:
        self._client = client
        self.context = context or StatusContext()

    def available_statuses(self, project_id: int) -> List[QTestStatus]:
        cached = self.context.statuses.get(project_id)
        if cached is not None:
            return cached

        try:
            resp = self._client.get(f"{API_PREFIX}/projects/{project_id}/settings/test-runs/fields")
        except QTestApiError as e:
            raise StatusFieldError(f"Could not read test-run fields of project {project_id}: {e}") from e

        status_field = _status_field(unwrap_items(resp.data))
        if status_field is None or not status_field.get("allowed_values"):
            raise StatusFieldError("Status field not found or has no allowed values")

        statuses = [
            QTestStatus(id=int(v["value"]), name=str(v["label"]), color=v.get("color"))
            for v in status_field["allowed_values"]
            if v.get("is_active")
        ]
        self.context.field_ids[project_id] = int(status_field["id"])
        self.context.statuses[project_id] = statuses
        return statuses

    def find_status_by_name(self, project_id: int, status_name: str) -> Optional[QTestStatus]:
        wanted = status_name.lower()
        for status in self.available_statuses(project_id):
            if status.name.lower() == wanted:
                return status
        return None

    def apply_skip_status(
        self,
        project_id: int,
        targets: Sequence[SkipTarget],
        status_id: int,
        error_log: Optional[ErrorLogger] = None,
    ) -> List[ApplyResult]:
        """Submit one test log per target; one :class:`ApplyResult` per input."""
        results: List[ApplyResult] = []
        for target in targets:
            try:
                self._submit_status(project_id, target, status_id)
                results.append(ApplyResult(test_run_id=target.test_run_id, test_name=target.test_name, applied=True))
            except (QTestApiError, AuthError, ValueError) as e:
                if error_log is not None:
                    error_log.log_version_error(target.test_name, target.test_run_id, target.test_case_version_id, e)
                results.append(
                    ApplyResult(
                        test_run_id=target.test_run_id,
                        test_name=target.test_name,
                        applied=False,
                        error=str(e),
                    )
                )
        return results

    def _submit_status(self, project_id: int, target: SkipTarget, status_id: int) -> None:
        run_path = f"{API_PREFIX}/projects/{project_id}/test-runs/{target.test_run_id}"
        version_id = target.test_case_version_id
        if not version_id:
            run = self._client.get(run_path).data
            version_id = run.get("test_case_version_id") if isinstance(run, dict) else None
            if not version_id:
                raise ValueError(f"Test run {target.test_run_id} has no test case version")

        now = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        self._client.post(
            f"{run_path}/test-logs",
            {
                "status": {"id": status_id},
                "exe_start_date": now,
                "exe_end_date": now,
                "test_case_version_id": version_id,
            },
        )


def save_results(results: Dict[str, Any], output_dir: Path = Path("output")) -> Path:
    """Write ``recommendations_<timestamp>.json`` and return its path."""
    stamp = datetime.now(timezone.utc).isoformat().replace(":", "-").replace(".", "-").replace("+00-00", "Z")
    path = Path(output_dir) / f"recommendations_{stamp}.json"
    write_json(path, results)
    return path
