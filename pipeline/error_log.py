"""pipeline.error_log

Append-only failure log for long bulk operations.

Per-node failures during mirroring and status updates must not flood the
console, so they go to ``output/<name>.log`` through a dedicated logger that
never propagates to the root handlers. The console only gets the count-per-kind
summary at the end of the run.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from itertools import count
from pathlib import Path
from typing import Any, Dict, List, Optional

from tools.qtest.api import QTestApiError

HIERARCHY_CREATION_FAILED = "HIERARCHY_CREATION_FAILED"
TEST_RUN_CREATION_FAILED = "TEST_RUN_CREATION_FAILED"
VERSION_NOT_APPROVED = "VERSION_NOT_APPROVED"

MAX_DETAIL_STRING = 500
MAX_DETAIL_INLINE = 200

_logger_ids = count()


@dataclass(frozen=True)
class ErrorRecord:
    timestamp: str
    kind: str
    message: str
    context: Optional[str] = None
    details: Optional[Any] = None


def _sanitize(value: Any) -> Any:
    if isinstance(value, str):
        if len(value) > MAX_DETAIL_STRING:
            return value[:MAX_DETAIL_STRING] + "... (truncated)"
        return value
    if isinstance(value, dict):
        return {str(k): _sanitize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitize(v) for v in value]
    if value is None or isinstance(value, (int, float, bool)):
        return value
    return _sanitize(str(value))


def error_details(error: Exception, **extra: Any) -> Dict[str, Any]:
    details: Dict[str, Any] = dict(extra)
    details["errorMessage"] = str(error)
    if isinstance(error, QTestApiError):
        details["statusCode"] = error.status_code
        details["errorData"] = error.data
    return details


class ErrorLogger:
    def __init__(self, log_name: str = "bulk-import-errors.log", *, output_dir: Path = Path("output")) -> None:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        self.log_path = output_dir / log_name
        if self.log_path.exists():
            self.log_path.unlink()

        self._records: List[ErrorRecord] = []
        self._logger = logging.getLogger(f"{__name__}.{log_name}.{next(_logger_ids)}")
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False
        self._handler = logging.FileHandler(self.log_path, encoding="utf-8", delay=True)
        self._handler.setFormatter(logging.Formatter("%(message)s"))
        self._logger.addHandler(self._handler)

    def close(self) -> None:
        self._logger.removeHandler(self._handler)
        self._handler.close()

    # -------------------------
    # Recording
    # -------------------------

    def log_error(self, kind: str, message: str, context: Optional[str] = None, details: Any = None) -> None:
        record = ErrorRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            kind=kind,
            message=message,
            context=_sanitize(context) if context else None,
            details=_sanitize(details) if details else None,
        )
        self._records.append(record)
        self._logger.error(self.format_line(record))

    def log_hierarchy_creation_error(self, item_type: str, item_name: str, error: Exception) -> None:
        self.log_error(
            HIERARCHY_CREATION_FAILED,
            f"Failed to create {item_type}",
            f"{item_type}: {item_name}",
            error_details(error, itemType=item_type, itemName=item_name),
        )

    def log_test_run_creation_error(self, test_name: str, suite_name: str, error: Exception) -> None:
        self.log_error(
            TEST_RUN_CREATION_FAILED,
            "Failed to create test run",
            f"Test: {test_name}, Suite: {suite_name}",
            error_details(error, testName=test_name, suiteName=suite_name),
        )

    def log_version_error(self, test_name: str, run_id: int, version_id: Optional[int], error: Exception) -> None:
        self.log_error(
            VERSION_NOT_APPROVED,
            "Test case version not approved",
            f"Test: {test_name} (Run ID: {run_id})",
            error_details(error, testRunId=run_id, versionId=version_id or 0),
        )

    # -------------------------
    # Reading back (summary only)
    # -------------------------

    @staticmethod
    def format_line(record: ErrorRecord) -> str:
        line = f"[{record.timestamp}] {record.kind}: {record.message}"
        if record.context:
            line += f" | Context: {record.context}"
        if record.details:
            details = json.dumps(record.details, default=str)
            if len(details) < MAX_DETAIL_INLINE:
                line += f" | Details: {details}"
            else:
                line += f" | Details: {details[:MAX_DETAIL_INLINE]}... (see full log)"
        return line

    def has_errors(self) -> bool:
        return bool(self._records)

    def summary(self) -> Dict[str, Any]:
        by_kind = Counter(r.kind for r in self._records)
        return {"total": len(self._records), "by_kind": dict(by_kind)}

    def write_summary(self) -> None:
        if not self.has_errors():
            return
        summary = self.summary()
        rule = "=" * 80
        lines = ["", rule, "ERROR SUMMARY", rule, f"Total errors: {summary['total']}", "", "Breakdown by type:"]
        lines += [f"  - {kind}: {n}" for kind, n in summary["by_kind"].items()]
        lines.append(rule)
        self._logger.error("\n".join(lines))
