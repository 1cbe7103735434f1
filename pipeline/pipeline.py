"""pipeline.pipeline

One high-level object for the tool's primary capabilities.

Why this exists
---------------
The flows live in :mod:`pipeline.orchestrator` and need a handful of
collaborators (qTest client, tree readers, status applier, Sealights clock).
Callers (CLI commands, scripts) should not wire those themselves, so they get a
:class:`QTestSyncPipeline` from :func:`pipeline.wiring.build_pipeline` and call:

- ``bulk_import(...)``: mirror a design module and skip recommended runs
- ``recommend(...)``: skip recommended runs in an existing suite
- ``extract(...)``: export historical test logs as stage bundles
- ``report(...)``: per-user daily execution report (JSON + CSV)
"""

from __future__ import annotations

from pathlib import Path

from pipeline.error_log import ErrorLogger
from pipeline.orchestrator import (
    BulkImportRequest,
    BulkImportResult,
    ExtractRequest,
    ExtractResult,
    RecommendRequest,
    RecommendResult,
    ReportRequest,
    ReportResult,
    Services,
    run_bulk_import,
    run_extract,
    run_recommendations,
    run_report,
)


class QTestSyncPipeline:
    """High-level facade over the flows.

    ``services`` is public so the CLI can reuse the readers and the status
    applier for its prompts.
    """

    def __init__(self, services: Services, *, output_dir: Path = Path("output")) -> None:
        self.services = services
        self.output_dir = Path(output_dir)

    @property
    def config(self):
        return self.services.config

    def bulk_import(self, req: BulkImportRequest) -> BulkImportResult:
        error_log = ErrorLogger("bulk-import-errors.log", output_dir=self.output_dir)
        try:
            return run_bulk_import(req, self.services, error_log)
        finally:
            error_log.close()

    def recommend(self, req: RecommendRequest) -> RecommendResult:
        return run_recommendations(req, self.services)

    def extract(self, req: ExtractRequest) -> ExtractResult:
        return run_extract(req, self.services)

    def report(self, req: ReportRequest) -> ReportResult:
        return run_report(req, self.services)
