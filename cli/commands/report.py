from __future__ import annotations

from pathlib import Path

from cli.ui import print_header
from pipeline.orchestrator import ReportRequest
from pipeline.pipeline import QTestSyncPipeline


def run_report_mode(args, pipeline: QTestSyncPipeline) -> int:
    print_header("qTest Test Execution Report")
    result = pipeline.report(
        ReportRequest(
            days=int(args.days),
            project_id=args.project_id,
            test_stage=args.test_stage,
            output_dir=Path(pipeline.output_dir),
        )
    )
    if result.json_path is not None:
        print("\n✅ Report generation complete!")
    return 0
