from __future__ import annotations

from pathlib import Path

from cli.ui import print_header
from pipeline.orchestrator import ExtractRequest
from pipeline.pipeline import QTestSyncPipeline


def run_extract_mode(args, pipeline: QTestSyncPipeline) -> int:
    print_header("qTest Data Extraction Tool")
    pipeline.extract(
        ExtractRequest(
            days=int(args.days),
            project_id=args.project_id,
            output_dir=Path(pipeline.output_dir),
        )
    )
    print("\n✅ Extraction complete!")
    return 0
