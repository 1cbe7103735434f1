from __future__ import annotations

import argparse

from cli.commands.bulk_import import run_bulk_import_mode
from cli.commands.extract import run_extract_mode
from cli.commands.list_projects import run_list_projects
from cli.commands.recommend import run_recommend_mode
from cli.commands.report import run_report_mode
from cli.ui import choose_from_menu
from pipeline.pipeline import QTestSyncPipeline

MODE_HANDLERS = {
    "bulk-import": run_bulk_import_mode,
    "recommend": run_recommend_mode,
    "extract": run_extract_mode,
    "report": run_report_mode,
    "list-projects": run_list_projects,
}


def resolve_mode(args: argparse.Namespace) -> str:
    if args.mode:
        return str(args.mode)
    return choose_from_menu(
        "Choose an action:",
        {
            "bulk-import": "Import a Test Design module and apply skip recommendations",
            "recommend": "Apply skip recommendations to an existing test suite",
            "extract": "Export test logs as Sealights events",
            "report": "Report test executions per user per day",
            "list-projects": "List accessible qTest projects",
        },
    )


def dispatch(args: argparse.Namespace, pipeline: QTestSyncPipeline, *, mode: str) -> int:
    return int(MODE_HANDLERS[mode](args, pipeline))
