from __future__ import annotations

import argparse

from pipeline.orchestrator import ALL_DAYS


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError("must be a positive number")
    if value <= 0:
        raise argparse.ArgumentTypeError("must be a positive number")
    return value


def add_extract_args(parser: argparse.ArgumentParser) -> None:
    """Register CLI flags used by extract mode."""

    window = parser.add_mutually_exclusive_group()
    window.add_argument(
        "--days",
        type=_positive_int,
        default=7,
        help="(extract/report mode) Number of days to look back (default: 7)",
    )
    window.add_argument(
        "--all",
        dest="days",
        action="store_const",
        const=ALL_DAYS,
        help="(extract/report mode) Use all available test data (10 years)",
    )
    parser.add_argument(
        "--project",
        dest="project_id",
        type=int,
        default=None,
        help="(extract/report mode) Only use the project with this ID",
    )
    parser.add_argument(
        "--stage",
        dest="test_stage",
        default=None,
        help="(report mode) Only report executions mapped to this test stage (uses testStageMapping)",
    )
