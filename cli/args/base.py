from __future__ import annotations

import argparse
from pathlib import Path

MODES = ("bulk-import", "recommend", "extract", "report", "list-projects")


def add_base_args(parser: argparse.ArgumentParser, *, root_dir: Path) -> None:
    """Register CLI flags that are shared across all modes.

    This includes:
    - mode selection
    - config file location
    - output directory
    - verbosity
    """

    parser.add_argument(
        "--mode",
        choices=list(MODES),
        help=(
            "bulk-import = copy a Test Design module into Test Execution and skip recommended runs, "
            "recommend = skip recommended runs in an existing suite, "
            "extract = export test logs as Sealights events, report = per-user daily execution report, "
            "list-projects = show accessible projects"
        ),
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to config.json / config.yaml (default: config.json, config.yaml or config.yml in the CWD).",
    )
    parser.add_argument(
        "--output-dir",
        dest="output_dir",
        default=str(root_dir / "output"),
        help="Directory for error logs, recommendation results, event bundles and reports (default: output/).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging (HTTP calls, swallowed lookups).",
    )
