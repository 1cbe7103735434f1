#!/usr/bin/env python3
"""
CLI for the qTest / Sealights integration.

Modes:
  1) bulk-import   - copy a Test Design module into Test Execution, then skip
                     the runs Sealights recommends skipping
  2) recommend     - skip recommended runs in an existing test suite
  3) extract       - export historical test logs as per-stage event bundles
  4) report        - per-user daily execution report (JSON + CSV)
  5) list-projects - list the qTest projects the credentials can see

Usage:
  python qtest_cli.py
  python qtest_cli.py --mode bulk-import
  python qtest_cli.py --mode recommend --config config.yaml
  python qtest_cli.py --mode extract --days 30
  python qtest_cli.py --mode extract --all --project 12345
  python qtest_cli.py --mode report --days 30 --stage Regression
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from cli.args.base import add_base_args
from cli.args.extract import add_extract_args
from cli.dispatch import dispatch, resolve_mode
from pipeline.config import ConfigError
from pipeline.orchestrator import EmptyResultError
from pipeline.status import StatusFieldError
from pipeline.wiring import build_pipeline
from tools.qtest.api import QTestApiError
from tools.qtest.auth import AuthError
from tools.sealights.recommendations import RecommendationsError

ROOT_DIR = Path.cwd()

FATAL_ERRORS = (
    ConfigError,
    AuthError,
    QTestApiError,
    RecommendationsError,
    StatusFieldError,
    EmptyResultError,
)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="qTest test-management integration with Sealights.")
    add_base_args(parser, root_dir=ROOT_DIR)
    add_extract_args(parser)
    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(bool(args.verbose))
    mode = resolve_mode(args)

    try:
        pipeline = build_pipeline(
            Path(args.config_path) if args.config_path else None,
            output_dir=Path(args.output_dir),
        )
        return dispatch(args, pipeline, mode=mode)
    except FATAL_ERRORS as e:
        print(f"\n❌ Error: {e}")
        logging.getLogger(__name__).debug("fatal error", exc_info=True)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
