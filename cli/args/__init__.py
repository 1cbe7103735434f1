"""CLI argument builder modules.

The top-level :mod:`qtest_cli` is intentionally kept thin. Groups of flags are
registered via small "arg builder" functions housed here.

Each module exposes a single public function:

- :func:`cli.args.base.add_base_args`
- :func:`cli.args.extract.add_extract_args`
"""

from __future__ import annotations

__all__ = [
    "base",
    "extract",
]
