#!/usr/bin/env python3
"""tools/io.py

Single source of truth for tiny filesystem helpers used across the pipeline.

Why this file exists
--------------------
Several modules write JSON artifacts (recommendation results, stage bundles,
the extraction summary) and read them back for merging. Keeping one
implementation here avoids two helpers with the same name slowly diverging
(different JSON formatting options, different newline handling, etc.).

Design
------
- This module is intentionally small.
- It contains ONLY filesystem IO (no export policy).
- Export layout rules live in pipeline/exports.py.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def write_json(path: Path, data: Any) -> None:
    """Write pretty JSON to disk (UTF-8).

    The payload goes to a temp file next to ``path`` and is moved into place,
    so a reader never observes a half-written bundle.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def read_json(path: Path) -> Any:
    """Read JSON from disk (UTF-8)."""
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)
