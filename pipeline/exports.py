"""pipeline.exports

Write stage bundles and the extraction summary under the output directory.

File naming: ``<project>___<stage>`` with everything outside ``[A-Za-z0-9_-]``
and whitespace replaced by ``_``, runs of ``_`` collapsed, lowercased, plus
``.json``. Writing a bundle whose file already exists merges the events of
both (concatenate, then stable sort by start), so repeated extractions of
overlapping windows accumulate in one file.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Sequence

from pipeline.events import merge_events
from pipeline.models import NormalizedEvent, StageBundle
from tools.io import read_json, write_json

logger = logging.getLogger(__name__)

SUMMARY_FILE_NAME = "_summary.json"

_UNSAFE = re.compile(r"[^a-zA-Z0-9_\-\s]")
_SPACES = re.compile(r"\s+")
_UNDERSCORES = re.compile(r"_+")


def bundle_file_name(test_stage: str, project_name: str) -> str:
    combined = f"{project_name}___{test_stage}"
    safe = _UNSAFE.sub("_", combined)
    safe = _SPACES.sub("_", safe)
    safe = _UNDERSCORES.sub("_", safe)
    return f"{safe.lower()}.json"


def _existing_events(path: Path) -> List[NormalizedEvent]:
    try:
        raw = read_json(path)
        return [NormalizedEvent.from_dict(e) for e in raw.get("events", [])]
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
        print(f"⚠️  Could not merge existing {path.name}, overwriting: {e}")
        return []


class BundleWriter:
    def __init__(self, output_dir: Path = Path("output")) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def bundle_path(self, bundle: StageBundle) -> Path:
        return self.output_dir / bundle_file_name(bundle.test_stage, bundle.project_name)

    def write_bundle(self, bundle: StageBundle) -> Path:
        """Write ``bundle``; merges into (and updates) ``bundle.events`` when the file exists."""
        path = self.bundle_path(bundle)
        if path.exists():
            bundle.events = merge_events(_existing_events(path), bundle.events)
        write_json(path, bundle.to_dict())
        logger.debug("wrote %d events to %s", len(bundle.events), path)
        return path

    def write_summary(self, bundles: Sequence[StageBundle]) -> Path:
        summary: Dict[str, Any] = {
            "extractedAt": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "totalTestStages": len(bundles),
            "totalEvents": sum(len(b.events) for b in bundles),
            "testStages": [
                {
                    "testStage": b.test_stage,
                    "projectName": b.project_name,
                    "labId": b.lab_id,
                    "eventCount": len(b.events),
                }
                for b in bundles
            ],
        }
        path = self.output_dir / SUMMARY_FILE_NAME
        write_json(path, summary)
        return path
