"""tools/sealights/recommendations.py

Loading test-skip recommendations.

Only the file-backed ("mock") mode is wired up: the live recommendation API is
not exposed to this tool yet, so asking for it is a configuration error.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, TypeVar

from tools.io import write_json

DEFAULT_MOCK_RECOMMENDATIONS: Dict[str, Any] = {
    "metadata": {
        "appName": "SampleApp",
        "branchName": "main",
        "buildName": "build-123",
        "testStage": "Regression",
        "testGroupId": "group-1",
        "testSelectionEnabled": True,
        "isFullRun": False,
        "status": "ready",
    },
    "excludedTests": [
        {"testName": "Some Test"},
        {"testName": "Another Test"},
    ],
}


class RecommendationsError(RuntimeError):
    """Recommendations could not be loaded. Fatal for the run."""


@dataclass(frozen=True)
class Recommendations:
    metadata: Dict[str, Any]
    excluded_tests: List[str] = field(default_factory=list)

    @property
    def test_stage(self) -> str:
        return str(self.metadata.get("testStage") or "")

    @property
    def status(self) -> str:
        return str(self.metadata.get("status") or "")

    @property
    def is_full_run(self) -> bool:
        return bool(self.metadata.get("isFullRun"))

    @property
    def is_ready(self) -> bool:
        return self.status == "ready"

    def exclusion_set(self) -> FrozenSet[str]:
        return frozenset(self.excluded_tests)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Recommendations":
        metadata = payload.get("metadata")
        if not isinstance(metadata, dict):
            raise RecommendationsError("recommendations payload has no 'metadata' object")
        excluded = payload.get("excludedTests") or []
        if not isinstance(excluded, list):
            raise RecommendationsError("'excludedTests' must be a list")
        names = [str(t["testName"]) for t in excluded if isinstance(t, dict) and t.get("testName") is not None]
        return cls(metadata=dict(metadata), excluded_tests=names)


def load_recommendations(
    mock_file: Path,
    *,
    mock_mode: bool = True,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Recommendations:
    """Load recommendations from ``mock_file``.

    A missing file is created with a sample payload first. ``overrides`` are
    merged into ``metadata`` (e.g. the project and stage the user picked).
    """
    if not mock_mode:
        raise RecommendationsError(
            "Live recommendations are not available; set recommendations.enableMockMode to true."
        )

    mock_file = Path(mock_file)
    if not mock_file.exists():
        print(f"⚠️  Mock file not found: {mock_file}")
        write_json(mock_file, DEFAULT_MOCK_RECOMMENDATIONS)
        print(f"✅ Created default mock file: {mock_file}")

    try:
        payload = json.loads(mock_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise RecommendationsError(f"Failed to load mock recommendations from {mock_file}: {e}") from e
    if not isinstance(payload, dict):
        raise RecommendationsError(f"{mock_file} does not contain a JSON object")

    recs = Recommendations.from_payload(payload)
    if overrides:
        recs = Recommendations(metadata={**recs.metadata, **dict(overrides)}, excluded_tests=recs.excluded_tests)
    return recs


T = TypeVar("T")


def match_by_name(items: Sequence[T], excluded: FrozenSet[str], *, name_attr: str = "name") -> List[T]:
    """Keep items whose display name is in ``excluded`` (exact, case-sensitive)."""
    return [item for item in items if getattr(item, name_attr) in excluded]
