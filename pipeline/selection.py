"""pipeline.selection

Pick the newly created test runs that should be marked as skipped.

Two pure filters, applied in order to the successfully created runs:

1. stage filter: the run's suite resolves to a logical stage through the
   ``testStageMapping`` config, tried as the full destination path, then as
   ``<project> / <suite>``, then as the bare suite name. The first key that is
   present wins. A run whose suite is not mapped is dropped, never defaulted.
2. exclusion filter: the run's display name is in the recommended exclusion
   set (exact, case-sensitive name equality).

Every decision is returned with a reason so callers can show why a run was or
was not selected. Nothing here touches the network.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, List, Mapping, Optional, Sequence, Tuple

from pipeline.models import PATH_SEPARATOR, CreatedLeaf

IN_STAGE = "in stage"
NOT_IN_MAPPING = "not in mapping"
DIFFERENT_STAGE = "different stage"
EXCLUDED = "in exclusion list"
NOT_EXCLUDED = "not in exclusion list"


@dataclass(frozen=True)
class Decision:
    leaf: CreatedLeaf
    kept: bool
    reason: str
    stage: Optional[str] = None
    matched_key: Optional[str] = None


@dataclass(frozen=True)
class FilterResult:
    kept: List[CreatedLeaf]
    decisions: List[Decision]

    @property
    def dropped(self) -> List[Decision]:
        return [d for d in self.decisions if not d.kept]


@dataclass(frozen=True)
class SelectionResult:
    selected: List[CreatedLeaf]
    in_stage: List[CreatedLeaf]
    candidates: List[CreatedLeaf]
    stage_decisions: List[Decision] = field(default_factory=list)
    exclusion_decisions: List[Decision] = field(default_factory=list)


def stage_keys(leaf: CreatedLeaf) -> List[str]:
    """Mapping keys for ``leaf``, in lookup priority order."""
    keys: List[str] = []
    path: Tuple[str, ...] = leaf.container_path
    if path:
        keys.append(PATH_SEPARATOR.join(path))
        if len(path) > 1:
            keys.append(f"{path[0]}{PATH_SEPARATOR}{leaf.container_name}")
    keys.append(leaf.container_name)

    out: List[str] = []
    for k in keys:
        if k and k not in out:
            out.append(k)
    return out


def resolve_stage(leaf: CreatedLeaf, mapping: Mapping[str, str]) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(stage, matched_key)``; ``(None, None)`` when unmapped."""
    for key in stage_keys(leaf):
        stage = mapping.get(key)
        if stage:
            return stage, key
    return None, None


def stage_filter(leaves: Sequence[CreatedLeaf], target_stage: str, mapping: Mapping[str, str]) -> FilterResult:
    kept: List[CreatedLeaf] = []
    decisions: List[Decision] = []
    for leaf in leaves:
        stage, key = resolve_stage(leaf, mapping)
        if stage is None:
            decisions.append(Decision(leaf, False, NOT_IN_MAPPING))
        elif stage == target_stage:
            kept.append(leaf)
            decisions.append(Decision(leaf, True, IN_STAGE, stage, key))
        else:
            decisions.append(Decision(leaf, False, DIFFERENT_STAGE, stage, key))
    return FilterResult(kept, decisions)


def exclusion_filter(leaves: Sequence[CreatedLeaf], exclusion: AbstractSet[str]) -> FilterResult:
    kept: List[CreatedLeaf] = []
    decisions: List[Decision] = []
    for leaf in leaves:
        if leaf.name in exclusion:
            kept.append(leaf)
            decisions.append(Decision(leaf, True, EXCLUDED))
        else:
            decisions.append(Decision(leaf, False, NOT_EXCLUDED))
    return FilterResult(kept, decisions)


def filter_by_stage_and_exclusion(
    leaves: Sequence[CreatedLeaf],
    target_stage: str,
    mapping: Mapping[str, str],
    exclusion: AbstractSet[str],
) -> SelectionResult:
    """Runs that are created, in ``target_stage`` and named in ``exclusion``."""
    candidates = [leaf for leaf in leaves if leaf.created]
    by_stage = stage_filter(candidates, target_stage, mapping)
    by_name = exclusion_filter(by_stage.kept, exclusion)
    return SelectionResult(
        selected=by_name.kept,
        in_stage=by_stage.kept,
        candidates=candidates,
        stage_decisions=by_stage.decisions,
        exclusion_decisions=by_name.decisions,
    )
