"""pipeline.models

Lightweight data structures used across the pipeline.

Why this exists
---------------
The two qTest hierarchies (Test Design modules, Test Execution
releases/cycles/suites) return differently-shaped JSON. These dataclasses give
the readers, the mirroring engine, the selection filters and the exporter one
small, explicit vocabulary:

- where we are in a tree (TreeNode)
- what is being copied (SourceLeaf, MirrorSubtree)
- what was created (CreatedLeaf)
- what is exported (NormalizedEvent, StageBundle)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

PATH_SEPARATOR = " / "


class NodeKind(str, Enum):
    ROOT = "root"
    CONTAINER = "container"
    LEAF_HOLDER = "leaf-holder"


class ApprovalState(str, Enum):
    APPROVED = "approved"
    OTHER = "other"


class EventStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class TreeNode:
    """One node of either hierarchy.

    ``native_type`` is the qTest object type (project, release, test-cycle,
    test-suite, module); it decides the ``parentType`` used when creating
    children under this node.
    """

    kind: NodeKind
    id: int
    name: str
    path: Tuple[str, ...]
    native_type: str
    project_id: int
    has_children: bool = False
    leaf_count: Optional[int] = None
    child_count: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.path or self.path[-1] != self.name:
            raise ValueError(f"path {self.path!r} must end with node name {self.name!r}")

    def child(self, *, kind: NodeKind, id: int, name: str, native_type: str, **extra: Any) -> "TreeNode":
        return TreeNode(
            kind=kind,
            id=id,
            name=name,
            path=self.path + (name,),
            native_type=native_type,
            project_id=self.project_id,
            **extra,
        )

    @property
    def has_leaves(self) -> bool:
        return bool(self.leaf_count)

    def format_path(self) -> str:
        return PATH_SEPARATOR.join(self.path)


@dataclass(frozen=True)
class SourceLeaf:
    """An authored test case read from the design tree."""

    id: int
    name: str
    approval_state: ApprovalState = ApprovalState.OTHER


@dataclass(frozen=True)
class MirrorSubtree:
    container_id: int
    container_name: str
    leaves: Tuple[SourceLeaf, ...] = ()
    children: Tuple["MirrorSubtree", ...] = ()

    def leaf_total(self) -> int:
        return len(self.leaves) + sum(child.leaf_total() for child in self.children)


@dataclass(frozen=True)
class CreatedLeaf:
    """Outcome of one test-run creation attempt in the execution tree.

    ``container_path`` is the destination path of the leaf-holder (anchor path
    plus mirrored module names); empty when unknown.
    """

    name: str
    source_leaf_id: int
    container_name: str
    created: bool
    destination_id: Optional[int] = None
    failure_reason: Optional[str] = None
    container_path: Tuple[str, ...] = ()
    test_case_version_id: Optional[int] = None


@dataclass(frozen=True)
class NodeResult:
    """Outcome of one container/leaf-holder creation."""

    created: bool
    destination_id: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class NormalizedEvent:
    name: str
    external_id: str
    start: int
    end: int
    status: EventStatus

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"event {self.name!r} starts after it ends ({self.start} > {self.end})")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "externalId": self.external_id,
            "start": self.start,
            "end": self.end,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "NormalizedEvent":
        return cls(
            name=str(raw["name"]),
            external_id=str(raw["externalId"]),
            start=int(raw["start"]),
            end=int(raw["end"]),
            status=EventStatus(raw["status"]),
        )


@dataclass
class StageBundle:
    """All events of one logical stage for one project."""

    test_stage: str
    project_name: str
    clock_drift_ms: int
    events: List[NormalizedEvent] = field(default_factory=list)
    lab_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "testStage": self.test_stage,
            "projectName": self.project_name,
        }
        if self.lab_id is not None:
            out["labId"] = self.lab_id
        out["clockDriftMs"] = self.clock_drift_ms
        out["events"] = [e.to_dict() for e in self.events]
        return out
