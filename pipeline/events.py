"""pipeline.events

Turn qTest test logs into the normalized event stream exported per stage.

Rules:
- a log needs both ``exe_start_date`` and ``exe_end_date``; otherwise it is
  dropped (an execution without an end cannot be placed on the timeline)
- both timestamps are moved onto the Sealights clock with the run's drift
- status is classified by substring: pass -> passed, fail -> failed,
  skip/block -> skipped, anything else -> passed; no status -> skipped
- events are ordered by start; merging bundles is concatenate + stable sort
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence

from pipeline.drift import adjust_timestamp
from pipeline.models import PATH_SEPARATOR, EventStatus, NormalizedEvent, StageBundle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawExecution:
    """One qTest test log joined with its test case and executing user."""

    name: str
    external_id: str
    status: Optional[str]
    start: Optional[str]
    end: Optional[str]
    user_email: Optional[str] = None


def map_status(status: Optional[str]) -> EventStatus:
    if not status:
        return EventStatus.SKIPPED
    lowered = status.lower()
    if "pass" in lowered:
        return EventStatus.PASSED
    if "fail" in lowered:
        return EventStatus.FAILED
    if "skip" in lowered or "block" in lowered:
        return EventStatus.SKIPPED
    return EventStatus.PASSED


def sort_events(events: Iterable[NormalizedEvent]) -> List[NormalizedEvent]:
    return sorted(events, key=lambda e: e.start)


def materialize(raw_logs: Iterable[RawExecution], drift_ms: int) -> List[NormalizedEvent]:
    events: List[NormalizedEvent] = []
    for raw in raw_logs:
        if not raw.start or not raw.end:
            continue
        try:
            event = NormalizedEvent(
                name=raw.name,
                external_id=raw.external_id,
                start=adjust_timestamp(raw.start, drift_ms),
                end=adjust_timestamp(raw.end, drift_ms),
                status=map_status(raw.status),
            )
        except ValueError as e:
            logger.debug("dropping log for %r: %s", raw.name, e)
            continue
        events.append(event)
    return sort_events(events)


def merge_events(existing: Sequence[NormalizedEvent], new: Sequence[NormalizedEvent]) -> List[NormalizedEvent]:
    return sort_events([*existing, *new])


def resolve_bundle_stage(project_name: str, suite_name: str, mapping: Mapping[str, str]) -> str:
    return mapping.get(f"{project_name}{PATH_SEPARATOR}{suite_name}") or suite_name


def build_stage_bundle(
    raw_logs: Sequence[RawExecution],
    *,
    project_name: str,
    suite_name: str,
    drift_ms: int,
    stage_mapping: Mapping[str, str],
    user_lab_mapping: Mapping[str, str],
) -> StageBundle:
    """Events of one suite, named by its mapped stage and tagged with a lab.

    The lab comes from the first log's user; a suite is normally executed from
    one lab.
    """
    first_user = raw_logs[0].user_email if raw_logs else None
    return StageBundle(
        test_stage=resolve_bundle_stage(project_name, suite_name, stage_mapping),
        project_name=project_name,
        clock_drift_ms=drift_ms,
        events=materialize(raw_logs, drift_ms),
        lab_id=user_lab_mapping.get(first_user) if first_user else None,
    )
