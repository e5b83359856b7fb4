"""
Workflow Engine — stage position, progress and time logging for a Project.

Every mutating operation works on a deep copy and returns it, so a
rejected request leaves the caller's Project untouched. Progress is
stage-based: it depends only on the current stage's position.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Any, Optional, Union

from arqexpress_engine.config import get_settings
from arqexpress_engine.exceptions import (
    InvalidProjectState,
    InvalidStageReference,
    InvalidTimeEntry,
    StageNotFound,
)
from arqexpress_engine.models.enums import ProjectStatus
from arqexpress_engine.models.project import Project
from arqexpress_engine.models.schemas import StageDefinition, TimeEntry

logger = logging.getLogger(__name__)


# ── Reads ────────────────────────────────────────────────

def get_current_stage(project: Project) -> StageDefinition:
    for stage in project.stage_list:
        if stage.id == project.current_stage_id:
            return stage
    logger.warning(
        f"Project {project.id}: current stage {project.current_stage_id!r} "
        f"is not in its stage list"
    )
    raise StageNotFound(
        f"current stage {project.current_stage_id!r} is not in the project's stage list",
        field="current_stage_id",
        value=project.current_stage_id,
    )


def get_current_stage_name(project: Project) -> str:
    return get_current_stage(project).label


def get_workflow_progress(project: Project) -> int:
    """Percent complete (0–100), rounded half up, from the stage position."""
    index = project.stage_index(project.current_stage_id)
    if index is None:
        get_current_stage(project)  # raises StageNotFound
    return math.floor(100 * (index + 1) / len(project.stage_list) + 0.5)


def hours_by_stage(project: Project) -> dict[str, float]:
    """Logged hours per stage id, in stage order; stages without hours are omitted."""
    grouped: dict[str, list[float]] = defaultdict(list)
    for entry in project.time_entries:
        grouped[entry.stage_id].append(entry.hours)
    return {
        stage_id: math.fsum(grouped[stage_id])
        for stage_id in project.stage_ids()
        if stage_id in grouped
    }


# ── Transitions ──────────────────────────────────────────

def _ensure_active(project: Project, action: str) -> None:
    if project.status == ProjectStatus.CANCELED:
        logger.warning(f"Project {project.id}: {action} rejected, project is canceled")
        raise InvalidProjectState(
            f"cannot {action} a canceled project",
            field="status",
            value=project.status.value,
        )


def advance_stage(
    project: Project,
    target_stage_id: str,
    actor: Optional[str] = None,
    at: Optional[datetime] = None,
) -> Project:
    """
    Move the project to any stage in its snapshot, forward or backward.

    Reaching the last stage delivers the project; any other target
    reopens a delivered project. Every move is appended to
    ``stage_history``.
    """
    _ensure_active(project, "advance")
    index = project.stage_index(target_stage_id)
    if index is None:
        logger.warning(f"Project {project.id}: unknown target stage {target_stage_id!r}")
        raise InvalidStageReference(
            f"stage {target_stage_id!r} is not part of this project",
            field="target_stage_id",
            value=target_stage_id,
        )

    at = at or datetime.now(timezone.utc)
    updated = project.model_copy(deep=True)
    previous_stage_id = updated.current_stage_id
    previous_status = updated.status

    updated.current_stage_id = target_stage_id
    if index == len(updated.stage_list) - 1:
        updated.status = ProjectStatus.DELIVERED
        updated.completed_at = at
    else:
        updated.status = ProjectStatus.IN_PROGRESS
        updated.completed_at = None

    updated.record_transition(previous_stage_id, target_stage_id, actor=actor, at=at)

    logger.info(
        f"Project {project.id}: {previous_stage_id} → {target_stage_id} "
        f"({previous_status.value} → {updated.status.value})"
    )
    return updated


def append_time_entry(
    project: Project,
    entry: Union[TimeEntry, dict[str, Any]],
    today: Optional[date] = None,
) -> Project:
    """Validate and append a time entry; ``today`` enables the no-future-date check."""
    _ensure_active(project, "log time on")
    if not isinstance(entry, TimeEntry):
        entry = TimeEntry.model_validate(entry)

    max_hours = get_settings().max_hours_per_entry
    if not 0 < entry.hours <= max_hours:
        logger.warning(f"Project {project.id}: rejected time entry of {entry.hours}h")
        raise InvalidTimeEntry(
            f"hours must be greater than 0 and at most {max_hours:g}",
            field="hours",
            value=entry.hours,
        )
    if today is not None and entry.date > today:
        logger.warning(f"Project {project.id}: rejected future-dated entry {entry.date}")
        raise InvalidTimeEntry(
            f"entry date {entry.date.isoformat()} is in the future",
            field="date",
            value=entry.date.isoformat(),
        )
    if project.stage_index(entry.stage_id) is None:
        logger.warning(f"Project {project.id}: time entry for unknown stage {entry.stage_id!r}")
        raise InvalidStageReference(
            f"stage {entry.stage_id!r} is not part of this project",
            field="stage_id",
            value=entry.stage_id,
        )

    updated = project.model_copy(deep=True)
    updated.time_entries.append(entry.model_copy())
    updated.recompute_hours_used()
    if updated.status == ProjectStatus.AWAITING:
        updated.status = ProjectStatus.IN_PROGRESS

    logger.info(
        f"Project {project.id}: +{entry.hours}h on {entry.stage_id} "
        f"(total {updated.financials.hours_used}h)"
    )
    return updated


def remove_time_entry(project: Project, entry_id: str) -> Project:
    """Explicit correction: drop one entry by id."""
    if not any(e.id == entry_id for e in project.time_entries):
        logger.warning(f"Project {project.id}: no time entry {entry_id!r} to remove")
        raise InvalidTimeEntry(f"time entry {entry_id!r} not found", field="entry_id", value=entry_id)

    updated = project.model_copy(deep=True)
    updated.time_entries = [e for e in updated.time_entries if e.id != entry_id]
    updated.recompute_hours_used()

    logger.info(f"Project {project.id}: removed time entry {entry_id} "
                f"(total {updated.financials.hours_used}h)")
    return updated
