"""
Project record — the persisted state the workflow engine operates on.

Design rules:
  1. The stage list is a snapshot taken at creation; catalog edits never
     reach an in-flight project.
  2. Time entries are the only source of truth for hours; the
     ``financials.hours_used`` figure is recomputed, never trusted.
  3. Every stage move is recorded in ``stage_history``.
"""

from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from .enums import Modality, ProjectStatus, ServiceType
from .schemas import Financials, StageDefinition, StageTransition, TimeEntry


class Project(BaseModel):
    """A delivery project seeded from an approved budget."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    budget_id: Optional[str] = None
    service_type: ServiceType
    modality: Modality = Modality.ONLINE
    client_name: str = ""

    # ── Workflow state ───────────────────────────────────
    stage_list: list[StageDefinition]
    current_stage_id: str
    status: ProjectStatus = ProjectStatus.AWAITING
    time_entries: list[TimeEntry] = Field(default_factory=list)
    stage_history: list[StageTransition] = Field(default_factory=list)

    # ── Money ────────────────────────────────────────────
    financials: Financials = Field(default_factory=Financials)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _derive_hours_used(self) -> "Project":
        self.recompute_hours_used()
        return self

    @model_validator(mode="after")
    def _check_snapshot_references(self) -> "Project":
        # A missing current stage is reported by the engine as StageNotFound on read.
        known = set(self.stage_ids())
        stray = sorted({e.stage_id for e in self.time_entries} - known)
        if stray:
            raise ValueError(f"time entries reference stages outside the snapshot: {stray}")
        if self.status == ProjectStatus.DELIVERED and (
            not self.stage_list or self.current_stage_id != self.stage_list[-1].id
        ):
            raise ValueError("a delivered project must sit on its last stage")
        return self

    def recompute_hours_used(self) -> None:
        self.financials.hours_used = math.fsum(e.hours for e in self.time_entries)

    def stage_ids(self) -> list[str]:
        return [s.id for s in self.stage_list]

    def stage_index(self, stage_id: str) -> Optional[int]:
        for i, stage in enumerate(self.stage_list):
            if stage.id == stage_id:
                return i
        return None

    def record_transition(
        self,
        from_stage_id: Optional[str],
        to_stage_id: str,
        actor: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> None:
        self.stage_history.append(
            StageTransition(
                from_stage_id=from_stage_id,
                to_stage_id=to_stage_id,
                actor=actor,
                at=at or datetime.now(timezone.utc),
            )
        )
