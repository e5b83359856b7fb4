"""
Reusable data schemas exchanged with the engine's collaborators.
Every schema is plain, JSON-serialisable data: the HTTP and storage
layers send these in and receive these back.
"""

from __future__ import annotations

import uuid
import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import (
    EnvironmentSize,
    EnvironmentType,
    Modality,
    PaymentMode,
    Positioning,
    ProfitabilityFlag,
    ProjectKind,
    ServiceTier,
    ServiceType,
)


# ── Scope parameters (calculator input) ──────────────────


class EnvironmentConfig(BaseModel):
    """One room being priced."""
    type: EnvironmentType = EnvironmentType.STANDARD
    size: EnvironmentSize = EnvironmentSize.S


class PaymentTerms(BaseModel):
    mode: PaymentMode = PaymentMode.INSTALLMENTS
    discount_percent: Optional[float] = None  # cash only; None → office default


class ManagementAddon(BaseModel):
    monthly_fee: Optional[float] = None  # None → office default fee


class ScopeParameters(BaseModel):
    """What is being priced. Fields not used by a service are ignored."""
    service_type: ServiceType
    modality: Modality = Modality.ONLINE

    # Area-priced services
    area_m2: Optional[float] = None
    project_kind: Optional[ProjectKind] = None

    # Room-priced services
    environments: list[EnvironmentConfig] = Field(default_factory=list)
    tier: Optional[ServiceTier] = None
    extra_environment_count: int = 0
    extra_environment_price: Optional[float] = None

    survey_fee: Optional[float] = None  # in-person override
    payment_terms: PaymentTerms = Field(default_factory=PaymentTerms)
    management_addon: Optional[ManagementAddon] = None


# ── Calculation (calculator output) ──────────────────────


class EnvironmentBreakdown(BaseModel):
    index: int
    type: EnvironmentType
    size: EnvironmentSize
    type_multiplier: float
    size_multiplier: float
    combined_multiplier: float


class Calculation(BaseModel):
    """
    Immutable pricing result for one ScopeParameters input.

    Two hour figures are kept apart on purpose:
      - estimated_hours: effort estimate used for internal sizing
      - max_profitable_hours: price_with_discount / hourly rate, the
        ceiling of hours the office can log and still hit its rate
    """

    model_config = ConfigDict(frozen=True)

    service_type: ServiceType
    description: str = ""

    # Effort
    base_hours: float = 0.0
    estimated_hours: float = 0.0

    # Price build-up
    base_price: float = 0.0
    price_per_m2: Optional[float] = None
    avg_multiplier: Optional[float] = None
    multiplier_adjusted_price: Optional[float] = None
    environment_breakdown: list[EnvironmentBreakdown] = Field(default_factory=list)
    extra_environments_total: float = 0.0
    management_fee_total: float = 0.0
    extras_total: float = 0.0  # extra environments + management add-on
    extras_hours: float = 0.0
    management_fee_hours: float = 0.0
    survey_fee_total: float = 0.0
    survey_fee_hours: float = 0.0
    final_price: float = 0.0

    # Payment
    payment_mode: PaymentMode = PaymentMode.INSTALLMENTS
    discount_percent: float = 0.0
    discount: float = 0.0
    price_with_discount: float = 0.0
    max_installments: Optional[int] = None

    # Profitability at estimate time
    hourly_rate_used: float = 0.0
    hour_rate: float = 0.0
    efficiency: ProfitabilityFlag = ProfitabilityFlag.REAJUSTAR
    max_profitable_hours: float = 0.0
    is_over_budget: bool = False

    scope_hash: str = ""


# ── Workflow ─────────────────────────────────────────────


class StageDefinition(BaseModel):
    """One delivery stage. Frozen so a project's snapshot cannot drift."""

    model_config = ConfigDict(frozen=True)

    id: str
    order_index: int
    label: str
    category: str = "gray"  # colour family used by the kanban board
    description: str = ""
    duration_days: Optional[int] = None  # business-day hint for schedules


class TimeEntry(BaseModel):
    """One logged block of work. Frozen: corrections go through removal."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    stage_id: str
    hours: float
    description: str = ""
    date: dt.date
    logged_by: Optional[str] = None


class StageTransition(BaseModel):
    from_stage_id: Optional[str] = None
    to_stage_id: str
    actor: Optional[str] = None
    at: dt.datetime


class ScheduledStage(BaseModel):
    stage: StageDefinition
    start_date: dt.date
    end_date: dt.date
    duration_days: int
    is_meeting: bool = False


# ── Financials ───────────────────────────────────────────


class Financials(BaseModel):
    value: float = 0.0                 # approved price_with_discount
    estimated_hours: float = 0.0
    max_profitable_hours: float = 0.0
    hours_used: float = 0.0            # derived from time entries, never trusted on input


class FinancialDerivation(BaseModel):
    """Read-side profitability view; recomputed on every read, never persisted."""
    hourly_yield: float
    profitability_flag: ProfitabilityFlag
    hourly_rate: float
    hours_used: float
    estimated_hours: float
    hours_variance: float
    rate_variance: float
    rate_variance_percent: float
    remaining_profitable_hours: float


class HourlyRateBreakdown(BaseModel):
    team_cost_per_hour: float
    operational_cost_per_hour: float


class HourlyRateResult(BaseModel):
    base_cost: float
    with_margin: float
    sale_value: float
    positioning: Positioning
    breakdown: HourlyRateBreakdown
