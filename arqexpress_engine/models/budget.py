from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from .enums import BudgetStatus, ServiceType
from .schemas import Calculation, ScopeParameters


class Budget(BaseModel):
    """Priced proposal. Owns its Calculation; recomputed while in draft."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    service_type: ServiceType
    scope_parameters: ScopeParameters
    calculation: Calculation
    status: BudgetStatus = BudgetStatus.DRAFT
    client_snapshot: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
