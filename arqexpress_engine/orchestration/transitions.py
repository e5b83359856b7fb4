"""
Budget lifecycle transitions.

A budget is created in ``draft`` with a fresh Calculation, re-priced
whenever its scope changes while still a draft, then moves
draft → sent → approved | rejected. Approval is what lets a Project be
seeded from it (see project_factory).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from arqexpress_engine.exceptions import InvalidBudgetTransition
from arqexpress_engine.models.budget import Budget
from arqexpress_engine.models.enums import BudgetStatus
from arqexpress_engine.pricing.calculator import PricingCalculator, ScopeInput, parse_scope
from arqexpress_engine.pricing.tables import PricingTables

logger = logging.getLogger(__name__)

BUDGET_TRANSITIONS: dict[BudgetStatus, set[BudgetStatus]] = {
    BudgetStatus.DRAFT: {BudgetStatus.SENT},
    BudgetStatus.SENT: {BudgetStatus.APPROVED, BudgetStatus.REJECTED},
    BudgetStatus.APPROVED: set(),
    BudgetStatus.REJECTED: set(),
}


def can_transition(current: BudgetStatus, target: BudgetStatus) -> bool:
    return target in BUDGET_TRANSITIONS.get(current, set())


# ── Creation / re-pricing ────────────────────────────────

def create_budget(
    scope_input: ScopeInput,
    client_snapshot: Optional[dict[str, Any]] = None,
    tables: Optional[PricingTables] = None,
) -> Budget:
    scope = parse_scope(scope_input)
    calculation = PricingCalculator(tables).compute_budget(scope)
    budget = Budget(
        service_type=scope.service_type,
        scope_parameters=scope,
        calculation=calculation,
        client_snapshot=client_snapshot or {},
    )
    logger.info(
        f"Budget {budget.id} created ({scope.service_type.value}): "
        f"{calculation.price_with_discount:,.2f}"
    )
    return budget


def update_budget_scope(
    budget: Budget,
    scope_input: ScopeInput,
    tables: Optional[PricingTables] = None,
) -> Budget:
    """
    Replace a draft budget's scope. The Calculation is recomputed only
    when the scope fingerprint changed.
    """
    if budget.status != BudgetStatus.DRAFT:
        logger.warning(f"Budget {budget.id}: scope edit rejected in status {budget.status.value}")
        raise InvalidBudgetTransition(
            f"scope can only change while the budget is a draft (status: {budget.status.value})",
            field="status",
            value=budget.status.value,
        )

    scope = parse_scope(scope_input)
    calculation = PricingCalculator(tables).compute_budget(scope)
    if calculation.scope_hash == budget.calculation.scope_hash:
        logger.debug(f"Budget {budget.id}: scope unchanged, keeping calculation")
        return budget.model_copy(deep=True)

    updated = budget.model_copy(
        update={
            "service_type": scope.service_type,
            "scope_parameters": scope,
            "calculation": calculation,
            "updated_at": datetime.now(timezone.utc),
        },
        deep=True,
    )
    logger.info(
        f"Budget {budget.id} re-priced: {budget.calculation.price_with_discount:,.2f} → "
        f"{calculation.price_with_discount:,.2f}"
    )
    return updated


# ── Status changes ───────────────────────────────────────

def transition_budget(budget: Budget, target: BudgetStatus) -> Budget:
    """
    draft → sent.
    sent  → approved | rejected.
    Anything else is rejected.
    """
    target = BudgetStatus(target)
    if not can_transition(budget.status, target):
        logger.warning(f"Budget {budget.id}: {budget.status.value} → {target.value} not allowed")
        raise InvalidBudgetTransition(
            f"cannot move a {budget.status.value} budget to {target.value}",
            field="status",
            value=target.value,
        )

    updated = budget.model_copy(
        update={"status": target, "updated_at": datetime.now(timezone.utc)},
        deep=True,
    )
    logger.info(f"Budget {budget.id}: {budget.status.value} → {target.value}")
    return updated
