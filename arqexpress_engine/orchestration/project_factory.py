"""
Seed a Project from an approved Budget.
"""

from __future__ import annotations

import logging
from typing import Optional

from arqexpress_engine.exceptions import InvalidBudgetTransition
from arqexpress_engine.models.budget import Budget
from arqexpress_engine.models.enums import BudgetStatus, ProjectStatus
from arqexpress_engine.models.project import Project
from arqexpress_engine.models.schemas import Financials
from arqexpress_engine.workflow.catalog import StageCatalog, get_default_catalog

logger = logging.getLogger(__name__)


def create_project_from_budget(budget: Budget, catalog: Optional[StageCatalog] = None) -> Project:
    """
    Snapshot the stage list for the budget's service and modality, start
    at the first stage, and copy the approved price and hour figures.
    """
    if budget.status != BudgetStatus.APPROVED:
        logger.warning(f"Budget {budget.id}: project creation rejected in status {budget.status.value}")
        raise InvalidBudgetTransition(
            f"only approved budgets can start a project (status: {budget.status.value})",
            field="status",
            value=budget.status.value,
        )

    catalog = catalog if catalog is not None else get_default_catalog()
    scope = budget.scope_parameters
    stage_list = catalog.snapshot(budget.service_type, scope.modality)
    calculation = budget.calculation

    project = Project(
        budget_id=budget.id,
        service_type=budget.service_type,
        modality=scope.modality,
        client_name=str(budget.client_snapshot.get("name", "")),
        stage_list=stage_list,
        current_stage_id=stage_list[0].id,
        status=ProjectStatus.AWAITING,
        financials=Financials(
            value=calculation.price_with_discount,
            estimated_hours=calculation.estimated_hours,
            max_profitable_hours=calculation.max_profitable_hours,
        ),
    )
    logger.info(
        f"Project {project.id} created from budget {budget.id}: "
        f"{len(stage_list)} stages, value {project.financials.value:,.2f}"
    )
    return project
