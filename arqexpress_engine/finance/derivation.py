"""
Financial Derivation — realized hourly yield and variance for a Project.

Recomputed on every read from the project's time entries; the result is
never persisted.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from arqexpress_engine.config import get_settings
from arqexpress_engine.models.project import Project
from arqexpress_engine.models.schemas import Calculation, FinancialDerivation
from arqexpress_engine.pricing.tables import PricingTables, get_default_tables

logger = logging.getLogger(__name__)


def derive(
    project: Project,
    calculation: Optional[Calculation] = None,
    tables: Optional[PricingTables] = None,
) -> FinancialDerivation:
    """
    Compare what the project earns per logged hour against the target rate.

    The target rate is the one the budget was priced with when its
    Calculation is given, else the tables' current rate.
    """
    tables = tables if tables is not None else get_default_tables()
    epsilon = get_settings().hours_epsilon

    hours_used = math.fsum(e.hours for e in project.time_entries)
    financials = project.financials
    value = financials.value
    hourly_rate = calculation.hourly_rate_used if calculation is not None else tables.hourly_rate
    estimated_hours = financials.estimated_hours
    if not estimated_hours and calculation is not None:
        estimated_hours = calculation.estimated_hours
    max_profitable_hours = financials.max_profitable_hours
    if not max_profitable_hours and calculation is not None:
        max_profitable_hours = calculation.max_profitable_hours

    hourly_yield = value / max(hours_used, epsilon)
    rate_variance = hourly_yield - hourly_rate
    flag = tables.rate_flag(hourly_yield, target_rate=hourly_rate)

    logger.debug(
        f"Project {project.id}: yield={hourly_yield:.2f}/h over {hours_used}h "
        f"vs target {hourly_rate:.2f}/h → {flag.value}"
    )
    return FinancialDerivation(
        hourly_yield=round(hourly_yield, 2),
        profitability_flag=flag,
        hourly_rate=hourly_rate,
        hours_used=round(hours_used, 2),
        estimated_hours=estimated_hours,
        hours_variance=round(hours_used - estimated_hours, 2),
        rate_variance=round(rate_variance, 2),
        rate_variance_percent=round(100 * rate_variance / hourly_rate, 2) if hourly_rate else 0.0,
        remaining_profitable_hours=round(max_profitable_hours - hours_used, 2),
    )
