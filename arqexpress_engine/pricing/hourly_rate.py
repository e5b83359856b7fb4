"""
Office hourly-rate derivation.

Turns monthly team salaries and operational costs into the hourly sale
value an office should charge, given its target margin and market
positioning. The result is what an office would put in
``PricingTables.hourly_rate``.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from arqexpress_engine.exceptions import InvalidScopeParameter
from arqexpress_engine.models.enums import Positioning
from arqexpress_engine.models.schemas import HourlyRateBreakdown, HourlyRateResult
from arqexpress_engine.pricing.strategies import reject
from arqexpress_engine.pricing.tables import PricingTables, get_default_tables

logger = logging.getLogger(__name__)


def compute_office_hourly_rate(
    team_salaries: float,
    operational_costs: float,
    margin_percent: float,
    positioning: Positioning = Positioning.BEM_POSICIONADO,
    tables: Optional[PricingTables] = None,
) -> HourlyRateResult:
    tables = tables if tables is not None else get_default_tables()

    if not (math.isfinite(team_salaries) and team_salaries >= 0):
        raise reject(InvalidScopeParameter, "team_salaries must be a finite number ≥ 0",
                     "team_salaries", team_salaries)
    if not (math.isfinite(operational_costs) and operational_costs >= 0):
        raise reject(InvalidScopeParameter, "operational_costs must be a finite number ≥ 0",
                     "operational_costs", operational_costs)
    if not tables.min_margin_percent <= margin_percent <= tables.max_margin_percent:
        raise reject(
            InvalidScopeParameter,
            f"margin must be within {tables.min_margin_percent:g}..{tables.max_margin_percent:g}%",
            "margin_percent",
            margin_percent,
        )

    multiplier = tables.positioning_multipliers.get(positioning)
    if multiplier is None:
        raise reject(InvalidScopeParameter, f"no multiplier for {positioning.value}",
                     "positioning", positioning.value)

    hours = tables.hours_per_month
    base_cost = (team_salaries + operational_costs) / hours
    with_margin = base_cost * (1 + margin_percent / 100)
    sale_value = with_margin * multiplier

    logger.debug(
        f"Hourly rate: cost={base_cost:.2f} margin={with_margin:.2f} "
        f"sale={sale_value:.2f} ({positioning.value})"
    )
    return HourlyRateResult(
        base_cost=round(base_cost, 2),
        with_margin=round(with_margin, 2),
        sale_value=round(sale_value, 2),
        positioning=positioning,
        breakdown=HourlyRateBreakdown(
            team_cost_per_hour=round(team_salaries / hours, 2),
            operational_cost_per_hour=round(operational_costs / hours, 2),
        ),
    )
