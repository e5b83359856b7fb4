from .tables import PricingTables, PricingTablesStore, get_default_tables
from .strategies import PRICING_STRATEGIES, PricingStrategy
from .calculator import PricingCalculator, compute_budget, parse_scope
from .hourly_rate import compute_office_hourly_rate

__all__ = [
    "PricingTables",
    "PricingTablesStore",
    "get_default_tables",
    "PRICING_STRATEGIES",
    "PricingStrategy",
    "PricingCalculator",
    "compute_budget",
    "parse_scope",
    "compute_office_hourly_rate",
]
