"""
Per-service pricing strategies.

Each service family prices its *base* (price + effort before survey,
management add-on and payment terms) in its own small class, so every
rule set can be audited and tested in isolation. The calculator picks a
strategy from ``PRICING_STRATEGIES`` by service type and applies the
common post-processing itself.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, Field

from arqexpress_engine.exceptions import (
    EngineError,
    InvalidScopeParameter,
    ScopeOutOfRange,
)
from arqexpress_engine.models.enums import ProjectKind, ServiceTier, ServiceType
from arqexpress_engine.models.schemas import EnvironmentBreakdown, ScopeParameters
from arqexpress_engine.pricing.tables import PriceHours, PricingTables

logger = logging.getLogger(__name__)


class BaseQuote(BaseModel):
    """Service-specific part of a Calculation."""
    base_price: float
    base_hours: float
    description: str = ""
    price_per_m2: Optional[float] = None
    avg_multiplier: Optional[float] = None
    multiplier_adjusted_price: Optional[float] = None
    environment_breakdown: list[EnvironmentBreakdown] = Field(default_factory=list)
    extra_environments_total: float = 0.0
    extra_environments_hours: float = 0.0
    always_in_person: bool = False


def reject(exc_cls: type[EngineError], message: str, field: str, value=None) -> EngineError:
    """Log a rejected scope and return the error for the caller to raise."""
    logger.warning(f"Rejected scope ({field}): {message}")
    return exc_cls(message, field=field, value=value)


# ── Base class ───────────────────────────────────────────

class PricingStrategy(ABC):
    """Abstract base for one service family's pricing rules."""

    service_type: ServiceType  # set in each subclass

    @abstractmethod
    def quote(self, scope: ScopeParameters, tables: PricingTables) -> BaseQuote:
        """Price the service-specific base of the scope."""
        ...


# ── Area-priced ──────────────────────────────────────────

class AreaPricingStrategy(PricingStrategy):
    """Architecture-express: price and effort per m², by area band."""

    service_type = ServiceType.ARCHITECTURE_EXPRESS

    def quote(self, scope: ScopeParameters, tables: PricingTables) -> BaseQuote:
        area = scope.area_m2
        if area is None or not (math.isfinite(area) and area > 0):
            raise reject(InvalidScopeParameter, "area_m2 must be a positive number", "area_m2", area)
        if scope.project_kind is None:
            raise reject(InvalidScopeParameter, "project_kind is required", "project_kind")

        band = tables.find_area_band(scope.project_kind, area)
        if band is None:
            raise reject(
                ScopeOutOfRange,
                f"{area} m² is outside every {scope.project_kind.value} pricing band",
                "area_m2",
                area,
            )

        kind_label = "Novo" if scope.project_kind == ProjectKind.NEW else "Reforma"
        return BaseQuote(
            base_price=round(band.price_per_m2 * area, 2),
            base_hours=round(band.hours_per_m2 * area, 2),
            price_per_m2=band.price_per_m2,
            description=f"Projetexpress {kind_label} - {area:g}m²",
        )


# ── Room-priced ──────────────────────────────────────────

class RoomPricingStrategy(PricingStrategy):
    """Shared room-count validation and tier lookup."""

    default_tier: ServiceTier
    always_in_person = False

    @abstractmethod
    def _tier_table(self, tables: PricingTables) -> dict[int, dict[ServiceTier, PriceHours]]:
        ...

    def _lookup_tier(self, scope: ScopeParameters, tables: PricingTables) -> PriceHours:
        count = len(scope.environments)
        if count == 0:
            raise reject(InvalidScopeParameter, "at least one environment is required", "environments", 0)
        if count > tables.included_environment_threshold:
            raise reject(
                ScopeOutOfRange,
                f"{count} environments exceed the included threshold of "
                f"{tables.included_environment_threshold}; use extra_environment_count",
                "environments",
                count,
            )

        by_count = self._tier_table(tables).get(count)
        if by_count is None:
            raise reject(ScopeOutOfRange, f"no price band for {count} environments", "environments", count)

        tier = scope.tier or self.default_tier
        row = by_count.get(tier)
        if row is None:
            raise reject(
                InvalidScopeParameter,
                f"tier {tier.value} is not offered for {self.service_type.value}",
                "tier",
                tier.value,
            )
        logger.debug(f"{self.service_type.value}: {count} env / {tier.value} → {row.price} ({row.hours}h)")
        return row

    def _extras(self, scope: ScopeParameters, tables: PricingTables) -> tuple[float, float]:
        count = scope.extra_environment_count
        if count < 0:
            raise reject(InvalidScopeParameter, "extra_environment_count must be ≥ 0",
                         "extra_environment_count", count)
        unit_price = scope.extra_environment_price
        if unit_price is None:
            unit_price = tables.extra_environment.price
        elif not (math.isfinite(unit_price) and unit_price >= 0):
            raise reject(InvalidScopeParameter, "extra_environment_price must be a finite number ≥ 0",
                         "extra_environment_price", unit_price)
        return round(count * unit_price, 2), round(count * tables.extra_environment.hours, 2)

    def quote(self, scope: ScopeParameters, tables: PricingTables) -> BaseQuote:
        row = self._lookup_tier(scope, tables)
        extras_total, extras_hours = self._extras(scope, tables)
        return BaseQuote(
            base_price=row.price,
            base_hours=row.hours,
            description=row.description,
            extra_environments_total=extras_total,
            extra_environments_hours=extras_hours,
            always_in_person=self.always_in_person,
        )


class DecorPricingStrategy(RoomPricingStrategy):
    """Decor: tier price scaled by the mean environment multiplier."""

    service_type = ServiceType.DECOR
    default_tier = ServiceTier.DECOR1

    def _tier_table(self, tables: PricingTables):
        return tables.decor_tiers

    def _breakdown(self, scope: ScopeParameters, tables: PricingTables) -> list[EnvironmentBreakdown]:
        rows = []
        for index, env in enumerate(scope.environments):
            type_mult = tables.environment_type_multipliers.get(env.type)
            size_mult = tables.size_multipliers.get(env.size)
            if type_mult is None or size_mult is None:
                raise reject(
                    InvalidScopeParameter,
                    f"no multiplier for {env.type.value}/{env.size.value}",
                    f"environments[{index}]",
                )
            rows.append(EnvironmentBreakdown(
                index=index,
                type=env.type,
                size=env.size,
                type_multiplier=type_mult,
                size_multiplier=size_mult,
                combined_multiplier=type_mult * size_mult,
            ))
        return rows

    def quote(self, scope: ScopeParameters, tables: PricingTables) -> BaseQuote:
        base = super().quote(scope, tables)
        breakdown = self._breakdown(scope, tables)
        # fsum is exactly rounded, so the mean does not depend on input order
        avg = math.fsum(r.combined_multiplier for r in breakdown) / len(breakdown)
        return base.model_copy(update={
            "avg_multiplier": avg,
            "multiplier_adjusted_price": round(base.base_price * avg, 2),
            "environment_breakdown": breakdown,
        })


class ProductionPricingStrategy(RoomPricingStrategy):
    """Production: flat tier price, no multipliers, always on site."""

    service_type = ServiceType.PRODUCTION
    default_tier = ServiceTier.PROD1
    always_in_person = True

    def _tier_table(self, tables: PricingTables):
        return tables.production_tiers


# ── Registry ─────────────────────────────────────────────

PRICING_STRATEGIES: dict[ServiceType, PricingStrategy] = {
    s.service_type: s
    for s in (AreaPricingStrategy(), DecorPricingStrategy(), ProductionPricingStrategy())
}
