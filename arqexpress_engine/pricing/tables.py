"""
Pricing Tables — per-office price bands, multipliers and constants.

Tables are pure data. They are loaded once per process (from the JSON
file named by ``Settings.pricing_tables_path`` or from the built-in
defaults), frozen, and passed explicitly into the calculator so several
office configurations can live side by side.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from arqexpress_engine.config import get_settings
from arqexpress_engine.models.enums import (
    EnvironmentSize,
    EnvironmentType,
    Positioning,
    ProfitabilityFlag,
    ProjectKind,
    ServiceTier,
)

logger = logging.getLogger(__name__)

_FROZEN = ConfigDict(frozen=True, allow_inf_nan=False)


# ── Table rows ───────────────────────────────────────────

class PriceHours(BaseModel):
    """A price paired with the effort it buys."""
    model_config = _FROZEN

    price: float = Field(ge=0)
    hours: float = Field(ge=0)
    description: str = ""


class AreaBand(BaseModel):
    """Price-per-m² band, inclusive at both ends."""
    model_config = _FROZEN

    min_m2: float = Field(ge=0)
    max_m2: float = Field(ge=0)
    price_per_m2: float = Field(ge=0)
    hours_per_m2: float = Field(ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "AreaBand":
        if self.min_m2 > self.max_m2:
            raise ValueError(f"band min_m2 {self.min_m2} is above max_m2 {self.max_m2}")
        return self

    def contains(self, area_m2: float) -> bool:
        return self.min_m2 <= area_m2 <= self.max_m2


class InstallmentTier(BaseModel):
    model_config = _FROZEN

    max_price: float = Field(ge=0)
    installments: int = Field(ge=1)


class ManagementFeeConfig(BaseModel):
    model_config = _FROZEN

    default_fee: float = Field(1500.0, ge=0)
    minimum_fee: float = Field(1000.0, ge=0)
    hours: float = Field(8.0, ge=0)

    @model_validator(mode="after")
    def _check_default(self) -> "ManagementFeeConfig":
        if self.default_fee < self.minimum_fee:
            raise ValueError(f"default_fee {self.default_fee} is below minimum_fee {self.minimum_fee}")
        return self


def _room_tiers(*rows: tuple[float, float]) -> dict[ServiceTier, PriceHours]:
    decor1, decor2, decor3 = rows
    return {
        ServiceTier.DECOR1: PriceHours(price=decor1[0], hours=decor1[1],
                                       description="Decoração Simples"),
        ServiceTier.DECOR2: PriceHours(price=decor2[0], hours=decor2[1],
                                       description="Decoração + Marcenaria/Iluminação"),
        ServiceTier.DECOR3: PriceHours(price=decor3[0], hours=decor3[1],
                                       description="Decoração + Civil + Marcenaria + Iluminação"),
    }


def _production_tiers(decor: dict[ServiceTier, PriceHours]) -> dict[ServiceTier, PriceHours]:
    simple, full = decor[ServiceTier.DECOR1], decor[ServiceTier.DECOR3]
    return {
        ServiceTier.PROD1: PriceHours(price=simple.price, hours=simple.hours,
                                      description="Produção Simples"),
        ServiceTier.PROD3: PriceHours(price=full.price, hours=full.hours,
                                      description="Produção Completa"),
    }


_DECOR_TIERS = {
    1: _room_tiers((1600, 8), (2000, 10), (2400, 12)),
    2: _room_tiers((2900, 14.5), (3450, 17.25), (4000, 20)),
    3: _room_tiers((4000, 20), (4800, 24), (5600, 28)),
}

_AREA_BANDS = {
    ProjectKind.NEW: [
        AreaBand(min_m2=20, max_m2=50, price_per_m2=150, hours_per_m2=1.5),
        AreaBand(min_m2=50, max_m2=100, price_per_m2=145, hours_per_m2=1.45),
        AreaBand(min_m2=100, max_m2=150, price_per_m2=135, hours_per_m2=1.35),
        AreaBand(min_m2=150, max_m2=200, price_per_m2=125, hours_per_m2=1.25),
        AreaBand(min_m2=200, max_m2=300, price_per_m2=120, hours_per_m2=1.2),
    ],
    ProjectKind.RENOVATION: [
        AreaBand(min_m2=20, max_m2=50, price_per_m2=180, hours_per_m2=1.8),
        AreaBand(min_m2=50, max_m2=100, price_per_m2=160, hours_per_m2=1.6),
        AreaBand(min_m2=100, max_m2=150, price_per_m2=150, hours_per_m2=1.5),
        AreaBand(min_m2=150, max_m2=200, price_per_m2=140, hours_per_m2=1.4),
        AreaBand(min_m2=200, max_m2=300, price_per_m2=130, hours_per_m2=1.3),
    ],
}


# ── Tables model ─────────────────────────────────────────

class PricingTables(BaseModel):
    """All pricing configuration for one office."""

    model_config = _FROZEN

    hourly_rate: float = Field(200.0, gt=0)
    attention_ratio: float = Field(0.9, gt=0, le=1)  # yield ≥ ratio × rate → "atenção"

    survey_fee: PriceHours = PriceHours(price=1000, hours=4)
    extra_environment: PriceHours = PriceHours(price=1200, hours=8)
    included_environment_threshold: int = Field(3, ge=1)
    management_fee: ManagementFeeConfig = ManagementFeeConfig()

    cash_discount_tiers: list[float] = [5.0, 10.0, 15.0]
    default_cash_discount: float = Field(10.0, ge=0, le=100)
    installment_tiers: list[InstallmentTier] = [InstallmentTier(max_price=5000, installments=6)]
    default_max_installments: int = Field(10, ge=1)

    environment_type_multipliers: dict[EnvironmentType, float] = {
        EnvironmentType.STANDARD: 1.0,
        EnvironmentType.MEDIUM: 1.25,
        EnvironmentType.HIGH: 1.4,
    }
    size_multipliers: dict[EnvironmentSize, float] = {
        EnvironmentSize.S: 1.0,
        EnvironmentSize.M: 1.1,
        EnvironmentSize.L: 1.15,
    }

    decor_tiers: dict[int, dict[ServiceTier, PriceHours]] = _DECOR_TIERS
    production_tiers: dict[int, dict[ServiceTier, PriceHours]] = {
        n: _production_tiers(row) for n, row in _DECOR_TIERS.items()
    }
    area_bands: dict[ProjectKind, list[AreaBand]] = _AREA_BANDS

    # Office hourly-rate derivation
    hours_per_month: float = Field(160.0, gt=0)
    min_margin_percent: float = Field(10.0, ge=0)
    max_margin_percent: float = Field(100.0, ge=0)
    positioning_multipliers: dict[Positioning, float] = {
        Positioning.INICIANTE: 1.0,
        Positioning.ESTRUTURADO: 1.5,
        Positioning.BEM_POSICIONADO: 2.0,
        Positioning.PREMIUM: 2.5,
        Positioning.ULTRA_PREMIUM: 3.0,
    }

    @model_validator(mode="after")
    def _check_ranges(self) -> "PricingTables":
        if any(not 0 <= p <= 100 for p in self.cash_discount_tiers):
            raise ValueError("cash discount tiers must be within 0..100%")
        if self.min_margin_percent > self.max_margin_percent:
            raise ValueError("min_margin_percent is above max_margin_percent")
        multipliers = [
            *self.environment_type_multipliers.values(),
            *self.size_multipliers.values(),
            *self.positioning_multipliers.values(),
        ]
        if any(m <= 0 for m in multipliers):
            raise ValueError("multipliers must be greater than 0")
        return self

    # ── Lookups ──────────────────────────────────────────

    def find_area_band(self, kind: ProjectKind, area_m2: float) -> Optional[AreaBand]:
        """First band (ascending) containing the area, or None."""
        bands = sorted(self.area_bands.get(kind, []), key=lambda b: b.min_m2)
        for band in bands:
            if band.contains(area_m2):
                logger.debug(
                    f"Area {area_m2} m² ({kind.value}) → band "
                    f"[{band.min_m2}, {band.max_m2}] at {band.price_per_m2}/m²"
                )
                return band
        return None

    def max_installments_for(self, price: float) -> int:
        for tier in sorted(self.installment_tiers, key=lambda t: t.max_price):
            if price <= tier.max_price:
                return tier.installments
        return self.default_max_installments

    def rate_flag(self, hourly_value: float, target_rate: Optional[float] = None) -> ProfitabilityFlag:
        """Classify an hourly figure against the target rate (the tables' own by default)."""
        target = self.hourly_rate if target_rate is None else target_rate
        if hourly_value >= target:
            return ProfitabilityFlag.OTIMO
        if hourly_value >= self.attention_ratio * target:
            return ProfitabilityFlag.ATENCAO
        return ProfitabilityFlag.REAJUSTAR


# ── Store class ──────────────────────────────────────────

class PricingTablesStore:
    """
    Loads pricing tables from a JSON file, or the built-in defaults when
    no file is configured. Cached after first load for the lifetime of
    the store.
    """

    def __init__(self, path: Optional[str] = None):
        self.settings = get_settings()
        self.path = path if path is not None else self.settings.pricing_tables_path
        self._cache: Optional[PricingTables] = None

    def load(self) -> PricingTables:
        if self._cache is not None:
            return self._cache

        if self.path:
            raw = Path(self.path).read_text(encoding="utf-8")
            tables = PricingTables.model_validate_json(raw)
            logger.info(f"Loaded pricing tables from {self.path}")
        else:
            tables = PricingTables()
            logger.debug("Using built-in pricing tables")

        self._cache = tables
        return tables

    def reload(self) -> PricingTables:
        """Drop the cached tables and load again."""
        self._cache = None
        return self.load()


@lru_cache()
def get_default_tables() -> PricingTables:
    """Return the process-wide pricing tables (loaded once)."""
    return PricingTablesStore().load()
