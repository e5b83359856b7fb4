"""
Pricing Calculator — ScopeParameters → Calculation.

Pure and deterministic: the only inputs are the scope and the injected
PricingTables; no clock, no I/O. The service-specific base comes from
the strategy registered for the scope's service type. Survey fee,
management add-on, payment terms and profitability figures are common
post-processing applied here.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Optional, Union

from arqexpress_engine.exceptions import InvalidScopeParameter, UnsupportedServiceType
from arqexpress_engine.models.enums import Modality, PaymentMode, ServiceType
from arqexpress_engine.models.schemas import Calculation, ScopeParameters
from arqexpress_engine.pricing.strategies import PRICING_STRATEGIES, PricingStrategy, reject
from arqexpress_engine.pricing.tables import PricingTables, get_default_tables
from arqexpress_engine.utils.hashing import scope_fingerprint

logger = logging.getLogger(__name__)

ScopeInput = Union[ScopeParameters, dict[str, Any]]


def parse_scope(data: ScopeInput) -> ScopeParameters:
    """
    Accept a ScopeParameters model or its plain-dict form.

    An unknown service type is reported as UnsupportedServiceType; any
    other malformed field surfaces as pydantic's ValidationError.
    """
    if isinstance(data, ScopeParameters):
        return data
    service = data.get("service_type")
    if service not in {s.value for s in ServiceType}:
        raise reject(UnsupportedServiceType, f"unknown service type: {service!r}", "service_type", service)
    return ScopeParameters.model_validate(data)


class PricingCalculator:
    """Prices scopes against one office's tables."""

    def __init__(
        self,
        tables: Optional[PricingTables] = None,
        strategies: Optional[dict[ServiceType, PricingStrategy]] = None,
    ):
        self.tables = tables if tables is not None else get_default_tables()
        self.strategies = strategies if strategies is not None else PRICING_STRATEGIES

    def compute_budget(self, scope_input: ScopeInput) -> Calculation:
        scope = parse_scope(scope_input)
        tables = self.tables

        strategy = self.strategies.get(scope.service_type)
        if strategy is None:
            raise reject(
                UnsupportedServiceType,
                f"no pricing strategy for {scope.service_type.value}",
                "service_type",
                scope.service_type.value,
            )

        quote = strategy.quote(scope, tables)

        # ── Survey fee ───────────────────────────────────
        survey_override = scope.survey_fee
        if survey_override is not None and not (math.isfinite(survey_override) and survey_override >= 0):
            raise reject(InvalidScopeParameter, "survey_fee must be a finite number ≥ 0",
                         "survey_fee", survey_override)
        if quote.always_in_person or scope.modality == Modality.IN_PERSON:
            survey_total = scope.survey_fee if scope.survey_fee is not None else tables.survey_fee.price
            survey_hours = tables.survey_fee.hours
        else:
            survey_total, survey_hours = 0.0, 0.0

        # ── Management add-on ────────────────────────────
        management_total, management_hours = 0.0, 0.0
        if scope.management_addon is not None:
            fee = scope.management_addon.monthly_fee
            if fee is None:
                fee = tables.management_fee.default_fee
            if not (math.isfinite(fee) and fee >= tables.management_fee.minimum_fee):
                raise reject(
                    InvalidScopeParameter,
                    f"management fee {fee} must be a finite amount of at least "
                    f"{tables.management_fee.minimum_fee}",
                    "management_addon.monthly_fee",
                    fee,
                )
            management_total, management_hours = fee, tables.management_fee.hours

        extras_total = round(quote.extra_environments_total + management_total, 2)
        priced_base = (
            quote.multiplier_adjusted_price
            if quote.multiplier_adjusted_price is not None
            else quote.base_price
        )
        final_price = round(priced_base + extras_total + survey_total, 2)

        # ── Payment terms ────────────────────────────────
        terms = scope.payment_terms
        if terms.mode == PaymentMode.CASH:
            percent = terms.discount_percent
            if percent is None:
                percent = tables.default_cash_discount
            if percent not in tables.cash_discount_tiers:
                raise reject(
                    InvalidScopeParameter,
                    f"cash discount must be one of {tables.cash_discount_tiers}, got {percent}",
                    "payment_terms.discount_percent",
                    percent,
                )
            discount = round(final_price * percent / 100, 2)
            max_installments = None
        else:
            if terms.discount_percent:
                raise reject(
                    InvalidScopeParameter,
                    "installment payments carry no discount",
                    "payment_terms.discount_percent",
                    terms.discount_percent,
                )
            percent, discount = 0.0, 0.0
            max_installments = tables.max_installments_for(final_price)
        price_with_discount = round(final_price - discount, 2)

        # ── Effort vs. profitability ceiling ─────────────
        estimated_hours = round(
            quote.base_hours + quote.extra_environments_hours + management_hours + survey_hours, 2
        )
        max_profitable_hours = round(price_with_discount / tables.hourly_rate, 2)
        hour_rate = round(price_with_discount / estimated_hours, 2) if estimated_hours > 0 else 0.0

        calculation = Calculation(
            service_type=scope.service_type,
            description=quote.description,
            base_hours=quote.base_hours,
            estimated_hours=estimated_hours,
            base_price=quote.base_price,
            price_per_m2=quote.price_per_m2,
            avg_multiplier=quote.avg_multiplier,
            multiplier_adjusted_price=quote.multiplier_adjusted_price,
            environment_breakdown=quote.environment_breakdown,
            extra_environments_total=quote.extra_environments_total,
            management_fee_total=management_total,
            extras_total=extras_total,
            extras_hours=quote.extra_environments_hours,
            management_fee_hours=management_hours,
            survey_fee_total=survey_total,
            survey_fee_hours=survey_hours,
            final_price=final_price,
            payment_mode=terms.mode,
            discount_percent=percent,
            discount=discount,
            price_with_discount=price_with_discount,
            max_installments=max_installments,
            hourly_rate_used=tables.hourly_rate,
            hour_rate=hour_rate,
            efficiency=tables.rate_flag(hour_rate),
            max_profitable_hours=max_profitable_hours,
            is_over_budget=estimated_hours > max_profitable_hours,
            scope_hash=scope_fingerprint(scope),
        )
        logger.debug(
            f"Priced {scope.service_type.value}: final={final_price:.2f} "
            f"with_discount={price_with_discount:.2f} hours={estimated_hours} "
            f"max_profitable_hours={max_profitable_hours}"
        )
        return calculation


def compute_budget(scope: ScopeInput, tables: Optional[PricingTables] = None) -> Calculation:
    """Price a scope with the given tables (process defaults when omitted)."""
    return PricingCalculator(tables).compute_budget(scope)
