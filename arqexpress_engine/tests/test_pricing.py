"""
Tests: Pricing Calculator, strategies and office hourly rate.

Run with:
    pytest arqexpress_engine/tests/test_pricing.py -v
"""

import pytest
from pydantic import ValidationError

from arqexpress_engine.exceptions import (
    InvalidScopeParameter,
    ScopeOutOfRange,
    UnsupportedServiceType,
)
from arqexpress_engine.models.enums import (
    EnvironmentSize,
    EnvironmentType,
    PaymentMode,
    Positioning,
    ProfitabilityFlag,
    ProjectKind,
    ServiceTier,
    ServiceType,
)
from arqexpress_engine.models.schemas import ScopeParameters
from arqexpress_engine.pricing.calculator import PricingCalculator, compute_budget
from arqexpress_engine.pricing.hourly_rate import compute_office_hourly_rate
from arqexpress_engine.pricing.strategies import RoomPricingStrategy
from arqexpress_engine.pricing.tables import AreaBand, PriceHours, PricingTables

NON_FINITE = [float("nan"), float("inf"), float("-inf")]


# ── Helpers ──────────────────────────────────────────────

def _decor(environments=None, **overrides) -> dict:
    scope = {
        "service_type": "decor",
        "modality": "online",
        "environments": environments or [{"type": "standard", "size": "S"}],
        "payment_terms": {"mode": "installments"},
    }
    scope.update(overrides)
    return scope


def _area(area_m2: float, kind: str = "new", **overrides) -> dict:
    scope = {
        "service_type": "architecture_express",
        "modality": "online",
        "area_m2": area_m2,
        "project_kind": kind,
        "payment_terms": {"mode": "installments"},
    }
    scope.update(overrides)
    return scope


def _example_area_tables() -> PricingTables:
    return PricingTables(area_bands={
        ProjectKind.NEW: [AreaBand(min_m2=30, max_m2=60, price_per_m2=120, hours_per_m2=0.5)],
    })


def _example_decor_tables() -> PricingTables:
    return PricingTables(
        environment_type_multipliers={
            EnvironmentType.STANDARD: 1.2,
            EnvironmentType.MEDIUM: 1.5,
            EnvironmentType.HIGH: 1.4,
        },
        size_multipliers={EnvironmentSize.S: 1.0, EnvironmentSize.M: 1.0, EnvironmentSize.L: 1.0},
        decor_tiers={2: {ServiceTier.DECOR1: PriceHours(price=3000, hours=15)}},
    )


# ── Area-priced ──────────────────────────────────────────

class TestAreaPricing:
    def test_band_example_with_cash_discount(self):
        scope = _area(45, payment_terms={"mode": "cash", "discount_percent": 10})
        calc = compute_budget(scope, _example_area_tables())
        assert calc.base_price == 5400
        assert calc.estimated_hours == 22.5
        assert calc.survey_fee_total == 0
        assert calc.final_price == 5400
        assert calc.discount == 540
        assert calc.price_with_discount == 4860

    def test_profitability_ceiling_is_a_separate_field(self):
        scope = _area(45, payment_terms={"mode": "cash", "discount_percent": 10})
        calc = compute_budget(scope, _example_area_tables())
        # 4860 / 200 per hour
        assert calc.max_profitable_hours == 24.3
        assert calc.estimated_hours == 22.5
        assert calc.is_over_budget is False

    def test_default_bands(self):
        calc = compute_budget(_area(80))
        assert calc.price_per_m2 == 145
        assert calc.base_price == 11600
        assert calc.estimated_hours == 116

    def test_shared_endpoint_uses_first_band(self):
        calc = compute_budget(_area(50))
        assert calc.price_per_m2 == 150
        calc = compute_budget(_area(100))
        assert calc.price_per_m2 == 145

    def test_renovation_priced_higher(self):
        new = compute_budget(_area(120, "new"))
        renovation = compute_budget(_area(120, "renovation"))
        assert renovation.base_price == 18000
        assert renovation.base_price > new.base_price

    def test_area_above_every_band(self):
        with pytest.raises(ScopeOutOfRange, match="outside every") as exc:
            compute_budget(_area(301))
        assert exc.value.field == "area_m2"

    def test_area_below_every_band(self):
        with pytest.raises(ScopeOutOfRange):
            compute_budget(_area(10))

    @pytest.mark.parametrize("area", [0, -5])
    def test_non_positive_area(self, area):
        with pytest.raises(InvalidScopeParameter) as exc:
            compute_budget(_area(area))
        assert exc.value.field == "area_m2"
        assert exc.value.kind == "InvalidScopeParameter"

    def test_project_kind_required(self):
        scope = _area(80)
        del scope["project_kind"]
        with pytest.raises(InvalidScopeParameter, match="project_kind"):
            compute_budget(scope)

    def test_management_addon_counts_as_extra(self):
        calc = compute_budget(_area(80, management_addon={"monthly_fee": 1500}))
        assert calc.management_fee_total == 1500
        assert calc.management_fee_hours == 8
        assert calc.extras_total == 1500
        assert calc.final_price == 11600 + 1500
        assert calc.estimated_hours == 116 + 8

    def test_management_fee_defaults_from_tables(self):
        calc = compute_budget(_area(80, management_addon={}))
        assert calc.management_fee_total == 1500
        assert calc.final_price == 11600 + 1500

    @pytest.mark.parametrize("area", [float("nan"), float("inf")])
    def test_non_finite_area(self, area):
        with pytest.raises(InvalidScopeParameter) as exc:
            compute_budget(_area(area))
        assert exc.value.field == "area_m2"

    def test_management_fee_below_minimum(self):
        with pytest.raises(InvalidScopeParameter) as exc:
            compute_budget(_area(80, management_addon={"monthly_fee": 900}))
        assert exc.value.field == "management_addon.monthly_fee"

    def test_large_price_allows_ten_installments(self):
        calc = compute_budget(_area(80))
        assert calc.payment_mode == PaymentMode.INSTALLMENTS
        assert calc.max_installments == 10

    def test_low_hour_rate_flagged(self):
        calc = compute_budget(_area(80))
        # 11600 / 116h = 100 per hour
        assert calc.hour_rate == 100
        assert calc.efficiency == ProfitabilityFlag.REAJUSTAR


# ── Decor ────────────────────────────────────────────────

class TestDecorPricing:
    def test_multiplier_example(self):
        environments = [{"type": "standard", "size": "S"}, {"type": "medium", "size": "S"}]
        calc = compute_budget(_decor(environments), _example_decor_tables())
        assert calc.avg_multiplier == pytest.approx(1.35)
        assert calc.base_price == 3000
        assert calc.multiplier_adjusted_price == 4050
        assert calc.final_price == 4050
        assert calc.discount == 0
        assert calc.price_with_discount == calc.final_price

    def test_breakdown_per_environment(self):
        environments = [{"type": "medium", "size": "M"}, {"type": "high", "size": "L"}]
        calc = compute_budget(_decor(environments))
        assert [b.index for b in calc.environment_breakdown] == [0, 1]
        assert calc.environment_breakdown[0].combined_multiplier == pytest.approx(1.375)
        assert calc.environment_breakdown[1].combined_multiplier == pytest.approx(1.61)
        assert calc.avg_multiplier == pytest.approx((1.375 + 1.61) / 2)

    def test_order_independence(self):
        environments = [
            {"type": "high", "size": "L"},
            {"type": "standard", "size": "M"},
            {"type": "medium", "size": "S"},
        ]
        forward = compute_budget(_decor(environments))
        backward = compute_budget(_decor(list(reversed(environments))))
        assert forward.avg_multiplier == backward.avg_multiplier
        assert forward.base_price == backward.base_price
        assert forward.final_price == backward.final_price

    def test_in_person_adds_survey_and_extras(self):
        environments = [{"type": "standard", "size": "S"}, {"type": "standard", "size": "S"}]
        scope = _decor(
            environments,
            modality="in_person",
            tier="decor2",
            extra_environment_count=1,
        )
        calc = compute_budget(scope)
        assert calc.base_price == 3450
        assert calc.extras_total == 1200
        assert calc.survey_fee_total == 1000
        assert calc.final_price == 3450 + 1200 + 1000
        assert calc.estimated_hours == 17.25 + 8 + 4

    def test_survey_fee_override(self):
        calc = compute_budget(_decor(modality="in_person", survey_fee=500))
        assert calc.survey_fee_total == 500

    def test_survey_fee_not_charged_online(self):
        calc = compute_budget(_decor(survey_fee=500))
        assert calc.survey_fee_total == 0
        assert calc.survey_fee_hours == 0

    def test_negative_survey_fee(self):
        with pytest.raises(InvalidScopeParameter):
            compute_budget(_decor(modality="in_person", survey_fee=-1))

    def test_extra_environment_price_override(self):
        calc = compute_budget(_decor(extra_environment_count=2, extra_environment_price=1000))
        assert calc.extras_total == 2000
        assert calc.extras_hours == 16

    def test_no_environments(self):
        with pytest.raises(InvalidScopeParameter) as exc:
            compute_budget(ScopeParameters(service_type=ServiceType.DECOR))
        assert exc.value.field == "environments"

    def test_too_many_environments(self):
        environments = [{"type": "standard", "size": "S"}] * 4
        with pytest.raises(ScopeOutOfRange, match="extra_environment_count"):
            compute_budget(_decor(environments))

    def test_negative_extra_count(self):
        with pytest.raises(InvalidScopeParameter):
            compute_budget(_decor(extra_environment_count=-1))

    def test_production_tier_not_offered_for_decor(self):
        with pytest.raises(InvalidScopeParameter) as exc:
            compute_budget(_decor(tier="prod3"))
        assert exc.value.field == "tier"

    def test_cash_discount_at_attention_threshold(self):
        calc = compute_budget(_decor(payment_terms={"mode": "cash", "discount_percent": 10}))
        # 1440 / 8h = 180 = 0.9 × 200
        assert calc.price_with_discount == 1440
        assert calc.hour_rate == 180
        assert calc.efficiency == ProfitabilityFlag.ATENCAO
        assert calc.max_installments is None

    def test_on_target_rate(self):
        calc = compute_budget(_decor())
        assert calc.hour_rate == 200
        assert calc.efficiency == ProfitabilityFlag.OTIMO
        assert calc.max_installments == 6
        assert calc.max_profitable_hours == 8
        assert calc.is_over_budget is False


# ── Production ───────────────────────────────────────────

class TestProductionPricing:
    def test_always_charges_survey(self):
        scope = {
            "service_type": "production",
            "modality": "online",
            "environments": [{"type": "high", "size": "L"}],
        }
        calc = compute_budget(scope)
        assert calc.base_price == 1600
        assert calc.survey_fee_total == 1000
        assert calc.final_price == 2600
        assert calc.estimated_hours == 12

    def test_no_multipliers(self):
        scope = {
            "service_type": "production",
            "environments": [{"type": "high", "size": "L"}, {"type": "high", "size": "L"}],
            "tier": "prod3",
        }
        calc = compute_budget(scope)
        assert calc.avg_multiplier is None
        assert calc.multiplier_adjusted_price is None
        assert calc.environment_breakdown == []
        assert calc.base_price == 4000

    def test_decor_tier_not_offered(self):
        scope = {"service_type": "production", "environments": [{}], "tier": "decor2"}
        with pytest.raises(InvalidScopeParameter):
            compute_budget(scope)


# ── Common rules ─────────────────────────────────────────

class TestCommonRules:
    def test_deterministic(self):
        scope = _decor([{"type": "medium", "size": "M"}], modality="in_person")
        first = compute_budget(scope)
        second = compute_budget(scope)
        assert first == second
        assert first.scope_hash == second.scope_hash

    def test_scope_hash_tracks_input(self):
        a = compute_budget(_decor())
        b = compute_budget(_decor(extra_environment_count=1))
        assert a.scope_hash != b.scope_hash

    @pytest.mark.parametrize("percent", [5, 10, 15])
    def test_cash_discount_tiers(self, percent):
        calc = compute_budget(_area(80, payment_terms={"mode": "cash", "discount_percent": percent}))
        assert calc.discount == round(calc.final_price * percent / 100, 2)
        assert calc.price_with_discount < calc.final_price

    def test_cash_default_discount(self):
        calc = compute_budget(_area(80, payment_terms={"mode": "cash"}))
        assert calc.discount_percent == 10

    def test_discount_outside_tiers(self):
        scope = _area(80, payment_terms={"mode": "cash", "discount_percent": 12})
        with pytest.raises(InvalidScopeParameter) as exc:
            compute_budget(scope)
        assert exc.value.field == "payment_terms.discount_percent"
        assert exc.value.to_dict()["kind"] == "InvalidScopeParameter"

    def test_installments_carry_no_discount(self):
        scope = _area(80, payment_terms={"mode": "installments", "discount_percent": 10})
        with pytest.raises(InvalidScopeParameter):
            compute_budget(scope)

    def test_unknown_service_type(self):
        with pytest.raises(UnsupportedServiceType) as exc:
            compute_budget({"service_type": "landscaping"})
        assert exc.value.field == "service_type"

    def test_service_without_strategy(self):
        calculator = PricingCalculator(strategies={})
        with pytest.raises(UnsupportedServiceType):
            calculator.compute_budget(_decor())

    def test_malformed_enum_rejected_by_model(self):
        with pytest.raises(ValidationError):
            compute_budget(_decor([{"type": "castle", "size": "S"}]))

    def test_engine_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            compute_budget(_area(500))

    @pytest.mark.parametrize("value", NON_FINITE)
    def test_non_finite_survey_fee(self, value):
        with pytest.raises(InvalidScopeParameter) as exc:
            compute_budget(_decor(modality="in_person", survey_fee=value))
        assert exc.value.field == "survey_fee"

    @pytest.mark.parametrize("value", NON_FINITE)
    def test_non_finite_management_fee(self, value):
        with pytest.raises(InvalidScopeParameter) as exc:
            compute_budget(_area(80, management_addon={"monthly_fee": value}))
        assert exc.value.field == "management_addon.monthly_fee"

    @pytest.mark.parametrize("value", NON_FINITE)
    def test_non_finite_extra_environment_price(self, value):
        scope = _decor(extra_environment_count=1, extra_environment_price=value)
        with pytest.raises(InvalidScopeParameter) as exc:
            compute_budget(scope)
        assert exc.value.field == "extra_environment_price"

    def test_room_strategy_base_is_abstract(self):
        with pytest.raises(TypeError):
            RoomPricingStrategy()


# ── Table validation ─────────────────────────────────────

class TestPricingTablesValidation:
    @pytest.mark.parametrize("rate", [0, -50, float("nan"), float("inf")])
    def test_hourly_rate_must_be_positive(self, rate):
        with pytest.raises(ValidationError):
            PricingTables(hourly_rate=rate)

    def test_hours_per_month_must_be_positive(self):
        with pytest.raises(ValidationError):
            PricingTables(hours_per_month=0)

    @pytest.mark.parametrize("ratio", [0, 1.5])
    def test_attention_ratio_bounds(self, ratio):
        with pytest.raises(ValidationError):
            PricingTables(attention_ratio=ratio)

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            PriceHours(price=-1, hours=4)

    def test_inverted_area_band(self):
        with pytest.raises(ValidationError):
            AreaBand(min_m2=60, max_m2=30, price_per_m2=120, hours_per_m2=0.5)

    def test_default_fee_below_minimum(self):
        with pytest.raises(ValidationError):
            PricingTables(management_fee={"default_fee": 500, "minimum_fee": 1000})

    def test_json_tables_with_zero_rate(self):
        with pytest.raises(ValidationError):
            PricingTables.model_validate_json('{"hourly_rate": 0}')


# ── Office hourly rate ───────────────────────────────────

class TestOfficeHourlyRate:
    def test_derivation(self):
        result = compute_office_hourly_rate(24000, 8000, 30, Positioning.BEM_POSICIONADO)
        assert result.base_cost == 200
        assert result.with_margin == 260
        assert result.sale_value == 520
        assert result.breakdown.team_cost_per_hour == 150
        assert result.breakdown.operational_cost_per_hour == 50

    def test_positioning_scales_sale_value(self):
        entry = compute_office_hourly_rate(16000, 0, 10, Positioning.INICIANTE)
        ultra = compute_office_hourly_rate(16000, 0, 10, Positioning.ULTRA_PREMIUM)
        assert entry.sale_value == 110
        assert ultra.sale_value == 330

    @pytest.mark.parametrize("margin", [5, 101])
    def test_margin_bounds(self, margin):
        with pytest.raises(InvalidScopeParameter) as exc:
            compute_office_hourly_rate(24000, 8000, margin)
        assert exc.value.field == "margin_percent"

    def test_negative_costs(self):
        with pytest.raises(InvalidScopeParameter):
            compute_office_hourly_rate(24000, -1, 30)

    @pytest.mark.parametrize("value", NON_FINITE)
    def test_non_finite_salaries(self, value):
        with pytest.raises(InvalidScopeParameter) as exc:
            compute_office_hourly_rate(value, 8000, 30)
        assert exc.value.field == "team_salaries"
