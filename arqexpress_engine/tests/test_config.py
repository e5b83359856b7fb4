"""
Tests: settings, table/catalog stores and logging setup.

Run with:
    pytest arqexpress_engine/tests/test_config.py -v
"""

import json
import logging

import pytest
from pydantic import ValidationError

from arqexpress_engine.config import Settings, get_settings
from arqexpress_engine.models.enums import Modality, ServiceType
from arqexpress_engine.pricing.tables import PricingTables, PricingTablesStore
from arqexpress_engine.utils.logger import setup_logging
from arqexpress_engine.workflow.catalog import StageCatalogStore


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.max_hours_per_entry == 24
        assert settings.hours_epsilon == pytest.approx(1e-6)
        assert settings.default_currency == "BRL"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("MAX_HOURS_PER_ENTRY", "12")
        get_settings.cache_clear()
        try:
            assert get_settings().max_hours_per_entry == 12
        finally:
            get_settings.cache_clear()

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestPricingTablesStore:
    def test_builtin_defaults(self):
        tables = PricingTablesStore(path="").load()
        assert tables.hourly_rate == 200
        assert tables.cash_discount_tiers == [5, 10, 15]

    def test_loads_json_file(self, tmp_path):
        path = tmp_path / "tables.json"
        path.write_text(json.dumps({"hourly_rate": 250, "default_cash_discount": 5}), encoding="utf-8")
        store = PricingTablesStore(str(path))
        tables = store.load()
        assert tables.hourly_rate == 250
        assert tables.default_cash_discount == 5
        # untouched sections keep their defaults
        assert tables.extra_environment.price == 1200
        assert store.load() is tables

    def test_reload(self, tmp_path):
        path = tmp_path / "tables.json"
        path.write_text(json.dumps({"hourly_rate": 250}), encoding="utf-8")
        store = PricingTablesStore(str(path))
        store.load()
        path.write_text(json.dumps({"hourly_rate": 300}), encoding="utf-8")
        assert store.reload().hourly_rate == 300

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "tables.json"
        path.write_text(json.dumps({"hourly_rate": "fast"}), encoding="utf-8")
        with pytest.raises(ValidationError):
            PricingTablesStore(str(path)).load()

    def test_tables_are_frozen(self):
        with pytest.raises(ValidationError):
            PricingTables().hourly_rate = 1


class TestStageCatalogStore:
    def test_loads_json_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({
            "stages": {"production": [{"id": "only", "order_index": 0, "label": "Only"}]}
        }), encoding="utf-8")
        catalog = StageCatalogStore(str(path)).load()
        assert [s.id for s in catalog.snapshot(ServiceType.PRODUCTION, Modality.ONLINE)] == ["only"]


class TestLogging:
    def test_setup_is_idempotent(self):
        root = logging.getLogger()
        saved, level = root.handlers[:], root.level
        root.handlers.clear()
        try:
            setup_logging("DEBUG")
            setup_logging("DEBUG")
            assert len(root.handlers) == 1
        finally:
            root.handlers[:] = saved
            root.setLevel(level)
