"""
配置测试
"""

import json
from decimal import Decimal

import pytest

from pos_server.config import get_settings, get_menu_config, reset_menu_cache
from pos_server.config.environments.development import DevelopmentSettings
from pos_server.config.settings import Settings
from pos_server.core.database import resolve_db_path
from pos_server.models.menu import MenuCatalog


@pytest.fixture
def clean_menu_cache():
    reset_menu_cache()
    yield
    reset_menu_cache()


class TestSettings:

    def test_defaults(self):
        settings = Settings()
        assert settings.service_fee_rate == Decimal("0.10")
        assert settings.strict_status_transitions is True
        assert settings.api_prefix == "/api/v1"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SERVICE_FEE_RATE", "0.12")
        monkeypatch.setenv("STRICT_STATUS_TRANSITIONS", "false")
        settings = Settings()
        assert settings.service_fee_rate == Decimal("0.12")
        assert settings.strict_status_transitions is False

    def test_development_environment(self, monkeypatch):
        monkeypatch.setenv("POS_ENV", "development")
        settings = get_settings()
        assert isinstance(settings, DevelopmentSettings)
        assert settings.debug is True

    def test_resolve_db_path(self):
        assert resolve_db_path(":memory:") == ":memory:"
        assert resolve_db_path("duckdb://:memory:") == ":memory:"


class TestMenuConfig:

    def test_default_menu(self, clean_menu_cache, monkeypatch):
        monkeypatch.delenv("POS_MENU_JSON", raising=False)
        catalog = MenuCatalog.from_config(get_menu_config())
        assert len(catalog) >= 3
        assert catalog.get("1").name == "Picanha"
        assert catalog.get("1").price == Decimal("89.90")
        assert catalog.get("1").has_meat_point

    def test_menu_from_environment(self, clean_menu_cache, monkeypatch):
        monkeypatch.setenv("POS_MENU_JSON", json.dumps([
            {"id": "x1", "name": "Feijoada", "price": "45.00", "category": "Pratos", "prep_time": 30}
        ]))
        catalog = MenuCatalog.from_config(get_menu_config())
        assert "x1" in catalog
        assert catalog.categories() == ["Pratos"]

    def test_duplicate_menu_ids_rejected(self):
        raw = [
            {"id": "a", "name": "A", "price": "1.00", "category": "c"},
            {"id": "a", "name": "B", "price": "2.00", "category": "c"},
        ]
        with pytest.raises(ValueError):
            MenuCatalog.from_config(raw)
