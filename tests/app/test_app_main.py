"""Unit tests for enodia_app.main and enodia_app.config."""
from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from enodia_app.config import Settings
from enodia_app.main import app, create_engine, lifespan
from enodia_engine.facade import InfrastructureEngine
from enodia_engine.layers import InfrastructureCategory


@pytest.fixture
def client():
    """TestClient that skips lifespan so no ingestion is started."""
    return TestClient(app)


@pytest.mark.unit
class TestSettings:

    def test_defaults(self, monkeypatch):
        for key in ("AREA_NAME", "ADMIN_LEVEL", "PROXIMITY_THRESHOLD_M"):
            monkeypatch.delenv(key, raising=False)
        s = Settings(_env_file=None)
        assert s.area_name == "Kennebec County"
        assert s.admin_level == 6
        assert s.proximity_threshold_m == 500.0
        assert s.default_enabled_category == "electricity"
        assert s.area_query_timeout == 25
        assert s.fetch_query_timeout == 50

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("AREA_NAME", "Somerset County")
        monkeypatch.setenv("admin_level", "8")
        s = Settings(_env_file=None)
        assert s.area_name == "Somerset County"
        assert s.admin_level == 8


@pytest.mark.unit
class TestCreateEngine:

    def test_from_settings(self):
        config = Settings(_env_file=None, area_name="Somerset County", proximity_threshold_m=250)
        engine = create_engine(config)
        assert isinstance(engine, InfrastructureEngine)
        assert engine.area_name == "Somerset County"
        assert engine.proximity_threshold_m == 250
        assert engine.store.enabled_categories() == frozenset({InfrastructureCategory.ELECTRICITY})

    def test_no_default_layer(self):
        engine = create_engine(Settings(_env_file=None, default_enabled_category=""))
        assert engine.store.enabled_categories() == frozenset()


@pytest.mark.unit
class TestApp:

    def test_app_is_fastapi_instance(self):
        assert isinstance(app, FastAPI)
        assert app.title == "ENODIA"

    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "operational"
        assert data["system"] == "ENODIA"

    def test_infrastructure_routes_registered(self, client):
        # Lifespan is skipped, so the router answers 503 rather than 404.
        assert client.get("/api/infrastructure/layers").status_code == 503
        assert client.get("/api/infrastructure/status").status_code == 503

    @pytest.mark.anyio
    async def test_lifespan_sets_and_closes_engine(self):
        test_app = FastAPI()
        with patch("enodia_app.main.settings", Settings(_env_file=None, ingest_on_startup=False)):
            async with lifespan(test_app):
                engine = test_app.state.infrastructure
                assert isinstance(engine, InfrastructureEngine)
                assert engine.last_result is None
