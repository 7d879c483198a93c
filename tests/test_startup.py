"""Tests for application startup and shutdown."""

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.errors import ConfigurationError
from app.main import app


@pytest.fixture
def configured(monkeypatch, stores):
    """Point the settings at valid throwaway stores."""
    monkeypatch.setattr(settings, "upstream_base_url", "https://upstream.test")
    monkeypatch.setattr(settings, "client_keystore_path", str(stores["keystore"]))
    monkeypatch.setattr(settings, "client_keystore_password", "client-secret")
    monkeypatch.setattr(settings, "server_truststore_path", str(stores["truststore"]))
    monkeypatch.setattr(settings, "server_truststore_password", "server-secret")

    yield

    if hasattr(app.state, "forecast_service"):
        del app.state.forecast_service


def test_startup_loads_transport_profile(configured):
    with TestClient(app) as client:
        assert app.state.forecast_service.template_client.profile.base_url == "https://upstream.test"
        response = client.get("/health")

    assert response.json()["status"] == "healthy"


def test_startup_aborts_on_missing_keystore(configured, monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "client_keystore_path", str(tmp_path / "missing.keystore"))

    with pytest.raises(ConfigurationError, match="Cannot open keystore"):
        with TestClient(app):
            pass

    assert not hasattr(app.state, "forecast_service")


def test_startup_aborts_on_wrong_truststore_password(configured, monkeypatch):
    monkeypatch.setattr(settings, "server_truststore_password", "wrong")

    with pytest.raises(ConfigurationError, match="Cannot read truststore"):
        with TestClient(app):
            pass


def test_startup_aborts_on_plain_http_upstream(configured, monkeypatch):
    monkeypatch.setattr(settings, "upstream_base_url", "http://upstream.test")

    with pytest.raises(ConfigurationError, match="HTTPS"):
        with TestClient(app):
            pass
