from __future__ import annotations

import pytest

from leadflow.core.config import get_config
from leadflow.core.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def _fresh_config():
    get_config.cache_clear()
    yield
    get_config.cache_clear()


def test_defaults_for_development(monkeypatch):
    for name in ("DEBUG", "DB_CONNECTIVITY_REQUIRED", "IMPORT_MAX_ROWS", "INQUIRY_PREFIX"):
        monkeypatch.delenv(name, raising=False)

    config = get_config("development")

    assert config.DEBUG is True
    assert config.DB_CONNECTIVITY_REQUIRED is False
    assert config.IMPORT_MAX_ROWS == 5000
    assert config.INQUIRY_PREFIX == "INQ"


def test_production_rejects_placeholder_secret(monkeypatch):
    monkeypatch.delenv("JWT_SECRET", raising=False)
    monkeypatch.setenv("DATABASE_URL", "postgresql://crm@db.internal/leadflow")

    with pytest.raises(ConfigurationError, match="JWT_SECRET"):
        get_config("production")


def test_production_forces_debug_off_and_requires_database(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "a-real-secret")
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("DATABASE_URL", "postgresql://crm@db.internal/leadflow")
    monkeypatch.delenv("DB_CONNECTIVITY_REQUIRED", raising=False)

    config = get_config("production")

    assert config.DEBUG is False
    assert config.DB_CONNECTIVITY_REQUIRED is True


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("DATABASE_URL", "mysql://localhost/crm"),
        ("DATABASE_URL", "postgresql:///leadflow"),
        ("IMPORT_MAX_ROWS", "many"),
        ("BULK_ASSIGN_MAX", "0"),
        ("INQUIRY_PREFIX", "IN-Q"),
        ("LOG_LEVEL", "verbose"),
    ],
)
def test_invalid_settings_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        get_config("development")
