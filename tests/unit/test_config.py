"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from tourapi.core.config import Settings


def test_password_placeholder_is_substituted():
    settings = Settings(
        database_url="postgresql+asyncpg://natours:<PASSWORD>@db:5432/natours",
        database_password="s3cret",
    )
    assert settings.resolved_database_url == "postgresql+asyncpg://natours:s3cret@db:5432/natours"


def test_url_without_password_is_unchanged():
    settings = Settings(database_url="sqlite+aiosqlite:///:memory:", database_password=None)
    assert settings.resolved_database_url == "sqlite+aiosqlite:///:memory:"


def test_environment_and_debug():
    assert Settings(environment="Development").debug is True
    assert Settings(environment="production").debug is False
    assert not hasattr(Settings(), "is_production")


def test_cors_origins_from_comma_separated_string():
    settings = Settings(cors_origins="http://a.test, http://b.test")
    assert settings.cors_origins == ["http://a.test", "http://b.test"]


def test_invalid_environment_rejected():
    with pytest.raises(ValidationError):
        Settings(environment="qa")
