import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from crudbase.core.config import Settings, get_settings


def test_settings_defaults():
    """Test that settings load with correct defaults."""
    get_settings.cache_clear()

    settings = Settings()

    assert settings.app_name == "CrudBase"
    assert settings.environment == "development"
    assert settings.host == "0.0.0.0"
    assert settings.port == 3000
    assert settings.collection_definition_folder == "./collections"
    assert settings.crud_limit_constraint_enabled is True
    assert settings.crud_max_limit == 200
    assert settings.helpers_prefix == "/-/"
    assert settings.is_development is True
    assert settings.is_production is False


def test_settings_env_override():
    """Test that environment variables override defaults."""
    get_settings.cache_clear()

    with patch.dict(os.environ, {
        "CRUDBASE_ENVIRONMENT": "production",
        "CRUDBASE_PORT": "9000",
        "CRUDBASE_COLLECTION_DEFINITION_FOLDER": "/etc/collections",
        "CRUDBASE_CRUD_LIMIT_CONSTRAINT_ENABLED": "false",
        "CRUDBASE_CRUD_MAX_LIMIT": "50",
    }):
        settings = Settings()

        assert settings.port == 9000
        assert settings.collection_definition_folder == "/etc/collections"
        assert settings.crud_limit_constraint_enabled is False
        assert settings.crud_max_limit == 50
        assert settings.is_production is True


def test_get_settings_is_cached():
    """Test that get_settings returns the same instance until cleared."""
    get_settings.cache_clear()

    assert get_settings() is get_settings()

    first = get_settings()
    get_settings.cache_clear()
    assert get_settings() is not first


def test_cors_origins_parsing():
    """Test CORS origins parsing from string."""
    with patch.dict(os.environ, {
        "CRUDBASE_CORS_ORIGINS": '["http://example.com", "http://test.com"]'
    }):
        settings = Settings()
        assert settings.cors_origins == ["http://example.com", "http://test.com"]

    # CSV string via direct instantiation
    settings = Settings(cors_origins="http://example.com, http://test.com")
    assert settings.cors_origins == ["http://example.com", "http://test.com"]


def test_helpers_prefix_validation():
    """Test that the helpers prefix must be delimited by slashes."""
    assert Settings(helpers_prefix="/_helpers/").helpers_prefix == "/_helpers/"

    with pytest.raises(ValidationError):
        Settings(helpers_prefix="-/")

    with pytest.raises(ValidationError):
        Settings(helpers_prefix="/-")


def test_max_limit_must_be_positive():
    """Test that the list limit bound is at least one."""
    with pytest.raises(ValidationError):
        Settings(crud_max_limit=0)
