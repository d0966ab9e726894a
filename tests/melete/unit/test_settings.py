"""Tests for Melete settings."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from melete.config.settings import (
    ConsolidationSettings,
    EngineSettings,
    LoggingSettings,
    LongTermSettings,
    Settings,
    StorageSettings,
)
from melete.core.constants import (
    ASSOCIATION_STRENGTH,
    BASE_DECAY_RATE,
    REHEARSAL_BOOST,
    WORKING_MEMORY_CAPACITY,
)


class TestEngineSettings:
    """Test EngineSettings configuration."""

    def test_defaults(self):
        """Test default values match constants."""
        settings = EngineSettings()
        assert settings.capacity == WORKING_MEMORY_CAPACITY == 7
        assert settings.base_decay_rate == BASE_DECAY_RATE == 0.1
        assert settings.rehearsal_boost == REHEARSAL_BOOST == 0.3
        assert settings.association_strength == ASSOCIATION_STRENGTH == 0.2
        assert settings.max_access_protection == 0.9

    def test_env_override(self):
        """Test environment variable override."""
        with patch.dict(os.environ, {"MELETE_ENGINE_CAPACITY": "9"}):
            settings = EngineSettings()
            assert settings.capacity == 9

    def test_protection_clamp_cannot_reach_one(self):
        """A clamp of 1.0 would allow zero decay forever."""
        with pytest.raises(ValidationError):
            EngineSettings(max_access_protection=1.0)

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValidationError):
            EngineSettings(capacity=0)


class TestConsolidationSettings:
    """Test ConsolidationSettings configuration."""

    def test_defaults(self):
        settings = ConsolidationSettings()
        assert settings.important_activation == 0.7
        assert settings.important_access_count == 3
        assert settings.high_importance_activation == 0.8
        assert settings.displacement_activation == 0.5
        assert settings.prune_floor == 0.1

    def test_env_override(self):
        with patch.dict(os.environ, {"MELETE_CONSOLIDATION_PRUNE_FLOOR": "0.2"}):
            assert ConsolidationSettings().prune_floor == 0.2


class TestStorageAndLongTermSettings:
    """Test collaborator settings."""

    def test_storage_defaults(self):
        settings = StorageSettings()
        assert settings.backend == "sqlite"
        assert settings.sqlite_path == "./data/working_memory.db"

    def test_storage_rejects_unknown_backend(self):
        with pytest.raises(ValidationError):
            StorageSettings(backend="mongo")

    def test_long_term_defaults(self):
        settings = LongTermSettings()
        assert settings.server_command == "memory-server"
        assert settings.server_args == []
        assert settings.tool_name == "store_memory"


class TestLoggingSettings:
    """Test LoggingSettings configuration."""

    def test_defaults(self):
        settings = LoggingSettings()
        assert settings.level == "INFO"
        assert settings.output_file is None
        assert settings.quiet is False

    def test_quiet_env_override(self):
        with patch.dict(os.environ, {"MELETE_LOGGING_QUIET": "true"}):
            assert LoggingSettings().quiet is True


class TestSettings:
    """Test root Settings configuration."""

    def test_init_overrides(self):
        settings = Settings(engine=EngineSettings(capacity=5))
        assert settings.engine.capacity == 5
        assert isinstance(settings.consolidation, ConsolidationSettings)
        assert isinstance(settings.logging, LoggingSettings)
