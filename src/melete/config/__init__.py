"""Melete configuration module."""

from melete.config.settings import (
    ConsolidationSettings,
    EngineSettings,
    LoggingSettings,
    LongTermSettings,
    Settings,
    StorageSettings,
)

__all__ = [
    "Settings",
    "EngineSettings",
    "ConsolidationSettings",
    "StorageSettings",
    "LongTermSettings",
    "LoggingSettings",
]
