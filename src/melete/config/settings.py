"""Pydantic settings models for Melete configuration."""

from typing import List, Literal, Optional, Tuple, Type

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from melete.core.constants import (
    ASSOCIATION_STRENGTH,
    BASE_DECAY_RATE,
    DISPLACEMENT_ACTIVATION_THRESHOLD,
    HIGH_IMPORTANCE_ACTIVATION,
    IMPORTANT_ACCESS_COUNT,
    IMPORTANT_ACTIVATION_THRESHOLD,
    LEXICAL_OVERLAP_THRESHOLD,
    MAX_ACCESS_PROTECTION,
    PRUNE_ACTIVATION_FLOOR,
    REHEARSAL_BOOST,
    WORKING_MEMORY_CAPACITY,
)


class EngineSettings(BaseSettings):
    """Tunable constants of the working memory model."""

    capacity: int = Field(
        default=WORKING_MEMORY_CAPACITY,
        ge=1,
        description="Default store capacity when initialize is called without one",
    )
    base_decay_rate: float = Field(
        default=BASE_DECAY_RATE,
        ge=0.0,
        description="Activation lost per minute before access protection",
    )
    max_access_protection: float = Field(
        default=MAX_ACCESS_PROTECTION,
        ge=0.0,
        le=0.9,
        description="Clamp for ln(access_count + 1) * 0.1 decay protection",
    )
    rehearsal_boost: float = Field(
        default=REHEARSAL_BOOST,
        ge=0.0,
        le=1.0,
        description="Activation added to a focused item",
    )
    association_strength: float = Field(
        default=ASSOCIATION_STRENGTH,
        ge=0.0,
        le=1.0,
        description="Activation added to each associate of a focused item",
    )
    overlap_threshold: float = Field(
        default=LEXICAL_OVERLAP_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Token overlap ratio above which items are linked",
    )
    view_activation_floor: float = Field(
        default=PRUNE_ACTIVATION_FLOOR,
        ge=0.0,
        le=1.0,
        description="Items at or below this activation are hidden from state views",
    )

    model_config = SettingsConfigDict(env_prefix="MELETE_ENGINE_")


class ConsolidationSettings(BaseSettings):
    """Consolidation sweep configuration."""

    important_activation: float = Field(
        default=IMPORTANT_ACTIVATION_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Activation above which the sweep consolidates an item",
    )
    important_access_count: int = Field(
        default=IMPORTANT_ACCESS_COUNT,
        ge=1,
        description="Access count above which the sweep consolidates an item",
    )
    high_importance_activation: float = Field(
        default=HIGH_IMPORTANCE_ACTIVATION,
        ge=0.0,
        le=1.0,
        description="Activation above which a record is tagged high importance",
    )
    displacement_activation: float = Field(
        default=DISPLACEMENT_ACTIVATION_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Evicted items above this activation are consolidated",
    )
    prune_floor: float = Field(
        default=PRUNE_ACTIVATION_FLOOR,
        ge=0.0,
        le=1.0,
        description="Items at or below this activation are pruned by the sweep",
    )

    model_config = SettingsConfigDict(env_prefix="MELETE_CONSOLIDATION_")


class StorageSettings(BaseSettings):
    """Session repository configuration."""

    backend: Literal["memory", "sqlite"] = Field(
        default="sqlite",
        description="Session repository backend",
    )
    sqlite_path: str = Field(
        default="./data/working_memory.db",
        description="SQLite database file for the sqlite backend",
    )

    model_config = SettingsConfigDict(env_prefix="MELETE_STORAGE_")


class LongTermSettings(BaseSettings):
    """Long-term memory server connection."""

    server_command: str = Field(
        default="memory-server",
        description="Command launching the long-term memory MCP server",
    )
    server_args: List[str] = Field(
        default_factory=list,
        description="Extra arguments for the server command",
    )
    tool_name: str = Field(
        default="store_memory",
        description="MCP tool receiving consolidation records",
    )

    model_config = SettingsConfigDict(env_prefix="MELETE_LONG_TERM_")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    output_file: Optional[str] = Field(
        default=None,
        description="Optional log file path",
    )
    format: Literal["text", "json"] = Field(
        default="text",
        description="Log file format",
    )
    quiet: bool = Field(
        default=False,
        description="Suppress stderr output",
    )

    model_config = SettingsConfigDict(env_prefix="MELETE_LOGGING_")


class Settings(BaseSettings):
    """Root configuration for Melete."""

    engine: EngineSettings = Field(default_factory=EngineSettings)
    consolidation: ConsolidationSettings = Field(default_factory=ConsolidationSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    long_term: LongTermSettings = Field(default_factory=LongTermSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        toml_file="configs/melete.toml",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Configure settings sources with TOML support.

        Priority (highest to lowest):
        1. Init settings (constructor arguments)
        2. Environment variables
        3. TOML config file
        4. Default values
        """
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )
