"""Configuration models using Pydantic for validation."""

import os
from pathlib import Path
from typing import Any, ClassVar, Dict, Literal, Optional

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator
from ruamel.yaml import YAML

logger = structlog.get_logger(__name__)


class FileLoggingConfig(BaseModel):
    """Configuration for file-based logging.

    File logging uses daily rotation with 7-day retention.
    Log files are stored as raocow.log in config_dir, rotated daily
    with format raocow.log.YYYY-MM-DD.
    """

    enabled: bool = Field(
        default=False,
        description="Enable file logging (logs to raocow.log in config_dir)",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    format: str = Field(
        default="json",
        description="Log format: json or text",
    )
    file: FileLoggingConfig = Field(
        default_factory=FileLoggingConfig,
        description="File logging configuration",
    )
    third_party: Dict[str, str] = Field(
        default_factory=dict,
        description="Log levels for third-party libraries (advanced)",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = ["json", "text"]
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid format: {v}. Must be one of {valid_formats}")
        return v_lower


class DatabaseConfig(BaseModel):
    """Configuration for the graph store backend."""

    backend: Literal["sqlite", "neo4j"] = Field(
        default="sqlite",
        description="Graph store backend: sqlite (embedded) or neo4j (server)",
    )
    database_path: str = Field(
        default="raocow.db",
        description="SQLite database file (relative paths resolve against config_dir)",
    )
    enable_wal_mode: bool = Field(
        default=True,
        description="Enable SQLite Write-Ahead Logging mode",
    )
    connection_timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Seconds to wait for a locked database before failing",
    )


class Neo4jConfig(BaseModel):
    """Configuration for the Neo4j graph store backend."""

    uri: str = Field(
        default="bolt://localhost:7687",
        description="Bolt URI of the Neo4j server",
    )
    user: str = Field(default="neo4j", description="Neo4j user name")
    password: str = Field(default="neo4j", description="Neo4j password")
    database: str = Field(default="neo4j", description="Neo4j database name")
    max_connection_pool_size: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Maximum number of pooled driver connections",
    )
    connection_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Driver connection timeout in seconds",
    )


class IdentifierConfig(BaseModel):
    """Configuration for slug-based identifier allocation."""

    max_length: int = Field(
        default=64,
        ge=1,
        le=64,
        description="Maximum identifier length, numeric suffix included",
    )
    max_attempts: int = Field(
        default=1000,
        ge=1,
        description="Maximum number of suffixes tried before allocation fails",
    )
    conflict_retries: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Times a create is re-run after a concurrent writer claimed the id",
    )


def _get_default_config_dir() -> Path:
    """
    Get default config directory based on environment.

    Priority:
    1. RAOCOW_CONFIG_DIR environment variable
    2. $HOME/Raocow/config otherwise

    Returns:
        Path to config directory
    """
    env_config_dir = os.environ.get("RAOCOW_CONFIG_DIR")
    if env_config_dir:
        return Path(env_config_dir)

    return Path.home() / "Raocow" / "config"


class Config(BaseModel):
    """Main configuration class for raocow.

    Environment Variables:
    - RAOCOW_CONFIG_DIR: Override config_dir

    Relative paths in config (database.database_path) are resolved against
    config_dir at runtime.
    """

    config_dir: Optional[Path] = Field(
        default=None,
        description="Configuration directory (database, logs). Resolved from RAOCOW_CONFIG_DIR or defaults.",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig,
        description="Graph store configuration",
    )
    neo4j: Neo4jConfig = Field(
        default_factory=Neo4jConfig,
        description="Neo4j connection settings (used when database.backend is neo4j)",
    )
    identifiers: IdentifierConfig = Field(
        default_factory=IdentifierConfig,
        description="Identifier allocation settings",
    )

    LOG_FILE_NAME: ClassVar[str] = "raocow.log"

    def resolve_paths(self, create_dirs: bool = True) -> "Config":
        """
        Resolve config_dir from environment or defaults.

        Args:
            create_dirs: If True, create config_dir if it doesn't exist

        Returns:
            Self with resolved paths (for chaining)

        Example:
            >>> config = Config.from_yaml(Path("config.yaml")).resolve_paths()
        """
        if self.config_dir is None:
            object.__setattr__(self, "config_dir", _get_default_config_dir())

        if create_dirs:
            self.config_dir.mkdir(parents=True, exist_ok=True)

        logger.debug("paths_resolved", config_dir=str(self.config_dir))

        return self

    def get_database_path(self) -> Path:
        """
        Get absolute SQLite database path, resolved against config_dir.

        Returns:
            Absolute path to database file
        """
        db_path = Path(self.database.database_path)
        if db_path.is_absolute():
            return db_path

        config_dir = self.config_dir or _get_default_config_dir()
        return config_dir / db_path

    def get_log_file_path(self) -> Path:
        """
        Get absolute log file path, resolved against config_dir.

        Returns:
            Absolute path to log file (raocow.log in config_dir)
        """
        config_dir = self.config_dir or _get_default_config_dir()
        return config_dir / self.LOG_FILE_NAME

    @staticmethod
    def _convert_paths_to_strings(data: Any) -> Any:
        """Recursively convert Path objects to strings for YAML serialization."""
        if isinstance(data, Path):
            return str(data)
        elif isinstance(data, dict):
            return {key: Config._convert_paths_to_strings(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [Config._convert_paths_to_strings(item) for item in data]
        else:
            return data

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Config object with validated configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            pydantic.ValidationError: If configuration is invalid

        Example:
            >>> config = Config.from_yaml(Path("config.yaml"))
        """
        yaml_loader = YAML()
        yaml_loader.preserve_quotes = True

        with open(path, "r", encoding="utf-8") as f:
            data = yaml_loader.load(f)
        return cls.model_validate(data or {})

    @classmethod
    def from_yaml_string(cls, yaml_string: str) -> "Config":
        """
        Load configuration from YAML string.

        Example:
            >>> config = Config.from_yaml_string("database:\\n  backend: neo4j")
        """
        data = yaml.safe_load(yaml_string)
        return cls.model_validate(data or {})

    def to_yaml(self, path: Path, exclude_defaults: bool = True) -> None:
        """
        Save configuration to YAML file with an atomic write.

        Args:
            path: Path to YAML configuration file
            exclude_defaults: Exclude fields with default values

        Raises:
            OSError: If file cannot be written
        """
        data = self.model_dump(
            mode="python",
            exclude_none=True,
            exclude_defaults=exclude_defaults,
        )
        data = self._convert_paths_to_strings(data)

        yaml_dumper = YAML()
        yaml_dumper.default_flow_style = False

        temp_path = path.with_suffix(".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)

            with open(temp_path, "w", encoding="utf-8") as f:
                yaml_dumper.dump(data, f)
                f.flush()
                os.fsync(f.fileno())

            temp_path.replace(path)

            logger.info("config_saved", path=str(path))

        except OSError as e:
            temp_path.unlink(missing_ok=True)
            logger.error("config_save_failed", path=str(path), error=str(e))
            raise
