"""Configuration for eventsrename with validation."""

from pathlib import Path
from typing import Optional

import structlog
import toml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from eventsrename.errors import ConfigError

log = structlog.get_logger()

CONFIG_FILE_NAME = "eventsrename.toml"
USER_CONFIG_PATH = "~/.eventsrename/config.toml"


class RenameSettings(BaseModel):
    """Settings shared by the CLI and the rename workers."""

    model_config = ConfigDict(validate_assignment=True)

    # Metadata declaration files (JSON) loaded before any rename
    metadata_paths: list[Path] = Field(default_factory=list)

    # Also look for occurrences inside parameters whose own type differs
    # from the renamed element type (the fast path stays type-gated)
    search_all_parameters: bool = False

    # Output
    indent: Optional[int] = Field(default=2, ge=0)

    # Logging
    log_level: str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR)$")
    log_file: Optional[Path] = None
    json_logs: bool = False

    @field_validator('metadata_paths')
    @classmethod
    def expand_metadata_paths(cls, v):
        return [Path(p).expanduser() for p in v]

    @classmethod
    def load(cls, path: Optional[str] = None) -> 'RenameSettings':
        """Load settings from a TOML file.

        Search order if path not provided:
        1. ./eventsrename.toml (project-specific)
        2. ~/.eventsrename/config.toml (user default)

        A file found by searching that fails to load is logged and replaced
        by defaults. An explicitly requested file that fails raises.

        Args:
            path: Optional explicit config file path

        Returns:
            RenameSettings instance

        Raises:
            ConfigError: If an explicit path is missing or invalid
        """
        explicit = path is not None
        if path is None:
            candidates = [
                Path(CONFIG_FILE_NAME),
                Path(USER_CONFIG_PATH).expanduser()
            ]
            for candidate in candidates:
                if candidate.exists():
                    path = str(candidate)
                    log.info("config_found", path=path)
                    break

        if path is None:
            log.info("config_using_defaults")
            return cls()

        if not Path(path).exists():
            raise ConfigError(
                f"Config file not found: {path}",
                suggestion=f"Create it or drop the option to use ./{CONFIG_FILE_NAME}",
            )

        try:
            data = toml.load(path)
            settings = cls(**data)
        except (toml.TomlDecodeError, ValidationError, OSError) as e:
            if explicit:
                raise ConfigError(f"Invalid config file {path}: {e}") from e
            log.error("config_load_failed", path=path, error=str(e))
            return cls()

        log.info("config_loaded", path=path)
        return settings

    def save(self, path: str):
        """Save settings to a TOML file.

        Args:
            path: File path to save to
        """
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w') as f:
                data = self.model_dump(mode='json', exclude_none=True)
                toml.dump(data, f)
        except OSError as e:
            raise ConfigError(f"Cannot write config file {path}: {e}") from e
        log.info("config_saved", path=path)
