"""
Deploy Hook Configuration
=========================

Two configuration layers:

- ``ServerSettings``: process-level knobs read from the environment
  (prefix ``DEPLOYHOOK_``) or a local ``.env`` file.
- ``AppConfiguration``: the repository list and server settings loaded
  once from the JSON config file. Immutable after load.

Config file shape:
    {
        "port": 8080,
        "logPath": "/var/log/deployhook/",
        "repos": [
            {"name": "api", "token": "abc123", "script": "./deploy.sh",
             "tags": ["latest", "v2"]}
        ]
    }

Usage:
    from src.deployhook.config import get_settings, load_configuration

    settings = get_settings()
    configuration = load_configuration(settings.config_file)
    repo = configuration.find_repository("abc123")
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.deployhook.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.json"
LOG_FILE_NAME = "main.log"


# =============================================================================
# ENVIRONMENT SETTINGS
# =============================================================================

class ServerSettings(BaseSettings):
    """Process-level settings. All can be overridden via environment variables."""

    config_file: str = DEFAULT_CONFIG_FILE
    host: str = "0.0.0.0"
    log_level: str = "INFO"

    # Background work
    callback_workers: int = 8
    script_timeout: Optional[float] = None
    callback_timeout: float = 10.0

    # Deploy behaviour
    report_exit_status: bool = False
    serialize_deploys: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DEPLOYHOOK_",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> ServerSettings:
    """Get cached server settings."""
    return ServerSettings()


# =============================================================================
# CONFIG FILE MODELS
# =============================================================================

class RepositoryConfig(BaseModel):
    """A repository the hook is allowed to deploy."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    token: str
    script: str
    tags: Tuple[str, ...] = ()

    def matches(self, token: str) -> bool:
        return self.token == token

    def allows(self, tag: str) -> bool:
        """Exact membership test against the allowed tag list."""
        return tag in self.tags


class AppConfiguration(BaseModel):
    """Everything loaded from the config file."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    port: int = Field(default=8080, ge=0, le=65535)
    log_path: str = Field(default="", alias="logPath")
    repos: Tuple[RepositoryConfig, ...] = ()

    def find_repository(self, token: str) -> Optional[RepositoryConfig]:
        """
        Return the first repository whose token equals ``token``.

        Tokens are compared as exact, case-sensitive strings. Uniqueness is
        not enforced; the earliest entry wins.
        """
        for repo in self.repos:
            if repo.matches(token):
                return repo
        return None

    @property
    def repository_names(self) -> List[str]:
        return [repo.name for repo in self.repos]

    @property
    def log_file(self) -> Path:
        """Path of the append-only log file."""
        if not self.log_path:
            return Path(LOG_FILE_NAME)
        return Path(self.log_path) / LOG_FILE_NAME


def load_configuration(path: Union[str, Path]) -> AppConfiguration:
    """
    Load and validate the JSON config file.

    Raises:
        ConfigurationError: file missing, unreadable, not JSON, or invalid.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError("Config file does not exist", path=str(path))

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError("Cannot read config file", path=str(path), error=str(e)) from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigurationError("Config file is not valid JSON", path=str(path), error=str(e)) from e

    try:
        configuration = AppConfiguration.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            "Config file failed validation",
            path=str(path),
            error=str(e).replace("\n", " "),
        ) from e

    logger.debug(f"Loaded {len(configuration.repos)} repositories from {path}")
    return configuration
