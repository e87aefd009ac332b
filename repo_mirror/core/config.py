"""
Configuration module for the repository mirroring project.

This module provides configuration classes and validation for the project.
It uses Pydantic for configuration validation and dotenv for loading
environment variables.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import gitlab
from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr, field_validator

from repo_mirror.core.exceptions import ConfigError
from repo_mirror.core.models import MIB, Credentials

# Configure logging
logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()

SOURCE_HOSTS = ("bitbucket", "gitlab")
TRUE_VALUES = ("true", "yes", "1")


class BitbucketConfig(BaseModel):
    """Configuration for a Bitbucket Cloud workspace."""

    username: str
    app_password: SecretStr
    workspace: str
    api_url: str = "https://api.bitbucket.org/2.0"

    def credentials(self) -> Credentials:
        return Credentials(self.username, self.app_password.get_secret_value())


class GitLabConfig(BaseModel):
    """Configuration for GitLab connection with validation."""

    url: str
    token: SecretStr
    group: Optional[str] = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        """Validates URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v.rstrip("/")

    def get_client(self) -> gitlab.Gitlab:
        """Creates and returns a GitLab client."""
        return gitlab.Gitlab(url=self.url, private_token=self.token.get_secret_value())

    def credentials(self) -> Credentials:
        return Credentials("oauth2", self.token.get_secret_value())


class GitHubConfig(BaseModel):
    """Configuration for the GitHub destination account or organization."""

    token: SecretStr
    username: str
    organization: Optional[str] = None
    api_url: str = "https://api.github.com"

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError("API URL must start with http:// or https://")
        return v.rstrip("/")

    @property
    def owner(self) -> str:
        return self.organization or self.username

    def credentials(self) -> Credentials:
        return Credentials(self.username, self.token.get_secret_value())


class TransferConfig(BaseModel):
    """Tuning knobs for the clone, scan and rewrite pipeline."""

    temp_dir: Path = Path("./temp")
    size_threshold_mb: int = Field(default=100, gt=0)
    command_timeout: Optional[float] = Field(default=3600, gt=0)
    scan_workers: int = Field(default=8, ge=1)
    fallback_warn_paths: int = Field(default=25, ge=1)

    @property
    def size_threshold_bytes(self) -> int:
        return self.size_threshold_mb * MIB


class MigrationConfig(BaseModel):
    """Overall configuration for the migration process."""

    source_host: str = "bitbucket"
    bitbucket: Optional[BitbucketConfig] = None
    gitlab: Optional[GitLabConfig] = None
    github: GitHubConfig
    transfer: TransferConfig = TransferConfig()
    dry_run: bool = False
    skip_existing: bool = True
    log_dir: Path = Path("./logs")

    @field_validator("source_host")
    @classmethod
    def validate_source_host(cls, v):
        """Validates the source host type."""
        v = v.lower()
        if v not in SOURCE_HOSTS:
            raise ValueError(f"Source host must be one of: {', '.join(SOURCE_HOSTS)}")
        return v


def get_env_variable(name: str, required: bool = False) -> Optional[str]:
    """
    Retrieve environment variable. Exit if required and missing.

    Args:
        name: Name of the environment variable
        required: Whether the variable is required

    Returns:
        Value of the environment variable or None if not required and not found

    Raises:
        ConfigError: If the variable is required but not found
    """
    value = os.getenv(name)

    if required and not value:
        logger.error("Missing required environment variable: %s", name)
        raise ConfigError(f"Missing required environment variable: {name}")

    return value


def get_env_flag(name: str, default: bool) -> bool:
    """Interpret an environment variable as a boolean flag."""
    value = get_env_variable(name)
    if value is None or value == "":
        return default
    return value.lower() in TRUE_VALUES


def load_config_from_env(**overrides) -> MigrationConfig:
    """
    Load configuration from environment variables.

    Args:
        **overrides: Values taken from the command line; ``None`` entries are ignored

    Returns:
        MigrationConfig object with validated configuration

    Raises:
        ConfigError: If any required configuration is missing or invalid
    """
    overrides = {key: value for key, value in overrides.items() if value is not None}

    try:
        source_host = (get_env_variable("SOURCE_HOST") or "bitbucket").lower()

        bitbucket = None
        gitlab_config = None
        if source_host == "gitlab":
            gitlab_config = GitLabConfig(
                url=get_env_variable("SOURCE_GITLAB_URL", required=True),
                token=SecretStr(get_env_variable("SOURCE_GITLAB_TOKEN", required=True)),
                group=get_env_variable("SOURCE_GITLAB_GROUP") or None,
            )
        else:
            bitbucket = BitbucketConfig(
                username=get_env_variable("BITBUCKET_USERNAME", required=True),
                app_password=SecretStr(get_env_variable("BITBUCKET_APP_PASSWORD", required=True)),
                workspace=get_env_variable("BITBUCKET_WORKSPACE", required=True),
            )

        github = GitHubConfig(
            token=SecretStr(get_env_variable("GITHUB_TOKEN", required=True)),
            username=get_env_variable("GITHUB_USERNAME", required=True),
            organization=get_env_variable("GITHUB_ORG") or None,
            api_url=get_env_variable("GITHUB_API_URL") or "https://api.github.com",
        )

        transfer = TransferConfig(
            temp_dir=Path(overrides.pop("temp_dir", None) or get_env_variable("TEMP_DIR") or "./temp"),
            size_threshold_mb=int(get_env_variable("LARGE_FILE_THRESHOLD_MB") or 100),
            command_timeout=float(get_env_variable("GIT_COMMAND_TIMEOUT") or 3600),
            scan_workers=int(get_env_variable("SCAN_WORKERS") or 8),
        )

        config = MigrationConfig(
            source_host=source_host,
            bitbucket=bitbucket,
            gitlab=gitlab_config,
            github=github,
            transfer=transfer,
            dry_run=overrides.pop("dry_run", get_env_flag("DRY_RUN", False)),
            skip_existing=overrides.pop("skip_existing", get_env_flag("SKIP_EXISTING", True)),
            log_dir=Path(overrides.pop("log_dir", None) or get_env_variable("LOG_DIR") or "./logs"),
        )

        return config
    except ConfigError:
        raise
    except ValueError as e:
        logger.error("Configuration validation error: %s", e)
        raise ConfigError(f"Configuration validation error: {e}") from e
    except Exception as e:
        logger.error("Unexpected error loading configuration: %s", e)
        raise ConfigError(f"Unexpected error loading configuration: {e}") from e
