"""Configuration models for tracelink.

Settings come from environment variables (prefix ``TRACELINK_``) and
optionally from a YAML file. Environment variables take precedence over
YAML values.

Example:
    >>> settings = get_settings()
    >>> settings.max_workers
    4
"""

from __future__ import annotations

import codecs
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from tracelink.errors import ConfigurationError
from tracelink.resolvers import LANGUAGES

DEFAULT_CONFIG_PATH = Path(".tracelink/config.yaml")


class SourceLocation(BaseModel):
    """Where scanned sources live, used to build source links.

    Attributes:
        local: Local checkout root; stripped from file paths in links.
        organization: Git organization owning the repository.
        repository: Repository name.
        branch: Branch the links point at.
        url_template: Optional custom link template.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    local: Path | None = Field(default=None, description="Local checkout root")
    organization: str = Field(default="", description="Git organization")
    repository: str = Field(default="", description="Git repository")
    branch: str = Field(default="", description="Git branch")
    url_template: str | None = Field(
        default=None,
        description="Template with %{base}, %{git.org}, %{git.repository}, %{git.branch}, %{fileName}",
    )


class TraceSettings(BaseSettings):
    """Settings for a tracelink run.

    Environment Variables:
        TRACELINK_MAX_WORKERS: Worker threads for batch scans
        TRACELINK_ENCODING: Source file encoding
        TRACELINK_LOG_LEVEL: Minimum log level
        TRACELINK_JSON_LOGS: Emit JSON logs instead of console output
        TRACELINK_GITHUB_BASE_URL: GitHub instance for issue and source links
        TRACELINK_JIRA_BASE_URL: Jira instance for issue links
    """

    model_config = SettingsConfigDict(
        env_prefix="TRACELINK_",
        env_file=".env",
        extra="ignore",
    )

    max_workers: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Worker threads for batch scans",
    )
    encoding: str = Field(default="utf-8", description="Source file encoding")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum log level",
    )
    json_logs: bool = Field(default=False, description="Render logs as JSON")

    extra_extensions: dict[str, str] = Field(
        default_factory=dict,
        description="Additional file extension to language entries, e.g. {'.kt': 'java'}",
    )

    github_base_url: str = Field(
        default="https://github.com",
        description="GitHub instance for issue and source links",
    )
    jira_base_url: str | None = Field(
        default=None,
        description="Jira instance for issue links",
    )
    sourcecode: SourceLocation | None = Field(
        default=None,
        description="Source location for building file links",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Let environment variables override values passed in (from YAML)."""
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError as e:
            msg = f"Unknown encoding '{value}'"
            raise ValueError(msg) from e
        return value

    @field_validator("github_base_url", "jira_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.rstrip("/")

    @field_validator("extra_extensions")
    @classmethod
    def validate_extensions(cls, value: dict[str, str]) -> dict[str, str]:
        normalized: dict[str, str] = {}
        for extension, language in value.items():
            if language not in LANGUAGES:
                msg = f"Unknown language '{language}' for '{extension}', expected one of {sorted(LANGUAGES)}"
                raise ValueError(msg)
            key = extension.lower()
            if not key.startswith("."):
                key = f".{key}"
            normalized[key] = language
        return normalized


def load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Dictionary of configuration values, or empty dict if file doesn't exist.

    Raises:
        ConfigurationError: If the file is not valid YAML or not a mapping.
    """
    if not config_path.exists():
        return {}

    import yaml

    try:
        with config_path.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            "Configuration file is not valid YAML",
            {"path": str(config_path), "error": str(e)},
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping",
            {"path": str(config_path)},
        )
    return data


def get_settings(config_path: Path | None = None) -> TraceSettings:
    """Load settings from environment and optionally a YAML file.

    YAML values are passed as init arguments; environment variables override
    them.

    Args:
        config_path: Optional path to YAML config file. Defaults to
            ``.tracelink/config.yaml``.

    Returns:
        Validated TraceSettings instance.

    Raises:
        ConfigurationError: If the YAML file or any value is invalid.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    yaml_config = load_yaml_config(config_path)

    try:
        return TraceSettings(**yaml_config)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid tracelink settings",
            {"path": str(config_path), "errors": e.error_count()},
        ) from e


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "SourceLocation",
    "TraceSettings",
    "get_settings",
    "load_yaml_config",
]
