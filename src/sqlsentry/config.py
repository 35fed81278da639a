"""Connection profiles, safety policy and configuration loading."""

import os
import re
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from sqlsentry.constants import (
    CONFIG_ENV_VAR,
    DB_DEFAULT_SCHEMA,
    DEFAULT_BLACKLISTED_PHRASES,
    DEFAULT_CONFIG_FILE,
    DEFAULT_CONFIRMATION_KEYWORDS,
    DEFAULT_ROW_LIMIT,
)
from sqlsentry.database.formatting import OutputFormat

_FRONT_MATTER = re.compile(r"^---[ \t]*\r?\n(.*?)\r?\n---", re.DOTALL)


class ConfigurationError(ValueError):
    """Raised when configuration is missing, malformed, or references an unknown profile."""


class EngineFamily(str, Enum):
    """Database technology a profile targets."""

    MYSQL = "mysql"
    POSTGRESQL = "postgresql"


class Profile(BaseModel):
    """Named connection settings for one database."""

    model_config = ConfigDict(frozen=True)

    engine: EngineFamily = Field(default=EngineFamily.MYSQL, validation_alias=AliasChoices("engine", "type"))
    host: str
    port: int
    user: str
    password: str
    database: str
    schema_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("schema_name", "schema"))
    ssl: bool = False

    @field_validator("host", "user", "password", "database", "schema_name", mode="before")
    @classmethod
    def _coerce_scalars(cls, value: Any) -> Any:
        # YAML reads bare numbers (e.g. a numeric password) as int
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class SafetyPolicy(BaseModel):
    """Blacklist, confirmation and auto-limit settings."""

    model_config = ConfigDict(frozen=True)

    row_limit_default: int = Field(
        default=DEFAULT_ROW_LIMIT,
        validation_alias=AliasChoices("row_limit_default", "defaultLimit", "default_limit"),
    )
    confirmation_keywords: tuple[str, ...] = Field(
        default=DEFAULT_CONFIRMATION_KEYWORDS,
        validation_alias=AliasChoices(
            "confirmation_keywords", "requireConfirmationFor", "require_confirmation_for"
        ),
    )
    blacklisted_phrases: tuple[str, ...] = Field(
        default=DEFAULT_BLACKLISTED_PHRASES,
        validation_alias=AliasChoices(
            "blacklisted_phrases", "blacklistedOperations", "blacklisted_operations"
        ),
    )


class Configuration(BaseModel):
    """Profiles plus the policy and defaults shared by every operation."""

    model_config = ConfigDict(frozen=True)

    profiles: dict[str, Profile]
    safety: SafetyPolicy = Field(default_factory=SafetyPolicy)
    default_profile: str = Field(validation_alias=AliasChoices("default_profile", "defaultProfile"))
    default_format: OutputFormat = Field(
        default=OutputFormat.TABLE,
        validation_alias=AliasChoices("default_format", "defaultFormat"),
    )

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        if data.get("safety") is None:
            data.pop("safety", None)
        profiles = data.get("profiles")
        has_default = data.get("default_profile") or data.get("defaultProfile")
        if not has_default and isinstance(profiles, Mapping) and profiles:
            data["default_profile"] = next(iter(profiles))
        return data

    @model_validator(mode="after")
    def _check_default_profile(self) -> "Configuration":
        if self.default_profile not in self.profiles:
            raise ValueError(
                f'Default profile "{self.default_profile}" not found. '
                f"Available profiles: {', '.join(self.profiles)}"
            )
        return self

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Configuration":
        """Validate a raw mapping (e.g. parsed YAML) into a Configuration.

        Raises:
            ConfigurationError: If the mapping is not a valid configuration
        """
        profiles = data.get("profiles") if isinstance(data, Mapping) else None
        if not isinstance(profiles, Mapping) or not profiles:
            raise ConfigurationError('Configuration must include a non-empty "profiles" mapping')
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(_describe_validation_error(exc)) from exc

    def profile(self, name: str) -> Profile:
        """Look up a profile by name.

        Raises:
            ConfigurationError: If the profile does not exist
        """
        try:
            return self.profiles[name]
        except KeyError:
            raise ConfigurationError(
                f'Profile "{name}" not found. Available profiles: {", ".join(self.profiles)}'
            ) from None

    def engine_for(self, name: str) -> EngineFamily:
        return self.profile(name).engine

    def schema_for(self, name: str) -> str:
        """Schema used to qualify catalog lookups (PostgreSQL only)."""
        return self.profile(name).schema_name or DB_DEFAULT_SCHEMA


def _describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        problems.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "Invalid configuration\n  " + "\n  ".join(problems)


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Path:
    """Pick the configuration file: explicit path, environment variable, then working directory."""
    if path:
        return Path(path).expanduser()
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env).expanduser()
    return Path.cwd() / DEFAULT_CONFIG_FILE


def load_config(path: Optional[Union[str, Path]] = None) -> Configuration:
    """Load configuration from a YAML file or a Markdown file with YAML front matter.

    Args:
        path: Optional explicit file path

    Returns:
        Validated Configuration

    Raises:
        ConfigurationError: If the file is missing, unreadable, or invalid
    """
    config_path = resolve_config_path(path)
    if not config_path.is_file():
        raise ConfigurationError(
            f"Configuration file not found at {config_path}\n"
            f"  Hint: Create {DEFAULT_CONFIG_FILE} or point {CONFIG_ENV_VAR} at your config file"
        )

    content = config_path.read_text(encoding="utf-8")
    if config_path.suffix.lower() in (".md", ".markdown"):
        match = _FRONT_MATTER.match(content)
        if not match:
            raise ConfigurationError(
                "Invalid configuration file format. Expected YAML front matter (---...---) at the beginning."
            )
        content = match.group(1)

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(data, Mapping):
        raise ConfigurationError('Configuration must include a non-empty "profiles" mapping')
    return Configuration.from_mapping(data)
