"""
Configuration using Pydantic for type-safe settings management.

Settings come from three places, highest precedence first:

1. Command-line flags (passed to ``RouletteSettings.load`` as overrides)
2. The YAML configuration file (``gitlab-roulette.yaml`` by default)
3. ``GITLAB_ROULETTE_*`` environment variables

Example configuration::

    url: https://gitlab.example.com/group/project
    token: ${GITLAB_TOKEN}
    issues: [12, 13, 14]
    members: [alice, bob]
    strategy: balanced

Instead of listing issues, they can be picked among the project's open
issues::

    milestone: "Sprint 12"
    issue_range: 40-60
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gitlab_roulette.exceptions import ConfigurationError
from gitlab_roulette.providers.gitlab_rest import instance_url

DEFAULT_CONFIG_FILE = "./gitlab-roulette.yaml"

# Messages for required fields that are missing altogether
MISSING_FIELD_MESSAGES = {
    "url": "Please add a url to the config file or using the --url argument",
    "token": "Please add a token to the config file or using the --token argument",
}

# Fields that pick issues from the project instead of listing them
SELECTION_FIELDS = ("milestone", "issue_range")

ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


class RouletteSettings(BaseSettings):
    """Resolved settings for one gitlab-roulette run."""

    model_config = SettingsConfigDict(
        env_prefix="GITLAB_ROULETTE_",
        case_sensitive=False,
        extra="forbid",
    )

    url: str = Field(..., description="Web URL of the GitLab project")
    token: SecretStr = Field(..., description="Personal access token with the 'api' scope")
    issues: list[int | str] = Field(default_factory=list, description="Issue iids to assign")
    milestone: str | None = Field(default=None, description="Assign the open issues of this milestone")
    issue_range: tuple[int, int] | None = Field(default=None, description="Assign open issues with iids in START-END")
    members: list[str] = Field(default_factory=list, description="Usernames to assign issues to")
    strategy: Literal["uniform", "balanced"] = Field(default="uniform", description="Assignment strategy")
    seed: int | None = Field(default=None, description="Seed for a reproducible draw")
    max_workers: int = Field(default=1, ge=1, le=16, description="Concurrent assignment calls")

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        value = value.strip()
        # Raises ValueError with a user-facing message for malformed urls
        instance_url(value)
        return value

    @field_validator("token")
    @classmethod
    def validate_token(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("token must not be empty")
        return value

    @field_validator("issues", mode="before")
    @classmethod
    def normalize_issues(cls, value: Any) -> Any:
        """Turn numeric strings into ints so '12' and 12 name the same issue."""
        if not isinstance(value, list | tuple):
            return value

        normalized: list[Any] = []
        for item in value:
            if isinstance(item, bool):
                raise ValueError(f"invalid issue identifier: {item!r}")
            if isinstance(item, str):
                item = item.strip()
                if not item:
                    raise ValueError("issue identifiers must not be empty")
                if item.lstrip("#").isdigit():
                    item = int(item.lstrip("#"))
            normalized.append(item)
        return normalized

    @field_validator("milestone")
    @classmethod
    def validate_milestone(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("milestone must not be empty")
        return value.strip() if value is not None else None

    @field_validator("issue_range", mode="before")
    @classmethod
    def parse_issue_range(cls, value: Any) -> Any:
        """Accept "40-60" as well as [40, 60]."""
        if isinstance(value, str):
            first, sep, last = value.partition("-")
            if not sep or not first.strip().isdigit() or not last.strip().isdigit():
                raise ValueError(f"'{value}' is not a range of issue iids like 40-60")
            return int(first), int(last)
        return value

    @field_validator("issue_range")
    @classmethod
    def validate_issue_range(cls, value: tuple[int, int] | None) -> tuple[int, int] | None:
        if value is not None:
            first, last = value
            if first < 1 or first > last:
                raise ValueError(f"{first}-{last} is not a valid range of issue iids")
        return value

    @field_validator("members")
    @classmethod
    def validate_members(cls, value: list[str]) -> list[str]:
        members = [member.strip() for member in value]
        if any(not member for member in members):
            raise ValueError("member usernames must not be empty")
        return members

    @model_validator(mode="after")
    def check_issue_selection(self) -> RouletteSettings:
        if self.issues and self.selects_issues:
            raise ValueError("use either issues or milestone/issue_range to choose the issues, not both")
        return self

    @property
    def selects_issues(self) -> bool:
        """True when the issues are picked from the project rather than listed."""
        return self.milestone is not None or self.issue_range is not None

    @classmethod
    def load(
        cls,
        config_path: str | Path | None = DEFAULT_CONFIG_FILE,
        overrides: Mapping[str, Any] | None = None,
        must_exist: bool = False,
    ) -> RouletteSettings:
        """Load settings from an optional YAML file and command-line overrides.

        Args:
            config_path: Path to the YAML configuration file
            overrides: Values from command-line flags; None values are ignored.
                Issues given as flags replace a milestone or range of the file,
                and the other way round.
            must_exist: Fail when the configuration file is missing

        Returns:
            RouletteSettings instance

        Raises:
            ConfigurationError: If the file is invalid or the merged values
                do not validate
        """
        data: dict[str, Any] = {}
        if config_path is not None:
            path = Path(config_path)
            if path.exists():
                data = cls._read_yaml(path)
            elif must_exist:
                raise ConfigurationError(f"Configuration file not found: {config_path}")

        given = {key: value for key, value in (overrides or {}).items() if value is not None}
        if "issues" in given:
            for name in SELECTION_FIELDS:
                data.pop(name, None)
        elif any(name in given for name in SELECTION_FIELDS):
            data.pop("issues", None)
        data.update(given)

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(_describe_validation_error(e)) from e

    @classmethod
    def _read_yaml(cls, path: Path) -> dict[str, Any]:
        try:
            content = path.read_text()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {path}") from e

        try:
            content = cls._interpolate_env_vars(content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {path}: {e}") from e

        if config_dict is None:
            return {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")
        return config_dict

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ${VAR_NAME} and ${VAR_NAME:-default} placeholders.

        YAML comment lines are left untouched.

        Raises:
            ValueError: If a variable without default is not set
        """

        def replace_var(match: re.Match[str]) -> str:
            var_name, default_value = match.group(1), match.group(2)
            value = os.getenv(var_name)
            if value is not None:
                return value
            if default_value is not None:
                return default_value
            raise ValueError(f"Environment variable {var_name} is not set")

        lines = content.split("\n")
        return "\n".join(
            line if line.lstrip().startswith("#") else ENV_VAR_PATTERN.sub(replace_var, line) for line in lines
        )


def _describe_validation_error(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        field = str(item["loc"][0]) if item["loc"] else "config"
        if item["type"] == "missing" and field in MISSING_FIELD_MESSAGES:
            messages.append(MISSING_FIELD_MESSAGES[field])
        elif item["type"] == "extra_forbidden":
            messages.append(f"Unknown configuration field: {field}")
        else:
            # pydantic prefixes messages of ValueErrors raised in validators
            messages.append(f"{field}: {item['msg'].removeprefix('Value error, ')}")
    return "\n".join(messages)
