from __future__ import annotations

import os
from pathlib import Path
from typing import Any, List, Mapping, Optional

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .dates import DEFAULT_DATE_PATTERN, date_token_width
from .exceptions import ConfigError
from .logger import get_logger
from .patterns import compile_pattern

log = get_logger(__name__)

DEFAULT_API_URL = "https://api.aiven.io"


def _check_pattern(value: str) -> str:
    try:
        compile_pattern(value)
    except ConfigError as e:
        raise ValueError(str(e)) from e
    return value


class Rule(BaseModel):
    index_pattern: str
    age_threshold: int
    date_pattern: str = DEFAULT_DATE_PATTERN

    @field_validator("index_pattern")
    @classmethod
    def _valid_index_pattern(cls, v: str) -> str:
        return _check_pattern(v)

    @field_validator("date_pattern", mode="before")
    @classmethod
    def _default_date_pattern(cls, v: Any) -> Any:
        if v is None or v == "":
            return DEFAULT_DATE_PATTERN
        return v

    @field_validator("date_pattern")
    @classmethod
    def _renderable_date_pattern(cls, v: str) -> str:
        if date_token_width(v) <= 0:
            raise ValueError(f"date pattern {v!r} renders to an empty token")
        return v


class SummaryReportSpec(BaseModel):
    pattern: str
    name: str

    @field_validator("pattern")
    @classmethod
    def _valid_pattern(cls, v: str) -> str:
        return _check_pattern(v)


class ServiceConfig(BaseModel):
    service: str
    rules: List[Rule] = Field(default_factory=list)
    summary_reports: List[SummaryReportSpec] = Field(default_factory=list)


class CleanerSettings(BaseModel):
    """Process-wide settings, built once at startup and never mutated."""

    model_config = ConfigDict(frozen=True)

    dry_run: bool = False
    api_token: str = ""
    project: str = ""
    api_url: str = DEFAULT_API_URL
    rules_file: str = ""
    webhook_url: Optional[str] = None
    title_link: Optional[str] = None

    @field_validator("webhook_url", "title_link", mode="before")
    @classmethod
    def _blank_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def notifications_enabled(self) -> bool:
        return not self.dry_run and bool(self.webhook_url)


_ENV_KEYS = {
    "dry_run": "CLEANUP_DRY_RUN",
    "api_token": "AIVEN_API_TOKEN",
    "project": "AIVEN_PROJECT",
    "api_url": "AIVEN_API_URL",
    "rules_file": "RULES_FILE",
    "webhook_url": "NOTIFICATION_WEBHOOK_URL",
    "title_link": "NOTIFICATION_TITLE_LINK",
}


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    use_dotenv: bool = True,
    **overrides: Any,
) -> CleanerSettings:
    """
    Build settings from environment variables, then apply non-None overrides.

    A ``.env`` file in the working directory is honoured unless use_dotenv
    is False or an explicit env mapping is given.
    """
    if env is None:
        if use_dotenv:
            load_dotenv(find_dotenv(usecwd=True))
        env = os.environ
    raw: dict[str, Any] = {}
    for field_name, key in _ENV_KEYS.items():
        value = env.get(key)
        if value is not None and value != "":
            raw[field_name] = value
    raw.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return CleanerSettings(**raw)
    except ValidationError as e:
        raise ConfigError(f"invalid process configuration: {e}") from e


def parse_rules(raw: Any, source: str = "<rules>") -> List[ServiceConfig]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError(f"{source}: expected a list of services, got {type(raw).__name__}")
    services: List[ServiceConfig] = []
    for pos, item in enumerate(raw):
        try:
            services.append(ServiceConfig.model_validate(item))
        except ValidationError as e:
            raise ConfigError(f"{source}: service #{pos + 1} is invalid: {e}") from e
    return services


def load_rules(path: str | Path) -> List[ServiceConfig]:
    p = Path(path)
    if not str(path) or not p.is_file():
        raise ConfigError(f"rules file not found: {str(path)!r}")
    try:
        with open(p, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read rules file {p}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"cannot parse rules file {p}: {e}") from e
    services = parse_rules(raw, source=str(p))
    log.info("Loaded %d service rule sets from %s", len(services), p)
    return services
