"""Configuration models for bbrepolist."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from bbrepolist.exceptions import ConfigError

DEFAULT_BASE_URL = "https://api.bitbucket.org/2.0/"
DEFAULT_PDF_OUTPUT_PATH = "bbrepolist-report.pdf"


class BitbucketConfig(BaseModel):
    """Bitbucket API access and repository loading parameters."""
    base_url: str = DEFAULT_BASE_URL
    workspace: str = ""
    auth_email: str = ""
    auth_api_token: str = ""
    page_len: int = Field(default=50, ge=1, le=100)
    retry_count: int = Field(default=3, ge=0, le=10)
    load_open_pull_requests_statistics: bool = True
    open_pull_requests_load_threshold: int = Field(default=8, ge=1)
    abandoned_months_threshold: int = Field(default=12, ge=1, le=120)

    @field_validator("base_url", "workspace", "auth_email", "auth_api_token")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    def missing_fields(self) -> list[str]:
        """Names of required settings that are still blank."""
        required = ("base_url", "workspace", "auth_email", "auth_api_token")
        return [name for name in required if not getattr(self, name)]


class PdfConfig(BaseModel):
    """PDF report output settings."""
    enabled: bool = True
    output_path: str = DEFAULT_PDF_OUTPUT_PATH

    @field_validator("output_path")
    @classmethod
    def _default_blank_path(cls, value: str) -> str:
        return value.strip() or DEFAULT_PDF_OUTPUT_PATH

    def resolve_output_path(self, now: datetime | None = None) -> Path:
        """Absolute output path with a ``_dd_MM_yyyy`` date suffix.

        ``reports/out.pdf`` generated on 5 March 2025 resolves to
        ``<cwd>/reports/out_05_03_2025.pdf``.
        """
        current = now if now is not None else datetime.now()
        path = Path(self.output_path).expanduser().absolute()
        suffix = current.strftime("%d_%m_%Y")
        return path.with_name(f"{path.stem}_{suffix}{path.suffix}")


class RepoListConfig(BaseModel):
    """Top-level configuration composing all sub-configs."""
    bitbucket: BitbucketConfig = Field(default_factory=BitbucketConfig)
    pdf: PdfConfig = Field(default_factory=PdfConfig)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        yaml_data = yaml.safe_load(f)
    if yaml_data is None:
        return {}
    if not isinstance(yaml_data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return yaml_data


def load_config(path: str | Path | None = None) -> RepoListConfig:
    """Load configuration from YAML file, environment variables, and defaults.

    Priority (highest to lowest):
    1. Environment variables (BBREPOLIST_*)
    2. YAML config file
    3. Defaults
    """
    config_data: dict[str, Any] = {}

    # Load from YAML file
    if path is not None:
        config_path = Path(path)
        if config_path.is_file():
            config_data = _read_yaml(config_path)
    else:
        # Try default locations
        for default_path in [".bbrepolist.yml", ".bbrepolist.yaml"]:
            p = Path(default_path)
            if p.is_file():
                config_data = _read_yaml(p)
                break

    # Apply environment variable overrides
    env_mapping = {
        "BBREPOLIST_BASE_URL": ("bitbucket", "base_url", str),
        "BBREPOLIST_WORKSPACE": ("bitbucket", "workspace", str),
        "BBREPOLIST_AUTH_EMAIL": ("bitbucket", "auth_email", str),
        "BBREPOLIST_AUTH_API_TOKEN": ("bitbucket", "auth_api_token", str),
        "BBREPOLIST_PAGE_LEN": ("bitbucket", "page_len", int),
        "BBREPOLIST_RETRY_COUNT": ("bitbucket", "retry_count", int),
        "BBREPOLIST_LOAD_PR_STATISTICS": (
            "bitbucket", "load_open_pull_requests_statistics", _parse_bool,
        ),
        "BBREPOLIST_PR_LOAD_THRESHOLD": (
            "bitbucket", "open_pull_requests_load_threshold", int,
        ),
        "BBREPOLIST_ABANDONED_MONTHS": ("bitbucket", "abandoned_months_threshold", int),
        "BBREPOLIST_PDF_ENABLED": ("pdf", "enabled", _parse_bool),
        "BBREPOLIST_PDF_OUTPUT_PATH": ("pdf", "output_path", str),
    }

    for env_var, (section, key, type_fn) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            if section not in config_data or config_data[section] is None:
                config_data[section] = {}
            elif not isinstance(config_data[section], dict):
                raise ConfigError(f"Config section {section!r} must be a mapping")
            try:
                config_data[section][key] = type_fn(value)
            except ValueError as exc:
                raise ConfigError(f"Invalid value for {env_var}: {value!r}") from exc

    try:
        return RepoListConfig(**config_data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
