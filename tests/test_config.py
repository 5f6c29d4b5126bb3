"""Tests for configuration."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from bbrepolist.config import (
    DEFAULT_BASE_URL,
    BitbucketConfig,
    PdfConfig,
    RepoListConfig,
    load_config,
)
from bbrepolist.exceptions import ConfigError


@pytest.fixture(autouse=True)
def _isolated(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run from an empty directory with no BBREPOLIST_* variables set."""
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("BBREPOLIST_"):
            monkeypatch.delenv(name)


class TestBitbucketConfig:
    def test_defaults(self) -> None:
        config = BitbucketConfig()
        assert config.base_url == DEFAULT_BASE_URL
        assert config.page_len == 50
        assert config.retry_count == 3
        assert config.load_open_pull_requests_statistics is True
        assert config.open_pull_requests_load_threshold == 8
        assert config.abandoned_months_threshold == 12

    @pytest.mark.parametrize("field,value", [
        ("page_len", 0),
        ("page_len", 101),
        ("retry_count", -1),
        ("retry_count", 11),
        ("open_pull_requests_load_threshold", 0),
        ("abandoned_months_threshold", 0),
        ("abandoned_months_threshold", 121),
    ])
    def test_ranges(self, field: str, value: int) -> None:
        with pytest.raises(ValidationError):
            BitbucketConfig(**{field: value})

    def test_missing_fields(self) -> None:
        config = BitbucketConfig(workspace="acme", auth_email="  ")
        assert config.missing_fields() == ["auth_email", "auth_api_token"]

    def test_complete(self, bitbucket_config: BitbucketConfig) -> None:
        assert bitbucket_config.missing_fields() == []


class TestPdfConfig:
    def test_blank_output_path_uses_default(self) -> None:
        assert PdfConfig(output_path="  ").output_path == "bbrepolist-report.pdf"

    def test_resolve_output_path_appends_date(self) -> None:
        pdf = PdfConfig(output_path="reports/out.pdf")
        resolved = pdf.resolve_output_path(now=datetime(2025, 3, 5, 14, 0))
        assert resolved == Path.cwd() / "reports" / "out_05_03_2025.pdf"
        assert resolved.is_absolute()

    def test_resolve_absolute_path(self, tmp_path: Path) -> None:
        pdf = PdfConfig(output_path=str(tmp_path / "report.pdf"))
        resolved = pdf.resolve_output_path(now=datetime(2024, 12, 31))
        assert resolved == tmp_path / "report_31_12_2024.pdf"


class TestLoadConfig:
    def test_load_defaults(self) -> None:
        config = load_config()
        assert isinstance(config, RepoListConfig)
        assert config.bitbucket.page_len == 50
        assert config.pdf.enabled is True

    def test_load_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "custom.yml"
        config_file.write_text(yaml.dump({
            "bitbucket": {"workspace": "acme", "page_len": 25},
            "pdf": {"enabled": False},
        }))
        config = load_config(config_file)
        assert config.bitbucket.workspace == "acme"
        assert config.bitbucket.page_len == 25
        assert config.pdf.enabled is False
        # Defaults preserved
        assert config.bitbucket.retry_count == 3

    def test_default_location(self, tmp_path: Path) -> None:
        (tmp_path / ".bbrepolist.yml").write_text(yaml.dump({
            "bitbucket": {"workspace": "from-default-file"},
        }))
        assert load_config().bitbucket.workspace == "from-default-file"

    def test_load_nonexistent_path(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "nonexistent.yml")
        assert config.bitbucket.page_len == 50

    def test_empty_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yml"
        config_file.write_text("")
        assert load_config(config_file).bitbucket.page_len == 50

    def test_non_mapping_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "list.yml"
        config_file.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(config_file)

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BBREPOLIST_WORKSPACE", "env-ws")
        monkeypatch.setenv("BBREPOLIST_PAGE_LEN", "10")
        monkeypatch.setenv("BBREPOLIST_LOAD_PR_STATISTICS", "false")
        monkeypatch.setenv("BBREPOLIST_PDF_ENABLED", "no")
        config = load_config()
        assert config.bitbucket.workspace == "env-ws"
        assert config.bitbucket.page_len == 10
        assert config.bitbucket.load_open_pull_requests_statistics is False
        assert config.pdf.enabled is False

    def test_yaml_plus_env_override(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_file = tmp_path / "custom.yml"
        config_file.write_text(yaml.dump({"bitbucket": {"retry_count": 5}}))
        monkeypatch.setenv("BBREPOLIST_RETRY_COUNT", "1")
        config = load_config(config_file)
        # Env var takes precedence
        assert config.bitbucket.retry_count == 1

    def test_invalid_env_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BBREPOLIST_PAGE_LEN", "lots")
        with pytest.raises(ConfigError):
            load_config()

    def test_out_of_range_value(self, tmp_path: Path) -> None:
        config_file = tmp_path / "custom.yml"
        config_file.write_text(yaml.dump({"bitbucket": {"page_len": 500}}))
        with pytest.raises(ConfigError):
            load_config(config_file)

    def test_scalar_section_with_env_override(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_file = tmp_path / "scalar.yml"
        config_file.write_text("bitbucket: oops\n")
        monkeypatch.setenv("BBREPOLIST_WORKSPACE", "acme")
        with pytest.raises(ConfigError, match="'bitbucket' must be a mapping"):
            load_config(config_file)

    def test_scalar_section(self, tmp_path: Path) -> None:
        config_file = tmp_path / "scalar.yml"
        config_file.write_text("pdf: yes\n")
        with pytest.raises(ConfigError):
            load_config(config_file)
