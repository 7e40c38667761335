"""Tests for vpm_publish.core.config module."""

from __future__ import annotations

from pathlib import Path

from vpm_publish.core.config import (
    CONFIG_FILE,
    DEFAULT_MAIN_BRANCH,
    PublishConfig,
    load_config,
    load_config_or_default,
)
from vpm_publish.core.result import Err, Ok


class TestPublishConfig:
    def test_defaults(self) -> None:
        config = PublishConfig()
        assert config.main_branch == DEFAULT_MAIN_BRANCH
        assert config.listing_url is None

    def test_from_dict(self) -> None:
        config = PublishConfig.from_dict(
            {"main_branch": " release ", "listing_url": "https://example.org/listing/"}
        )
        assert config.main_branch == "release"
        assert config.listing_url == "https://example.org/listing/"

    def test_from_dict_ignores_wrong_types(self) -> None:
        config = PublishConfig.from_dict({"main_branch": 3, "listing_url": ""})
        assert config.main_branch == DEFAULT_MAIN_BRANCH
        assert config.listing_url is None


class TestLoadConfig:
    def test_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILE
        path.write_text('main_branch = "trunk"\n', encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Ok)
        assert result.value.main_branch == "trunk"

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILE
        path.write_text("main_branch = \n", encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Err)
        assert result.error.kind == "invalid_config"
        assert "Invalid TOML" in result.error.message

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        result = load_config_or_default(tmp_path)
        assert result == Ok(PublishConfig())

    def test_present_file_is_loaded(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILE).write_text(
            'listing_url = "https://example.org/"\n', encoding="utf-8"
        )
        result = load_config_or_default(tmp_path)
        assert isinstance(result, Ok)
        assert result.value.listing_url == "https://example.org/"
