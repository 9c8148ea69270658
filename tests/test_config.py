"""Tests for layered configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest  # type: ignore

from cardharvest.config import DEFAULT_TOTAL_PAGES, HarvestConfig, load_config
from cardharvest.errors import ConfigError


def test_defaults() -> None:
    config = load_config(environ={})
    assert config.total_pages == DEFAULT_TOTAL_PAGES
    assert config.dataset_mode == "records"
    assert config.checkpoint_path == Path("data") / "checkpoint.txt"


def test_yaml_then_env_then_overrides(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "harvest:\n"
        "  total_pages: 50\n"
        "  ready_timeout: 5\n"
        "  headless: false\n"
        "  data_dir: from_yaml\n",
        encoding="utf-8",
    )
    env = {"TOTAL_PAGES": "70", "HARVEST_DATA_DIR": "from_env"}
    config = load_config(str(path), environ=env, overrides={"data_dir": "from_cli", "total_pages": None})
    assert config.total_pages == 70
    assert config.ready_timeout == 5.0
    assert config.headless is False
    assert config.data_dir == "from_cli"


def test_env_boolean_and_mode() -> None:
    config = load_config(environ={"HARVEST_HEADLESS": "no", "HARVEST_DATASET_MODE": "ids"})
    assert config.headless is False
    assert config.dataset_mode == "ids"


@pytest.mark.parametrize(
    "env",
    [
        {"TOTAL_PAGES": "many"},
        {"TOTAL_PAGES": "0"},
        {"HARVEST_DATASET_MODE": "rows"},
        {"LISTING_URL_TEMPLATE": "https://cards.test/list"},
        {"HARVEST_HEADLESS": "maybe"},
    ],
)
def test_invalid_values_raise(env) -> None:
    with pytest.raises(ConfigError):
        load_config(environ=env)


def test_missing_yaml_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "absent.yaml"), environ={})


def test_unknown_override_rejected() -> None:
    with pytest.raises(ConfigError):
        load_config(environ={}, overrides={"threads": 4})


def test_validate_detail_template() -> None:
    with pytest.raises(ConfigError):
        HarvestConfig(detail_url_template="https://cards.test/info").validate()
