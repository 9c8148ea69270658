"""
Harvest configuration.

Settings are layered, lowest precedence first: the dataclass defaults
below, the ``harvest:`` section of an optional YAML file, environment
variables (a local ``.env`` file is honoured through python-dotenv) and
finally explicit overrides supplied by the CLI.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml  # type: ignore
from dotenv import load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_TOTAL_PAGES = 1000
DEFAULT_LISTING_URL_TEMPLATE = "https://shoob.gg/cards?page={page}"
DEFAULT_DETAIL_URL_TEMPLATE = "https://shoob.gg/cards/info/{card_id}"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DATASET_MODES = ("records", "ids")

# Environment variable -> config field.
ENV_VARS = {
    "TOTAL_PAGES": "total_pages",
    "LISTING_URL_TEMPLATE": "listing_url_template",
    "DETAIL_URL_TEMPLATE": "detail_url_template",
    "READY_TIMEOUT": "ready_timeout",
    "NAVIGATION_TIMEOUT": "navigation_timeout",
    "HARVEST_DATA_DIR": "data_dir",
    "HARVEST_DATASET_MODE": "dataset_mode",
    "HARVEST_HEADLESS": "headless",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class HarvestConfig:
    """Everything a harvest run needs to know."""

    total_pages: int = DEFAULT_TOTAL_PAGES
    listing_url_template: str = DEFAULT_LISTING_URL_TEMPLATE
    detail_url_template: str = DEFAULT_DETAIL_URL_TEMPLATE
    ready_timeout: float = 10.0        # seconds to wait for page readiness
    navigation_timeout: float = 60.0   # seconds allowed for navigation
    settle_delay: float = 1.0          # extra wait before reading the DOM
    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    data_dir: str = "data"
    dataset_file: str = "cards_by_tier.json"
    checkpoint_file: str = "checkpoint.txt"
    run_log_file: str = "runs.jsonl"
    dataset_mode: str = "records"

    @property
    def dataset_path(self) -> Path:
        return Path(self.data_dir) / self.dataset_file

    @property
    def checkpoint_path(self) -> Path:
        return Path(self.data_dir) / self.checkpoint_file

    @property
    def run_log_path(self) -> Path:
        return Path(self.data_dir) / self.run_log_file

    def validate(self) -> "HarvestConfig":
        if self.total_pages < 1:
            raise ConfigError(f"total_pages must be at least 1, got {self.total_pages}")
        if "{page}" not in self.listing_url_template:
            raise ConfigError("listing_url_template must contain a {page} placeholder")
        if "{card_id}" not in self.detail_url_template:
            raise ConfigError("detail_url_template must contain a {card_id} placeholder")
        if self.dataset_mode not in DATASET_MODES:
            raise ConfigError(
                f"dataset_mode must be one of {', '.join(DATASET_MODES)}, got {self.dataset_mode!r}"
            )
        if self.ready_timeout <= 0 or self.navigation_timeout <= 0:
            raise ConfigError("timeouts must be positive")
        return self


def _coerce(name: str, value: Any) -> Any:
    """Convert a raw YAML/env value to the type of config field ``name``."""
    kind = HarvestConfig.__dataclass_fields__[name].type
    try:
        if kind in ("bool", bool):
            if isinstance(value, bool):
                return value
            text = str(value).strip().lower()
            if text in _TRUE:
                return True
            if text in _FALSE:
                return False
            raise ValueError(f"not a boolean: {value!r}")
        if kind in ("int", int):
            if isinstance(value, bool):
                raise ValueError(f"not an integer: {value!r}")
            return int(str(value).strip())
        if kind in ("float", float):
            return float(str(value).strip())
    except ValueError as exc:
        raise ConfigError(f"invalid value for {name}: {exc}") from exc
    return str(value)


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML configuration {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")
    section = data.get("harvest", data)
    if not isinstance(section, dict):
        raise ConfigError(f"'harvest' section of {path} must be a mapping")
    return section


def load_config(
    path: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> HarvestConfig:
    """Build a validated :class:`HarvestConfig`.

    Args:
        path: Optional YAML file.  Keys may sit at the top level or under
            a ``harvest`` section.
        environ: Environment mapping.  Defaults to ``os.environ`` after
            loading a ``.env`` file, if one exists.
        overrides: Values that win over every other source; ``None``
            values are ignored so unset CLI flags pass through.
    """
    known = {f.name for f in fields(HarvestConfig)}
    values: Dict[str, Any] = {}

    if path:
        for key, value in _load_yaml(Path(path)).items():
            if key not in known:
                logger.warning("Ignoring unknown configuration key: %s", key)
                continue
            values[key] = _coerce(key, value)
        logger.info("Loaded configuration from %s", path)

    if environ is None:
        load_dotenv()
        environ = os.environ
    for env_name, key in ENV_VARS.items():
        if environ.get(env_name):
            values[key] = _coerce(key, environ[env_name])

    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if key not in known:
            raise ConfigError(f"Unknown configuration option: {key}")
        values[key] = _coerce(key, value)

    return HarvestConfig(**values).validate()
