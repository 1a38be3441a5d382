"""Client settings: backend location and timeouts from YAML and environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import httpx
import yaml

from devedit.core.errors import SettingsError

DEFAULT_BASE_URL = "http://192.168.4.1"
DEFAULT_TIMEOUT_S = 5.0
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise SettingsError(f"Duplicate key '{key}' in settings file")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    timeout_s: float = DEFAULT_TIMEOUT_S


def settings_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "devedit/config.yaml"


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SettingsError(f"Could not read settings file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise SettingsError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise SettingsError(f"Settings file {path} must contain a mapping at root")
    return loaded


def normalize_base_url(value: Any, *, context: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise SettingsError(f"{context} must be a non-empty string")
    normalized = value.strip().rstrip("/")
    if not normalized.startswith(("http://", "https://")):
        raise SettingsError(f"{context} must start with http:// or https://")
    try:
        host = httpx.URL(normalized).host
    except httpx.InvalidURL as exc:
        raise SettingsError(f"{context} is not a valid URL: {exc}") from exc
    if not host:
        raise SettingsError(f"{context} must name a host")
    return normalized


def _normalize_timeout(value: Any, *, context: str) -> float:
    if isinstance(value, bool):
        raise SettingsError(f"{context} must be a positive number")
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise SettingsError(f"{context} must be a positive number") from exc
    if timeout <= 0:
        raise SettingsError(f"{context} must be a positive number")
    return timeout


def _from_mapping(doc: dict[str, Any], source: Path) -> Settings:
    unknown = sorted(set(doc) - {"base_url", "timeout_s"})
    if unknown:
        raise SettingsError(f"Unknown setting(s) in {source}: {', '.join(map(str, unknown))}")
    settings = Settings()
    if "base_url" in doc:
        settings = replace(settings, base_url=normalize_base_url(doc["base_url"], context=f"{source}: base_url"))
    if "timeout_s" in doc:
        settings = replace(
            settings, timeout_s=_normalize_timeout(doc["timeout_s"], context=f"{source}: timeout_s")
        )
    return settings


def load_settings(path: Path | None = None) -> Settings:
    """Read the settings file (if any), then apply environment overrides."""
    path = path or settings_path()
    settings = Settings()
    if path.exists():
        settings = _from_mapping(_read_yaml(path), path)
        LOGGER.debug("Read settings from %s", path)

    url = os.environ.get("DEVEDIT_URL")
    if url:
        settings = replace(settings, base_url=normalize_base_url(url, context="DEVEDIT_URL"))
    timeout = os.environ.get("DEVEDIT_TIMEOUT_S")
    if timeout:
        settings = replace(settings, timeout_s=_normalize_timeout(timeout, context="DEVEDIT_TIMEOUT_S"))
    return settings
