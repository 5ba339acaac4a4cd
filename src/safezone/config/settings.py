# src/safezone/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/safezone/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `SAFEZONE_CATALOG_URL`, `SAFEZONE_CATALOG_API_KEY`)
- an external YAML file via `SAFEZONE_CONFIG_PATH`

Design rule:
- Tuning knobs live in YAML, not hard-coded in business logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from safezone.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `safezone.config`."""
    text = resources.files("safezone.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "SafeZone"
    timezone: str = "America/Santo_Domingo"
    http_timeout_seconds: float = 15
    log_level: str = "INFO"


class CacheSettings(BaseModel):
    enabled: bool = True
    dir: str = ".cache/safezone"
    default_ttl_seconds: int = 60 * 60 * 24


class CatalogSettings(BaseModel):
    source: Literal["rest", "file"] = "rest"
    base_url: str | None = None
    api_key: str | None = None
    reports_table: str = "reports"
    affairs_table: str = "affair"
    active_status_ids: list[int] = Field(default_factory=lambda: [1, 2])
    path: str = "data/catalogs/reports.json"


class RetrySettings(BaseModel):
    max_retries: int = Field(2, ge=0)
    base_delay_seconds: float = Field(0.5, ge=0)
    max_delay_seconds: float = Field(8.0, ge=0)


class GeocodingSettings(BaseModel):
    base_url: str = "https://nominatim.openstreetmap.org/search"
    user_agent: str = "safezone/0.1.0"
    country_codes: list[str] = Field(default_factory=lambda: ["do"])
    concurrency: int = Field(4, ge=1)
    requests_per_minute: float = Field(60, gt=0)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    cache_ttl_seconds: int = 60 * 60 * 24 * 30
    not_found_cache_ttl_seconds: int = 60 * 60 * 24


class LocationSettings(BaseModel):
    timeout_seconds: float = Field(5.0, gt=0)


class DefaultCenter(BaseModel):
    latitude: float = Field(18.4861, ge=-90, le=90)
    longitude: float = Field(-69.9312, ge=-180, le=180)


class DiscoverySettings(BaseModel):
    include_user_location: bool = True
    show_all_reports: bool = False
    max_distance_km: float = 10.0
    initial_zoom: float = 12.0
    default_center: DefaultCenter = Field(default_factory=DefaultCenter)
    snippet_length: int = Field(140, ge=8)
    anonymous_title: str = "Anonymous user"
    missing_description: str = "No description"


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    geocoding: GeocodingSettings = Field(default_factory=GeocodingSettings)
    location: LocationSettings = Field(default_factory=LocationSettings)
    discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay the whitelisted `SAFEZONE_*` environment variables onto the raw payload."""
    load_dotenv_if_present()
    data = dict(data)
    cache_dir = os.getenv("SAFEZONE_CACHE_DIR")
    if cache_dir:
        data.setdefault("cache", {})["dir"] = cache_dir

    log_level = os.getenv("SAFEZONE_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    catalog_url = os.getenv("SAFEZONE_CATALOG_URL")
    catalog_key = os.getenv("SAFEZONE_CATALOG_API_KEY")
    if catalog_url:
        data.setdefault("catalog", {})["base_url"] = catalog_url
    if catalog_key:
        data.setdefault("catalog", {})["api_key"] = catalog_key

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("SAFEZONE_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
