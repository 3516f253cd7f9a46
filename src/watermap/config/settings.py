# src/watermap/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/watermap/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `WATERMAP_LOG_LEVEL`, `WATERMAP_OVERPASS_URL`)
- an external YAML file via `WATERMAP_CONFIG_PATH`

Design rule:
- Tuning knobs (movement threshold, debounce, timeouts) live in YAML, not in engine code.
"""

from __future__ import annotations

import copy
import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from watermap.core.env import load_dotenv_if_present

LayerName = Literal["water", "toilet"]


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `watermap.config`."""
    text = resources.files("watermap.config").joinpath(filename).read_text(encoding="utf-8")
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
    name: str = "WaterMap"
    log_level: str = "INFO"
    http_log_level: str = "WARNING"


class CenterSettings(BaseModel):
    lat: float = Field(56.9496, ge=-90, le=90)
    lon: float = Field(24.1052, ge=-180, le=180)


class MapSettings(BaseModel):
    # Fallback view when the user's location is unknown (Riga).
    default_center: CenterSettings = Field(default_factory=CenterSettings)
    initial_radius_m: float = Field(1500, gt=0)


class MovementSettings(BaseModel):
    threshold: float = Field(0.25, ge=0)
    debounce_seconds: float = Field(0.3, ge=0)


class LocationSettings(BaseModel):
    timeout_seconds: float = Field(10, gt=0)
    high_accuracy: bool = True
    origin: str = "http://localhost"
    ip_lookup_url: str = "https://ipapi.co/json/"


class OverpassSettings(BaseModel):
    url: str = "https://overpass-api.de/api/interpreter"
    timeout_seconds: float = Field(30, gt=0)


class LayerSettings(BaseModel):
    label: str
    query: str
    query_path: str | None = None
    enabled_by_default: bool = False


class SyncSettings(BaseModel):
    discard_stale_responses: bool = True


def _default_layers() -> dict[str, LayerSettings]:
    return {
        "water": LayerSettings(label="Water taps", query="drinking_water.overpassql", enabled_by_default=True),
        "toilet": LayerSettings(label="Public toilets", query="toilets.overpassql"),
    }


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    map: MapSettings = Field(default_factory=MapSettings)
    movement: MovementSettings = Field(default_factory=MovementSettings)
    location: LocationSettings = Field(default_factory=LocationSettings)
    overpass: OverpassSettings = Field(default_factory=OverpassSettings)
    layers: dict[LayerName, LayerSettings] = Field(default_factory=_default_layers)
    sync: SyncSettings = Field(default_factory=SyncSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("WATERMAP_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    overpass_url = os.getenv("WATERMAP_OVERPASS_URL")
    if overpass_url:
        data.setdefault("overpass", {})["url"] = overpass_url

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("WATERMAP_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def _logging_config() -> dict[str, Any]:
    return _read_package_yaml("logging.yaml")


def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (a fresh copy; callers may mutate it)."""
    return copy.deepcopy(_logging_config())
