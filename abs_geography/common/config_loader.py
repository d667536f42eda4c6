"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from abs_geography.common.errors import ConfigError
from abs_geography.common.fs import read_yaml
from abs_geography.common.schema import validate_geography_config
from abs_geography.common.time_utils import days_to_seconds

CONFIG_FILENAME = "geography.yml"


@dataclass(frozen=True)
class DatasetConfig:
    name: str
    cache_path: Path
    baseline_path: Path


@dataclass(frozen=True)
class AbsApiConfig:
    base_url: str
    accept: str
    timeout_seconds: float
    max_attempts: int
    rate_per_sec: float


@dataclass(frozen=True)
class GeographyConfig:
    cache_dir: Path
    max_age_seconds: float
    concordance: DatasetConfig
    boundaries: DatasetConfig
    abs_api: AbsApiConfig


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    # An empty overlay file parses to None.
    if overlay is None:
        return base
    return _deep_merge(base, overlay)


def _dataset(name: str, cfg: dict, cache_dir: Path) -> DatasetConfig:
    return DatasetConfig(
        name=name,
        cache_path=cache_dir / cfg["cache_filename"],
        baseline_path=Path(cfg["baseline_path"]),
    )


def build_geography_config(cfg: dict) -> GeographyConfig:
    cache_dir = Path(cfg["cache"]["directory"])
    api = cfg["abs_api"]
    return GeographyConfig(
        cache_dir=cache_dir,
        max_age_seconds=days_to_seconds(cfg["cache"]["max_age_days"]),
        concordance=_dataset("concordance", cfg["datasets"]["concordance"], cache_dir),
        boundaries=_dataset("boundaries", cfg["datasets"]["boundaries"], cache_dir),
        abs_api=AbsApiConfig(
            base_url=str(api["base_url"]),
            accept=str(api["accept"]),
            timeout_seconds=float(api["timeout_seconds"]),
            max_attempts=int(api["max_attempts"]),
            rate_per_sec=float(api["rate_per_sec"]),
        ),
    )


def load_config(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> GeographyConfig:
    overlay_path = None
    if overlay_config_dir is not None:
        overlay_path = overlay_config_dir / CONFIG_FILENAME
    raw = _load_yaml_with_overlay(config_dir / CONFIG_FILENAME, overlay_path)
    validated = validate_geography_config(raw, allow_unknown=allow_unknown)
    return build_geography_config(validated)
