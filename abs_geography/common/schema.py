"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from abs_geography.common.constants import DATASETS
from abs_geography.common.errors import ConfigError


def _assert_mapping(obj: object, ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    _assert_mapping(obj, ctx)
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive_number(value: object, ctx: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{ctx} must be a positive number")


def _assert_positive_int(value: object, ctx: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"{ctx} must be a positive integer")


def _assert_non_empty_string(value: object, ctx: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{ctx} must be a non-empty string")


def validate_geography_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"cache", "datasets", "abs_api"}
    _assert_required_keys(cfg, top_required, "geography config")
    _assert_no_unknown_keys(cfg, top_required, "geography config", allow_unknown)

    cache = cfg["cache"]
    _assert_required_keys(cache, {"directory", "max_age_days"}, "cache")
    _assert_no_unknown_keys(cache, {"directory", "max_age_days"}, "cache", allow_unknown)
    _assert_non_empty_string(cache["directory"], "cache.directory")
    _assert_positive_number(cache["max_age_days"], "cache.max_age_days")

    datasets = cfg["datasets"]
    _assert_required_keys(datasets, set(DATASETS), "datasets")
    _assert_no_unknown_keys(datasets, set(DATASETS), "datasets", allow_unknown)
    for name in DATASETS:
        dataset = datasets[name]
        dataset_keys = {"cache_filename", "baseline_path"}
        _assert_required_keys(dataset, dataset_keys, f"datasets.{name}")
        _assert_no_unknown_keys(dataset, dataset_keys, f"datasets.{name}", allow_unknown)
        _assert_non_empty_string(dataset["cache_filename"], f"datasets.{name}.cache_filename")
        _assert_non_empty_string(dataset["baseline_path"], f"datasets.{name}.baseline_path")

    filenames = [datasets[name]["cache_filename"] for name in DATASETS]
    if len(set(filenames)) != len(filenames):
        raise ConfigError("datasets must use distinct cache filenames")

    abs_api = cfg["abs_api"]
    api_keys = {"base_url", "accept", "timeout_seconds", "max_attempts", "rate_per_sec"}
    _assert_required_keys(abs_api, api_keys, "abs_api")
    _assert_no_unknown_keys(abs_api, api_keys, "abs_api", allow_unknown)
    _assert_non_empty_string(abs_api["base_url"], "abs_api.base_url")
    _assert_positive_number(abs_api["timeout_seconds"], "abs_api.timeout_seconds")
    _assert_positive_int(abs_api["max_attempts"], "abs_api.max_attempts")
    _assert_positive_number(abs_api["rate_per_sec"], "abs_api.rate_per_sec")

    return cfg
