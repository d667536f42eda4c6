"""ABS Data API (SDMX-JSON) client.

The statistic tools share this client: build a dataflow URL, fetch the
SDMX-JSON payload and pull the first observation out of it.
"""

from __future__ import annotations

from typing import Any

from abs_geography.common.config_loader import AbsApiConfig
from abs_geography.common.http import HttpClient, RetryConfig, TimeoutConfig

AGENCY_ID = "ABS"


def dataflow_url(base_url: str, dataflow: str, key: str = "all") -> str:
    return f"{base_url.rstrip('/')}/{AGENCY_ID},{dataflow}/{key}"


def extract_first_observation(payload: Any) -> float | None:
    """First observation of the first series of the first dataset, if any."""
    if not isinstance(payload, dict) or "error" in payload:
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    datasets = data.get("dataSets")
    if not isinstance(datasets, list) or not datasets or not isinstance(datasets[0], dict):
        return None
    series = datasets[0].get("series")
    if not isinstance(series, dict) or not series:
        return None
    first_series = next(iter(series.values()))
    observations = first_series.get("observations") if isinstance(first_series, dict) else None
    if not isinstance(observations, dict) or not observations:
        return None
    first = next(iter(observations.values()))
    if not isinstance(first, list) or not first or first[0] is None:
        return None
    try:
        return float(first[0])
    except (TypeError, ValueError):
        return None


class AbsDataClient:
    def __init__(self, config: AbsApiConfig, http_client: HttpClient | None = None) -> None:
        self.config = config
        self.http = http_client or HttpClient(
            timeout=TimeoutConfig(connect=min(10.0, config.timeout_seconds), read=config.timeout_seconds),
            retry=RetryConfig(max_attempts=config.max_attempts),
            rate_per_sec=config.rate_per_sec,
            accept=config.accept,
        )

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "AbsDataClient":
        return self

    def __exit__(self, *_exc_info) -> None:
        self.close()

    def fetch_dataflow(
        self,
        dataflow: str,
        *,
        start_period: str | None = None,
        end_period: str | None = None,
        key: str = "all",
    ) -> Any:
        params: dict[str, str] = {}
        if start_period:
            params["startPeriod"] = start_period
        if end_period:
            params["endPeriod"] = end_period
        return self.http.get_json(dataflow_url(self.config.base_url, dataflow, key), params=params or None)

    def first_observation(
        self,
        dataflow: str,
        *,
        start_period: str | None = None,
        end_period: str | None = None,
        key: str = "all",
    ) -> float | None:
        payload = self.fetch_dataflow(dataflow, start_period=start_period, end_period=end_period, key=key)
        return extract_first_observation(payload)
