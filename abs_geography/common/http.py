"""HTTP client with retries, timeouts, and per-host rate limiting."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any
from urllib.parse import urlparse

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from abs_geography.common.constants import USER_AGENT
from abs_geography.common.errors import GeographyError

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 10.0
    read: float = 30.0


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 4
    multiplier: float = 1.0
    max_wait: float = 20.0


class HttpRequestError(GeographyError):
    error_code = "HTTP_ERROR"


class RetryableHttpError(HttpRequestError):
    pass


class TokenBucket:
    def __init__(self, rate_per_sec: float, capacity: float | None = None) -> None:
        self.rate_per_sec = rate_per_sec
        self.capacity = capacity if capacity is not None else rate_per_sec
        self.tokens = self.capacity
        self.updated_at = time.monotonic()
        self.lock = threading.Lock()

    def acquire(self, tokens: float = 1.0) -> None:
        while True:
            with self.lock:
                now = time.monotonic()
                elapsed = now - self.updated_at
                self.tokens = min(self.capacity, self.tokens + elapsed * self.rate_per_sec)
                self.updated_at = now
                if self.tokens >= tokens:
                    self.tokens -= tokens
                    return
                deficit = tokens - self.tokens
                wait_for = max(deficit / self.rate_per_sec, 0.01)
            time.sleep(wait_for)


class HostRateLimiter:
    def __init__(self, rate_per_sec: float) -> None:
        self.rate_per_sec = rate_per_sec
        self.buckets: dict[str, TokenBucket] = {}
        self.lock = threading.Lock()

    def acquire(self, host: str, tokens: float = 1.0) -> None:
        with self.lock:
            bucket = self.buckets.get(host)
            if bucket is None:
                # Capacity of at least one token so sub-1/s rates can still start.
                bucket = TokenBucket(rate_per_sec=self.rate_per_sec, capacity=max(1.0, self.rate_per_sec))
                self.buckets[host] = bucket
        bucket.acquire(tokens=tokens)


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
        rate_per_sec: float = 2.0,
        accept: str = "application/json",
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.accept = accept
        self.session = requests.Session()
        self.limiter = HostRateLimiter(rate_per_sec=rate_per_sec)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        out = {"User-Agent": USER_AGENT, "Accept": self.accept}
        if headers:
            out.update(headers)
        return out

    def _raise_for_status_or_retry(self, response: requests.Response) -> None:
        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableHttpError(f"Retryable HTTP status: {status}")
        if status >= 400:
            raise HttpRequestError(f"HTTP status: {status}")

    def _get_json_once(
        self,
        url: str,
        *,
        params: dict[str, Any] | None,
        headers: dict[str, str] | None,
    ) -> Any:
        self.limiter.acquire(urlparse(url).netloc)
        try:
            response = self.session.request(
                method="GET",
                url=url,
                params=params,
                headers=self._headers(headers),
                timeout=(self.timeout.connect, self.timeout.read),
            )
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise RetryableHttpError(f"Transport failure for {url}: {exc}") from exc
        self._raise_for_status_or_retry(response)

        try:
            return response.json()
        except ValueError as exc:
            raise HttpRequestError(f"Invalid JSON payload from {url}") from exc

    def get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        @retry(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=1.0,
            ),
            retry=retry_if_exception_type(RetryableHttpError),
            reraise=True,
        )
        def _wrapped() -> Any:
            return self._get_json_once(url, params=params, headers=headers)

        return _wrapped()
