"""HTTP client with retry/backoff and request metrics."""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from . import config

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = (429, 500, 502, 503, 504)


class ServiceError(RuntimeError):
    def __init__(self, message: str, status: Optional[int] = None, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.url = url


class BackendUnreachableError(ServiceError):
    pass


@dataclass
class RequestMetrics:
    network: Dict[str, int] = field(default_factory=dict)
    failures: Dict[str, int] = field(default_factory=dict)

    def inc_network(self, kind: str) -> None:
        self.network[kind] = self.network.get(kind, 0) + 1

    def inc_failure(self, kind: str) -> None:
        self.failures[kind] = self.failures.get(kind, 0) + 1

    def count(self, kind: str) -> int:
        return self.network.get(kind, 0)


class HttpClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = config.HTTP_TIMEOUT_SECONDS,
        retry_max: int = config.HTTP_RETRY_MAX,
        backoff_base: float = config.HTTP_BACKOFF_BASE,
        backoff_max: float = config.HTTP_BACKOFF_MAX,
        metrics: Optional[RequestMetrics] = None,
    ) -> None:
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.retry_max = max(1, int(retry_max))
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.metrics = metrics
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def post_json(
        self,
        path: str,
        body: Dict[str, Any],
        kind: str = "catalog",
        retry_max: Optional[int] = None,
    ) -> Any:
        return self._request("POST", path, kind, json_body=body, retry_max=retry_max)

    def get_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        kind: str = "catalog",
        retry_max: Optional[int] = None,
    ) -> Any:
        return self._request("GET", path, kind, params=params, retry_max=retry_max)

    def _request(
        self,
        method: str,
        path: str,
        kind: str,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        retry_max: Optional[int] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        # retry_max=1 means a single attempt.
        attempts = self.retry_max if retry_max is None else max(1, int(retry_max))
        for attempt in range(1, attempts + 1):
            if self.metrics is not None:
                self.metrics.inc_network(kind)
            try:
                if method == "POST":
                    resp = self.session.post(url, json=json_body, timeout=self.timeout)
                else:
                    resp = self.session.get(url, params=params, timeout=self.timeout)
            except (requests.ConnectionError, requests.Timeout) as exc:
                if attempt >= attempts:
                    self._record_failure(kind)
                    raise BackendUnreachableError(f"Cannot reach {url}: {exc}", url=self.base_url) from exc
                self._sleep_backoff(attempt)
                continue
            except requests.RequestException as exc:
                self._record_failure(kind)
                raise ServiceError(f"Request to {url} failed: {exc}") from exc

            status = resp.status_code
            if 200 <= status < 300:
                try:
                    return resp.json()
                except ValueError as exc:
                    logger.error("Non-JSON response from %s", url)
                    self._record_failure(kind)
                    raise ServiceError(f"Non-JSON response from {url}", status=status) from exc

            if status in RETRYABLE_STATUSES:
                logger.warning("HTTP %s from %s (attempt %s)", status, url, attempt)
                if attempt >= attempts:
                    self._record_failure(kind)
                    raise ServiceError(f"HTTP {status} from {url}", status=status)
                if not self._sleep_retry_after(resp):
                    self._sleep_backoff(attempt)
                continue

            # Non-retryable
            logger.error("HTTP %s from %s", status, url)
            self._record_failure(kind)
            raise ServiceError(f"HTTP {status} from {url}", status=status)

        raise RuntimeError("Unexpected HTTP retry loop exit")

    def _record_failure(self, kind: str) -> None:
        if self.metrics is not None:
            self.metrics.inc_failure(kind)

    def _sleep_backoff(self, attempt: int) -> None:
        base = min(self.backoff_base * (2 ** (attempt - 1)), self.backoff_max)
        jitter = random.uniform(0, self.backoff_base)
        time.sleep(base + jitter)

    def _sleep_retry_after(self, resp: requests.Response) -> bool:
        retry_after = resp.headers.get("Retry-After")
        if not retry_after:
            return False
        try:
            delay = float(retry_after)
        except ValueError:
            return False
        delay = max(0.0, min(delay, self.backoff_max))
        time.sleep(delay)
        return True
