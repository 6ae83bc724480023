"""HTTP client with retries, timeouts, and host-aware rate limiting."""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Any
from urllib.parse import urlparse

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from roomclimate.common.constants import USER_AGENT
from roomclimate.common.errors import UpstreamError
from roomclimate.common.pacing import HostRateLimiter

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}
DEFAULT_RATE_LIMITS = {
    "geocoder": 1.0,
    "webhook": 1.0,
}


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 10.0
    read: float = 30.0


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 4
    multiplier: float = 1.0
    max_wait: float = 20.0


class HttpRequestError(UpstreamError):
    error_code = "HTTP_ERROR"


class HttpStatusError(HttpRequestError):
    error_code = "HTTP_STATUS"

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class RetryableHttpError(HttpStatusError):
    pass


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
        rate_limits: dict[str, float] | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.session = requests.Session()
        limits = DEFAULT_RATE_LIMITS if rate_limits is None else rate_limits
        self.limiters = {
            source_type: HostRateLimiter(default_rate_per_sec=rate)
            for source_type, rate in limits.items()
        }

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

    def _host(self, url: str) -> str:
        return urlparse(url).netloc

    def _apply_rate_limit(self, url: str, source_type: str) -> None:
        limiter = self.limiters.get(source_type)
        if limiter is not None:
            limiter.acquire(self._host(url))

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        out = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if headers:
            out.update(headers)
        return out

    def _raise_for_status_or_retry(self, response: requests.Response, url: str) -> None:
        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableHttpError(f"Retryable HTTP status {status} from {url}", status)
        if status >= 400:
            raise HttpStatusError(f"HTTP status {status} from {url}", status)

    def _send(
        self,
        method: str,
        url: str,
        *,
        source_type: str,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> requests.Response:
        req_timeout = timeout or self.timeout
        self._apply_rate_limit(url, source_type)

        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=self._headers(headers),
                timeout=(req_timeout.connect, req_timeout.read),
            )
        except requests.RequestException as exc:
            raise HttpRequestError(f"Transport failure for {url}: {exc}") from exc
        self._raise_for_status_or_retry(response, url)
        return response

    def _with_retry(self, func, attempts: int | None = None):
        @retry(
            stop=stop_after_attempt(attempts or self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=1.0,
            ),
            retry=retry_if_exception_type(RetryableHttpError),
            reraise=True,
        )
        def _wrapped():
            return func()

        return _wrapped()

    def get_json(
        self,
        url: str,
        *,
        source_type: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
        attempts: int | None = None,
    ) -> Any:
        def _get() -> Any:
            response = self._send(
                "GET",
                url,
                source_type=source_type,
                params=params,
                headers=headers,
                timeout=timeout,
            )
            try:
                return response.json()
            except ValueError as exc:
                raise HttpRequestError(f"Invalid JSON payload from {url}") from exc

        return self._with_retry(_get, attempts)

    def post_json(
        self,
        url: str,
        *,
        source_type: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> int:
        def _post() -> int:
            response = self._send(
                "POST",
                url,
                source_type=source_type,
                json_body=payload,
                headers=headers,
                timeout=timeout,
            )
            return response.status_code

        return self._with_retry(_post)
