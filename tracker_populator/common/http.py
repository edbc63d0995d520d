"""HTTP transport for the tracker API: JSON in, status code and JSON out."""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Any
from urllib.parse import urljoin

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential_jitter,
)

from tracker_populator.common.constants import USER_AGENT
from tracker_populator.common.errors import StageError
from tracker_populator.common.models import ApiResponse, RequestDetail
from tracker_populator.common.time_utils import utc_timestamp_iso

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}
REDACTED_HEADERS = {"authorization", "cookie"}


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 20.0
    read: float = 120.0


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    multiplier: float = 1.0
    max_wait: float = 30.0
    jitter: float = 1.0


class HttpRequestError(StageError):
    error_code = "HTTP_ERROR"


class RetryableHttpError(HttpRequestError):
    pass


def _is_retryable_response(response: ApiResponse) -> bool:
    return response.status_code in RETRYABLE_STATUS_CODES


def _last_outcome(retry_state):
    # Hand back the final response, or re-raise the final transport error.
    return retry_state.outcome.result()


def _redact(headers) -> dict[str, str]:
    return {
        key: ("<redacted>" if key.lower() in REDACTED_HEADERS else str(value))
        for key, value in headers.items()
    }


class HttpClient:
    """Thin JSON client bound to one API base URL.

    Non-2xx statuses are returned, not raised: callers decide which codes are
    acceptable for each step. Only connection-level failures raise. GET
    requests are retried on transport errors and retryable statuses; writes
    are sent exactly once.
    """

    def __init__(
        self,
        base_url: str,
        *,
        username: str | None = None,
        password: str | None = None,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.session = requests.Session()
        if username is not None:
            self.session.auth = (username, password or "")

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

    def url_for(self, path: str) -> str:
        return urljoin(self.base_url, path)

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": USER_AGENT, "Accept": "application/json"}

    def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> ApiResponse:
        url = self.url_for(path)
        headers = self._headers()
        timestamp = utc_timestamp_iso()
        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=(self.timeout.connect, self.timeout.read),
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise RetryableHttpError(f"{method} {url} failed: {exc}") from exc
        except requests.RequestException as exc:
            raise HttpRequestError(f"{method} {url} failed: {exc}") from exc

        sent = getattr(response, "request", None)
        detail = RequestDetail(
            method=method,
            path=getattr(sent, "path_url", None) or path,
            headers=_redact(getattr(sent, "headers", None) or headers),
            body=json_body,
            timestamp=timestamp,
        )
        return ApiResponse(status_code=response.status_code, body=_parse_body(response), request=detail)

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> ApiResponse:
        if method.upper() != "GET":
            return self._send(method, path, params=params, json_body=json_body)

        @retry(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=self.retry.jitter,
            ),
            retry=retry_if_exception_type(RetryableHttpError) | retry_if_result(_is_retryable_response),
            retry_error_callback=_last_outcome,
        )
        def _wrapped() -> ApiResponse:
            return self._send(method, path, params=params)

        return _wrapped()

    def get(self, path: str, *, params: dict[str, Any] | None = None) -> ApiResponse:
        return self.request("GET", path, params=params)

    def post(self, path: str, payload: Any) -> ApiResponse:
        return self.request("POST", path, json_body=payload)

    def put(self, path: str, payload: Any) -> ApiResponse:
        return self.request("PUT", path, json_body=payload)


def _parse_body(response) -> Any:
    if not getattr(response, "content", b""):
        return None
    try:
        return response.json()
    except ValueError:
        return None
