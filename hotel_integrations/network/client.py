"""
Outbound HTTP for provider APIs.

Every provider call goes through execute_request(), which owns timeouts, the optional
retry hook and the API metrics. The transport is any requests.Session-compatible
object so tests can hand in a mock.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests
import structlog

from hotel_integrations.config import HTTP_MAX_RETRIES, HTTP_TIMEOUT_SECONDS
from hotel_integrations.errors import ProviderRequestError
from hotel_integrations.metrics import api_latency, api_requests

logger = structlog.get_logger(__name__)

RETRY_DELAY_SECONDS = 1.0


@dataclass
class ProviderResponse:
    """Parsed provider response."""

    status_code: int
    reason: str
    data: Any = None
    headers: Dict[str, str] = field(default_factory=dict)


def build_transport() -> requests.Session:
    """Create the default transport for one integration session."""
    return requests.Session()


def should_retry(res: Optional[requests.Response], err: Optional[Exception]) -> bool:
    """
    Determine whether the request should be retried based on response or error.

    Args:
        res (Optional[requests.Response]): Response object if available.
        err (Optional[Exception]): Exception raised by the request, if any.

    Returns:
        bool: True if the request should be retried, False otherwise.
    """
    if res is not None and res.status_code == 429:
        return True
    if isinstance(err, requests.Timeout):
        return True
    if res is not None and 500 <= res.status_code < 600:
        return True
    return False


def _parse_body(res: requests.Response) -> Any:
    if not res.content:
        return None
    try:
        return res.json()
    except ValueError:
        return res.text


def _transport_error_code(err: Exception) -> str:
    if isinstance(err, requests.Timeout):
        return "TIMEOUT"
    if isinstance(err, requests.ConnectionError):
        return "CONNECTION_ERROR"
    return "REQUEST_FAILED"


def execute_request(
    transport: requests.Session,
    method: str,
    url: str,
    provider: str,
    headers: Optional[Dict[str, str]] = None,
    body: Any = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[float] = None,
    max_retries: Optional[int] = None,
) -> ProviderResponse:
    """
    Execute one provider request.

    Retries only happen when max_retries > 0 and should_retry() agrees, so the
    default configuration issues exactly one HTTP call per operation.

    Args:
        transport (requests.Session): Session used to send the request.
        method (str): HTTP method.
        url (str): Absolute URL.
        provider (str): Provider key, used as the metrics label.
        headers (Optional[Dict[str, str]]): Request headers.
        body (Any): JSON body, if any.
        params (Optional[Dict[str, Any]]): Query parameters.
        timeout (Optional[float]): Seconds; defaults to HTTP_TIMEOUT_SECONDS, 0 disables.
        max_retries (Optional[int]): Defaults to HTTP_MAX_RETRIES.

    Returns:
        ProviderResponse: Status, reason, parsed body and headers of a 2xx/3xx response.

    Raises:
        ProviderRequestError: On transport failure or a 4xx/5xx response.
    """
    timeout = HTTP_TIMEOUT_SECONDS if timeout is None else timeout
    max_retries = HTTP_MAX_RETRIES if max_retries is None else max_retries
    method = method.upper()
    retries = 0

    while True:
        start_time = time.time()
        try:
            res = transport.request(
                method,
                url,
                headers=headers,
                json=body,
                params=params or None,
                timeout=timeout or None,
            )
        except requests.RequestException as err:
            api_requests.labels(provider=provider, status_code="error").inc()
            api_latency.labels(provider=provider).observe(time.time() - start_time)
            logger.warning(
                "provider_request_error",
                provider=provider,
                method=method,
                url=url,
                attempt=retries + 1,
                error=str(err),
            )
            if retries < max_retries and should_retry(None, err):
                retries += 1
                time.sleep(RETRY_DELAY_SECONDS * retries)
                continue
            raise ProviderRequestError(
                f"{method} {url} failed: {err}",
                error_code=_transport_error_code(err),
            ) from err

        api_requests.labels(provider=provider, status_code=str(res.status_code)).inc()
        api_latency.labels(provider=provider).observe(time.time() - start_time)

        if res.status_code < 400:
            return ProviderResponse(
                status_code=res.status_code,
                reason=res.reason or "",
                data=_parse_body(res),
                headers=dict(res.headers),
            )

        if retries < max_retries and should_retry(res, None):
            retries += 1
            logger.warning(
                "provider_request_retry",
                provider=provider,
                method=method,
                url=url,
                status_code=res.status_code,
                attempt=retries,
            )
            time.sleep(RETRY_DELAY_SECONDS * retries)
            continue

        raise ProviderRequestError(
            f"Provider returned {res.status_code} {res.reason or ''}".strip(),
            provider_status=res.status_code,
            error_code=f"HTTP_{res.status_code}",
            response_data=_parse_body(res),
        )
