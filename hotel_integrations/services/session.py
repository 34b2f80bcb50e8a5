"""
Integration session: the shared operation pipeline for every provider adapter.

open_session() loads an integration, enforces that it is active and decrypts its
credentials. The returned IntegrationSession builds URLs and headers, sends requests
through network.client and writes the activity log around each call. Domain
operations (POS, PMS, guest management) are plain functions over a session plus
the helpers run_operation() and run_sync(), which wrap a whole operation in one
activity entry and the integration's status bookkeeping.

A session lives for exactly one operation; nothing is cached between calls.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, TypeVar

import requests
import structlog
from sqlalchemy.engine import Engine

from hotel_integrations.config import USER_AGENT
from hotel_integrations.db.readers.integrations import get_integration
from hotel_integrations.db.writers.integrations import (
    record_failure,
    record_success,
    update_sync_info,
)
from hotel_integrations.errors import (
    ConfigurationError,
    InactiveIntegrationError,
    IntegrationError,
    NotFoundError,
    ProviderRequestError,
)
from hotel_integrations.metrics import records_synced, sync_duration, sync_total
from hotel_integrations.network.client import (
    ProviderResponse,
    build_transport,
    execute_request,
)
from hotel_integrations.providers.base import ProviderSpec, redact_headers
from hotel_integrations.providers.registry import get_provider
from hotel_integrations.security.vault import decrypt_credentials
from hotel_integrations.services.activity_log import record_activity

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def elapsed_ms(start: float) -> int:
    """Milliseconds since a time.monotonic() reading."""
    return int((time.monotonic() - start) * 1000)


def _error_code(error: Exception) -> Optional[str]:
    return getattr(error, "error_code", None)


@dataclass
class IntegrationSession:
    """A ready integration: decrypted credentials, provider capabilities and a transport."""

    engine: Engine
    integration: dict[str, Any]
    provider: ProviderSpec
    credentials: dict[str, Any] = field(repr=False)
    transport: requests.Session = field(repr=False)

    @property
    def integration_id(self) -> int:
        return int(self.integration["id"])

    @property
    def integration_type(self) -> str:
        return str(self.integration["integration_type"])

    @property
    def hotel_id(self) -> int:
        return int(self.integration["hotel_id"])

    @property
    def provider_name(self) -> str:
        return str(self.integration.get("provider_name") or self.provider.label)

    @property
    def config(self) -> dict[str, Any]:
        config = self.integration.get("config")
        return config if isinstance(config, dict) else {}

    def endpoint(self, name: str, default: str) -> str:
        """Resolve config.endpoints[name], falling back to the provider default path."""
        endpoints = self.config.get("endpoints") or {}
        return str(endpoints.get(name) or default)

    def url_for(self, endpoint: str) -> str:
        base_url = self.config.get("baseUrl")
        if not base_url:
            raise ConfigurationError(
                f"Integration {self.integration_id} config has no baseUrl"
            )
        return f"{str(base_url).rstrip('/')}/{endpoint.lstrip('/')}"

    def build_headers(self, extra: Optional[dict[str, str]] = None) -> dict[str, str]:
        """Default headers, then provider auth headers, then caller headers."""
        headers = {"Content-Type": "application/json", "User-Agent": USER_AGENT}
        headers.update(self.provider.build_auth_headers(self.credentials))
        if extra:
            headers.update(extra)
        return headers

    def log(
        self,
        operation_type: str,
        operation_name: str,
        direction: str,
        status: str,
        **fields: Any,
    ) -> None:
        record_activity(
            self.engine,
            self.integration_id,
            operation_type,
            operation_name,
            direction,
            status,
            **fields,
        )

    def request(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> ProviderResponse:
        """
        Send one authenticated request to the provider.

        Writes a pending api_call entry before the call and a success or error entry
        after it. Logged headers are always redacted.

        Args:
            method: HTTP method
            endpoint: Path relative to config.baseUrl
            body: JSON body
            headers: Extra headers, applied last
            params: Query parameters

        Returns:
            ProviderResponse: The provider response

        Raises:
            ProviderRequestError: On transport failure or an error status
        """
        method = method.upper()
        operation_name = f"{method}_{endpoint}"
        url = self.url_for(endpoint)
        merged_headers = self.build_headers(headers)
        request_log = {
            "method": method,
            "url": url,
            "headers": redact_headers(merged_headers),
            "body": body,
            "params": params,
        }

        self.log("api_call", operation_name, "outbound", "pending", request_data=request_log)

        start = time.monotonic()
        try:
            response = execute_request(
                self.transport,
                method,
                url,
                provider=self.provider.key,
                headers=merged_headers,
                body=body,
                params=params,
            )
        except ProviderRequestError as e:
            self.log(
                "error",
                operation_name,
                "outbound",
                "failed",
                request_data=request_log,
                response_data=e.response_data,
                error_message=e.message,
                error_code=e.error_code,
                processing_time=elapsed_ms(start),
                metadata={"provider_status": e.provider_status},
            )
            raise

        self.log(
            "api_call",
            operation_name,
            "outbound",
            "success",
            request_data=request_log,
            response_data=response.data,
            processing_time=elapsed_ms(start),
            metadata={"status_code": response.status_code},
        )
        return response

    def run_batch(
        self,
        records: Iterable[Any],
        process: Callable[[Any], Any],
        label: str,
    ) -> dict[str, int]:
        """
        Process records one at a time; a failing record is counted, never raised.

        Args:
            records: Records fetched from the provider
            process: Transform-and-persist callable for one record
            label: Sync type used in logs and metrics (e.g. "menus")

        Returns:
            dict: {"processed", "success", "failed"} with processed == success + failed
        """
        success = 0
        failed = 0
        for index, record in enumerate(records):
            try:
                process(record)
                success += 1
            except Exception as e:
                failed += 1
                record_id = record.get("id") if isinstance(record, dict) else None
                logger.warning(
                    "batch_record_failed",
                    integration_id=self.integration_id,
                    sync_type=label,
                    index=index,
                    record_id=record_id,
                    error=str(e),
                )

        records_synced.labels(
            integration_type=self.integration_type, sync_type=label, outcome="success"
        ).inc(success)
        records_synced.labels(
            integration_type=self.integration_type, sync_type=label, outcome="failed"
        ).inc(failed)

        return {"processed": success + failed, "success": success, "failed": failed}


def open_session(
    engine: Engine,
    integration_id: int,
    transport: Optional[requests.Session] = None,
    require_active: bool = True,
) -> IntegrationSession:
    """
    Load and prepare an integration for one operation.

    Args:
        engine: SQLAlchemy engine
        integration_id: Integration primary key
        transport: HTTP transport override (defaults to a fresh requests.Session)
        require_active: Reject integrations whose status is not 'active'

    Returns:
        IntegrationSession: Ready session

    Raises:
        NotFoundError: If the integration does not exist
        InactiveIntegrationError: If require_active and the status is not 'active'
        DecryptionError: If the stored credentials cannot be decrypted
        UnsupportedProviderError: If the stored provider is unknown
    """
    with engine.connect() as conn:
        integration = get_integration(conn, integration_id)

    if integration is None:
        raise NotFoundError(f"Integration {integration_id} not found")

    try:
        if require_active and integration["status"] != "active":
            raise InactiveIntegrationError(integration_id, integration["status"])
        provider = get_provider(integration["provider"])
        credentials = decrypt_credentials(integration["credentials"])
    except IntegrationError as e:
        logger.warning(
            "integration_initialize_failed",
            integration_id=integration_id,
            error_code=e.error_code,
            error=e.message,
        )
        record_activity(
            engine,
            integration_id,
            "error",
            "initialize",
            "outbound",
            "failed",
            error_message=e.message,
            error_code=e.error_code,
        )
        raise

    return IntegrationSession(
        engine=engine,
        integration=integration,
        provider=provider,
        credentials=credentials,
        transport=transport if transport is not None else build_transport(),
    )


def run_operation(
    engine: Engine,
    integration_id: int,
    operation_name: str,
    action: Callable[[IntegrationSession], T],
    transport: Optional[requests.Session] = None,
    direction: str = "outbound",
    request_data: Any = None,
    require_active: bool = True,
) -> T:
    """
    Run a single-call domain operation and record it as one api_call entry.

    Failures are recorded as an error entry and re-raised.

    Args:
        engine: SQLAlchemy engine
        integration_id: Integration primary key
        operation_name: Activity log name, e.g. "post_guest_check"
        action: Callable doing the provider call(s) and returning the result
        transport: HTTP transport override
        direction: Activity log direction
        request_data: Payload recorded with the entry
        require_active: Passed to open_session (False for pre-activation tests)

    Returns:
        Whatever `action` returns
    """
    session = open_session(engine, integration_id, transport, require_active)
    start = time.monotonic()
    try:
        result = action(session)
    except Exception as e:
        session.log(
            "error",
            operation_name,
            direction,
            "failed",
            request_data=request_data,
            error_message=str(e),
            error_code=_error_code(e),
            processing_time=elapsed_ms(start),
        )
        raise

    session.log(
        "api_call",
        operation_name,
        direction,
        "success",
        request_data=request_data,
        response_data=result,
        processing_time=elapsed_ms(start),
    )
    return result


def _mark_sync_failed(engine: Engine, integration_id: int, error: Exception) -> None:
    """Record a failed sync on the integration row without masking `error`."""
    try:
        with engine.begin() as conn:
            update_sync_info(conn, integration_id, "failed")
            record_failure(conn, integration_id, str(error))
    except Exception as e:
        logger.error(
            "sync_failure_bookkeeping_failed",
            integration_id=integration_id,
            error=str(e),
            sync_error=str(error),
        )


def run_sync(
    engine: Engine,
    integration_id: int,
    sync_type: str,
    fetch: Callable[[IntegrationSession], list[Any]],
    process: Callable[[IntegrationSession, Any], Any],
    transport: Optional[requests.Session] = None,
    request_data: Any = None,
) -> dict[str, int]:
    """
    Run a batch sync: fetch records, process each one, then update bookkeeping.

    A failure in open/fetch aborts the sync, marks it failed and increments the
    integration's error_count. Per-record failures only affect the counts.

    Args:
        engine: SQLAlchemy engine
        integration_id: Integration primary key
        sync_type: menus, reservations or guest_data
        fetch: Returns the provider records
        process: Transforms and persists one record
        transport: HTTP transport override
        request_data: Sync parameters recorded with the entry

    Returns:
        dict: {"processed", "success", "failed"}
    """
    operation_name = f"sync_{sync_type}"
    try:
        session = open_session(engine, integration_id, transport)
    except NotFoundError:
        raise
    except Exception as e:
        _mark_sync_failed(engine, integration_id, e)
        logger.error(
            "sync_failed", integration_id=integration_id, sync_type=sync_type, error=str(e)
        )
        raise
    integration_type = session.integration_type
    start = time.monotonic()

    logger.info("sync_started", integration_id=integration_id, sync_type=sync_type)

    with sync_duration.labels(integration_type=integration_type, sync_type=sync_type).time():
        try:
            with engine.begin() as conn:
                update_sync_info(conn, integration_id, "in_progress")
            records = fetch(session)
            result = session.run_batch(
                records, lambda record: process(session, record), sync_type
            )
        except Exception as e:
            _mark_sync_failed(engine, integration_id, e)
            session.log(
                "error",
                operation_name,
                "inbound",
                "failed",
                request_data=request_data,
                error_message=str(e),
                error_code=_error_code(e),
                processing_time=elapsed_ms(start),
            )
            sync_total.labels(
                integration_type=integration_type, sync_type=sync_type, status="failure"
            ).inc()
            logger.error(
                "sync_failed", integration_id=integration_id, sync_type=sync_type, error=str(e)
            )
            raise

    with engine.begin() as conn:
        update_sync_info(conn, integration_id, "success")
        record_success(conn, integration_id)

    session.log(
        "sync",
        operation_name,
        "inbound",
        "success" if result["failed"] == 0 else "partial",
        request_data=request_data,
        response_data=result,
        processing_time=elapsed_ms(start),
        records_processed=result["processed"],
        records_success=result["success"],
        records_failed=result["failed"],
    )
    sync_total.labels(
        integration_type=integration_type, sync_type=sync_type, status="success"
    ).inc()
    logger.info("sync_completed", integration_id=integration_id, sync_type=sync_type, **result)
    return result
