"""
Activity logger: append-only audit rows for every integration operation.

Every adapter call, sync, connection test and webhook writes its outcome here. Writing
the row is best-effort: a failure is reported on the structured log and swallowed so it
never masks or aborts the operation being recorded.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import structlog
from sqlalchemy import insert
from sqlalchemy.engine import Engine

from hotel_integrations.metrics import activity_log_failures
from hotel_integrations.models.integrations import IntegrationLog
from hotel_integrations.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

integration_logs = IntegrationLog.__table__


def _serialize(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str, ensure_ascii=False)


def record_activity(
    engine: Engine,
    integration_id: int,
    operation_type: str,
    operation_name: str,
    direction: str,
    status: str,
    request_data: Any = None,
    response_data: Any = None,
    error_message: Optional[str] = None,
    error_code: Optional[str] = None,
    processing_time: Optional[int] = None,
    records_processed: Optional[int] = None,
    records_success: Optional[int] = None,
    records_failed: Optional[int] = None,
    metadata: Any = None,
) -> None:
    """
    Append one integration_logs row. Never raises.

    The row is written in its own transaction so it survives a rollback of the
    operation it describes.

    Args:
        engine: SQLAlchemy engine
        integration_id: Parent integration
        operation_type: sync, webhook, api_call, error or test
        operation_name: e.g. "sync_menus", "GET_/api/menus"
        direction: inbound, outbound or bidirectional
        status: success, failed, partial or pending
        request_data: Request payload (redacted by the caller)
        response_data: Response payload
        error_message: Error text for failed operations
        error_code: Stable error code (see hotel_integrations.errors)
        processing_time: Duration in milliseconds
        records_processed: Batch size
        records_success: Records that succeeded
        records_failed: Records that failed
        metadata: Free-form extra context
    """
    try:
        row = {
            "integration_id": integration_id,
            "operation_type": operation_type,
            "operation_name": operation_name,
            "direction": direction,
            "status": status,
            "request_data": _serialize(request_data),
            "response_data": _serialize(response_data),
            "error_message": error_message,
            "error_code": error_code,
            "processing_time": processing_time,
            "records_processed": records_processed,
            "records_success": records_success,
            "records_failed": records_failed,
            "metadata": _serialize(metadata),
            "created_at": utc_now(),
        }
        with engine.begin() as conn:
            conn.execute(insert(integration_logs).values(row))
    except Exception as e:
        activity_log_failures.inc()
        logger.error(
            "activity_log_write_failed",
            integration_id=integration_id,
            operation_type=operation_type,
            operation_name=operation_name,
            status=status,
            error=str(e),
        )
