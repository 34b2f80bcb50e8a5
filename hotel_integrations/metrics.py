"""
Prometheus metrics for integration syncs, provider calls, webhooks and notifications.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Example:
    >>> from hotel_integrations.metrics import sync_total
    >>> sync_total.labels(integration_type="pos", sync_type="menus", status="success").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# =============================================================================
# Sync Metrics
# =============================================================================

sync_total = Counter(
    "integration_syncs_total",
    "Total number of sync operations (success and failure)",
    ["integration_type", "sync_type", "status"],
)
"""
Counter for sync operations.

Labels:
    integration_type: pos, pms or guest_management
    sync_type: menus, reservations or guest_data
    status: success or failure
"""

sync_duration = Histogram(
    "integration_sync_duration_seconds",
    "Duration of sync operations in seconds",
    ["integration_type", "sync_type"],
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, float("inf")),
)

records_synced = Counter(
    "integration_records_synced_total",
    "Records handled by batch syncs, split by per-record outcome",
    ["integration_type", "sync_type", "outcome"],
)
"""
Counter for batch sync records.

Labels:
    outcome: success or failed
"""

# =============================================================================
# Provider API Metrics
# =============================================================================

api_requests = Counter(
    "integration_api_requests_total",
    "Total outbound provider API requests",
    ["provider", "status_code"],
)
"""
Counter for outbound provider requests.

Labels:
    provider: Provider key (e.g. "simphony_cloud")
    status_code: HTTP status code, or "error" when no response arrived
"""

api_latency = Histogram(
    "integration_api_latency_seconds",
    "Outbound provider API request latency in seconds",
    ["provider"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, float("inf")),
)

# =============================================================================
# Webhook / Activity Log Metrics
# =============================================================================

webhooks_total = Counter(
    "integration_webhooks_total",
    "Inbound webhooks processed",
    ["integration_type", "status"],
)

activity_log_failures = Counter(
    "integration_activity_log_failures_total",
    "Activity log rows that could not be written",
)

# =============================================================================
# Notification Metrics
# =============================================================================

notification_connections = Gauge(
    "notification_connections",
    "Open guest notification sockets",
)

notification_messages = Counter(
    "notification_messages_total",
    "Envelopes delivered to guest sockets",
    ["type"],
)
