"""
Internal helper functions for integration route handlers.

This module contains lookup, validation and serialisation helpers shared by the
integration routes so the handlers stay short.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.engine import Connection

from hotel_integrations.db.readers.integrations import get_integration
from hotel_integrations.errors import NotFoundError
from hotel_integrations.providers.registry import validate_provider
from hotel_integrations.schemas.integrations import IntegrationCreatePayload
from hotel_integrations.security.vault import encrypt_credentials

# Never leave the service through the admin API
HIDDEN_FIELDS = ("credentials", "webhook_secret")


def get_integration_or_404(conn: Connection, integration_id: int) -> dict[str, Any]:
    """
    Fetch an integration or raise NotFoundError (rendered as 404).

    Args:
        conn: Database connection
        integration_id: Integration to fetch

    Returns:
        dict: Integration row
    """
    integration = get_integration(conn, integration_id)
    if integration is None:
        raise NotFoundError(f"Integration {integration_id} not found")
    return integration


def serialize_integration(integration: dict[str, Any]) -> dict[str, Any]:
    """Public view of an integration: secrets removed, presence flags added."""
    public = {k: v for k, v in integration.items() if k not in HIDDEN_FIELDS}
    public["has_credentials"] = bool(integration.get("credentials"))
    public["has_webhook_secret"] = bool(integration.get("webhook_secret"))
    return public


def build_integration_row(payload: IntegrationCreatePayload) -> dict[str, Any]:
    """
    Validate the category/provider pair and encrypt the credential bundle.

    Raises:
        UnsupportedProviderError: If the provider does not serve the category
    """
    validate_provider(payload.integration_type, payload.provider)

    row = payload.model_dump(exclude={"credentials"})
    row["credentials"] = encrypt_credentials(payload.credentials)
    row["status"] = "inactive"
    return row
