from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

IntegrationType = Literal["pos", "pms", "guest_management"]
IntegrationStatus = Literal["active", "inactive", "error", "testing"]


class IntegrationCreatePayload(BaseModel):
    """
    Schema for creating an integration. Credentials arrive in plaintext and are
    encrypted before they are stored; the integration starts out inactive.
    """

    hotel_id: int = Field(..., description="Hotel the integration belongs to")
    integration_type: IntegrationType = Field(..., description="Integration category")
    provider: str = Field(..., description="Provider key, e.g. simphony_cloud")
    provider_name: str = Field(..., description="Display name, also used as external_source")
    provider_version: Optional[str] = Field(None, description="Provider API version")
    config: dict[str, Any] = Field(..., description="baseUrl, endpoints map, testEndpoint, ...")
    credentials: dict[str, Any] = Field(..., description="Plaintext credential bundle")
    webhook_url: Optional[str] = Field(None, description="Callback URL registered with the provider")
    webhook_secret: Optional[str] = Field(None, description="HMAC secret for inbound webhooks")
    sync_settings: Optional[dict[str, Any]] = Field(None, description="Sync schedule settings")
    created_by: Optional[int] = Field(None, description="Admin member id")


class IntegrationUpdatePayload(BaseModel):
    """
    Schema for updating an integration. All fields are optional; new credentials
    replace the stored bundle and are re-encrypted.
    """

    provider_name: Optional[str] = Field(None, description="Display name")
    provider_version: Optional[str] = Field(None, description="Provider API version")
    status: Optional[IntegrationStatus] = Field(None, description="Lifecycle status")
    config: Optional[dict[str, Any]] = Field(None, description="Integration config")
    credentials: Optional[dict[str, Any]] = Field(None, description="Plaintext credential bundle")
    webhook_url: Optional[str] = Field(None, description="Callback URL")
    webhook_secret: Optional[str] = Field(None, description="HMAC secret for inbound webhooks")
    sync_settings: Optional[dict[str, Any]] = Field(None, description="Sync schedule settings")
    updated_by: Optional[int] = Field(None, description="Admin member id")


class SyncPayload(BaseModel):
    sync_type: Optional[Literal["menus", "reservations", "guest_data"]] = Field(
        None, description="Defaults to the sync matching the integration category"
    )
    start_date: Optional[str] = Field(None, description="Reservation window start (PMS)")
    end_date: Optional[str] = Field(None, description="Reservation window end (PMS)")
