"""Built-in PMS providers: Oracle Opera Cloud and Simpra PMS."""

from typing import Any, Mapping

from hotel_integrations.providers.base import (
    CredentialField,
    HealthCheck,
    ProviderSpec,
    api_url,
    build_health_check,
)
from hotel_integrations.providers.pos import simpra_health_check


def opera_cloud_health_check(
    config: Mapping[str, Any], credentials: Mapping[str, Any]
) -> HealthCheck:
    return build_health_check(
        "GET",
        f"{api_url(credentials, config)}/status",
        {
            "X-App-Key": str(credentials.get("appKey") or ""),
            "Authorization": f"Bearer {credentials.get('accessToken', '')}",
            "Accept": "application/json",
        },
    )


OPERA_CLOUD = ProviderSpec(
    key="opera_cloud",
    label="Opera Cloud",
    integration_types=("pms",),
    health_check=opera_cloud_health_check,
    credential_fields=(
        CredentialField("apiUrl", "API Url", "url"),
        CredentialField("appKey", "App Key"),
        CredentialField("apiUser", "API User"),
        CredentialField("apiUserPassword", "API User Password", "password"),
        CredentialField("clientId", "Client ID"),
        CredentialField("clientSecret", "Client Secret", "password"),
        CredentialField("hotelId", "Hotel ID"),
        CredentialField("hotelName", "Hotel Name"),
        CredentialField("cashierId", "Cashier ID"),
        CredentialField("enterpriseId", "Enterprise ID"),
        CredentialField("accessToken", "Access Token", "password", required=False),
        CredentialField("refreshToken", "Refresh Token", "password", required=False),
    ),
)

# Same health endpoint as the Simpra POS
SIMPRA_PMS = ProviderSpec(
    key="simpra_pms",
    label="Simpra PMS",
    integration_types=("pms",),
    health_check=simpra_health_check,
    credential_fields=(
        CredentialField("apiUrl", "API Url", "url"),
        CredentialField("accessToken", "Access Token", "password"),
    ),
)
