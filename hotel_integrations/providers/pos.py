"""Built-in POS providers: Oracle Simphony Cloud and Simpra."""

from typing import Any, Mapping

from hotel_integrations.providers.base import (
    CredentialField,
    HealthCheck,
    ProviderSpec,
    api_url,
    build_health_check,
)


def simphony_cloud_health_check(
    config: Mapping[str, Any], credentials: Mapping[str, Any]
) -> HealthCheck:
    # Simphony expects the raw token, without a scheme
    return build_health_check(
        "HEAD",
        f"{api_url(credentials, config)}/api/v1/checks/connectionStatus",
        {
            "Simphony-OrgShortName": str(credentials.get("companyCode") or "PRO"),
            "Simphony-LocRef": str(credentials.get("locationRef") or "location 1"),
            "Simphony-RvcRef": "1",
            "Accept": "application/json",
            "Authorization": str(credentials.get("accessToken") or ""),
        },
    )


def simpra_health_check(config: Mapping[str, Any], credentials: Mapping[str, Any]) -> HealthCheck:
    return build_health_check(
        "GET",
        f"{api_url(credentials, config)}/health",
        {
            "Authorization": f"Bearer {credentials.get('accessToken', '')}",
            "Accept": "application/json",
        },
    )


SIMPHONY_CLOUD = ProviderSpec(
    key="simphony_cloud",
    label="Simphony Cloud",
    integration_types=("pos",),
    health_check=simphony_cloud_health_check,
    credential_fields=(
        CredentialField("apiUrl", "API Url", "url"),
        CredentialField("apiAuthUrl", "API Auth Url", "url"),
        CredentialField("apiUser", "API User"),
        CredentialField("apiUserPassword", "API User Password", "password"),
        CredentialField("companyCode", "Company Code"),
        CredentialField("clientId", "Client ID"),
        CredentialField("locationRef", "Location Ref"),
        CredentialField("accessToken", "Access Token", "password", required=False),
        CredentialField("refreshToken", "Refresh Token", "password", required=False),
    ),
)

SIMPRA = ProviderSpec(
    key="simpra",
    label="Simpra",
    integration_types=("pos",),
    health_check=simpra_health_check,
    credential_fields=(
        CredentialField("apiUrl", "API Url", "url"),
        CredentialField("accessToken", "Access Token", "password"),
    ),
)
