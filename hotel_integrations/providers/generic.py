"""Fallback provider for any REST API described entirely by the integration config."""

from typing import Any, Mapping

from hotel_integrations.errors import ConfigurationError
from hotel_integrations.providers.base import (
    CredentialField,
    HealthCheck,
    ProviderSpec,
    build_health_check,
)


def generic_health_check(config: Mapping[str, Any], credentials: Mapping[str, Any]) -> HealthCheck:
    """
    GET config.testEndpoint, or {config.baseUrl}/health.

    Authenticates with accessToken as a bearer token, falling back to apiKey.
    """
    url = config.get("testEndpoint")
    if not url:
        base_url = config.get("baseUrl")
        if not base_url:
            raise ConfigurationError("Integration config has neither testEndpoint nor baseUrl")
        url = f"{str(base_url).rstrip('/')}/health"

    headers = {"Accept": "application/json"}
    if credentials.get("accessToken"):
        headers["Authorization"] = f"Bearer {credentials['accessToken']}"
    elif credentials.get("apiKey"):
        headers["X-API-Key"] = str(credentials["apiKey"])

    return build_health_check("GET", str(url), headers)


GENERIC = ProviderSpec(
    key="generic",
    label="Generic REST API",
    integration_types=("pos", "pms", "guest_management"),
    health_check=generic_health_check,
    credential_fields=(
        CredentialField("apiKey", "API Key", "password", required=False),
        CredentialField("bearerToken", "Bearer Token", "password", required=False),
        CredentialField("accessToken", "Access Token", "password", required=False),
        CredentialField("username", "Username", required=False),
        CredentialField("password", "Password", "password", required=False),
    ),
)
