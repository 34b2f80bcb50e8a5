"""Lookup table of known providers."""

from typing import Any

from hotel_integrations.errors import UnsupportedProviderError
from hotel_integrations.models.integrations import INTEGRATION_TYPES
from hotel_integrations.providers.base import ProviderSpec
from hotel_integrations.providers.generic import GENERIC
from hotel_integrations.providers.pms import OPERA_CLOUD, SIMPRA_PMS
from hotel_integrations.providers.pos import SIMPHONY_CLOUD, SIMPRA

PROVIDERS: dict[str, ProviderSpec] = {
    spec.key: spec for spec in (SIMPHONY_CLOUD, SIMPRA, OPERA_CLOUD, SIMPRA_PMS, GENERIC)
}


def get_provider(key: str) -> ProviderSpec:
    """
    Return the ProviderSpec registered under a key.

    Raises:
        UnsupportedProviderError: If the key is not registered
    """
    spec = PROVIDERS.get(key)
    if spec is None:
        raise UnsupportedProviderError(f"Unsupported provider '{key}'")
    return spec


def validate_provider(integration_type: str, provider: str) -> ProviderSpec:
    """
    Check that `provider` may be configured for `integration_type`.

    Raises:
        UnsupportedProviderError: Unknown category, unknown provider, or a provider
            that does not serve the category
    """
    if integration_type not in INTEGRATION_TYPES:
        raise UnsupportedProviderError(
            f"Invalid integration_type '{integration_type}'. "
            f"Must be one of: {', '.join(INTEGRATION_TYPES)}"
        )

    spec = PROVIDERS.get(provider)
    if spec is None or integration_type not in spec.integration_types:
        raise UnsupportedProviderError(
            f"Invalid provider '{provider}' for integration type '{integration_type}'"
        )
    return spec


def providers_for(integration_type: str) -> list[ProviderSpec]:
    return [spec for spec in PROVIDERS.values() if integration_type in spec.integration_types]


def list_providers() -> dict[str, list[dict[str, Any]]]:
    """Providers grouped by category, as served by GET /integrations/providers."""
    return {
        integration_type: [spec.describe() for spec in providers_for(integration_type)]
        for integration_type in INTEGRATION_TYPES
    }
