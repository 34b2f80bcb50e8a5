"""
Provider capability interface.

A provider is described by a ProviderSpec value rather than a subclass: it knows how
to authenticate outbound calls from a decrypted credential bundle and how to build its
health-check request. The shared request pipeline (network.client) and the domain
operations (services.pos / pms / guest_management) only talk to this interface, so a
provider can be exercised in isolation with a mock transport.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from hotel_integrations.errors import ConfigurationError

REDACTED = "••••••"

# Header names whose values are secrets and must never reach integration_logs
SECRET_HEADERS = frozenset({"authorization", "x-api-key", "x-app-key"})


@dataclass(frozen=True)
class CredentialField:
    """One credential the operator must supply when creating an integration."""

    name: str
    label: str
    type: str = "text"
    required: bool = True

    def as_dict(self) -> dict[str, Any]:
        return {"name": self.name, "label": self.label, "type": self.type, "required": self.required}


@dataclass(frozen=True)
class HealthCheck:
    """A fully built health-check request plus its log-safe twin."""

    method: str
    url: str
    headers: dict[str, str]
    redacted_headers: dict[str, str]

    def log_view(self) -> dict[str, Any]:
        return {"method": self.method, "url": self.url, "headers": self.redacted_headers}


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """
    Return a copy of headers with secret values masked.

    Authorization keeps its scheme ("Bearer ••••••") so logs still show which auth
    style was used.
    """
    redacted: dict[str, str] = {}
    for name, value in headers.items():
        if name.lower() not in SECRET_HEADERS:
            redacted[name] = value
            continue
        scheme, _, rest = str(value).partition(" ")
        if name.lower() == "authorization" and rest and scheme in ("Bearer", "Basic"):
            redacted[name] = f"{scheme} {REDACTED}"
        else:
            redacted[name] = REDACTED
    return redacted


def default_auth_headers(credentials: Mapping[str, Any]) -> dict[str, str]:
    """
    Build auth headers from a credential bundle.

    Priority: API key header, then bearer token, then basic auth from
    username/password. Basic auth replaces a bearer Authorization when both exist.

    Args:
        credentials: Decrypted credential bundle

    Returns:
        dict: Headers to merge into the outbound request
    """
    headers: dict[str, str] = {}

    if credentials.get("apiKey"):
        headers["X-API-Key"] = str(credentials["apiKey"])

    if credentials.get("bearerToken"):
        headers["Authorization"] = f"Bearer {credentials['bearerToken']}"

    if credentials.get("username") and credentials.get("password"):
        token = base64.b64encode(
            f"{credentials['username']}:{credentials['password']}".encode("utf-8")
        ).decode("ascii")
        headers["Authorization"] = f"Basic {token}"

    return headers


def build_health_check(method: str, url: str, headers: dict[str, str]) -> HealthCheck:
    return HealthCheck(
        method=method.upper(),
        url=url,
        headers=headers,
        redacted_headers=redact_headers(headers),
    )


def api_url(credentials: Mapping[str, Any], config: Optional[Mapping[str, Any]] = None) -> str:
    """Base URL for built-in health checks: credentials.apiUrl, falling back to config.baseUrl."""
    url = credentials.get("apiUrl") or (config or {}).get("baseUrl")
    if not url:
        raise ConfigurationError("Provider apiUrl is not configured")
    return str(url).rstrip("/")


HealthCheckBuilder = Callable[[Mapping[str, Any], Mapping[str, Any]], HealthCheck]
AuthHeaderBuilder = Callable[[Mapping[str, Any]], dict[str, str]]


@dataclass(frozen=True)
class ProviderSpec:
    """
    Capabilities of one third-party provider.

    Attributes:
        key: Identifier stored in integrations.provider (e.g. "simphony_cloud")
        label: Human readable name
        integration_types: Categories this provider may be configured for
        credential_fields: Credentials the admin UI asks for
        health_check: (config, credentials) -> HealthCheck
        build_auth_headers: credentials -> auth headers for domain calls
    """

    key: str
    label: str
    integration_types: tuple[str, ...]
    health_check: HealthCheckBuilder
    credential_fields: tuple[CredentialField, ...] = field(default_factory=tuple)
    build_auth_headers: AuthHeaderBuilder = default_auth_headers

    def describe(self) -> dict[str, Any]:
        return {
            "value": self.key,
            "label": self.label,
            "credentials": [f.as_dict() for f in self.credential_fields],
        }
