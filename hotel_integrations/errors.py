"""
Exception taxonomy for integration operations.

Each error carries the HTTP status it is surfaced as and a stable error_code that is
written to integration_logs.error_code.
"""

from __future__ import annotations

from typing import Any, Optional


class IntegrationError(Exception):
    """Base class for all integration failures."""

    status_code = 500
    error_code = "INTEGRATION_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> dict[str, Any]:
        return {"status": "error", "message": self.message, "code": self.error_code}


class NotFoundError(IntegrationError):
    status_code = 404
    error_code = "NOT_FOUND"


class InactiveIntegrationError(IntegrationError):
    status_code = 400
    error_code = "INTEGRATION_INACTIVE"

    def __init__(self, integration_id: int, status: Optional[str] = None) -> None:
        super().__init__(f"Integration {integration_id} is not active (status={status})")
        self.integration_id = integration_id
        self.status = status


class InvalidSignatureError(IntegrationError):
    status_code = 401
    error_code = "INVALID_SIGNATURE"


class DecryptionError(IntegrationError):
    status_code = 500
    error_code = "DECRYPTION_FAILED"


class UnsupportedEventError(IntegrationError):
    status_code = 400
    error_code = "UNSUPPORTED_EVENT"


class UnsupportedProviderError(IntegrationError):
    status_code = 400
    error_code = "UNSUPPORTED_PROVIDER"


class InvalidPayloadError(IntegrationError):
    status_code = 400
    error_code = "INVALID_PAYLOAD"


class ProviderRequestError(IntegrationError):
    """
    Raised when an outbound provider call fails.

    Attributes:
        provider_status: HTTP status returned by the provider, if a response arrived
        response_data: Parsed provider response body, if any
    """

    status_code = 502
    error_code = "PROVIDER_ERROR"

    def __init__(
        self,
        message: str,
        provider_status: Optional[int] = None,
        error_code: Optional[str] = None,
        response_data: Any = None,
    ) -> None:
        super().__init__(message, error_code)
        self.provider_status = provider_status
        self.response_data = response_data

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["provider_status"] = self.provider_status
        return body


class ConfigurationError(IntegrationError):
    """Integration config is missing something an operation needs (e.g. baseUrl)."""

    status_code = 400
    error_code = "CONFIGURATION_ERROR"
