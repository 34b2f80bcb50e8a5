"""Unit tests for the credential vault."""

from __future__ import annotations

import pytest

from hotel_integrations.errors import DecryptionError
from hotel_integrations.security.vault import decrypt_credentials, encrypt_credentials

BUNDLE = {"apiKey": "k-123", "username": "front-desk", "password": "p@ss", "port": 8443}


def _flip_first_byte(hex_value: str) -> str:
    first = int(hex_value[:2], 16) ^ 0x01
    return f"{first:02x}{hex_value[2:]}"


@pytest.mark.unit
def test_round_trip_returns_original_bundle() -> None:
    """Test that decrypting an encrypted bundle returns the original."""
    envelope = encrypt_credentials(BUNDLE)

    assert set(envelope) == {"encrypted", "iv", "salt"}
    assert decrypt_credentials(envelope) == BUNDLE


@pytest.mark.unit
def test_each_encryption_uses_fresh_nonce_and_salt() -> None:
    """Test that encrypting twice never reuses the nonce or salt."""
    first = encrypt_credentials(BUNDLE)
    second = encrypt_credentials(BUNDLE)

    assert first["iv"] != second["iv"]
    assert first["salt"] != second["salt"]
    assert first["encrypted"] != second["encrypted"]
    assert len(bytes.fromhex(first["iv"])) == 12


@pytest.mark.unit
def test_plaintext_never_appears_in_envelope() -> None:
    envelope = encrypt_credentials(BUNDLE)

    assert "k-123" not in str(envelope)
    assert "front-desk" not in str(envelope)


@pytest.mark.unit
@pytest.mark.parametrize("field", ["encrypted", "iv", "salt"])
def test_tampered_envelope_is_rejected(field: str) -> None:
    """Test that modifying any envelope field fails decryption."""
    envelope = encrypt_credentials(BUNDLE)
    envelope[field] = _flip_first_byte(envelope[field])

    with pytest.raises(DecryptionError):
        decrypt_credentials(envelope)


@pytest.mark.unit
def test_wrong_secret_is_rejected() -> None:
    """Test that a different master secret cannot decrypt the envelope."""
    envelope = encrypt_credentials(BUNDLE, secret="first-secret")

    with pytest.raises(DecryptionError):
        decrypt_credentials(envelope, secret="second-secret")


@pytest.mark.unit
@pytest.mark.parametrize("envelope", [None, {}])
def test_missing_envelope(envelope: dict[str, str] | None) -> None:
    with pytest.raises(DecryptionError, match="Credentials not found or invalid"):
        decrypt_credentials(envelope)


@pytest.mark.unit
def test_missing_iv_is_rejected() -> None:
    envelope = encrypt_credentials(BUNDLE)
    del envelope["iv"]

    with pytest.raises(DecryptionError, match="'iv'"):
        decrypt_credentials(envelope)


@pytest.mark.unit
def test_non_hex_field_is_rejected() -> None:
    envelope = encrypt_credentials(BUNDLE)
    envelope["salt"] = "not-hex"

    with pytest.raises(DecryptionError, match="not valid hex"):
        decrypt_credentials(envelope)


@pytest.mark.unit
def test_decryption_error_maps_to_500() -> None:
    error = DecryptionError("Credentials could not be decrypted")

    assert error.status_code == 500
    assert error.to_dict()["code"] == "DECRYPTION_FAILED"
