"""
Credential vault for provider secrets.

Credential bundles (API keys, bearer tokens, usernames/passwords, OAuth tokens) are
serialised to JSON and sealed with AES-256-GCM before they reach the integrations
table. The key is derived from ENCRYPTION_KEY with scrypt using a random per-bundle
salt, which is stored next to the nonce:

    {"encrypted": "<hex ciphertext+tag>", "iv": "<hex 12-byte nonce>", "salt": "<hex 16-byte salt>"}

GCM authenticates the ciphertext, so a flipped bit in any of the three fields is
reported as DecryptionError instead of yielding a wrong-but-parseable bundle.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from typing import Any, Mapping, Optional

import structlog
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from hotel_integrations.config import ENCRYPTION_KEY
from hotel_integrations.errors import DecryptionError

logger = structlog.get_logger(__name__)

KEY_LENGTH = 32
NONCE_LENGTH = 12
SALT_LENGTH = 16
SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1


@lru_cache(maxsize=256)
def derive_key(secret: str, salt: bytes) -> bytes:
    """
    Derive a 256-bit key from the process secret and a bundle salt.

    scrypt is deliberately slow; results are memoised per (secret, salt) for the
    lifetime of the process so repeated decrypts of the same integration are cheap.

    Args:
        secret: Process-wide encryption secret
        salt: Per-bundle random salt

    Returns:
        bytes: 32-byte key
    """
    kdf = Scrypt(salt=salt, length=KEY_LENGTH, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
    return kdf.derive(secret.encode("utf-8"))


def encrypt_credentials(
    bundle: Mapping[str, Any], secret: Optional[str] = None
) -> dict[str, str]:
    """
    Encrypt a credential bundle.

    Args:
        bundle: Provider secrets to seal
        secret: Encryption secret override (defaults to ENCRYPTION_KEY)

    Returns:
        dict: {"encrypted", "iv", "salt"} as lowercase hex strings
    """
    salt = os.urandom(SALT_LENGTH)
    nonce = os.urandom(NONCE_LENGTH)
    key = derive_key(secret or ENCRYPTION_KEY, salt)

    plaintext = json.dumps(dict(bundle)).encode("utf-8")
    ciphertext = AESGCM(key).encrypt(nonce, plaintext, None)

    return {
        "encrypted": ciphertext.hex(),
        "iv": nonce.hex(),
        "salt": salt.hex(),
    }


def _unhex(envelope: Mapping[str, Any], field: str) -> bytes:
    value = envelope.get(field)
    if not value or not isinstance(value, str):
        raise DecryptionError(f"Credential envelope is missing '{field}'")
    try:
        return bytes.fromhex(value)
    except ValueError as e:
        raise DecryptionError(f"Credential envelope field '{field}' is not valid hex") from e


def decrypt_credentials(
    envelope: Optional[Mapping[str, Any]], secret: Optional[str] = None
) -> dict[str, Any]:
    """
    Decrypt a credential envelope produced by encrypt_credentials().

    Args:
        envelope: {"encrypted", "iv", "salt"} mapping
        secret: Encryption secret override (defaults to ENCRYPTION_KEY)

    Returns:
        dict: The plaintext credential bundle

    Raises:
        DecryptionError: If the envelope is absent or malformed, the key is wrong,
            or any part of the envelope was tampered with
    """
    if not envelope:
        raise DecryptionError("Credentials not found or invalid")

    ciphertext = _unhex(envelope, "encrypted")
    nonce = _unhex(envelope, "iv")
    salt = _unhex(envelope, "salt")

    if len(nonce) != NONCE_LENGTH:
        raise DecryptionError("Credential envelope has an invalid IV length")

    key = derive_key(secret or ENCRYPTION_KEY, salt)

    try:
        plaintext = AESGCM(key).decrypt(nonce, ciphertext, None)
    except InvalidTag as e:
        # Never log the envelope itself
        logger.warning("credential_decryption_failed", reason="authentication_tag_mismatch")
        raise DecryptionError("Credentials could not be decrypted") from e

    try:
        bundle = json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecryptionError("Decrypted credentials are not valid JSON") from e

    if not isinstance(bundle, dict):
        raise DecryptionError("Decrypted credentials are not an object")

    return bundle
