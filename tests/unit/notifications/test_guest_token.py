"""Unit tests for guest WebSocket token checks."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from hotel_integrations.notifications.auth import decode_guest_token, token_matches_guest

SECRET = "test-jwt-secret"


def _token(claims: dict, secret: str = SECRET) -> str:
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.mark.unit
def test_matching_id_claim() -> None:
    assert token_matches_guest(_token({"id": 42}), "42", secret=SECRET)


@pytest.mark.unit
def test_sub_claim_is_used_when_id_is_absent() -> None:
    assert token_matches_guest(_token({"sub": "g-1"}), "g-1", secret=SECRET)


@pytest.mark.unit
def test_other_guest_is_rejected() -> None:
    assert not token_matches_guest(_token({"id": "g-1"}), "g-2", secret=SECRET)


@pytest.mark.unit
def test_token_without_subject_is_rejected() -> None:
    assert not token_matches_guest(_token({"role": "guest"}), "g-1", secret=SECRET)


@pytest.mark.unit
def test_wrong_signature_is_rejected() -> None:
    assert decode_guest_token(_token({"id": "g-1"}, "another-secret-value"), SECRET) is None


@pytest.mark.unit
def test_expired_token_is_rejected() -> None:
    expired = datetime.now(timezone.utc) - timedelta(minutes=5)

    assert decode_guest_token(_token({"id": "g-1", "exp": expired}), SECRET) is None


@pytest.mark.unit
def test_garbage_token_is_rejected() -> None:
    assert not token_matches_guest("not.a.jwt", "g-1", secret=SECRET)
