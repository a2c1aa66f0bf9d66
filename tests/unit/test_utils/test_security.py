"""
Unit Tests: Security Utility
----------------------------
JWT round trip, caller resolution and address helpers.
"""

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from conftest import USER
from chainsure.config import config
from chainsure.claim_engine.constants import ROLE_ADMIN, ROLE_POLICYHOLDER
from chainsure.utils.security import (
    canonical_address,
    create_jwt_token,
    get_current_user,
    is_valid_address,
    mask_address,
    require_admin,
    verify_jwt_token,
)


def bearer(token):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def test_jwt_round_trip():
    token = create_jwt_token({"sub": USER, "role": ROLE_POLICYHOLDER})
    payload = verify_jwt_token(token)
    assert payload["sub"] == USER
    assert payload["role"] == ROLE_POLICYHOLDER
    assert payload["type"] == "access"


def test_invalid_token_401():
    with pytest.raises(HTTPException) as exc:
        verify_jwt_token("not-a-token")
    assert exc.value.status_code == 401


def test_expired_token_401(monkeypatch):
    monkeypatch.setattr(config, "JWT_EXPIRY_MINUTES", -1)
    token = create_jwt_token({"sub": USER, "role": 1})
    with pytest.raises(HTTPException) as exc:
        verify_jwt_token(token)
    assert exc.value.detail == "Token expired"


def test_current_user_from_token():
    user = get_current_user(bearer(create_jwt_token({"sub": USER, "role": ROLE_ADMIN})))
    assert user == {"wallet_address": USER, "role": ROLE_ADMIN}


def test_missing_token_bypassed_in_test_env():
    assert get_current_user(None)["role"] == ROLE_ADMIN


def test_missing_token_rejected_in_prod(monkeypatch):
    monkeypatch.setattr(config, "ENV", "prod")
    monkeypatch.setattr(config, "DEBUG", False)
    with pytest.raises(HTTPException) as exc:
        get_current_user(None)
    assert exc.value.status_code == 401


def test_require_admin():
    assert require_admin({"wallet_address": USER, "role": ROLE_ADMIN})["role"] == ROLE_ADMIN
    with pytest.raises(HTTPException) as exc:
        require_admin({"wallet_address": USER, "role": ROLE_POLICYHOLDER})
    assert exc.value.status_code == 403


@pytest.mark.parametrize("address, valid", [
    (USER, True),
    ("0x1", True),
    ("0x" + "f" * 65, False),
    ("a1" * 32, False),
    ("0xZZ", False),
    ("", False),
    (None, False),
])
def test_is_valid_address(address, valid):
    assert is_valid_address(address) is valid


def test_mask_address():
    assert mask_address(USER) == "0xa1a1…a1a1"
    assert mask_address(None) == ""


@pytest.mark.parametrize("address, canonical", [
    (USER, USER),
    (f"  {USER.upper().replace('0X', '0x')} ", USER),
    ("0xabcdef1234567890abcdef1234567890abcdef12", "0x" + "0" * 24 + "abcdef1234567890abcdef1234567890abcdef12"),
    ("0x" + "0" * 63 + "1", "0x1"),
    ("0x01", "0x1"),
])
def test_canonical_address(address, canonical):
    assert canonical_address(address) == canonical


@pytest.mark.parametrize("address", ["a1" * 32, "0x", "0xZZ", "0x" + "f" * 65, None])
def test_canonical_address_rejects(address):
    with pytest.raises(ValueError):
        canonical_address(address)
