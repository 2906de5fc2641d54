from datetime import timedelta

import pytest

from kanban.auth import create_access_token, decode_access_token, get_password_hash, verify_password
from kanban.dependencies import Principal, issue_token
from kanban.errors import Unauthorized
from kanban.models import UserRole, UserType


def test_password_hash_round_trip():
    hashed = get_password_hash("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)


def test_issued_token_carries_principal_claims(admin):
    claims = decode_access_token(issue_token(admin))

    assert claims["sub"] == str(admin.id)
    assert claims["role"] == UserRole.ADMIN.value
    assert claims["type"] == UserType.STAFF.value
    assert "exp" in claims


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "1"}, expires_delta=timedelta(minutes=-5))

    with pytest.raises(Unauthorized) as exc:
        decode_access_token(token)
    assert exc.value.detail == "Session expired"


def test_tampered_token_is_rejected(admin):
    token = issue_token(admin)

    with pytest.raises(Unauthorized) as exc:
        decode_access_token(token[:-2] + ("aa" if not token.endswith("aa") else "bb"))
    assert exc.value.status_code == 401


def test_principal_from_user(make_user):
    user = make_user("contractor@example.com")
    principal = Principal.from_user(user)

    assert principal.id == user.id
    assert principal.user_type == UserType.CONTRACTOR
    assert not principal.is_admin
