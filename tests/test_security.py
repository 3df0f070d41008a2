import base64
from datetime import timedelta

import pytest
from jose import jwt

from app.config import settings
from app.exceptions import ConfigurationError
from app.utils.security import (
    ExpiredSignatureError,
    JWTError,
    create_access_token,
    create_refresh_token,
    csrf_token_for,
    decode_token,
    generate_reset_token,
    generate_tokens,
    hash_password,
    sanitize_value,
    verify_access_token,
    verify_password,
    verify_refresh_token,
)


def test_hash_and_verify_password():
    hashed = hash_password("SecurePass123!")
    assert hashed != "SecurePass123!"
    assert hashed.startswith("$2")
    assert verify_password("SecurePass123!", hashed)
    assert not verify_password("WrongPass123!", hashed)


def test_verify_password_rejects_empty_or_malformed_hash():
    assert verify_password("SecurePass123!", "") is False
    assert verify_password("SecurePass123!", "not-a-bcrypt-hash") is False


def test_access_token_carries_identity_and_standard_claims():
    token = create_access_token("user-1", "jane@example.com", "user")
    payload = verify_access_token(token)

    assert payload["id"] == "user-1"
    assert payload["email"] == "jane@example.com"
    assert payload["role"] == "user"
    assert payload["iss"] == settings.JWT_ISSUER
    assert payload["aud"] == settings.JWT_AUDIENCE
    assert payload["exp"] - payload["iat"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def test_refresh_token_keeps_role_but_not_email():
    payload = verify_refresh_token(create_refresh_token("user-1", "remote_employee"))
    assert payload["id"] == "user-1"
    assert payload["role"] == "remote_employee"
    assert "email" not in payload


def test_generate_tokens_returns_camel_case_pair():
    tokens = generate_tokens("user-1", "jane@example.com", "admin")
    assert set(tokens) == {"accessToken", "refreshToken"}
    assert verify_access_token(tokens["accessToken"])["role"] == "admin"
    assert verify_refresh_token(tokens["refreshToken"])["id"] == "user-1"


def test_token_types_are_not_interchangeable():
    access = create_access_token("user-1", "jane@example.com", "user")
    refresh = create_refresh_token("user-1", "user")

    with pytest.raises(JWTError):
        verify_refresh_token(access)
    with pytest.raises(JWTError):
        verify_access_token(refresh)


def test_expired_token_raises_expired_signature():
    token = create_access_token(
        "user-1", "jane@example.com", "user", expires_delta=timedelta(seconds=-10)
    )
    with pytest.raises(ExpiredSignatureError):
        decode_token(token)


def test_token_from_other_issuer_is_rejected():
    token = jwt.encode(
        {"id": "user-1", "type": "access", "iss": "someone-else", "aud": settings.JWT_AUDIENCE},
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(JWTError):
        verify_access_token(token)


def test_token_signed_with_other_secret_is_rejected():
    token = create_access_token("user-1", "jane@example.com", "user")
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])
    with pytest.raises(JWTError):
        verify_access_token(tampered)


def test_missing_secret_is_a_configuration_error(monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET_KEY", "")
    with pytest.raises(ConfigurationError) as exc:
        create_access_token("user-1", "jane@example.com", "user")
    assert exc.value.message == "JWT_SECRET not configured"


def test_reset_token_is_64_hex_characters():
    token = generate_reset_token()
    assert len(token) == 64
    int(token, 16)
    assert generate_reset_token() != token


def test_csrf_token_is_prefix_of_base64_access_token():
    token = create_access_token("user-1", "jane@example.com", "user")
    expected = base64.b64encode(token.encode()).decode()[:32]
    assert csrf_token_for(token) == expected
    assert len(csrf_token_for(token)) == 32


def test_sanitize_value_strips_scripts_and_tags_recursively():
    data = {
        "name": "  <b>Jane</b> Doe ",
        "details": "Hello<script>alert('x')</script> world",
        "items": ["<i>one</i>", 2],
        "count": 3,
    }
    assert sanitize_value(data) == {
        "name": "Jane Doe",
        "details": "Hello world",
        "items": ["one", 2],
        "count": 3,
    }
