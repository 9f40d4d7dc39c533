from __future__ import annotations

import time

import pytest
from itsdangerous import TimestampSigner, URLSafeTimedSerializer

from teamforge.admin_session import (
    ADMIN_SESSION_SALT,
    AdminSessionNotConfigured,
    issue_admin_token,
    read_admin_token,
    validate_admin_password,
)
from teamforge.config import Settings


def _settings(**overrides) -> Settings:
    values = {
        "TEAMFORGE_ADMIN_PASSWORD": "secret-password",
        "TEAMFORGE_SESSION_SECRET": "signing-key",
        "TEAMFORGE_ADMIN_SESSION_TTL": 60,
    }
    values.update(overrides)
    return Settings(**values)


def test_issued_token_is_accepted_by_a_fresh_settings_instance() -> None:
    token = issue_admin_token(_settings())
    assert read_admin_token(token, _settings()) is True


def test_token_signed_with_other_secret_is_rejected() -> None:
    token = issue_admin_token(_settings(TEAMFORGE_SESSION_SECRET="old-key"))
    assert read_admin_token(token, _settings()) is False


def test_missing_or_garbage_token_is_rejected() -> None:
    settings = _settings()
    assert read_admin_token(None, settings) is False
    assert read_admin_token("", settings) is False
    assert read_admin_token("not-a-token", settings) is False


def test_token_without_admin_role_is_rejected() -> None:
    serializer = URLSafeTimedSerializer("signing-key", salt=ADMIN_SESSION_SALT)
    token = serializer.dumps({"role": "student"})
    assert read_admin_token(token, _settings()) is False


def test_expired_token_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = _settings()
    monkeypatch.setattr(TimestampSigner, "get_timestamp", lambda self: int(time.time()) - 3600)
    token = issue_admin_token(settings)
    monkeypatch.undo()

    assert read_admin_token(token, settings) is False


def test_issuing_without_secret_raises() -> None:
    settings = _settings(TEAMFORGE_SESSION_SECRET=None)
    with pytest.raises(AdminSessionNotConfigured):
        issue_admin_token(settings)
    assert read_admin_token("anything", settings) is False


def test_password_check() -> None:
    assert validate_admin_password("secret-password", _settings()) is True
    assert validate_admin_password("wrong", _settings()) is False
    assert validate_admin_password("secret-password", _settings(TEAMFORGE_ADMIN_PASSWORD=None)) is False
