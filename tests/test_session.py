import pytest
from itsdangerous import URLSafeTimedSerializer

from freelancehub.auth.session import SessionData, sign_session, verify_session
from freelancehub.core.accounts import Account
from freelancehub.core.roles import Role


def _account():
    return Account(id=7, email="a@x.com", role=Role.CLIENT, password_hash="$argon2id$secret-digest")


def test_roundtrip_keeps_identity_only():
    token = sign_session(_account())
    assert verify_session(token) == SessionData(account_id=7, role=Role.CLIENT)

    raw = URLSafeTimedSerializer("test-secret-key", salt="fh.session.v1").loads(token)
    assert raw == {"id": 7, "r": "client"}


def test_rejects_bad_tokens():
    token = sign_session(_account())
    assert verify_session("") is None
    assert verify_session("x" + token) is None
    assert verify_session(token, max_age=-1) is None


def test_rejects_payload_with_unknown_role():
    forged = URLSafeTimedSerializer("test-secret-key", salt="fh.session.v1").dumps({"id": 1, "r": "admin"})
    assert verify_session(forged) is None


def test_missing_secret_is_an_error(monkeypatch):
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(RuntimeError):
        sign_session(_account())
