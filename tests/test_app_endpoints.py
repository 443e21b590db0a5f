from urllib.parse import parse_qs, urlparse

import pytest

from conftest import login, signup
from freelancehub.auth import federated
from freelancehub.auth.federated import Assertion
from freelancehub.auth.session import COOKIE_NAME


def _complete_profile(client, **fields):
    data = {"name": "Ada", **fields}
    return client.post("/profile/complete", data=data)


def test_health_and_index(client):
    assert client.get("/health").json()["status"] == "ok"
    r = client.get("/")
    assert r.status_code == 200
    assert "/client_auth" in r.text and "/freelancer_auth" in r.text


def test_auth_pages_render(client):
    r = client.get("/client_auth?error=login")
    assert r.status_code == 200
    assert 'value="client"' in r.text
    assert "Invalid email or password." in r.text
    assert 'value="freelancer"' in client.get("/freelancer_auth").text


def test_signup_then_onboarding_then_home(client):
    r = signup(client)
    assert r.status_code == 303
    assert r.headers["location"] == "/profile/complete"
    assert COOKIE_NAME in client.cookies

    r = client.get("/profile/complete")
    assert r.status_code == 200
    assert 'name="company"' in r.text

    r = _complete_profile(client, company="Engines Ltd")
    assert r.status_code == 303
    assert r.headers["location"] == "/client/home"

    # onboarding is over: the form now sends you home
    assert client.get("/profile/complete").headers["location"] == "/client/home"

    r = client.get("/client/home")
    assert r.status_code == 200
    assert "Ada" in r.text


def test_login_success_and_role_mismatch(client):
    signup(client)
    client.post("/logout")

    r = login(client)
    assert r.status_code == 303
    assert r.headers["location"] == "/client/home"
    client.post("/logout")

    r = login(client, role="freelancer")
    assert r.status_code == 303
    assert r.headers["location"] == "/freelancer_auth?error=login"

    r = login(client, password="wrong-pass")
    assert r.headers["location"] == "/client_auth?error=login"


def test_invalid_role_is_rejected(client):
    assert login(client, role="admin").status_code == 400
    assert signup(client, role="admin").status_code == 400
    assert client.get("/auth/google?role=admin").status_code == 400


def test_duplicate_and_mismatched_signup(client):
    signup(client)
    client.post("/logout")
    assert signup(client).headers["location"] == "/client_auth?error=exists"

    r = client.post(
        "/signup",
        data={"email": "b@x.com", "password": "secret1", "confirm": "secret2", "role": "freelancer"},
    )
    assert r.headers["location"] == "/freelancer_auth?error=mismatch"
    assert signup(client, email="c@x.com", password="123").headers["location"] == "/client_auth?error=signup"


def test_role_gating(client):
    assert client.get("/client/home").headers["location"] == "/client_auth"
    assert client.get("/freelancer/home").headers["location"] == "/freelancer_auth"
    assert client.get("/freelancers").headers["location"] == "/"

    signup(client, email="f@x.com", role="freelancer")
    assert client.get("/client/home").headers["location"] == "/freelancer/home"
    assert client.get("/projects/new").headers["location"] == "/freelancer/home"
    assert client.get("/").headers["location"] == "/freelancer/home"


def test_logout_ends_session(client):
    signup(client)
    r = client.post("/logout")
    assert r.headers["location"] == "/"
    assert COOKIE_NAME not in client.cookies
    assert client.get("/client/home").headers["location"] == "/client_auth"


def test_forged_session_cookie_is_anonymous(client):
    client.cookies.set(COOKIE_NAME, "not-a-valid-token")
    assert client.get("/client/home").headers["location"] == "/client_auth"


def test_profile_photo_upload_and_edit(client, app_module):
    signup(client, email="f@x.com", role="freelancer")
    r = client.post(
        "/profile/complete",
        data={"name": "Grace", "skills": "python, cobol", "hourly_rate": "90"},
        files={"photo": ("me.png", b"\x89PNG fake", "image/png")},
    )
    assert r.status_code == 303

    r = client.get("/profile")
    assert r.status_code == 200
    assert "/uploads/freelancer/" in r.text

    r = client.post(
        "/profile",
        data={"name": "Grace", "skills": "python"},
        files={"photo": ("evil.exe", b"MZ", "application/octet-stream")},
    )
    assert r.status_code == 400
    assert "Photo must be one of" in r.text

    r = client.post("/profile", data={"name": "Grace H.", "title": "Admiral"})
    assert r.headers["location"] == "/freelancer/home"
    assert "Grace H." in client.get("/freelancer/home").text


def test_post_project_and_browse_directory(client):
    signup(client, email="f@x.com", role="freelancer")
    _complete_profile(client, name="Grace", skills="python")
    client.post("/logout")

    signup(client)
    _complete_profile(client)
    r = client.post("/projects/new", data={"title": "Data pipeline", "description": "ETL job", "budget": "500"})
    assert r.headers["location"] == "/client/home"
    assert "Data pipeline" in client.get("/client/home").text

    assert client.post("/projects/new", data={"title": "", "description": "x"}).status_code == 400

    r = client.get("/freelancers?skill=python")
    assert r.status_code == 200
    assert "Grace" in r.text
    assert "Grace" not in client.get("/freelancers?q=nobody").text
    assert client.get("/freelancers/9999").status_code == 404
    assert client.get("/chat").status_code == 200


def _fake_exchange(email="b@x.com", sub="g-1"):
    async def fake(code, **kwargs):
        assert code == "the-code"
        return Assertion(subject=sub, emails=(email,))

    return fake


def _start_google(client, role):
    r = client.get(f"/auth/google?role={role}")
    assert r.status_code == 303
    location = urlparse(r.headers["location"])
    return parse_qs(location.query)["state"][0]


def test_google_sign_in_onboarding(client, monkeypatch):
    monkeypatch.setattr(federated, "CLIENT_ID", "cid")
    monkeypatch.setattr(federated, "exchange_code", _fake_exchange())

    state = _start_google(client, "client")
    r = client.get(f"/auth/google/callback?code=the-code&state={state}")
    assert r.headers["location"] == "/profile/complete"
    _complete_profile(client)
    client.post("/logout")

    state = _start_google(client, "client")
    r = client.get(f"/auth/google/callback?code=the-code&state={state}")
    assert r.headers["location"] == "/client/home"
    assert client.get("/client/home").status_code == 200


def test_google_callback_rejects_bad_state(client, monkeypatch):
    monkeypatch.setattr(federated, "CLIENT_ID", "cid")
    monkeypatch.setattr(federated, "exchange_code", _fake_exchange())

    r = client.get("/auth/google/callback?code=the-code&state=forged")
    assert r.headers["location"] == "/"
    assert COOKIE_NAME not in client.cookies

    state = _start_google(client, "freelancer")
    client.cookies.delete(federated.STATE_COOKIE_NAME)
    r = client.get(f"/auth/google/callback?code=the-code&state={state}")
    assert r.headers["location"] == "/"


def test_google_provider_failure(client, monkeypatch):
    monkeypatch.setattr(federated, "CLIENT_ID", "cid")

    async def failing(code, **kwargs):
        raise federated.ProviderError("token endpoint down")

    monkeypatch.setattr(federated, "exchange_code", failing)
    state = _start_google(client, "freelancer")
    r = client.get(f"/auth/google/callback?code=the-code&state={state}")
    assert r.headers["location"] == "/freelancer_auth?error=provider"

    state = _start_google(client, "freelancer")
    r = client.get(f"/auth/google/callback?error=access_denied&state={state}")
    assert r.headers["location"] == "/freelancer_auth?error=provider"


def test_google_not_configured(client, monkeypatch):
    monkeypatch.setattr(federated, "CLIENT_ID", "")
    assert client.get("/auth/google?role=client").headers["location"] == "/client_auth?error=provider"


def test_corrupt_password_digest_redirects_to_login(client):
    from freelancehub.infra import db as dbmod
    from freelancehub.infra.models import Client

    signup(client)
    client.post("/logout")

    session = dbmod.SessionLocal()
    try:
        row = session.query(Client).filter(Client.email == "a@x.com").one()
        row.password = "$argon2id$v=19$m=65536"
        session.commit()
    finally:
        session.close()

    r = login(client)
    assert r.status_code == 303
    assert r.headers["location"] == "/client_auth?error=login"
    assert COOKIE_NAME not in client.cookies


def _uploaded_files(app_module):
    return [p for p in app_module.UPLOAD_DIR.rglob("*") if p.is_file()]


def test_store_failure_removes_uploaded_photo(client, app_module, monkeypatch):
    from freelancehub.core.errors import StoreError

    def failing(*args, **kwargs):
        raise StoreError("disk full")

    real_create = app_module.create_profile
    signup(client, email="f@x.com", role="freelancer")
    monkeypatch.setattr(app_module, "create_profile", failing)
    r = client.post(
        "/profile/complete",
        data={"name": "Grace"},
        files={"photo": ("me.png", b"\x89PNG fake", "image/png")},
    )
    assert r.status_code == 503
    assert _uploaded_files(app_module) == []

    monkeypatch.setattr(app_module, "create_profile", real_create)
    _complete_profile(client, name="Grace")
    monkeypatch.setattr(app_module, "update_profile", failing)
    r = client.post(
        "/profile",
        data={"name": "Grace"},
        files={"photo": ("me.png", b"\x89PNG fake", "image/png")},
    )
    assert r.status_code == 503
    assert _uploaded_files(app_module) == []


def test_oversized_photo_is_rejected(client, app_module, monkeypatch):
    monkeypatch.setattr(app_module, "MAX_UPLOAD_BYTES", 16)
    signup(client, email="f@x.com", role="freelancer")
    r = client.post(
        "/profile/complete",
        data={"name": "Grace"},
        files={"photo": ("big.png", b"x" * 4096, "image/png")},
    )
    assert r.status_code == 400
    assert "Photo exceeds" in r.text
    assert _uploaded_files(app_module) == []
