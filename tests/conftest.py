import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

import importlib
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from freelancehub.infra import db as dbmod


@pytest.fixture(autouse=True)
def secret_key(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret-key")
    monkeypatch.delenv("FH_SECRET_KEY", raising=False)


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'freelancehub.db'}"


@pytest.fixture()
def db_session(db_url):
    """A session bound to a fresh SQLite file with all tables created."""
    dbmod.configure(db_url)
    dbmod.init_db()
    session = dbmod.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def app_module(tmp_path: Path, db_url, monkeypatch):
    data_dir = tmp_path / "data"
    monkeypatch.setenv("FH_DATA_DIR", str(data_dir))
    monkeypatch.setenv("FH_UPLOAD_DIR", str(data_dir / "uploads"))
    dbmod.configure(db_url)
    dbmod.init_db()

    import freelancehub.app as app_module
    importlib.reload(app_module)
    return app_module


@pytest.fixture()
def client(app_module):
    with TestClient(app_module.app, follow_redirects=False) as c:
        yield c


def signup(client, email="a@x.com", password="secret1", role="client"):
    return client.post(
        "/signup",
        data={"email": email, "password": password, "confirm": password, "role": role},
    )


def login(client, email="a@x.com", password="secret1", role="client"):
    return client.post("/login", data={"email": email, "password": password, "role": role})
