# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""SQLAlchemy engine, session factory and the FastAPI session dependency."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, exc
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

DATA_DIR = Path(os.getenv("FH_DATA_DIR", "data")).resolve()
DEFAULT_DATABASE_URL = f"sqlite:///{DATA_DIR / 'freelancehub.db'}"

Base = declarative_base()

engine: Optional[Engine] = None
SessionLocal: Optional[sessionmaker] = None


def configure(url: str = "") -> Engine:
    """(Re)bind the module engine and session factory to url.

    Falls back to FH_DATABASE_URL, then to a SQLite file under FH_DATA_DIR.
    """
    global engine, SessionLocal
    url = url or os.getenv("FH_DATABASE_URL") or DEFAULT_DATABASE_URL
    kwargs = {"pool_pre_ping": True}
    if url.startswith("sqlite"):
        # TestClient and the threadpool share connections across threads
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.startswith("sqlite:///") and ":memory:" not in url:
            Path(url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
    if engine is not None:
        engine.dispose()
    engine = create_engine(url, **kwargs)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    logger.info("Database configured (%s).", engine.url.render_as_string(hide_password=True))
    return engine


def init_db() -> None:
    """Create missing tables. Safe to call on every startup."""
    # Import for side effects: registers the models on Base.metadata
    from freelancehub.infra import models  # noqa: F401

    if engine is None:
        configure()
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables verified/created.")
    except exc.SQLAlchemyError as e:
        logger.error("Error initializing database: %s", e, exc_info=True)
        raise


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding one session per request.

    Rolls back on any error escaping the route and always closes the session.
    """
    if SessionLocal is None:
        configure()
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
