# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request

from freelancehub.auth.session import COOKIE_NAME, verify_session
from freelancehub.core.errors import StoreError
from freelancehub.core.roles import Role, auth_url, home_url
from freelancehub.infra import credential_store, db as dbmod

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    id: int
    email: str
    role: Role


def load_user_from_request(request: Request) -> Optional[CurrentUser]:
    token = request.cookies.get(COOKIE_NAME, "")
    sess = verify_session(token)
    if not sess:
        return None
    if dbmod.SessionLocal is None:
        dbmod.configure()
    db = dbmod.SessionLocal()
    try:
        account = credential_store.get_account(db, sess.role, sess.account_id)
    except StoreError as e:
        logger.error("Could not restore session for %s id=%s: %s", sess.role.value, sess.account_id, e)
        return None
    finally:
        db.close()
    if account is None:
        return None
    return CurrentUser(id=account.id, email=account.email, role=account.role)


def current_user_optional(request: Request) -> Optional[CurrentUser]:
    if hasattr(request.state, "user"):
        return request.state.user
    return load_user_from_request(request)


def require_user(request: Request) -> CurrentUser:
    u = current_user_optional(request)
    if u:
        return u
    raise HTTPException(status_code=303, headers={"Location": "/"})


def require_role(role: Role):
    """Dependency: anonymous visitors go to role's auth page, the other role to its own home."""

    def _dep(request: Request) -> CurrentUser:
        u = current_user_optional(request)
        if not u:
            raise HTTPException(status_code=303, headers={"Location": auth_url(role)})
        if u.role != role:
            raise HTTPException(status_code=303, headers={"Location": home_url(u.role)})
        return u

    return _dep


def cookie_settings() -> dict:
    secure = os.getenv("FH_COOKIE_SECURE", "false").lower() in {"1", "true", "yes", "y"}
    return {"httponly": True, "samesite": "lax", "secure": secure}
