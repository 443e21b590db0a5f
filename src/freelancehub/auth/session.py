# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from itsdangerous import BadSignature, BadTimeSignature, URLSafeTimedSerializer

from freelancehub.core.accounts import Account
from freelancehub.core.errors import InvalidRole
from freelancehub.core.roles import Role, parse_role

COOKIE_NAME = os.getenv("FH_COOKIE_NAME", "fh_session")
DEFAULT_MAX_AGE_SECONDS = int(os.getenv("FH_SESSION_MAX_AGE", "86400"))  # 24 hours


def secret_key() -> str:
    secret = os.getenv("SECRET_KEY") or os.getenv("FH_SECRET_KEY")
    if not secret:
        raise RuntimeError("Missing SECRET_KEY (or FH_SECRET_KEY) in environment")
    return secret


def _serializer() -> URLSafeTimedSerializer:
    salt = os.getenv("FH_SESSION_SALT", "fh.session.v1")
    return URLSafeTimedSerializer(secret_key=secret_key(), salt=salt)


@dataclass(frozen=True)
class SessionData:
    account_id: int
    role: Role


def sign_session(account: Account) -> str:
    # Identity only; profile and password columns are re-read per request
    s = _serializer()
    return s.dumps({"id": int(account.id), "r": account.role.value})


def verify_session(token: str, *, max_age: int = DEFAULT_MAX_AGE_SECONDS) -> Optional[SessionData]:
    if not token:
        return None
    s = _serializer()
    try:
        data = s.loads(token, max_age=max_age)
    except (BadSignature, BadTimeSignature):
        return None
    if not isinstance(data, dict):
        return None
    try:
        account_id = int(data.get("id"))
        role = parse_role(data.get("r"))
    except (TypeError, ValueError, InvalidRole):
        return None
    return SessionData(account_id=account_id, role=role)
