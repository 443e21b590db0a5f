# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""OAuth2 sign-in: state handling, provider exchange and find-or-create.

The role chosen on the auth page travels through the provider round trip
inside a signed ``state`` value. A nonce in the same state is mirrored in a
short-lived cookie and both must match on callback.
"""

from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode

import httpx
from itsdangerous import BadSignature, URLSafeTimedSerializer
from sqlalchemy.orm import Session

from freelancehub.auth.local import federated_placeholder
from freelancehub.auth.session import secret_key
from freelancehub.core.accounts import AuthResult
from freelancehub.core.errors import AlreadyExists, ProviderError, StoreError
from freelancehub.core.roles import Role, parse_role
from freelancehub.core.utils import canon_email
from freelancehub.infra import credential_store

logger = logging.getLogger(__name__)

CLIENT_ID = os.getenv("FH_OAUTH_CLIENT_ID", "")
CLIENT_SECRET = os.getenv("FH_OAUTH_CLIENT_SECRET", "")
REDIRECT_URI = os.getenv("FH_OAUTH_REDIRECT_URI", "http://localhost:3000/auth/google/callback")
AUTHORIZE_URL = os.getenv("FH_OAUTH_AUTHORIZE_URL", "https://accounts.google.com/o/oauth2/v2/auth")
TOKEN_URL = os.getenv("FH_OAUTH_TOKEN_URL", "https://oauth2.googleapis.com/token")
USERINFO_URL = os.getenv("FH_OAUTH_USERINFO_URL", "https://openidconnect.googleapis.com/v1/userinfo")
SCOPES = "openid email profile"

STATE_COOKIE_NAME = "fh_oauth_nonce"
STATE_MAX_AGE_SECONDS = 600
HTTP_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class Assertion:
    subject: str
    emails: Tuple[str, ...]

    @property
    def email(self) -> str:
        return self.emails[0]


def _state_serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key=secret_key(), salt="fh.oauth-state.v1")


def sign_state(role: Role | str) -> Tuple[str, str]:
    """Return (state, nonce) for role. The nonce goes into STATE_COOKIE_NAME."""
    role = parse_role(role)
    nonce = secrets.token_urlsafe(16)
    return _state_serializer().dumps({"r": role.value, "n": nonce}), nonce


def verify_state(state: str, nonce: str, *, max_age: int = STATE_MAX_AGE_SECONDS) -> Role:
    """Return the role carried by state.

    Raises ProviderError for a missing, tampered, expired or unmatched state and
    InvalidRole when the signed role is outside the allow-list.
    """
    if not state or not nonce:
        raise ProviderError("Missing OAuth state")
    try:
        data = _state_serializer().loads(state, max_age=max_age)
    except BadSignature as e:
        raise ProviderError("Invalid or expired OAuth state") from e
    if not isinstance(data, dict) or not secrets.compare_digest(str(data.get("n") or ""), nonce):
        raise ProviderError("OAuth state does not match this browser")
    return parse_role(data.get("r"))


def authorization_url(state: str) -> str:
    if not CLIENT_ID:
        raise ProviderError("FH_OAUTH_CLIENT_ID is not configured")
    params = {
        "client_id": CLIENT_ID,
        "redirect_uri": REDIRECT_URI,
        "response_type": "code",
        "scope": SCOPES,
        "state": state,
        "prompt": "select_account",
    }
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


def parse_assertion(payload: Dict[str, Any]) -> Assertion:
    """Build an Assertion from a userinfo payload.

    Accepts either an ``emails`` list (strings or {"value", "verified"} items)
    or the OIDC ``email`` / ``email_verified`` pair. Unverified addresses are
    dropped; values that are not strings raise ProviderError.
    """
    subject = str(payload.get("sub") or payload.get("id") or "").strip()
    if not subject:
        raise ProviderError("Provider assertion has no subject id")

    emails = []
    raw_list = payload.get("emails")
    if isinstance(raw_list, list):
        for item in raw_list:
            if isinstance(item, dict):
                if item.get("verified", True) is False:
                    continue
                addr = _email_value(item.get("value"))
            else:
                addr = _email_value(item)
            if addr and addr not in emails:
                emails.append(addr)
    elif payload.get("email") and payload.get("email_verified", True) is not False:
        emails.append(_email_value(payload["email"]))

    emails = [e for e in emails if e]
    if not emails:
        raise ProviderError("Provider assertion has no verified email")
    return Assertion(subject=subject, emails=tuple(emails))


def _email_value(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ProviderError(f"Provider email has unexpected type {type(value).__name__}")
    return canon_email(value)


async def exchange_code(code: str, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> Assertion:
    """Trade an authorization code for the user's Assertion."""
    if not code:
        raise ProviderError("Missing authorization code")
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS, transport=transport) as client:
        try:
            token_resp = await client.post(
                TOKEN_URL,
                data={
                    "code": code,
                    "client_id": CLIENT_ID,
                    "client_secret": CLIENT_SECRET,
                    "redirect_uri": REDIRECT_URI,
                    "grant_type": "authorization_code",
                },
                headers={"Accept": "application/json"},
            )
            token_resp.raise_for_status()
            token_body = token_resp.json()
            if not isinstance(token_body, dict):
                raise ProviderError("Unexpected token endpoint payload")
            access_token = token_body.get("access_token")
            if not access_token or not isinstance(access_token, str):
                raise ProviderError("Token endpoint returned no access_token")

            info_resp = await client.get(
                USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            info_resp.raise_for_status()
            payload = info_resp.json()
        except (httpx.RequestError, httpx.HTTPStatusError) as e:
            raise ProviderError(f"Identity provider request failed: {e}") from e
        except ValueError as e:
            raise ProviderError("Identity provider returned invalid JSON") from e

    if not isinstance(payload, dict):
        raise ProviderError("Unexpected userinfo payload")
    return parse_assertion(payload)


def find_or_create(db: Session, role: Role | str, assertion: Assertion) -> AuthResult:
    """Return the role's account for the assertion's first email, creating it if absent."""
    role = parse_role(role)
    existing = credential_store.find_by_email(db, role, assertion.email)
    if existing is not None:
        return AuthResult(account=existing, just_created=False)

    try:
        created = credential_store.insert_account(
            db, role, assertion.email, federated_placeholder(assertion.subject)
        )
    except AlreadyExists:
        # Lost a race with a concurrent first login for the same email
        existing = credential_store.find_by_email(db, role, assertion.email)
        if existing is None:
            raise StoreError(f"{role.value} account vanished after conflict for {assertion.email}")
        return AuthResult(account=existing, just_created=False)

    logger.info("Federated sign-up: new %s id=%s", role.value, created.id)
    return AuthResult(account=created, just_created=True)
