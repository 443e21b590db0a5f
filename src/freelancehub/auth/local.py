# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Email/password login and signup against the role's account table."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from freelancehub.auth.passwords import MIN_PASSWORD_LENGTH, hash_password, verify_password
from freelancehub.core.accounts import Account
from freelancehub.core.errors import InvalidCredential, NotFound
from freelancehub.core.roles import Role, parse_role
from freelancehub.core.utils import canon_email
from freelancehub.infra import credential_store

logger = logging.getLogger(__name__)

FEDERATED_PREFIX = "federated:"


def federated_placeholder(subject: str) -> str:
    """Password column value for provider-only accounts (never an argon2 digest)."""
    return f"{FEDERATED_PREFIX}{subject}"


def is_federated_placeholder(value: str) -> bool:
    return bool(value) and value.startswith(FEDERATED_PREFIX)


def authenticate_local(db: Session, email: str, password: str, role: Role | str) -> Account:
    """Return the account for a valid email/password under role.

    Raises InvalidRole (before any query), NotFound, InvalidCredential, or
    VerifierError when the stored digest is corrupt.
    """
    role = parse_role(role)
    account = credential_store.find_by_email(db, role, email)
    if account is None:
        raise NotFound(f"user not found: {canon_email(email)} ({role.value})")
    if is_federated_placeholder(account.password_hash or ""):
        raise InvalidCredential(f"federated-only account: {account.email} ({role.value})")
    if not verify_password(account.password_hash or "", password):
        raise InvalidCredential(f"invalid password: {account.email} ({role.value})")
    logger.info("Local login ok for %s id=%s", role.value, account.id)
    return account


def register_local(db: Session, email: str, password: str, role: Role | str) -> Account:
    """Create a local account. Duplicate emails raise AlreadyExists."""
    role = parse_role(role)
    addr = canon_email(email)
    if not addr or "@" not in addr:
        raise ValueError("A valid email is required")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return credential_store.insert_account(db, role, addr, hash_password(password))
