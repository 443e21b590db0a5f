# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Account persistence, dispatched over the closed Role set.

The table for a role is picked from ``ACCOUNT_TABLES``; callers must already
hold a parsed Role. Emails are canonicalised (trim + lower) before every read
and write.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple, Type

from sqlalchemy import exc, select
from sqlalchemy.orm import Session

from freelancehub.core.accounts import Account
from freelancehub.core.errors import AlreadyExists, StoreError
from freelancehub.core.roles import Role, parse_role
from freelancehub.core.utils import canon_email
from freelancehub.infra.db import Base
from freelancehub.infra.models import Client, Freelancer

logger = logging.getLogger(__name__)

# role -> (model, primary key column name)
ACCOUNT_TABLES: Dict[Role, Tuple[Type[Base], str]] = {
    Role.CLIENT: (Client, "client_id"),
    Role.FREELANCER: (Freelancer, "freelancer_id"),
}


def _table(role: Role) -> Tuple[Type[Base], str]:
    return ACCOUNT_TABLES[parse_role(role)]


def _to_account(row, role: Role) -> Account:
    _, pk = ACCOUNT_TABLES[role]
    return Account(
        id=int(getattr(row, pk)),
        email=row.email,
        role=role,
        password_hash=row.password,
    )


def find_by_email(db: Session, role: Role, email: str) -> Optional[Account]:
    role = parse_role(role)
    model, _ = _table(role)
    addr = canon_email(email)
    if not addr:
        return None
    try:
        row = db.execute(select(model).where(model.email == addr)).scalars().first()
    except exc.SQLAlchemyError as e:
        raise StoreError(f"Lookup by email failed on '{role.value}'") from e
    return _to_account(row, role) if row is not None else None


def get_account(db: Session, role: Role, account_id: int) -> Optional[Account]:
    role = parse_role(role)
    model, _ = _table(role)
    try:
        row = db.get(model, int(account_id))
    except exc.SQLAlchemyError as e:
        raise StoreError(f"Lookup by id failed on '{role.value}'") from e
    return _to_account(row, role) if row is not None else None


def insert_account(db: Session, role: Role, email: str, password_value: str) -> Account:
    """Insert an account row and return it.

    A duplicate email within the role's table raises AlreadyExists; the
    unique constraint decides, there is no separate existence check.
    """
    role = parse_role(role)
    model, _ = _table(role)
    addr = canon_email(email)
    if not addr:
        raise ValueError("Email must not be empty")
    row = model(email=addr, password=password_value, role=role.value)
    try:
        db.add(row)
        db.commit()
        db.refresh(row)
    except exc.IntegrityError as e:
        db.rollback()
        raise AlreadyExists(f"{role.value} account already exists for {addr}") from e
    except exc.SQLAlchemyError as e:
        db.rollback()
        logger.error("Database error creating %s account for %s: %s", role.value, addr, e, exc_info=True)
        raise StoreError(f"Could not save {role.value} account") from e
    account = _to_account(row, role)
    logger.info("Created %s account id=%s for %s", role.value, account.id, addr)
    return account
