# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Profile records (client_info / freelancer_info), one per account.

Creating the row is what moves a fresh account out of onboarding.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import exc
from sqlalchemy.orm import Session

from freelancehub.core.errors import AlreadyExists, NotFound, StoreError
from freelancehub.core.roles import Role, parse_role
from freelancehub.core.utils import clean_text, parse_int, split_skills
from freelancehub.infra.models import ClientInfo, FreelancerInfo

PROFILE_TABLES = {
    Role.CLIENT: ClientInfo,
    Role.FREELANCER: FreelancerInfo,
}

COMMON_FIELDS = ("name", "age", "gender", "photo")

ROLE_FIELDS = {
    Role.CLIENT: ("company", "location"),
    Role.FREELANCER: ("title", "skills", "hourly_rate", "bio"),
}

GENDERS = ("female", "male", "other", "")


def profile_fields(role: Role) -> tuple:
    return COMMON_FIELDS + ROLE_FIELDS[parse_role(role)]


def clean_profile_form(role: Role, form: Dict[str, Any]) -> Dict[str, Any]:
    """Normalise submitted profile fields for role. Unknown keys are dropped."""
    role = parse_role(role)
    name = clean_text(form.get("name", ""), max_len=120)
    if not name:
        raise ValueError("Name is required")
    gender = clean_text(form.get("gender", "")).lower()
    if gender not in GENDERS:
        raise ValueError("Unsupported gender value")

    out: Dict[str, Any] = {
        "name": name,
        "age": parse_int(form.get("age"), min_value=16, max_value=120),
        "gender": gender or None,
    }
    if role == Role.CLIENT:
        out["company"] = clean_text(form.get("company", ""), max_len=120) or None
        out["location"] = clean_text(form.get("location", ""), max_len=120) or None
    else:
        out["title"] = clean_text(form.get("title", ""), max_len=120) or None
        out["skills"] = ", ".join(split_skills(form.get("skills", ""))) or None
        out["hourly_rate"] = parse_int(form.get("hourly_rate"), min_value=0)
        out["bio"] = str(form.get("bio") or "").strip()[:4000] or None
    return out


def _row_to_dict(role: Role, row) -> Dict[str, Any]:
    return {f: getattr(row, f) for f in profile_fields(role)}


def get_profile(db: Session, role: Role, account_id: int) -> Optional[Dict[str, Any]]:
    role = parse_role(role)
    try:
        row = db.get(PROFILE_TABLES[role], int(account_id))
    except exc.SQLAlchemyError as e:
        raise StoreError(f"Could not read {role.value} profile") from e
    return _row_to_dict(role, row) if row is not None else None


def create_profile(db: Session, role: Role, account_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
    role = parse_role(role)
    model = PROFILE_TABLES[role]
    pk = "client_id" if role == Role.CLIENT else "freelancer_id"
    if db.get(model, int(account_id)) is not None:
        raise AlreadyExists(f"{role.value} profile already exists for id={account_id}")
    values = {k: v for k, v in fields.items() if k in profile_fields(role)}
    row = model(**{pk: int(account_id)}, **values)
    try:
        db.add(row)
        db.commit()
        db.refresh(row)
    except exc.IntegrityError as e:
        db.rollback()
        raise AlreadyExists(f"{role.value} profile already exists for id={account_id}") from e
    except exc.SQLAlchemyError as e:
        db.rollback()
        raise StoreError(f"Could not save {role.value} profile") from e
    return _row_to_dict(role, row)


def update_profile(db: Session, role: Role, account_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
    role = parse_role(role)
    row = db.get(PROFILE_TABLES[role], int(account_id))
    if row is None:
        raise NotFound(f"No {role.value} profile for id={account_id}")
    for k, v in fields.items():
        if k in profile_fields(role):
            setattr(row, k, v)
    try:
        db.commit()
        db.refresh(row)
    except exc.SQLAlchemyError as e:
        db.rollback()
        raise StoreError(f"Could not update {role.value} profile") from e
    return _row_to_dict(role, row)
