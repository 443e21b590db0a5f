# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Freelancer directory: search over profiles that completed onboarding."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import exc, func, or_, select
from sqlalchemy.orm import Session

from freelancehub.core.errors import StoreError
from freelancehub.core.utils import clean_text, split_skills
from freelancehub.infra.models import FreelancerInfo

DEFAULT_LIMIT = 20
MAX_LIMIT = 50


def _escape_like(s: str) -> str:
    return s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _card(row: FreelancerInfo) -> Dict[str, Any]:
    return {
        "freelancer_id": row.freelancer_id,
        "name": row.name,
        "title": row.title or "",
        "skills": split_skills(row.skills or ""),
        "hourly_rate": row.hourly_rate,
        "photo": row.photo,
        "bio": row.bio or "",
    }


def search_freelancers(
    db: Session,
    *,
    q: str = "",
    skill: str = "",
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
) -> List[Dict[str, Any]]:
    """Case-insensitive match of q on name/title/bio and of skill on the skills tags.

    Blank filters match everything; results are ordered by name.
    """
    limit = max(1, min(int(limit or DEFAULT_LIMIT), MAX_LIMIT))
    offset = max(0, int(offset or 0))

    stmt = select(FreelancerInfo)
    term = clean_text(q).lower()
    if term:
        pattern = f"%{_escape_like(term)}%"
        stmt = stmt.where(
            or_(
                func.lower(FreelancerInfo.name).like(pattern, escape="\\"),
                func.lower(func.coalesce(FreelancerInfo.title, "")).like(pattern, escape="\\"),
                func.lower(func.coalesce(FreelancerInfo.bio, "")).like(pattern, escape="\\"),
            )
        )

    tags = split_skills(skill)
    for tag in tags:
        # Substring prefilter; whole-tag matching is finished below
        stmt = stmt.where(
            func.lower(func.coalesce(FreelancerInfo.skills, "")).like(f"%{_escape_like(tag)}%", escape="\\")
        )
    stmt = stmt.order_by(FreelancerInfo.name, FreelancerInfo.freelancer_id)

    try:
        if not tags:
            return [_card(r) for r in db.execute(stmt.offset(offset).limit(limit)).scalars()]

        out: List[Dict[str, Any]] = []
        skipped = 0
        result = db.execute(stmt.execution_options(yield_per=100)).scalars()
        try:
            for row in result:
                if not set(tags) <= set(split_skills(row.skills or "")):
                    continue
                if skipped < offset:
                    skipped += 1
                    continue
                out.append(_card(row))
                if len(out) >= limit:
                    break
        finally:
            result.close()
        return out
    except exc.SQLAlchemyError as e:
        raise StoreError("Could not search freelancers") from e


def get_freelancer(db: Session, freelancer_id: int) -> Optional[Dict[str, Any]]:
    try:
        row = db.get(FreelancerInfo, int(freelancer_id))
    except exc.SQLAlchemyError as e:
        raise StoreError("Could not read freelancer profile") from e
    return _card(row) if row is not None else None
