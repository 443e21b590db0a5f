# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy import exc, select
from sqlalchemy.orm import Session

from freelancehub.core.errors import StoreError
from freelancehub.core.utils import clean_text, parse_int, split_skills
from freelancehub.infra.models import ClientInfo, Project

logger = logging.getLogger(__name__)


def _project_dict(p: Project, client_name: str = "") -> Dict[str, Any]:
    return {
        "project_id": p.project_id,
        "client_id": p.client_id,
        "client_name": client_name,
        "title": p.title,
        "description": p.description,
        "budget": p.budget,
        "skills": split_skills(p.skills or ""),
        "created_at": p.created_at,
    }


def create_project(db: Session, client_id: int, form: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and store a project posted by client_id."""
    title = clean_text(form.get("title", ""), max_len=200)
    description = str(form.get("description") or "").strip()
    if not title:
        raise ValueError("Title is required")
    if not description:
        raise ValueError("Description is required")
    budget = parse_int(form.get("budget"), min_value=0)

    p = Project(
        client_id=int(client_id),
        title=title,
        description=description[:10000],
        budget=budget,
        skills=", ".join(split_skills(form.get("skills", ""))) or None,
    )
    try:
        db.add(p)
        db.commit()
        db.refresh(p)
    except exc.SQLAlchemyError as e:
        db.rollback()
        logger.error("Could not save project for client id=%s: %s", client_id, e, exc_info=True)
        raise StoreError("Could not save project") from e
    logger.info("Client id=%s posted project id=%s", client_id, p.project_id)
    return _project_dict(p)


def list_client_projects(db: Session, client_id: int) -> List[Dict[str, Any]]:
    stmt = (
        select(Project)
        .where(Project.client_id == int(client_id))
        .order_by(Project.created_at.desc(), Project.project_id.desc())
    )
    return [_project_dict(p) for p in db.execute(stmt).scalars()]


def list_recent_projects(db: Session, *, limit: int = 20) -> List[Dict[str, Any]]:
    """Newest projects first, with the poster's display name when a profile exists."""
    limit = max(1, min(int(limit or 20), 100))
    stmt = (
        select(Project, ClientInfo.name)
        .outerjoin(ClientInfo, ClientInfo.client_id == Project.client_id)
        .order_by(Project.created_at.desc(), Project.project_id.desc())
        .limit(limit)
    )
    return [_project_dict(p, name or "") for p, name in db.execute(stmt)]
