# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Closed role set and the per-role UI metadata.

Every table or page choice driven by a role goes through ``parse_role`` first,
so untrusted form values never reach a query as free text.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from freelancehub.core.errors import InvalidRole


class Role(str, Enum):
    CLIENT = "client"
    FREELANCER = "freelancer"


ROLE_PAGES: Dict[Role, Dict[str, Any]] = {
    Role.CLIENT: {
        "label": "Client",
        "auth_url": "/client_auth",
        "home_url": "/client/home",
        "auth_template": "client_auth.html",
        "home_template": "client_home.html",
    },
    Role.FREELANCER: {
        "label": "Freelancer",
        "auth_url": "/freelancer_auth",
        "home_url": "/freelancer/home",
        "auth_template": "freelancer_auth.html",
        "home_template": "freelancer_home.html",
    },
}


def parse_role(value: Any) -> Role:
    """Return the Role for value or raise InvalidRole."""
    if isinstance(value, Role):
        return value
    raw = str(value or "").strip().lower()
    for role in Role:
        if role.value == raw:
            return role
    raise InvalidRole(f"Unsupported role: {raw!r}")


def auth_url(role: Role) -> str:
    return ROLE_PAGES[role]["auth_url"]


def home_url(role: Role) -> str:
    return ROLE_PAGES[role]["home_url"]
