# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from freelancehub.core.roles import Role


@dataclass(frozen=True)
class Account:
    id: int
    email: str
    role: Role
    password_hash: Optional[str] = None


@dataclass(frozen=True)
class AuthResult:
    """Outcome of the federated find-or-create.

    just_created is only true for the request that inserted the account; it
    drives the redirect to the first-time profile form and is never stored.
    """

    account: Account
    just_created: bool = False
