# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from freelancehub.core.errors import VerifierError

_PH = PasswordHasher()

MIN_PASSWORD_LENGTH = 6


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("Empty password")
    return _PH.hash(plain)


def verify_password(hash_value: str, plain: str) -> bool:
    """True on match, False on mismatch.

    A digest argon2 cannot parse raises VerifierError so callers can tell a
    corrupt row apart from a wrong password. A digest that still parses but has
    altered hash bytes is indistinguishable from a wrong password and returns
    False.
    """
    if not plain:
        return False
    if not hash_value:
        raise VerifierError("Stored password hash is empty")
    try:
        return _PH.verify(hash_value, plain)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError) as e:
        raise VerifierError("Stored password hash is malformed") from e
