# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations


def canon_email(s: str) -> str:
    """Canonicalise emails for lookups (trim + lower)."""
    return (s or "").strip().lower()


def clean_text(s: str, *, max_len: int = 0) -> str:
    out = " ".join(str(s or "").split())
    if max_len and len(out) > max_len:
        out = out[:max_len]
    return out


def parse_int(s, *, default=None, min_value=None, max_value=None):
    """Parse an optional int from a form field; blanks and junk give default."""
    raw = str(s or "").strip()
    if not raw:
        return default
    try:
        v = int(raw)
    except ValueError:
        return default
    if min_value is not None and v < min_value:
        return default
    if max_value is not None and v > max_value:
        return default
    return v


def split_skills(s: str) -> list[str]:
    """Split a comma separated skills field into unique, trimmed, lower-case tags."""
    out: list[str] = []
    for part in str(s or "").split(","):
        tag = part.strip().lower()
        if tag and tag not in out:
            out.append(tag)
    return out
