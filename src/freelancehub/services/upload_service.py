# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from freelancehub.core.errors import UploadError
from freelancehub.core.roles import Role, parse_role

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
MAX_UPLOAD_BYTES = int(os.getenv("FH_MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))


def save_photo(
    upload_dir: Path,
    role: Role,
    account_id: int,
    filename: str,
    content: bytes,
    *,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> str:
    """Write a profile photo and return its path relative to upload_dir (posix style)."""
    role = parse_role(role)
    safe_name = Path(filename or "").name
    ext = Path(safe_name).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise UploadError("Photo must be one of: " + ", ".join(sorted(ALLOWED_EXTENSIONS)))
    if not content:
        raise UploadError("Uploaded photo is empty")
    if len(content) > max_bytes:
        raise UploadError(f"Photo exceeds {max_bytes // 1024} KiB")

    ts = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    rel = Path(role.value) / f"{int(account_id)}_{ts}{ext}"
    out_path = Path(upload_dir) / rel
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(content)
    logger.info("Stored photo for %s id=%s at %s", role.value, account_id, rel.as_posix())
    return rel.as_posix()


def delete_photo(upload_dir: Path, rel_path: Optional[str]) -> None:
    """Remove a previously stored photo; paths escaping upload_dir are ignored."""
    if not rel_path:
        return
    base = Path(upload_dir).resolve()
    target = (base / rel_path).resolve()
    if base not in target.parents:
        logger.warning("Refusing to delete photo outside upload dir: %s", rel_path)
        return
    try:
        target.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not delete old photo %s: %s", rel_path, e)
