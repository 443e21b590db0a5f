# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy shared by the auth strategies, stores and routes."""

from __future__ import annotations


class MarketplaceError(Exception):
    """Base class for every domain error raised by freelancehub."""


class InvalidRole(MarketplaceError):
    """Role outside the closed {client, freelancer} set."""


class NotFound(MarketplaceError):
    """No account (or record) matches the lookup."""


class InvalidCredential(MarketplaceError):
    """Password mismatch, or local login attempted on a federated-only account."""


class AlreadyExists(MarketplaceError):
    """Unique constraint conflict (duplicate email within a role, duplicate profile)."""


class StoreError(MarketplaceError):
    """Underlying database failure."""


class VerifierError(StoreError):
    """Stored password digest is malformed and cannot be verified."""


class ProviderError(MarketplaceError):
    """Identity provider exchange failed or returned an unusable assertion."""


class UploadError(MarketplaceError):
    """Rejected photo upload (bad extension, empty or too large)."""
