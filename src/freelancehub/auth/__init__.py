# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication for clients and freelancers.

This package provides:
- Password hashing/verification (argon2)
- Local email/password strategy and signup
- Federated (OAuth2) strategy with find-or-create
- Signed session cookies (itsdangerous)
"""
