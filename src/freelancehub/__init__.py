# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""freelancehub: marketplace for clients and freelancers."""

__version__ = "0.1.0"
