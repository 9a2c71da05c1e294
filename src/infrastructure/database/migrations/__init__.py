# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Schema migrations for the profile database.

Migrations are alembic-style modules applied programmatically by
src.infrastructure.database.migrations.runner.
"""
