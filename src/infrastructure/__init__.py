# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer for external service integrations.

This package contains clients and managers for:
- Database connections (PostgreSQL)
- Identity service (internal HTTP API)
- Notifications (credentials email)
- File storage (local filesystem, Google Cloud Storage)
"""
