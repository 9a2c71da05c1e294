# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student domain: read queries and application intake."""

from src.domains.student.service import StudentService

__all__ = ["StudentService"]
