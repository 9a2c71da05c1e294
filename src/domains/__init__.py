# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for the profile service.

This package contains domain services that encapsulate business logic.

Domains:
    provisioning: Student login provisioning saga with compensation.
    student: Student reads and application intake.
"""
