"""Profile Service Backend.

Student profiles, guardians, enrollments and documents, with student
login provisioning against the identity service.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
