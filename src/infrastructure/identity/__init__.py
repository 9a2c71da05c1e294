# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Identity service integration.

Example:
    from src.infrastructure.identity import IdentityServiceClient
"""

from src.infrastructure.identity.client import (
    Identity,
    IdentityAttributes,
    IdentityErrorKind,
    IdentityServiceClient,
    IdentityServiceError,
)

__all__ = [
    "Identity",
    "IdentityAttributes",
    "IdentityErrorKind",
    "IdentityServiceClient",
    "IdentityServiceError",
]
