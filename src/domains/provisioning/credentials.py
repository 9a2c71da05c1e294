# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Login credential generation for new students."""

import re
import secrets
import string
import unicodedata
from dataclasses import dataclass

PASSWORD_LENGTH = 12
_SYMBOLS = "!@#$%&*?"
_USERNAME_MAX_LENGTH = 50


@dataclass(frozen=True)
class Credentials:
    """Generated username and plaintext password."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


def _slug(value: str) -> str:
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode()
    return re.sub(r"[^a-z0-9]+", "", normalized.lower())


def generate_username(first_name: str, last_name: str, admission_number: str) -> str:
    """Derive a username from the student's name and admission number.

    Example:
        >>> generate_username("Ana", "García", "A-100")
        'ana.garcia.a100'
    """
    parts = [p for p in (_slug(first_name), _slug(last_name), _slug(admission_number)) if p]
    if not parts:
        parts = ["student", secrets.token_hex(4)]
    return ".".join(parts)[:_USERNAME_MAX_LENGTH]


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    """Generate a random password with every character class present."""
    if length < 4:
        raise ValueError("Password length must be at least 4")

    required = [
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.digits),
        secrets.choice(_SYMBOLS),
    ]
    alphabet = string.ascii_letters + string.digits + _SYMBOLS
    chars = required + [secrets.choice(alphabet) for _ in range(length - len(required))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


def generate_credentials(first_name: str, last_name: str, admission_number: str) -> Credentials:
    """Generate a username and password for a new student login."""
    return Credentials(
        username=generate_username(first_name, last_name, admission_number),
        password=generate_password(),
    )
