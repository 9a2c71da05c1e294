# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for login credential generation."""

import string

import pytest

from src.domains.provisioning.credentials import (
    PASSWORD_LENGTH,
    generate_credentials,
    generate_password,
    generate_username,
)


class TestGenerateUsername:
    """Tests for username derivation."""

    def test_name_and_admission_number(self):
        assert generate_username("Ana", "García", "A-100") == "ana.garcia.a100"

    def test_strips_spaces_and_punctuation(self):
        assert generate_username("Mary Ann", "O'Neil", "2025/07") == "maryann.oneil.202507"

    def test_unusable_input_falls_back(self):
        username = generate_username("李", "王", "")

        assert username.startswith("student.")

    def test_length_is_capped(self):
        assert len(generate_username("a" * 40, "b" * 40, "c" * 40)) == 50


class TestGeneratePassword:
    """Tests for password generation."""

    def test_default_length_and_classes(self):
        password = generate_password()

        assert len(password) == PASSWORD_LENGTH
        assert any(c in string.ascii_lowercase for c in password)
        assert any(c in string.ascii_uppercase for c in password)
        assert any(c in string.digits for c in password)
        assert any(not c.isalnum() for c in password)

    def test_passwords_differ(self):
        assert generate_password() != generate_password()

    def test_too_short_is_rejected(self):
        with pytest.raises(ValueError):
            generate_password(3)


class TestCredentials:
    """Tests for the credentials pair."""

    def test_repr_masks_password(self):
        credentials = generate_credentials("Ana", "Garcia", "A-100")

        assert credentials.username == "ana.garcia.a100"
        assert credentials.password not in repr(credentials)
