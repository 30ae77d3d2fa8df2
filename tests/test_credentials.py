"""
Tests for password encoding and verification
"""

import pytest

from services.auth_service.credentials import encode_password, hash_password, verify_password


class TestEncodePassword:
    """Test the legacy reversible encoding"""

    def test_known_value(self):
        """Base64 of the UTF-8 bytes"""
        assert encode_password("secret") == "c2VjcmV0"

    def test_non_ascii(self):
        assert encode_password("pässwörd") == "cMOkc3N3w7ZyZA=="


class TestVerifyPassword:
    """Test dual-path password verification"""

    def test_encoded_stored_value(self):
        """Encoded stored value matches the raw password"""
        assert verify_password("secret", encode_password("secret")) is True

    def test_plaintext_stored_value(self):
        """Plain text stored value matches directly"""
        assert verify_password("secret", "secret") is True

    def test_mismatch(self):
        assert verify_password("secret", "other") is False
        assert verify_password("secret", encode_password("other")) is False

    def test_encoded_value_is_not_a_password(self):
        """Typing the stored encoding itself only works through the plain-text path"""
        stored = encode_password("secret")
        assert verify_password("c2VjcmV0", stored) is True
        assert verify_password("c2VjcmV0", "secret") is False

    @pytest.mark.parametrize("stored", [None, ""])
    def test_empty_stored_value_never_matches(self, stored):
        assert verify_password("", stored) is False
        assert verify_password("secret", stored) is False

    def test_bcrypt_stored_value(self):
        """Hashes written by the provisioning script are accepted"""
        hashed = hash_password("hunter2")
        assert hashed.startswith("$2b$")
        assert verify_password("hunter2", hashed) is True
        assert verify_password("hunter3", hashed) is False

    def test_malformed_bcrypt_falls_back_to_plaintext(self):
        """A value that only looks like a hash is compared as plain text"""
        assert verify_password("$2b$not-a-hash", "$2b$not-a-hash") is True
