"""Tests for session token parsing."""

from __future__ import annotations

import pytest

from lantern.core.exceptions import InvalidTokenFormat
from lantern.session.token import SessionToken

VALID = "POPKID;;;AbCd1234#k3y-Material_xyz"


class TestParse:
    def test_valid_token(self):
        token = SessionToken.parse(VALID)

        assert token.prefix == ""
        assert token.file_reference == "AbCd1234"
        assert token.decryption_key == "k3y-Material_xyz"

    def test_leading_text_kept_as_prefix(self):
        token = SessionToken.parse("bot~POPKID;;;ref#key")

        assert token.prefix == "bot~"
        assert token.file_reference == "ref"

    def test_surrounding_whitespace_ignored(self):
        assert SessionToken.parse(f"  {VALID}\n").file_reference == "AbCd1234"

    def test_custom_marker(self):
        token = SessionToken.parse("LANTERN;;;ref#key", marker="LANTERN")

        assert token.decryption_key == "key"

    @pytest.mark.parametrize(
        ("raw", "reason"),
        [
            ("", "empty"),
            ("   ", "empty"),
            ("ref#key", "missing_marker"),
            ("POPKID;;ref#key", "missing_marker"),
            ("POPKID;;;a#b POPKID;;;c#d", "repeated_marker"),
            ("POPKID;;;", "empty_payload"),
            ("POPKID;;;refkey", "missing_key_delimiter"),
            ("POPKID;;;ref#key#more", "ambiguous_key_delimiter"),
            ("POPKID;;;#key", "empty_file_reference"),
            ("POPKID;;;ref#", "empty_decryption_key"),
        ],
    )
    def test_rejects_malformed(self, raw, reason):
        with pytest.raises(InvalidTokenFormat) as exc_info:
            SessionToken.parse(raw)

        assert exc_info.value.reason == reason
        assert exc_info.value.field == "session_id"


class TestPresentation:
    def test_url(self):
        assert SessionToken.parse(VALID).url == "https://mega.nz/file/AbCd1234#k3y-Material_xyz"

    def test_str_and_repr_hide_key(self):
        token = SessionToken.parse(VALID)

        assert "k3y-Material_xyz" not in str(token)
        assert "k3y-Material_xyz" not in repr(token)
        assert str(token).startswith("AbCd1234#")

