# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""Session token parsing.

A session token names an encrypted credential blob held by a remote
content store together with the key that decrypts it::

    <marker>;;;<fileReference>#<decryptionKey>

Tokens are validated before any network access; anything malformed raises
:class:`~lantern.core.exceptions.InvalidTokenFormat`.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..core.exceptions import InvalidTokenFormat
from ..core.logging import redact_token

DEFAULT_MARKER = "POPKID"
SEPARATOR = ";;;"
KEY_DELIMITER = "#"


@dataclass(frozen=True)
class SessionToken:
    """A parsed session token."""

    prefix: str
    file_reference: str
    decryption_key: str = field(repr=False)

    @classmethod
    def parse(cls, raw: str, marker: str = DEFAULT_MARKER) -> SessionToken:
        """Parse and validate a raw token string.

        Args:
            raw: The configured token.
            marker: Fixed marker preceding the separator.

        Raises:
            InvalidTokenFormat: If the marker, the payload or the
                ``fileReference#decryptionKey`` pair is missing or ambiguous.
        """
        if not raw or not raw.strip():
            raise InvalidTokenFormat("Session token is empty", reason="empty")

        parts = raw.strip().split(f"{marker}{SEPARATOR}")
        if len(parts) != 2:
            reason = "missing_marker" if len(parts) < 2 else "repeated_marker"
            raise InvalidTokenFormat(
                f"Session token must contain '{marker}{SEPARATOR}' exactly once",
                reason=reason,
            )

        prefix, payload = parts
        if not payload:
            raise InvalidTokenFormat("Session token payload is empty", reason="empty_payload")

        if payload.count(KEY_DELIMITER) != 1:
            raise InvalidTokenFormat(
                "Session token payload must contain both file ID and decryption key "
                f"separated by a single '{KEY_DELIMITER}'",
                reason="missing_key_delimiter" if KEY_DELIMITER not in payload else "ambiguous_key_delimiter",
            )

        file_reference, decryption_key = payload.split(KEY_DELIMITER)
        if not file_reference:
            raise InvalidTokenFormat("Session token has an empty file reference", reason="empty_file_reference")
        if not decryption_key:
            raise InvalidTokenFormat("Session token has an empty decryption key", reason="empty_decryption_key")

        return cls(prefix=prefix, file_reference=file_reference, decryption_key=decryption_key)

    @property
    def url(self) -> str:
        """Public MEGA link for the blob (contains the key; never log it)."""
        return f"https://mega.nz/file/{self.file_reference}#{self.decryption_key}"

    def __str__(self) -> str:
        return f"{self.file_reference}#{redact_token(self.decryption_key, visible=0)}"

