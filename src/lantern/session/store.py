# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""Local credential store.

Persists the transport's credential bundle on disk as a multi-file auth
state: one main document (``creds.json``) plus one file per piece of
auxiliary key material (pre-keys, peer sessions, sender keys, app-state
sync keys). The transport owns the content; the store only guarantees
durable, byte-identical, serialized writes.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..core.exceptions import CredentialStoreError, NotFoundError

logger = logging.getLogger(__name__)

CREDS_FILENAME = "creds.json"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._=-]")


@dataclass
class CredentialBundle:
    """The durable authentication/session state of the transport."""

    raw: bytes
    _document: Any = field(default=None, repr=False, compare=False)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> CredentialBundle:
        raw = json.dumps(document, separators=(",", ":")).encode("utf-8")
        return cls(raw=raw, _document=document)

    @property
    def document(self) -> dict[str, Any]:
        """The decoded JSON view of the bundle.

        Raises:
            ValueError: If the bundle is not a JSON object.
        """
        if self._document is None:
            decoded = json.loads(self.raw.decode("utf-8"))
            if not isinstance(decoded, dict):
                raise ValueError("Credential bundle is not a JSON object")
            self._document = decoded
        return self._document

    @property
    def is_registered(self) -> bool:
        """Whether the bundle records a completed pairing."""
        try:
            return bool(self.document.get("registered") or self.document.get("me"))
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self.raw)


def _key_filename(category: str, key_id: str) -> str:
    name = f"{category}-{key_id}.json"
    return _UNSAFE_CHARS.sub("_", name.replace("/", "__").replace(":", "-"))


class CredentialStore:
    """Disk-backed credential store.

    Writes are atomic (temp file + rename) and serialized per process by an
    ``asyncio.Lock``; the last writer wins.
    """

    def __init__(self, directory: str | Path, creds_filename: str = CREDS_FILENAME):
        self.directory = Path(directory)
        self.creds_path = self.directory / creds_filename
        self._lock = asyncio.Lock()
        self._writes = 0

    def __repr__(self) -> str:
        return f"CredentialStore({str(self.directory)!r})"

    @property
    def write_count(self) -> int:
        """Number of successful writes of the main credential document."""
        return self._writes

    def ensure_dir(self) -> Path:
        """Create the backing directory (owner-only) if it does not exist.

        Raises:
            CredentialStoreError: If the directory cannot be created.
        """
        try:
            if not self.directory.exists():
                self.directory.mkdir(parents=True, exist_ok=True)
                os.chmod(self.directory, stat.S_IRWXU)
                logger.debug("Created credential directory %s", self.directory)
            elif not self.directory.is_dir():
                raise CredentialStoreError(
                    f"Credential path is not a directory: {self.directory}",
                    path=str(self.directory),
                )
        except OSError as e:
            raise CredentialStoreError(
                f"Cannot create credential directory {self.directory}: {e}",
                path=str(self.directory),
            ) from e
        return self.directory

    # -------------------------------------------------------------------------
    # Main credential document
    # -------------------------------------------------------------------------

    def exists(self) -> bool:
        """Check whether a credential document is present."""
        return self.creds_path.is_file()

    def load(self) -> CredentialBundle:
        """Load the credential document.

        Raises:
            NotFoundError: If no credential document exists.
            CredentialStoreError: If it cannot be read.
        """
        if not self.exists():
            raise NotFoundError("credentials", str(self.creds_path))
        try:
            return CredentialBundle(raw=self.creds_path.read_bytes())
        except OSError as e:
            raise CredentialStoreError(
                f"Failed to read credentials: {e}", path=str(self.creds_path)
            ) from e

    def load_or_none(self) -> CredentialBundle | None:
        """Load the credential document, or None when absent."""
        try:
            return self.load()
        except NotFoundError:
            return None

    async def save(self, data: bytes | dict[str, Any] | CredentialBundle) -> None:
        """Persist the credential document.

        Used directly as the transport's ``credentials_changed`` listener,
        so every key rotation is on disk before the transport continues.

        Raises:
            CredentialStoreError: If the write fails.
        """
        raw = self._to_bytes(data)
        async with self._lock:
            self._write_atomic(self.creds_path, raw)
            self._writes += 1
        logger.debug("Saved credentials (%d bytes)", len(raw))

    # -------------------------------------------------------------------------
    # Auxiliary key material
    # -------------------------------------------------------------------------

    def read_key(self, category: str, key_id: str) -> bytes | None:
        """Read one piece of key material, or None when absent."""
        path = self.directory / _key_filename(category, key_id)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CredentialStoreError(f"Failed to read key {category}/{key_id}: {e}", path=str(path)) from e

    async def write_key(self, category: str, key_id: str, data: bytes | dict[str, Any]) -> None:
        """Write one piece of key material."""
        path = self.directory / _key_filename(category, key_id)
        raw = self._to_bytes(data)
        async with self._lock:
            self._write_atomic(path, raw)

    async def remove_key(self, category: str, key_id: str) -> bool:
        """Remove one piece of key material. Returns True if it existed."""
        path = self.directory / _key_filename(category, key_id)
        async with self._lock:
            try:
                path.unlink()
                return True
            except FileNotFoundError:
                return False
            except OSError as e:
                raise CredentialStoreError(f"Failed to remove key {category}/{key_id}: {e}", path=str(path)) from e

    def list_keys(self) -> list[str]:
        """List stored key files (excluding the main document)."""
        if not self.directory.is_dir():
            return []
        return sorted(
            p.name
            for p in self.directory.iterdir()
            if p.is_file() and p.name != self.creds_path.name and p.suffix == ".json"
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @staticmethod
    def _to_bytes(data: bytes | dict[str, Any] | CredentialBundle) -> bytes:
        if isinstance(data, CredentialBundle):
            return data.raw
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
        if isinstance(data, dict):
            return json.dumps(data, separators=(",", ":")).encode("utf-8")
        raise TypeError(f"Unsupported credential payload: {type(data).__name__}")

    def _write_atomic(self, path: Path, raw: bytes) -> None:
        self.ensure_dir()
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, stat.S_IRUSR | stat.S_IWUSR)
            with os.fdopen(fd, "wb") as f:
                f.write(raw)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, path)
        except OSError as e:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    pass
            raise CredentialStoreError(f"Failed to save {path.name}: {e}", path=str(path)) from e
