# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""MEGA public-file client.

Reads an encrypted file shared as ``https://mega.nz/file/<handle>#<key>``:

1. ``POST /cs`` with ``[{"a": "g", "g": 1, "p": handle}]`` returns the
   size, the encrypted attributes and a temporary download URL.
2. The attributes are AES-CBC encrypted (zero IV) with the folded file key;
   a correct key yields a plaintext starting with ``MEGA``.
3. The payload is AES-128-CTR encrypted with the folded key and a nonce
   made of key words 4-5 followed by a zero block counter.

Only the read path needed to restore a session is implemented. The MAC
check of the MEGA format is not performed; a wrong key is detected through
the attributes and a short read through the advertised size.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import itertools
import json
import logging
import random
import struct
from collections.abc import AsyncIterator, Callable
from typing import Any, Protocol, runtime_checkable

import aiohttp
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..core.config import DEFAULT_MEGA_API_URL
from ..core.exceptions import DownloadError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

# API error codes worth naming in logs
API_ERRORS: dict[int, str] = {
    -2: "invalid arguments",
    -3: "try again",
    -4: "rate limited",
    -9: "file not found",
    -11: "access denied",
    -16: "blocked",
    -17: "over quota",
    -18: "temporarily unavailable",
}


@runtime_checkable
class RemoteStore(Protocol):
    """Remote encrypted-blob store: a decrypted byte stream by (reference, key)."""

    def open(self, file_reference: str, decryption_key: str) -> AsyncIterator[bytes]: ...


# ============================================================================
# Key handling
# ============================================================================


def b64url_decode(value: str) -> bytes:
    """Decode MEGA's URL-safe base64 (unpadded, ``,`` tolerated)."""
    value = value.replace(",", "").strip()
    value += "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value)


def parse_file_key(decryption_key: str) -> tuple[int, ...]:
    """Decode a file key into its eight 32-bit words.

    Raises:
        DownloadError: If the key is not valid base64 or not 256 bits.
    """
    try:
        raw = b64url_decode(decryption_key)
    except (binascii.Error, ValueError) as e:
        raise DownloadError(f"Decryption key is not valid base64: {e}") from e
    if len(raw) != 32:
        raise DownloadError(f"Decryption key must be 32 bytes, got {len(raw)}")
    return struct.unpack(">8I", raw)


def fold_key(words: tuple[int, ...]) -> bytes:
    """The 128-bit AES key: words 0-3 XOR words 4-7."""
    return struct.pack(">4I", *(words[i] ^ words[i + 4] for i in range(4)))


def ctr_nonce(words: tuple[int, ...]) -> bytes:
    """Initial CTR block: words 4-5 followed by a zero counter."""
    return struct.pack(">4I", words[4], words[5], 0, 0)


def payload_cipher(words: tuple[int, ...]) -> Cipher:
    return Cipher(algorithms.AES(fold_key(words)), modes.CTR(ctr_nonce(words)))


def decrypt_attributes(encrypted: str, words: tuple[int, ...]) -> dict[str, Any]:
    """Decrypt a file's attribute blob.

    Raises:
        DownloadError: If the blob is malformed or the key is wrong.
    """
    try:
        data = b64url_decode(encrypted)
    except (binascii.Error, ValueError) as e:
        raise DownloadError(f"Malformed file attributes: {e}") from e
    if not data or len(data) % 16:
        raise DownloadError("Malformed file attributes: bad length")

    decryptor = Cipher(algorithms.AES(fold_key(words)), modes.CBC(b"\0" * 16)).decryptor()
    plain = decryptor.update(data) + decryptor.finalize()
    if not plain.startswith(b"MEGA"):
        raise DownloadError("Wrong decryption key for remote session")

    text = plain[4:].rstrip(b"\0").decode("utf-8", errors="replace")
    try:
        attrs = json.loads(text)
    except json.JSONDecodeError:
        return {}
    return attrs if isinstance(attrs, dict) else {}


# ============================================================================
# Client
# ============================================================================


class MegaRemoteStore:
    """Streams and decrypts public MEGA files.

    Args:
        api_url: The MEGA API endpoint.
        timeout: Total timeout in seconds for each HTTP request.
        session_factory: Creates the ``aiohttp.ClientSession`` (tests inject a fake).
    """

    def __init__(
        self,
        api_url: str = DEFAULT_MEGA_API_URL,
        timeout: float = 60.0,
        session_factory: Callable[..., Any] | None = None,
    ):
        self.api_url = api_url
        self.timeout = timeout
        self._session_factory = session_factory or aiohttp.ClientSession
        self._sequence = itertools.count(random.randint(0, 0xFFFFFFFF))

    async def get_file_info(self, session: Any, file_reference: str) -> dict[str, Any]:
        """Ask the API for the size, attributes and download URL of a file."""
        params = {"id": str(next(self._sequence))}
        body = [{"a": "g", "g": 1, "p": file_reference}]
        async with session.post(self.api_url, params=params, json=body) as resp:
            if resp.status != 200:
                raise DownloadError(f"MEGA API returned HTTP {resp.status}")
            result = await resp.json(content_type=None)

        if isinstance(result, int):
            raise self._api_error(result)
        if not isinstance(result, list) or not result:
            raise DownloadError("Unexpected MEGA API response")
        info = result[0]
        if isinstance(info, int):
            raise self._api_error(info)
        if not isinstance(info, dict) or "g" not in info:
            raise DownloadError("MEGA API response has no download URL")
        return info

    async def open(self, file_reference: str, decryption_key: str) -> AsyncIterator[bytes]:
        """Yield the decrypted file content chunk by chunk.

        Raises:
            DownloadError: On network errors, a wrong key or a truncated stream.
        """
        words = parse_file_key(decryption_key)
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        try:
            async with self._session_factory(timeout=timeout) as session:
                info = await self.get_file_info(session, file_reference)
                attrs = decrypt_attributes(info.get("at", ""), words)
                size = int(info.get("s", 0))
                logger.debug("Remote file %r: %d bytes", attrs.get("n", file_reference), size)

                decryptor = payload_cipher(words).decryptor()
                received = 0
                async with session.get(info["g"]) as resp:
                    if resp.status != 200:
                        raise DownloadError(f"Download returned HTTP {resp.status}")
                    async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                        received += len(chunk)
                        yield decryptor.update(chunk)
                tail = decryptor.finalize()
                if tail:
                    yield tail

                if size and received < size:
                    raise DownloadError(f"Truncated download: got {received} of {size} bytes")
        except DownloadError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DownloadError(f"Network error while downloading session: {e}") from e

    @staticmethod
    def _api_error(code: int) -> DownloadError:
        label = API_ERRORS.get(code, "unknown error")
        return DownloadError(f"MEGA API error {code} ({label})", code=code)
