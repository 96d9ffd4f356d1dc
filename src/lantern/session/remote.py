# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""Remote session fetcher.

Turns a session token into a locally stored credential bundle:
validate the token, stream and decrypt the remote blob, persist it.
Exactly one attempt per call; the caller owns the fallback decision.
"""

from __future__ import annotations

import logging

from ..core.exceptions import CredentialStoreError, DownloadError, PersistError
from .mega import RemoteStore
from .store import CredentialBundle, CredentialStore
from .token import DEFAULT_MARKER, SessionToken

logger = logging.getLogger(__name__)


class RemoteSessionFetcher:
    """Downloads an encrypted credential blob into a :class:`CredentialStore`."""

    def __init__(self, remote: RemoteStore, store: CredentialStore, marker: str = DEFAULT_MARKER):
        self.remote = remote
        self.store = store
        self.marker = marker

    async def fetch(self, token: SessionToken | str) -> CredentialBundle:
        """Fetch the blob named by *token* and save it to the store.

        Raises:
            InvalidTokenFormat: The token is malformed (no network call made).
            DownloadError: Transport or decryption fault, or an empty blob.
            PersistError: The blob could not be written locally.
        """
        if not isinstance(token, SessionToken):
            token = SessionToken.parse(token, marker=self.marker)

        logger.info("Downloading session %s", token)
        try:
            chunks = [chunk async for chunk in self.remote.open(token.file_reference, token.decryption_key)]
        except DownloadError:
            raise
        except Exception as e:
            raise DownloadError(f"Failed to download session data: {e}") from e

        data = b"".join(chunks)
        if not data:
            raise DownloadError("Remote session blob is empty")

        bundle = CredentialBundle(raw=data)
        try:
            await self.store.save(bundle)
        except CredentialStoreError as e:
            raise PersistError(f"Failed to persist downloaded session: {e.message}", e.details) from e

        logger.info("Session downloaded (%d bytes)", len(bundle))
        return bundle
