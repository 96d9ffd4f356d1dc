# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Lantern Contributors

"""Session bootstrap.

Decides, once per process start, where the transport's credentials come
from. Priority order, first success wins:

1. **local**: a credential document already exists on disk.
2. **remote**: a session token is configured and the remote blob was
   downloaded into the store.
3. **interactive**: neither worked; the transport must present an
   out-of-band pairing challenge (QR / pairing code).

Each path is tried at most once. Remote failures never escape: they are
logged and the decision falls through to interactive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from ..core.exceptions import FetchError, InvalidTokenFormat
from ..core.logging import redact_token
from .remote import RemoteSessionFetcher
from .store import CredentialStore

logger = logging.getLogger(__name__)


class CredentialSource(StrEnum):
    """Where the process obtained its credentials."""

    LOCAL = "local"
    REMOTE = "remote"
    INTERACTIVE = "interactive"


@dataclass(frozen=True)
class BootstrapResult:
    """Outcome of :meth:`SessionBootstrapper.bootstrap`."""

    source: CredentialSource
    fallback_reason: str | None = None

    @property
    def interactive(self) -> bool:
        return self.source is CredentialSource.INTERACTIVE


class SessionBootstrapper:
    """Chooses the credential acquisition path."""

    def __init__(
        self,
        store: CredentialStore,
        fetcher: RemoteSessionFetcher | None,
        session_token: str | None = None,
    ):
        self.store = store
        self.fetcher = fetcher
        self.session_token = session_token

    async def bootstrap(self) -> BootstrapResult:
        """Select a credential source.

        Raises:
            CredentialStoreError: The local store itself is unusable (fatal).
        """
        self.store.ensure_dir()

        if self.store.exists():
            logger.info("Session file found, proceeding without pairing")
            return BootstrapResult(CredentialSource.LOCAL)

        fallback_reason: str | None = None
        if not self.session_token:
            logger.warning("No local session and no session token configured")
            fallback_reason = "no_session_token"
        elif self.fetcher is None:
            fallback_reason = "no_remote_store"
        else:
            logger.debug("Session token: %s", redact_token(self.session_token))
            try:
                await self.fetcher.fetch(self.session_token)
            except InvalidTokenFormat as e:
                logger.error(f"Invalid session token format: {e.message}")
                fallback_reason = "invalid_token"
            except FetchError as e:
                logger.error(f"Failed to download session data: {e.message}")
                fallback_reason = type(e).__name__
            else:
                logger.info("Session downloaded, starting bot")
                return BootstrapResult(CredentialSource.REMOTE)

        logger.info("No session found or downloaded, pairing code will be presented for authentication")
        return BootstrapResult(CredentialSource.INTERACTIVE, fallback_reason=fallback_reason)
