"""
Lantern Session - credential storage and session bootstrap.

Resolves the transport's credentials before any connection attempt:
a local credential bundle, a remote encrypted blob named by a session
token, or interactive pairing.
"""

from lantern.session.bootstrap import BootstrapResult, CredentialSource, SessionBootstrapper
from lantern.session.mega import MegaRemoteStore, RemoteStore
from lantern.session.remote import RemoteSessionFetcher
from lantern.session.store import CredentialBundle, CredentialStore
from lantern.session.token import SessionToken

__all__ = [
    "BootstrapResult",
    "CredentialBundle",
    "CredentialSource",
    "CredentialStore",
    "MegaRemoteStore",
    "RemoteSessionFetcher",
    "RemoteStore",
    "SessionBootstrapper",
    "SessionToken",
]
