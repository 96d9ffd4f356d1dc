"""Tests for the lantern exception hierarchy."""

from __future__ import annotations

import pytest

from lantern.core.exceptions import (
    ConfigException,
    CredentialStoreError,
    DownloadError,
    FetchError,
    HandlerFailure,
    InvalidTokenFormat,
    LanternException,
    NotFoundError,
    PersistError,
    StartupError,
    TransportCloseTerminal,
    ValidationException,
)


class TestLanternException:
    def test_message_and_details(self):
        exc = LanternException("bad", {"a": 1})

        assert str(exc) == "bad"
        assert exc.to_dict() == {"error": "LanternException", "message": "bad", "details": {"a": 1}}

    def test_default_details(self):
        assert LanternException("bad").details == {}


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc",
        [
            ConfigException("x"),
            CredentialStoreError("x"),
            DownloadError("x"),
            PersistError("x"),
            StartupError("x"),
            TransportCloseTerminal("x"),
            NotFoundError("credentials", "creds.json"),
            InvalidTokenFormat("x"),
        ],
    )
    def test_all_are_lantern_exceptions(self, exc):
        assert isinstance(exc, LanternException)

    def test_fetch_errors(self):
        assert issubclass(DownloadError, FetchError)
        assert issubclass(PersistError, FetchError)
        assert not issubclass(CredentialStoreError, FetchError)

    def test_invalid_token_is_validation_error(self):
        exc = InvalidTokenFormat("no marker", reason="missing_marker")

        assert isinstance(exc, ValidationException)
        assert exc.field == "session_id"
        assert exc.reason == "missing_marker"
        assert exc.details == {"field": "session_id", "reason": "missing_marker"}


class TestDetails:
    def test_config_missing_vars(self):
        exc = ConfigException("no transport", missing_vars=["LANTERN_TRANSPORT"])

        assert exc.details["missing_vars"] == ["LANTERN_TRANSPORT"]

    def test_not_found(self):
        exc = NotFoundError("credentials", "/tmp/creds.json")

        assert exc.message == "credentials not found: /tmp/creds.json"
        assert exc.resource_type == "credentials"

    def test_download_error_code(self):
        assert DownloadError("gone", code=-9).details == {"code": -9}
        assert DownloadError("net").details == {}

    def test_terminal_close_status(self):
        exc = TransportCloseTerminal("logged out", status_code=401)

        assert exc.status_code == 401
        assert exc.details == {"status_code": 401}

    def test_handler_failure_wraps_cause(self):
        cause = KeyError("missing")
        failure = HandlerFailure("message_handler", "messages[1]", cause)

        assert failure.__cause__ is cause
        assert failure.message.startswith("Handler message_handler failed on messages[1]")
        assert failure.to_dict()["details"]["cause"] == "KeyError"
