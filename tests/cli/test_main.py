"""Tests for the lantern CLI."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from lantern.cli.main import app, main
from lantern.core.exceptions import DownloadError
from lantern.session.store import CredentialBundle

TOKEN = "POPKID;;;FileRef#DecryptKey"


class TestParser:
    def test_requires_command(self):
        with pytest.raises(SystemExit):
            app().parse_args([])

    def test_run_options(self, tmp_path):
        args = app().parse_args(["run", "--port", "8081", "--session-dir", str(tmp_path), "--log-level", "debug"])

        assert args.port == 8081
        assert args.session_dir == tmp_path
        assert args.log_level == "debug"

    def test_session_requires_subcommand(self):
        with pytest.raises(SystemExit):
            app().parse_args(["session"])


class TestRun:
    def test_run_passes_overrides(self, clean_env, tmp_path):
        with (
            patch("lantern.cli.main.run_bot", new=AsyncMock(return_value=2)) as run_bot,
            patch("lantern.cli.main.configure_logging") as configure,
        ):
            code = main(["run", "--port", "8081", "--session-dir", str(tmp_path), "--log-level", "debug"])

        assert code == 2
        settings = run_bot.await_args.args[0]
        assert settings.port == 8081
        assert settings.session_dir == tmp_path
        configure.assert_called_once_with(level="DEBUG", log_file=None)

    def test_keyboard_interrupt_exits_cleanly(self, clean_env):
        with (
            patch("lantern.cli.main.run_bot", new=MagicMock()),
            patch("lantern.cli.main.configure_logging"),
            patch("lantern.cli.main.asyncio.run", side_effect=KeyboardInterrupt),
        ):
            assert main(["run"]) == 0


class TestSessionCheck:
    def test_valid(self, clean_env, capsys):
        assert main(["session", "check", TOKEN]) == 0

        out = capsys.readouterr().out
        assert "Token OK: file FileRef" in out
        assert "DecryptKey" not in out

    def test_invalid(self, clean_env, capsys):
        assert main(["session", "check", "FileRef#DecryptKey"]) == 1

        assert "Error:" in capsys.readouterr().err

    def test_custom_marker(self, clean_env, monkeypatch):
        monkeypatch.setenv("LANTERN_SESSION_MARKER", "LANTERN")

        assert main(["session", "check", "LANTERN;;;a#b"]) == 0


class TestSessionStatus:
    def test_no_session(self, clean_env, session_dir, capsys):
        assert main(["session", "--session-dir", str(session_dir), "status"]) == 1

        assert "No local session" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_existing_session(self, clean_env, store, session_dir, capsys):
        await store.save(b'{"registered":true}')
        await store.write_key("pre-key", "1", b"{}")

        assert main(["session", "--session-dir", str(session_dir), "status"]) == 0

        out = capsys.readouterr().out
        assert "Registered: yes" in out
        assert "Key files:  1" in out


class TestSessionFetch:
    def test_requires_token(self, clean_env, session_dir, capsys):
        assert main(["session", "--session-dir", str(session_dir), "fetch"]) == 1

        assert "No session token" in capsys.readouterr().err

    def test_fetch_token_argument(self, clean_env, session_dir, capsys):
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(return_value=CredentialBundle(raw=b"{}"))

        with patch("lantern.cli.main.build_fetcher", return_value=fetcher):
            assert main(["session", "--session-dir", str(session_dir), "fetch", TOKEN]) == 0

        fetcher.fetch.assert_awaited_once_with(TOKEN)
        assert "Session saved" in capsys.readouterr().out

    def test_token_from_environment(self, clean_env, session_dir, monkeypatch):
        monkeypatch.setenv("SESSION_ID", TOKEN)
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(return_value=CredentialBundle(raw=b"{}"))

        with patch("lantern.cli.main.build_fetcher", return_value=fetcher):
            assert main(["session", "--session-dir", str(session_dir), "fetch"]) == 0

        fetcher.fetch.assert_awaited_once_with(TOKEN)

    @pytest.mark.asyncio
    async def test_refuses_to_overwrite(self, clean_env, store, session_dir, capsys):
        await store.save(b"{}")

        assert main(["session", "--session-dir", str(session_dir), "fetch", TOKEN]) == 1

        assert "--force" in capsys.readouterr().err

    def test_download_failure(self, clean_env, session_dir, capsys):
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(side_effect=DownloadError("MEGA API error -9 (file not found)", code=-9))

        with patch("lantern.cli.main.build_fetcher", return_value=fetcher):
            assert main(["session", "--session-dir", str(session_dir), "fetch", TOKEN]) == 1

        assert "file not found" in capsys.readouterr().err
