"""Tests for the command-line entry point and its settings."""

import io
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError

from gclientauth.__main__ import main
from gclientauth.config import Settings, get_settings
from gclientauth.tokens import Token, TokenCache


@pytest.fixture(autouse=True)
def _clear_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("CREDENTIALS_PATH", "TOKEN_CACHE_PATH", "SCOPES", "BROWSER", "PORT"):
        monkeypatch.delenv(f"GCLIENTAUTH_{name}", raising=False)
    get_settings.cache_clear()


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.credentials_path == Path("client_secret.json")
        assert settings.token_cache_path == Path("accesstoken.json")
        assert settings.browser is False
        assert settings.port == "8080"
        assert settings.callback_timeout is None

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GCLIENTAUTH_SCOPES", "scope-a, scope-b,,")
        monkeypatch.setenv("GCLIENTAUTH_BROWSER", "true")
        monkeypatch.setenv("GCLIENTAUTH_PORT", "9000")

        settings = Settings()

        assert settings.get_scopes() == ["scope-a", "scope-b"]
        assert settings.browser is True
        assert settings.port == "9000"

    @pytest.mark.parametrize("port", ["http", "-1", "70000"])
    def test_invalid_port(self, port: str) -> None:
        with pytest.raises(ValidationError):
            Settings(port=port)


class TestLogin:
    """Tests for the login subcommand."""

    def test_login_with_cached_token(
        self,
        installed_secrets: Path,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        cache_path = tmp_path / "token.json"
        TokenCache(cache_path).save(
            Token("cached-token", expiry=datetime.now(UTC) + timedelta(hours=1))
        )

        exit_code = main(
            [
                "login",
                "--credentials",
                str(installed_secrets),
                "--cache",
                str(cache_path),
                "--scopes",
                "scope-a",
                "--show-token",
            ]
        )

        assert exit_code == 0
        out = capsys.readouterr().out
        assert "Authentication successful!" in out
        assert "cached-token" in out

    def test_login_missing_credentials(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        exit_code = main(
            [
                "login",
                "--credentials",
                str(tmp_path / "missing.json"),
                "--cache",
                str(tmp_path / "token.json"),
            ]
        )

        assert exit_code == 1
        assert "Configuration error" in capsys.readouterr().err

    def test_login_empty_code_fails(
        self,
        installed_secrets: Path,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """End of input at the code prompt is an authentication failure."""
        monkeypatch.setattr("sys.stdin", io.StringIO(""))
        exit_code = main(
            [
                "login",
                "--credentials",
                str(installed_secrets),
                "--cache",
                str(tmp_path / "token.json"),
                "--no-browser",
            ]
        )

        assert exit_code == 1
        assert "Authentication failed" in capsys.readouterr().err


class TestLogout:
    """Tests for the logout subcommand."""

    def test_logout_clears_cache(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        cache_path = tmp_path / "token.json"
        TokenCache(cache_path).save(Token("t"))

        assert main(["logout", "--cache", str(cache_path)]) == 0
        assert not cache_path.exists()
        assert "Credentials cleared" in capsys.readouterr().out

    def test_logout_without_cache(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["logout", "--cache", str(tmp_path / "token.json")]) == 0
        assert "No cached credentials found." in capsys.readouterr().out
