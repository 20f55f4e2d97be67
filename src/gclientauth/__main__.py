"""CLI entry point for gclientauth.

Usage:
    python -m gclientauth login    # Obtain a token and cache it
    python -m gclientauth logout   # Clear the cached token

Defaults for every option come from GCLIENTAUTH_* environment variables.
"""

import argparse
import sys

from gclientauth.config import Settings, get_settings
from gclientauth.credentials import CredentialsManager
from gclientauth.errors import GClientAuthError, ListenError, ParseError, ReadError
from gclientauth.logging import setup_logging
from gclientauth.tokens import TokenCache


def cmd_login(args: argparse.Namespace) -> int:
    """Obtain a token, reusing the cache when possible."""
    scopes = [s.strip() for s in args.scopes.split(",") if s.strip()]
    try:
        manager = CredentialsManager(
            credentials_path=args.credentials,
            token_cache_path=args.cache,
            scopes=scopes,
            browser=args.browser,
            port=args.port,
            callback_timeout=args.timeout,
            exchange_timeout=args.exchange_timeout,
        )
        token, _config = manager.get_token(force_refresh=args.force)
    except (ReadError, ParseError, ListenError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except GClientAuthError as e:
        print(f"Authentication failed: {e}", file=sys.stderr)
        return 1

    print("\nAuthentication successful!")
    print(f"Token cached at: {manager.token_cache_path}")
    print(f"Token expires in: {token.expires_in_seconds()} seconds")
    if args.show_token:
        print(f"\nAccess Token:\n{token.access_token}")
    return 0


def cmd_logout(args: argparse.Namespace) -> int:
    """Clear the cached token."""
    cache = TokenCache(args.cache)
    try:
        if cache.clear():
            print(f"Credentials cleared from {cache.path}")
        else:
            print("No cached credentials found.")
        return 0
    except OSError as e:
        print(f"Failed to clear credentials: {e}", file=sys.stderr)
        return 1


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gclientauth",
        description="Obtain and cache Google OAuth2 tokens for CLI tools",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="Minimum log level (or set GCLIENTAUTH_LOG_LEVEL env var)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=settings.json_logs,
        help="Emit logs as JSON lines",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # login subcommand
    login_parser = subparsers.add_parser(
        "login",
        help="Obtain a token (prompts for consent if no valid token is cached)",
    )
    login_parser.add_argument(
        "--credentials",
        default=settings.credentials_path,
        help="Client credential JSON (or set GCLIENTAUTH_CREDENTIALS_PATH env var)",
    )
    login_parser.add_argument(
        "--cache",
        default=settings.token_cache_path,
        help="Token cache file (or set GCLIENTAUTH_TOKEN_CACHE_PATH env var)",
    )
    login_parser.add_argument(
        "--scopes",
        default=settings.scopes,
        help="Comma-separated scopes (or set GCLIENTAUTH_SCOPES env var)",
    )
    login_parser.add_argument(
        "--browser",
        action=argparse.BooleanOptionalAction,
        default=settings.browser,
        help="Open the consent URL in the default browser (always tried for web "
        "credentials)",
    )
    login_parser.add_argument(
        "--port",
        default=settings.port,
        help="Port for the local redirect listener (web credentials only)",
    )
    login_parser.add_argument(
        "--timeout",
        type=float,
        default=settings.callback_timeout,
        help="Seconds to wait for the browser redirect (default: wait forever)",
    )
    login_parser.add_argument(
        "--exchange-timeout",
        type=float,
        default=settings.exchange_timeout,
        help="Seconds to allow for the token request",
    )
    login_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Force re-authentication even if cached token is valid",
    )
    login_parser.add_argument(
        "--show-token",
        action="store_true",
        help="Print the access token to stdout",
    )
    login_parser.set_defaults(func=cmd_login)

    # logout subcommand
    logout_parser = subparsers.add_parser(
        "logout",
        help="Clear cached credentials",
    )
    logout_parser.add_argument(
        "--cache",
        default=settings.token_cache_path,
        help="Token cache file (or set GCLIENTAUTH_TOKEN_CACHE_PATH env var)",
    )
    logout_parser.set_defaults(func=cmd_logout)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser(get_settings())
    args = parser.parse_args(argv)
    setup_logging(json_logs=args.json_logs, log_level=args.log_level.upper())
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
