"""OAuth2 token structure and file cache.

The cache file uses the standard OAuth2 token JSON shape so it can be shared
with other tooling:

    {
        "access_token": "ya29...",
        "token_type": "Bearer",
        "refresh_token": "1//0g...",
        "expiry": "2025-01-01T12:00:00Z"
    }
"""

from __future__ import annotations

import json
import re
import stat
import warnings
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

from google.auth.transport.requests import AuthorizedSession
from google.oauth2.credentials import Credentials
from loguru import logger

from gclientauth.errors import CacheWarning

if TYPE_CHECKING:
    from gclientauth.client_secrets import ClientConfig

# Tokens this close to expiry are treated as expired.
EXPIRY_BUFFER_SECONDS = 10

# datetime.fromisoformat handles at most microseconds
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def _parse_expiry(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=UTC)
    text = _FRACTION_RE.sub(r"\1", str(value).replace("Z", "+00:00"))
    expiry = datetime.fromisoformat(text)
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=UTC)
    return expiry


def _format_expiry(expiry: datetime) -> str:
    return expiry.astimezone(UTC).isoformat().replace("+00:00", "Z")


@dataclass
class Token:
    """OAuth2 token returned by the token endpoint.

    Attributes:
        access_token: Bearer credential for API calls.
        token_type: Token type, normally "Bearer".
        refresh_token: Long-lived token for renewing the access token.
        expiry: When the access token expires (UTC). None means no expiry.
    """

    access_token: str
    token_type: str = "Bearer"
    refresh_token: str | None = None
    expiry: datetime | None = None

    def is_valid(self, buffer_seconds: int = EXPIRY_BUFFER_SECONDS) -> bool:
        """Check the token has an access token and has not expired."""
        if not self.access_token:
            return False
        if self.expiry is None:
            return True
        return datetime.now(UTC) < self.expiry - timedelta(seconds=buffer_seconds)

    def expires_in_seconds(self) -> int:
        """Return seconds until token expires."""
        if self.expiry is None:
            return 0
        remaining = (self.expiry - datetime.now(UTC)).total_seconds()
        return max(0, int(remaining))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {
            "access_token": self.access_token,
            "token_type": self.token_type,
        }
        if self.refresh_token:
            data["refresh_token"] = self.refresh_token
        if self.expiry is not None:
            data["expiry"] = _format_expiry(self.expiry)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Token:
        """Create Token from its cached dictionary form.

        Also accepts the ``expires_at`` unix timestamp written by older caches.
        """
        access_token = data["access_token"]
        if not isinstance(access_token, str):
            raise TypeError("access_token must be a string")
        return cls(
            access_token=access_token,
            token_type=data.get("token_type") or "Bearer",
            refresh_token=data.get("refresh_token") or None,
            expiry=_parse_expiry(data.get("expiry", data.get("expires_at"))),
        )

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> Token:
        """Create Token from a token endpoint response."""
        expiry = None
        if response.get("expires_at") is not None:
            expiry = _parse_expiry(float(response["expires_at"]))
        elif response.get("expires_in") is not None:
            expiry = datetime.now(UTC) + timedelta(
                seconds=float(response["expires_in"])
            )
        return cls(
            access_token=response.get("access_token", ""),
            token_type=response.get("token_type") or "Bearer",
            refresh_token=response.get("refresh_token") or None,
            expiry=expiry,
        )

    def to_credentials(self, config: ClientConfig) -> Credentials:
        """Build google-auth credentials for Google API client libraries.

        The credentials carry the refresh token and client details, so
        google-auth can renew the access token once it expires.
        """
        expiry = None
        if self.expiry is not None:
            # google-auth compares against naive UTC datetimes
            expiry = self.expiry.astimezone(UTC).replace(tzinfo=None)
        return Credentials(
            token=self.access_token,
            refresh_token=self.refresh_token,
            token_uri=config.token_uri,
            client_id=config.client_id,
            client_secret=config.client_secret,
            scopes=list(config.scopes) or None,
            expiry=expiry,
        )


def authorized_session(token: Token, config: ClientConfig) -> AuthorizedSession:
    """Return a requests session that sends the token with every request."""
    return AuthorizedSession(token.to_credentials(config))


class TokenCache:
    """Reads and writes a Token at a caller-chosen path.

    Reads never raise: a missing or corrupt file simply means there is no
    usable cached token. Writes that fail are reported as a CacheWarning and
    logged, because the freshly obtained token is still usable in memory.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> Token | None:
        """Load the cached token, or None if it is missing or unreadable."""
        try:
            data = json.loads(self.path.read_text())
            return Token.from_dict(data)
        except FileNotFoundError:
            logger.debug(f"No cached token at {self.path}")
            return None
        except (
            OSError,
            ValueError,
            OverflowError,
            KeyError,
            TypeError,
            AttributeError,
        ) as e:
            logger.debug(f"Invalid cached token at {self.path}: {e}")
            return None

    def save(self, token: Token) -> bool:
        """Save token with owner-only permissions.

        Returns:
            True if the token was written, False if the write failed.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            # Write to temp file, set permissions, then rename atomically
            temp_path = self.path.with_suffix(".tmp")
            temp_path.write_text(json.dumps(token.to_dict(), indent=2))
            temp_path.chmod(stat.S_IRUSR | stat.S_IWUSR)  # 0600
            temp_path.replace(self.path)
        except OSError as e:
            message = f"Unable to write token to local cache {self.path}: {e}"
            logger.warning(message)
            warnings.warn(message, CacheWarning, stacklevel=2)
            return False

        logger.debug(f"Token saved to {self.path}")
        return True

    def clear(self) -> bool:
        """Delete the cache file. Returns False if there was nothing to delete."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        return True
