"""Client credential loading.

Parses the client secret JSON downloaded from the Google API Console. The
document holds exactly one top-level section, ``installed`` for desktop
credentials or ``web`` for web application credentials:

    {
        "installed": {
            "client_id": "...apps.googleusercontent.com",
            "client_secret": "...",
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "redirect_uris": ["http://localhost"]
        }
    }
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from loguru import logger

from gclientauth.errors import ParseError, ReadError

_REQUIRED_KEYS = ("client_id", "auth_uri", "token_uri")


class CredentialKind(Enum):
    """Which OAuth client type the credential document describes."""

    INSTALLED = "installed"
    WEB = "web"


@dataclass(frozen=True)
class ClientConfig:
    """OAuth2 client configuration for the three-legged flow.

    Attributes:
        client_id: OAuth client ID.
        client_secret: OAuth client secret (may be empty).
        auth_uri: Consent endpoint the user is sent to.
        token_uri: Endpoint the authorization code is exchanged at.
        redirect_uri: First redirect URI registered for the client.
        scopes: Requested scopes, in order.
    """

    client_id: str
    client_secret: str
    auth_uri: str
    token_uri: str
    redirect_uri: str
    scopes: tuple[str, ...] = ()

    def to_client_config(self, kind: CredentialKind) -> dict[str, Any]:
        """Return the client secrets dict understood by google-auth-oauthlib."""
        return {
            kind.value: {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": self.auth_uri,
                "token_uri": self.token_uri,
                "redirect_uris": [self.redirect_uri],
            }
        }


def load_client_config(
    path: str | Path, scopes: Iterable[str] = ()
) -> tuple[ClientConfig, CredentialKind]:
    """Read and parse a client credential file.

    Raises:
        ReadError: If the file cannot be read.
        ParseError: If the file is not a valid client credential document.
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ReadError(
            f"Unable to read client credential file ({path}): {e}"
        ) from e

    logger.debug("Loaded client credential file {}", path)
    return parse_client_config(data, scopes)


def parse_client_config(
    data: bytes | str, scopes: Iterable[str] = ()
) -> tuple[ClientConfig, CredentialKind]:
    """Parse the contents of a client credential document."""
    try:
        document = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError(f"Error parsing credential file: {e}") from e

    if not isinstance(document, dict):
        raise ParseError("Error parsing credential file: expected a JSON object")

    present = [kind for kind in CredentialKind if kind.value in document]
    if len(present) != 1:
        found = ", ".join(k.value for k in present) or "none"
        raise ParseError(
            "Credential file must contain exactly one of 'installed' or 'web' "
            f"(found: {found})"
        )
    kind = present[0]

    section = document[kind.value]
    if not isinstance(section, dict):
        raise ParseError(f"Credential section '{kind.value}' must be a JSON object")

    missing = [key for key in _REQUIRED_KEYS if not section.get(key)]
    if missing:
        raise ParseError(
            f"Credential section '{kind.value}' is missing: {', '.join(missing)}"
        )

    redirect_uris = section.get("redirect_uris")
    if not isinstance(redirect_uris, list) or not redirect_uris:
        raise ParseError("Missing redirect URL in the client credential file")

    config = ClientConfig(
        client_id=section["client_id"],
        client_secret=section.get("client_secret", ""),
        auth_uri=section["auth_uri"],
        token_uri=section["token_uri"],
        redirect_uri=str(redirect_uris[0]),
        scopes=tuple(scopes),
    )
    return config, kind
