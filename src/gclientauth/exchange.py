"""Authorization code exchange via google-auth-oauthlib."""

from __future__ import annotations

import requests
from google_auth_oauthlib.flow import Flow
from loguru import logger
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

from gclientauth.client_secrets import ClientConfig, CredentialKind
from gclientauth.errors import ExchangeError
from gclientauth.tokens import Token

# Opaque anti-forgery state sent with the consent request.
DEFAULT_STATE = "state-token"


class TokenExchanger:
    """Builds the consent URL and redeems the resulting authorization code.

    One exchanger serves one acquisition cycle: the consent URL and the
    exchange share the same PKCE verifier, and a code is redeemed at most
    once. Retrying needs a new exchanger and a new code.
    """

    def __init__(self, config: ClientConfig, kind: CredentialKind) -> None:
        self.config = config
        self._flow = Flow.from_client_config(
            config.to_client_config(kind),
            scopes=list(config.scopes),
            redirect_uri=config.redirect_uri,
        )
        self._used = False

    def authorization_url(self, state: str = DEFAULT_STATE) -> str:
        """Return the consent URL requesting offline access."""
        url, _ = self._flow.authorization_url(access_type="offline", state=state)
        return url

    def exchange(self, code: str, timeout: float | None = None) -> Token:
        """Exchange the authorization code for a token.

        Args:
            code: Authorization code from the consent flow.
            timeout: Seconds to allow for the token request.

        Raises:
            ExchangeError: If the code is empty, was already submitted, is
                rejected by the token endpoint, or the request fails. A token
                granted for a changed scope is returned with a warning.
        """
        if self._used:
            raise ExchangeError(
                f'Authorization code already exchanged. code = "{code}"', code=code
            )
        if not code:
            raise ExchangeError(
                'Unable to get valid token: no authorization code received. code = ""',
                code=code,
            )

        # Exchanging for a token invalidates the code, even on failure
        self._used = True
        try:
            response = self._flow.fetch_token(code=code, timeout=timeout)
        except Warning as w:
            # The endpoint issued a token for a different scope than requested
            logger.warning(f"Token granted with changed scope: {w}")
            response = w.token  # type: ignore[attr-defined]
        except (OAuth2Error, requests.RequestException) as e:
            raise ExchangeError(
                f'Unable to get valid token. code = "{code}": {e}', code=code
            ) from e

        token = Token.from_response(dict(response))
        if not token.access_token:
            raise ExchangeError(
                f'Token endpoint returned no access token. code = "{code}"',
                code=code,
            )
        logger.debug(f"Exchanged authorization code at {self.config.token_uri}")
        return token
