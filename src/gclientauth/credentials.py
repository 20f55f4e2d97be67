"""OAuth2 token flow for command-line applications.

CredentialsManager ties the pieces together:

1. load the client credential file,
2. return the cached token if it is still valid,
3. otherwise obtain an authorization code (console prompt for installed
   credentials, local redirect listener for web credentials),
4. exchange it for a token,
5. cache the token for the next run.

Example:
    from gclientauth import get_oauth2_token, authorized_session

    token, config = get_oauth2_token(
        "client_secret.json",
        "accesstoken.json",
        ["https://www.googleapis.com/auth/youtube.readonly"],
    )
    session = authorized_session(token, config)
    session.get("https://www.googleapis.com/youtube/v3/channels?part=id&mine=true")
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from pathlib import Path

from loguru import logger

from gclientauth.acquire import CodeAcquirer, acquirer_for
from gclientauth.client_secrets import ClientConfig, load_client_config
from gclientauth.exchange import TokenExchanger
from gclientauth.tokens import Token, TokenCache


class FlowState(Enum):
    LOADING_CREDENTIAL = "loading_credential"
    CHECKING_CACHE = "checking_cache"
    ACQUIRING_CODE = "acquiring_code"
    EXCHANGING_TOKEN = "exchanging_token"
    PERSISTING_TOKEN = "persisting_token"
    DONE = "done"


class CredentialsManager:
    """Obtains and caches an OAuth2 token for a user.

    Args:
        credentials_path: Client credential JSON from the Google API Console.
        token_cache_path: Where the token is cached between runs.
        scopes: Scopes to request.
        browser: Open the consent URL in the default browser (installed
            credentials; web credentials always try the browser).
        port: Port for the local redirect listener (web credentials only).
        callback_timeout: Seconds to wait for the redirect. None waits forever.
        exchange_timeout: Seconds to allow for the token request.
        acquirer: Overrides the code acquisition strategy picked from the
            credential kind.
    """

    def __init__(
        self,
        credentials_path: str | Path,
        token_cache_path: str | Path,
        scopes: Iterable[str],
        browser: bool = False,
        port: str = "8080",
        callback_timeout: float | None = None,
        exchange_timeout: float | None = None,
        acquirer: CodeAcquirer | None = None,
    ) -> None:
        self.credentials_path = Path(credentials_path)
        self.cache = TokenCache(token_cache_path)
        self.scopes = list(scopes)
        self.browser = browser
        self.port = port
        self.callback_timeout = callback_timeout
        self.exchange_timeout = exchange_timeout
        self._acquirer = acquirer
        self.state = FlowState.LOADING_CREDENTIAL

    @property
    def token_cache_path(self) -> Path:
        """Return the path where tokens are cached."""
        return self.cache.path

    def _enter(self, state: FlowState) -> None:
        logger.debug(f"Token flow: {self.state.value} -> {state.value}")
        self.state = state

    def get_token(self, force_refresh: bool = False) -> tuple[Token, ClientConfig]:
        """Get a valid token, running the consent flow if necessary.

        Args:
            force_refresh: If True, ignore the cached token.

        Returns:
            The token and the client configuration it was issued for.

        Raises:
            ReadError: If the credential file cannot be read.
            ParseError: If the credential file is invalid.
            ListenError: If the local redirect listener cannot bind.
            ExchangeError: If no token could be obtained for the code.
        """
        self.state = FlowState.LOADING_CREDENTIAL
        config, kind = load_client_config(self.credentials_path, self.scopes)

        self._enter(FlowState.CHECKING_CACHE)
        if not force_refresh:
            cached = self.cache.load()
            if cached and cached.is_valid():
                logger.info(
                    f"Using cached token (expires in {cached.expires_in_seconds()} seconds)"
                )
                self._enter(FlowState.DONE)
                return cached, config

        self._enter(FlowState.ACQUIRING_CODE)
        exchanger = TokenExchanger(config, kind)
        acquirer = self._acquirer or acquirer_for(
            kind, browser=self.browser, port=self.port, timeout=self.callback_timeout
        )
        code = acquirer.acquire_code(exchanger.authorization_url(), config)

        self._enter(FlowState.EXCHANGING_TOKEN)
        token = exchanger.exchange(code, timeout=self.exchange_timeout)

        self._enter(FlowState.PERSISTING_TOKEN)
        self.cache.save(token)

        self._enter(FlowState.DONE)
        logger.info(f"Obtained new token (expires in {token.expires_in_seconds()} seconds)")
        return token, config


def get_oauth2_token(
    credentials_path: str | Path,
    token_cache_path: str | Path,
    scopes: Iterable[str],
    browser: bool = False,
    port: str = "8080",
    **kwargs: object,
) -> tuple[Token, ClientConfig]:
    """Get a token for scopes, reusing the cached one when still valid.

    Keyword arguments beyond those listed are passed to CredentialsManager.
    """
    manager = CredentialsManager(
        credentials_path,
        token_cache_path,
        scopes,
        browser=browser,
        port=port,
        **kwargs,  # type: ignore[arg-type]
    )
    return manager.get_token()
