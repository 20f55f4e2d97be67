"""gclientauth - OAuth2 tokens for command-line tools calling Google APIs.

Google's client libraries expect an access token but leave obtaining one to
the application. This library runs the three-legged OAuth2 flow for a client
credential downloaded from the Google API Console and caches the result:

- **installed** (desktop) credentials print a consent URL and read the
  authorization code the user pastes back;
- **web** credentials start a one-shot local listener on the redirect URL
  and capture the code automatically.

Example:
    from gclientauth import get_oauth2_token

    token, config = get_oauth2_token(
        "client_secret.json",
        "accesstoken.json",
        ["https://www.googleapis.com/auth/photoslibrary.readonly"],
        browser=True,
    )
    creds = token.to_credentials(config)
"""

from gclientauth.acquire import (
    CodeAcquirer,
    CodeReceiver,
    ConsoleCodeAcquirer,
    LocalServerCodeAcquirer,
    open_browser,
)
from gclientauth.client_secrets import (
    ClientConfig,
    CredentialKind,
    load_client_config,
)
from gclientauth.credentials import CredentialsManager, get_oauth2_token
from gclientauth.errors import (
    CacheWarning,
    ExchangeError,
    GClientAuthError,
    ListenError,
    ParseError,
    ReadError,
)
from gclientauth.exchange import TokenExchanger
from gclientauth.tokens import Token, TokenCache, authorized_session

__version__ = "0.1.0"
__all__ = [
    "CacheWarning",
    "ClientConfig",
    "CodeAcquirer",
    "CodeReceiver",
    "ConsoleCodeAcquirer",
    "CredentialKind",
    "CredentialsManager",
    "ExchangeError",
    "GClientAuthError",
    "ListenError",
    "LocalServerCodeAcquirer",
    "ParseError",
    "ReadError",
    "Token",
    "TokenCache",
    "TokenExchanger",
    "authorized_session",
    "get_oauth2_token",
    "load_client_config",
    "open_browser",
]
