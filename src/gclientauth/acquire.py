"""Authorization code acquisition.

Two strategies, chosen strictly by credential kind:

* ConsoleCodeAcquirer (installed credentials): the user opens the consent
  URL and pastes the resulting code into the terminal.
* LocalServerCodeAcquirer (web credentials): a one-shot HTTP listener bound
  to the redirect URL's host receives the code from the browser redirect.

Neither strategy has a timeout by default; the local listener accepts an
optional one.
"""

from __future__ import annotations

import http.server
import queue
import sys
import threading
import urllib.parse
import webbrowser
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import IO, Any

from loguru import logger

from gclientauth.client_secrets import ClientConfig, CredentialKind
from gclientauth.errors import ListenError

BrowserOpener = Callable[[str], bool]


def open_browser(url: str) -> bool:
    """Try to open url in the default browser.

    Returns False when the platform has no usable browser or opening fails.
    """
    try:
        return webbrowser.open(url)
    except (webbrowser.Error, OSError) as e:
        logger.debug(f"Could not open browser: {e}")
        return False


class CodeAcquirer(ABC):
    """Obtains an authorization code for a consent URL."""

    @abstractmethod
    def acquire_code(self, auth_url: str, config: ClientConfig) -> str:
        """Block until an authorization code is available and return it."""


class ConsoleCodeAcquirer(CodeAcquirer):
    """Asks the user to paste the code shown after consent."""

    def __init__(
        self,
        browser: bool = False,
        stdin: IO[str] | None = None,
        opener: BrowserOpener = open_browser,
    ) -> None:
        self.browser = browser
        self._stdin = stdin
        self._opener = opener

    def acquire_code(self, auth_url: str, config: ClientConfig) -> str:
        opened = self.browser and self._opener(auth_url)
        if not opened:
            print(f"Visit the URL for the auth dialog: \n\t{auth_url}\n")

        print("Enter code: ", end="", flush=True)
        stdin = self._stdin if self._stdin is not None else sys.stdin
        return stdin.readline().strip()


class _CallbackHandler(http.server.BaseHTTPRequestHandler):
    """Handles the single redirect request carrying the code."""

    server: _OneShotServer

    def log_message(self, format: str, *args: Any) -> None:
        """Suppress default logging."""
        pass

    def do_GET(self) -> None:
        params = urllib.parse.parse_qs(urllib.parse.urlparse(self.path).query)
        code = params.get("code", [""])[0]
        if "error" in params:
            logger.warning(f"Authorization failed: {params['error'][0]}")

        self.server.deliver(code)

        body = (
            f"Received code: {code}\r\n"
            "You can now safely close this browser window."
        ).encode()
        self.send_response(200)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


class _OneShotServer(http.server.HTTPServer):
    # A port another listener holds must fail with ListenError
    allow_reuse_address = False
    allow_reuse_port = False

    def __init__(self, address: tuple[str, int]) -> None:
        super().__init__(address, _CallbackHandler)
        self.codes: queue.Queue[str] = queue.Queue(maxsize=1)
        self._delivered = False

    def deliver(self, code: str) -> None:
        if not self._delivered:
            self._delivered = True
            self.codes.put_nowait(code)

    def handle_timeout(self) -> None:
        logger.warning("Timed out waiting for the authorization redirect")


class CodeReceiver:
    """Ephemeral HTTP listener that captures exactly one authorization code.

    The socket is bound on construction, so an address already in use fails
    fast with ListenError. After start(), a background thread serves one
    request, hands the ``code`` query parameter to wait() and closes the
    listener. No further requests are served.

    Args:
        host: Hostname or address to bind.
        port: Port to bind; "0" picks a free port.
        timeout: Seconds to wait for the redirect. None waits forever.
    """

    def __init__(
        self, host: str, port: str | int, timeout: float | None = None
    ) -> None:
        try:
            port_number = int(port)
        except (TypeError, ValueError) as e:
            raise ListenError(f"Invalid listener port: {port!r}") from e

        try:
            self._server = _OneShotServer((host, port_number))
        except OSError as e:
            raise ListenError(f"Unable to listen on {host}:{port}: {e}") from e

        self._server.timeout = timeout
        self._host = host or "localhost"
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        return int(self._server.server_address[1])

    @property
    def url(self) -> str:
        return f"http://{self._host}:{self.port}/"

    def start(self) -> None:
        """Serve the single redirect request on a daemon thread."""
        if self._thread is not None:
            raise RuntimeError("CodeReceiver already started")
        self._thread = threading.Thread(target=self._serve_once, daemon=True)
        self._thread.start()
        logger.debug(f"Listening for the authorization redirect on {self.url}")

    def _serve_once(self) -> None:
        try:
            self._server.handle_request()
        finally:
            self._server.server_close()
            # Unblock wait() if the request carried no usable response
            self._server.deliver("")

    def wait(self) -> str:
        """Block until the code arrives and the listener has closed."""
        if self._thread is None:
            raise RuntimeError("CodeReceiver not started")
        code = self._server.codes.get()
        self._thread.join()
        return code


class LocalServerCodeAcquirer(CodeAcquirer):
    """Captures the code from the redirect to a local listener."""

    def __init__(
        self,
        port: str,
        timeout: float | None = None,
        opener: BrowserOpener = open_browser,
    ) -> None:
        self.port = port
        self.timeout = timeout
        self._opener = opener

    def acquire_code(self, auth_url: str, config: ClientConfig) -> str:
        hostname = urllib.parse.urlsplit(config.redirect_uri).hostname or ""
        receiver = CodeReceiver(hostname, self.port, timeout=self.timeout)
        receiver.start()

        if self._opener(auth_url):
            print(
                "Your browser has been opened to an authorization URL. "
                "This program will resume once authorization has been provided.\n"
            )
            print(auth_url)
        else:
            print(f"Visit the URL for the auth dialog: \n\t{auth_url}\n")
        print(f"Waiting for authorization on {receiver.url} ...")

        return receiver.wait()


def acquirer_for(
    kind: CredentialKind,
    *,
    browser: bool,
    port: str,
    timeout: float | None = None,
) -> CodeAcquirer:
    """Return the acquisition strategy for a credential kind."""
    if kind is CredentialKind.WEB:
        return LocalServerCodeAcquirer(port, timeout=timeout)
    return ConsoleCodeAcquirer(browser=browser)
