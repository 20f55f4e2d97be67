"""Exceptions raised by gclientauth.

Every terminal failure of the token flow derives from GClientAuthError so
callers can catch one type and decide their own exit code. A failed cache
write is not terminal and is reported as a CacheWarning instead.
"""

from __future__ import annotations


class GClientAuthError(Exception):
    """Base class for errors that abort the token flow."""


class ReadError(GClientAuthError):
    """The client credential document could not be read."""


class ParseError(GClientAuthError):
    """The client credential document is malformed or of ambiguous kind."""


class ListenError(GClientAuthError):
    """The local redirect listener could not bind its address."""


class ExchangeError(GClientAuthError):
    """The authorization code was rejected or the token request failed.

    Attributes:
        code: The authorization code that was submitted.
    """

    def __init__(self, message: str, code: str = "") -> None:
        super().__init__(message)
        self.code = code


class CacheWarning(UserWarning):
    """The token could not be written to its cache file."""
