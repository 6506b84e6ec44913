"""Errors raised by the credential broker and its authority client."""

from __future__ import annotations


class VsoAuthError(Exception):
    """Base class for errors raised by :mod:`vsoauth`."""


class AuthorityTransportError(VsoAuthError, RuntimeError):
    """The service could not be reached or returned an unreadable response.

    Transport failures are never retried and never converted into an
    "invalid credentials" result; callers see them as this error with the
    underlying exception chained as ``__cause__``.
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url
