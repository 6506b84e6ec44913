from __future__ import annotations

from typing import Protocol

from .models import Credential, Token


class CredentialStore(Protocol):
    """Protocol for the personal access token store.

    Implementations (OS keychain, DPAPI, file-backed, ...) key entries by
    the host of the target URI.
    """

    def read_credentials(self, target_uri: str) -> Credential | None:
        """Return the stored credential, or ``None`` when absent."""
        raise NotImplementedError

    def write_credentials(self, target_uri: str, credentials: Credential) -> None:
        """Store ``credentials``, replacing any existing entry."""
        raise NotImplementedError

    def delete_credentials(self, target_uri: str) -> None:
        """Remove the stored credential if present."""
        raise NotImplementedError


class TokenStore(Protocol):
    """Protocol for refresh-token stores and the IDE federated-token cache."""

    def read_token(self, target_uri: str) -> Token | None:
        """Return the stored token, or ``None`` when absent."""
        raise NotImplementedError

    def write_token(self, target_uri: str, token: Token) -> None:
        """Store ``token``, replacing any existing entry."""
        raise NotImplementedError

    def delete_token(self, target_uri: str) -> None:
        """Remove the stored token if present."""
        raise NotImplementedError
