"""In-memory secret store used when no persistent backend is supplied."""

from __future__ import annotations

import logging

from .models import Credential, Token
from .scopes import target_name, validate_target_uri

logger = logging.getLogger(__name__)


class SecretCache:
    """Namespaced, process-local store for credentials and tokens.

    Entries are keyed by ``"<namespace>:<scheme>://<host>"`` so that any
    path below the same host resolves to the same secret. Implements both
    :class:`~vsoauth.interfaces.CredentialStore` and
    :class:`~vsoauth.interfaces.TokenStore`.
    """

    def __init__(self, namespace: str) -> None:
        if not namespace or not namespace.strip():
            raise ValueError("The namespace must not be blank.")
        self.namespace = namespace
        self._entries: dict[str, Credential | Token] = {}

    def _key(self, target_uri: str) -> str:
        validate_target_uri(target_uri)
        return f"{self.namespace}:{target_name(target_uri)}"

    def __len__(self) -> int:
        return len(self._entries)

    def read_credentials(self, target_uri: str) -> Credential | None:
        entry = self._entries.get(self._key(target_uri))
        return entry if isinstance(entry, Credential) else None

    def write_credentials(self, target_uri: str, credentials: Credential) -> None:
        if credentials is None:
            raise ValueError("The credentials parameter is None.")
        self._entries[self._key(target_uri)] = credentials

    def delete_credentials(self, target_uri: str) -> None:
        self._delete(target_uri, Credential)

    def read_token(self, target_uri: str) -> Token | None:
        entry = self._entries.get(self._key(target_uri))
        return entry if isinstance(entry, Token) else None

    def write_token(self, target_uri: str, token: Token) -> None:
        if token is None:
            raise ValueError("The token parameter is None.")
        self._entries[self._key(target_uri)] = token

    def delete_token(self, target_uri: str) -> None:
        self._delete(target_uri, Token)

    def _delete(self, target_uri: str, kind: type) -> None:
        key = self._key(target_uri)
        if isinstance(self._entries.get(key), kind):
            del self._entries[key]
            logger.debug("Deleted %s from %s cache", key, self.namespace)
