from __future__ import annotations

import logging
from uuid import UUID

from .authority import AuthorityClient
from .cache import SecretCache
from .config import BrokerConfig
from .detection import EMPTY_TENANT
from .interfaces import CredentialStore, TokenStore
from .models import Credential, Token
from .scopes import TokenScope, validate_target_uri

logger = logging.getLogger(__name__)

REFRESH_TOKEN_NAMESPACE = "ada"
IDE_TOKEN_NAMESPACE = "registry"


class CredentialBroker:
    """Produces personal access tokens for one tenant of the hosted service.

    Minted tokens are kept in the personal access token store; refresh
    tokens and IDE-captured federated tokens are read from their own stores.
    Consumer (MSA) and organizational (AAD) authorities differ only by
    ``tenant_id``: the empty UUID selects the consumer authority.

    Concurrent refreshes for the same target are not coordinated and may
    race on store writes.
    """

    def __init__(
        self,
        token_scope: TokenScope,
        personal_access_token_store: CredentialStore,
        refresh_token_store: TokenStore | None = None,
        ide_token_cache: TokenStore | None = None,
        authority: AuthorityClient | None = None,
        *,
        tenant_id: UUID | None = EMPTY_TENANT,
        config: BrokerConfig | None = None,
    ) -> None:
        """Initialize the broker.

        Args:
            token_scope: Scope of the personal access tokens to request.
            personal_access_token_store: Store for minted personal access tokens.
            refresh_token_store: Store for refresh tokens. Defaults to an
                in-memory cache.
            ide_token_cache: Federated tokens captured by an IDE. Defaults
                to an in-memory cache.
            authority: Client used for all network work. Defaults to one
                bound to the tenant's login authority.
            tenant_id: Tenant the broker acts for; empty UUID for MSA.
            config: Shared settings.
        """
        if token_scope is None:
            raise ValueError("The token_scope parameter is None.")
        if personal_access_token_store is None:
            raise ValueError("The personal_access_token_store parameter is None.")

        self._config = config or BrokerConfig()
        self.token_scope = token_scope
        self.tenant_id = tenant_id
        self.personal_access_token_store = personal_access_token_store
        self.refresh_token_store = (
            refresh_token_store
            if refresh_token_store is not None
            else SecretCache(REFRESH_TOKEN_NAMESPACE)
        )
        self.ide_token_cache = (
            ide_token_cache
            if ide_token_cache is not None
            else SecretCache(IDE_TOKEN_NAMESPACE)
        )
        self.authority = authority or AuthorityClient(
            self._config.authority_url(tenant_id or EMPTY_TENANT), config=self._config
        )

    @property
    def client_id(self) -> str:
        return self._config.client_id

    @property
    def resource(self) -> str:
        return self._config.resource

    @property
    def is_consumer(self) -> bool:
        """True when the broker targets a consumer (MSA) authority."""
        return self.tenant_id == EMPTY_TENANT

    def get_credentials(self, target_uri: str) -> Credential | None:
        """Return stored credentials for ``target_uri`` without touching the network."""
        validate_target_uri(target_uri)
        credentials = self.personal_access_token_store.read_credentials(target_uri)
        if credentials is not None:
            logger.debug("Retrieved stored credentials for %s", target_uri)
        return credentials

    def delete_credentials(self, target_uri: str) -> None:
        """Delete the stored personal access token, else the stored refresh token."""
        validate_target_uri(target_uri)

        if self.personal_access_token_store.read_credentials(target_uri) is not None:
            self.personal_access_token_store.delete_credentials(target_uri)
            logger.debug("Deleted personal access token for %s", target_uri)
        elif self.refresh_token_store.read_token(target_uri) is not None:
            self.refresh_token_store.delete_token(target_uri)
            logger.debug("Deleted refresh token for %s", target_uri)

    def refresh_credentials(self, target_uri: str, require_compact_token: bool) -> bool:
        """Mint a new personal access token from a stored refresh or federated token.

        A stored refresh token is tried first. If its exchange succeeds the
        result of minting with the new access token is final. The IDE token
        cache is consulted only when no refresh token is stored. Errors are
        logged and reported as ``False``.

        Args:
            target_uri: The 'key' by which to identify the refresh token.
            require_compact_token: Generates a compact token if true;
                generates a self describing token if false.

        Returns:
            True if a personal access token was minted and stored.
        """
        validate_target_uri(target_uri)

        try:
            refresh_token = self.refresh_token_store.read_token(target_uri)
            if refresh_token is not None:
                tokens = self.authority.acquire_token_by_refresh_token(
                    target_uri, self.client_id, self.resource, refresh_token
                )
                if tokens is not None:
                    logger.debug("Refresh token exchanged for %s", target_uri)
                    if tokens.tenant_id is not None:
                        self.tenant_id = tokens.tenant_id
                    return self.generate_personal_access_token(
                        target_uri, tokens.access_token, require_compact_token
                    )
            else:
                federated_token = self.ide_token_cache.read_token(target_uri)
                if federated_token is not None:
                    logger.debug("Federated auth token found in IDE cache")
                    return self.generate_personal_access_token(
                        target_uri, federated_token, require_compact_token
                    )
        except Exception:
            logger.exception("Refreshing credentials for %s raised", target_uri)

        logger.debug("Failed to refresh credentials for %s", target_uri)
        return False

    def validate_credentials(self, target_uri: str, credentials: Credential) -> bool:
        """Return True if ``credentials`` grant access to ``target_uri``."""
        return self.authority.validate_credentials(target_uri, credentials)

    def generate_personal_access_token(
        self, target_uri: str, access_token: Token, require_compact_token: bool
    ) -> bool:
        """Mint a personal access token and store it as credentials.

        Returns:
            True if a token was minted; the store is untouched otherwise.
        """
        if access_token is None:
            raise ValueError("The access_token parameter is None.")

        personal_access_token = self.authority.generate_personal_access_token(
            target_uri, access_token, self.token_scope, require_compact_token
        )
        if personal_access_token is None:
            return False

        self.personal_access_token_store.write_credentials(
            target_uri, personal_access_token.to_credential()
        )
        return True

    def store_refresh_token(self, target_uri: str, refresh_token: Token) -> None:
        """Store a refresh token for later use by :meth:`refresh_credentials`."""
        validate_target_uri(target_uri)
        if refresh_token is None:
            raise ValueError("The refresh_token parameter is None.")

        self.refresh_token_store.write_token(target_uri, refresh_token)
