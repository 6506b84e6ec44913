from __future__ import annotations

import logging

from .broker import CredentialBroker
from .config import BrokerConfig
from .detection import EMPTY_TENANT, detect_authority
from .interfaces import CredentialStore, TokenStore
from .scopes import TokenScope

logger = logging.getLogger(__name__)


def get_authentication(
    target_uri: str,
    scope: TokenScope | None,
    personal_access_token_store: CredentialStore,
    refresh_token_store: TokenStore | None = None,
    *,
    config: BrokerConfig | None = None,
) -> CredentialBroker | None:
    """Construct a :class:`CredentialBroker` for the authority behind ``target_uri``.

    Args:
        target_uri: The resource for which authentication is being requested.
        scope: Scope of the personal access tokens to mint. If ``None``,
            ``config.token_scope`` is used.
        personal_access_token_store: Store for minted personal access tokens.
        refresh_token_store: Store for refresh tokens. If ``None``, an
            in-memory cache is used.
        config: Shared settings. If ``None``, read from the environment.

    Returns:
        A broker bound to the detected tenant, or ``None`` when the host is
        not backed by the managed identity platform.
    """
    cfg = config or BrokerConfig()
    is_managed, tenant_id = detect_authority(target_uri, config=cfg)
    if not is_managed:
        return None

    if tenant_id == EMPTY_TENANT:
        logger.debug("MSA authority detected")
    else:
        logger.debug("AAD authority for tenant '%s' detected", tenant_id)

    return CredentialBroker(
        scope or TokenScope(cfg.token_scope),
        personal_access_token_store,
        refresh_token_store,
        tenant_id=tenant_id,
        config=cfg,
    )
