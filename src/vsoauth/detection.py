from __future__ import annotations

import logging
from typing import Final
from urllib.parse import urlparse
from uuid import UUID

import requests

from .authority import REQUEST_TIMEOUT, parse_uuid
from .config import BrokerConfig
from .exceptions import AuthorityTransportError
from .scopes import validate_target_uri

logger = logging.getLogger(__name__)

MANAGED_HOST_SUFFIX: Final[str] = "visualstudio.com"
RESOURCE_TENANT_HEADER: Final[str] = "X-VSS-ResourceTenant"
EMPTY_TENANT: Final[UUID] = UUID(int=0)


def is_managed_host(target_uri: str) -> bool:
    """Return True if the host of ``target_uri`` belongs to the hosted service."""
    host = urlparse(target_uri).hostname or ""
    return host.lower().endswith(MANAGED_HOST_SUFFIX)


def detect_authority(
    target_uri: str, *, config: BrokerConfig | None = None
) -> tuple[bool, UUID]:
    """Detect the backing authority of the end-point.

    Hosts outside the managed domain are rejected without any network
    access. Managed hosts are probed with a single ``HEAD`` request
    (redirects not followed) and classified by the resource tenant header:
    the empty UUID means a consumer (MSA) account, any other UUID an
    organizational (AAD) tenant.

    Args:
        target_uri: The resource which the authority protects.
        config: Settings supplying the ``User-Agent`` header.

    Returns:
        ``(is_managed, tenant_id)``; ``tenant_id`` is the empty UUID unless
        detection succeeded.

    Raises:
        AuthorityTransportError: If the ``HEAD`` request fails at transport level.
    """
    validate_target_uri(target_uri)

    if not is_managed_host(target_uri):
        logger.debug("%s is not a managed host, falling back to basic auth", target_uri)
        return False, EMPTY_TENANT

    logger.debug("Detected managed host, checking AAD vs MSA")
    cfg = config or BrokerConfig()
    try:
        response = requests.head(
            target_uri,
            headers={"User-Agent": cfg.user_agent},
            allow_redirects=False,
            timeout=(REQUEST_TIMEOUT, None),
        )
    except requests.RequestException as e:
        raise AuthorityTransportError(
            f"HEAD {target_uri} failed: {e}", url=target_uri
        ) from e

    tenant_id = parse_uuid(response.headers.get(RESOURCE_TENANT_HEADER))
    if tenant_id is None:
        logger.debug("No resource tenant header, falling back to basic auth")
        return False, EMPTY_TENANT

    return True, tenant_id
