"""HTTP client for the identity, token and connection-data endpoints.

Every request is attempted exactly once with a fixed connect timeout.
Transport failures surface as :class:`AuthorityTransportError`; unexpected
status codes and missing response fields surface as ``None``/``False``.
"""

from __future__ import annotations

import logging
import re
import socket
from typing import Final
from uuid import UUID

import msal
import requests

from .config import BrokerConfig
from .exceptions import AuthorityTransportError
from .models import PAT_SOURCE_TYPES, Credential, Token, TokenPair, TokenType
from .scopes import TokenScope, authority_from_url, validate_target_uri

logger = logging.getLogger(__name__)

# Connect timeout in seconds. No read timeout is applied.
REQUEST_TIMEOUT: Final[int] = 15

# Tenant reported in id tokens issued to personal (MSA) accounts.
CONSUMER_TENANT: Final[UUID] = UUID("9188040d-6c67-4c5b-b112-36a304b66dad")

LOCATION_SERVICE_PATH: Final[str] = (
    "/_apis/ServiceDefinitions/LocationService2/"
    "951917AC-A960-4999-8464-E3F0AA25B381?api-version=1.0"
)
SESSION_TOKEN_PATH: Final[str] = "_apis/token/sessiontokens?api-version=1.0"
COMPACT_TOKEN_PATH: Final[str] = SESSION_TOKEN_PATH + "&tokentype=compact"
CONNECTION_DATA_PATH: Final[str] = "/_apis/connectiondata"


def extract_json_field(body: str | None, field_name: str) -> str | None:
    """Return the first string value of ``"field_name": "<value>"`` in ``body``.

    The match is case-insensitive on the field name and ignores any
    surrounding JSON. Blank bodies and bodies without a match yield ``None``.
    """
    if not body or not body.strip():
        return None
    pattern = re.compile(
        r'"' + re.escape(field_name) + r'"\s*:\s*"([^"]+)"', re.IGNORECASE
    )
    match = pattern.search(body)
    return match.group(1) if match else None


def parse_uuid(value: str | None) -> UUID | None:
    """Parse ``value`` as a UUID, returning ``None`` if it is not one."""
    if not value or not value.strip():
        return None
    try:
        return UUID(value.strip())
    except ValueError:
        return None


def _require_pat_source(token: Token | None) -> None:
    if token is None or token.type not in PAT_SOURCE_TYPES:
        raise ValueError("The access token is None or not an Access/Federated token.")


class AuthorityClient:
    """Talks to the service on behalf of one login authority.

    Args:
        authority_url: Login authority used for refresh-token exchanges
            (e.g. ``https://login.microsoftonline.com/<tenant>``).
        config: Shared settings; supplies the ``User-Agent`` header.
    """

    def __init__(
        self, authority_url: str | None = None, *, config: BrokerConfig | None = None
    ) -> None:
        self._config = config or BrokerConfig()
        self.authority_url = authority_url or self._config.authority_url(UUID(int=0))

    def _headers(self, secret: Credential | Token | None = None) -> dict[str, str]:
        headers = {"User-Agent": self._config.user_agent}
        if secret is not None:
            headers.update(secret.auth_header())
        return headers

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return requests.request(
                method, url, timeout=(REQUEST_TIMEOUT, None), **kwargs
            )
        except requests.RequestException as e:
            raise AuthorityTransportError(
                f"{method} {url} failed: {e}", url=url
            ) from e

    def acquire_token_by_refresh_token(
        self, target_uri: str, client_id: str, resource: str, refresh_token: Token
    ) -> TokenPair | None:
        """Exchange a refresh token for a new access/refresh token pair.

        Args:
            target_uri: The resource the tokens are requested for.
            client_id: Application identity performing the exchange.
            resource: Service resource identifier; requested as ``<resource>/.default``.
            refresh_token: A token of type Refresh or Federated.

        Returns:
            The new :class:`TokenPair`, or ``None`` if the authority refused the exchange.
        """
        validate_target_uri(target_uri)
        if refresh_token is None or refresh_token.type not in (
            TokenType.REFRESH,
            TokenType.FEDERATED,
        ):
            raise ValueError("The refresh_token parameter is None or invalid.")

        logger.debug("Exchanging refresh token at %s for %s", self.authority_url, target_uri)
        try:
            with requests.Session() as session:
                session.headers["User-Agent"] = self._config.user_agent
                app = msal.PublicClientApplication(
                    client_id,
                    authority=self.authority_url,
                    http_client=session,
                    timeout=(REQUEST_TIMEOUT, None),
                )
                result = app.acquire_token_by_refresh_token(
                    refresh_token.value, scopes=[f"{resource}/.default"]
                )
        except requests.RequestException as e:
            raise AuthorityTransportError(
                f"Refresh token exchange at {self.authority_url} failed: {e}",
                url=self.authority_url,
            ) from e

        if not result or "access_token" not in result:
            logger.warning(
                "Refresh token exchange refused: %s: %s",
                (result or {}).get("error"),
                (result or {}).get("error_description"),
            )
            return None

        claims = result.get("id_token_claims") or {}
        tenant_id = parse_uuid(claims.get("tid"))
        if tenant_id == CONSUMER_TENANT:
            tenant_id = UUID(int=0)
        access_token = Token(result["access_token"], TokenType.ACCESS)
        new_refresh = Token(
            result.get("refresh_token") or refresh_token.value, TokenType.REFRESH
        )
        return TokenPair(
            access_token=access_token, refresh_token=new_refresh, tenant_id=tenant_id
        )

    def generate_personal_access_token(
        self,
        target_uri: str,
        access_token: Token,
        scope: TokenScope,
        require_compact_token: bool,
    ) -> Token | None:
        """Mint a personal access token using ``access_token``.

        The access token's target identity is resolved first when unset; the
        issuance request is only sent once that succeeds.

        Returns:
            A :class:`Token` of type Personal, or ``None`` on any protocol failure.
        """
        validate_target_uri(target_uri)
        _require_pat_source(access_token)
        if scope is None:
            raise ValueError("The scope parameter is None.")

        logger.debug("Generating personal access token for %s", target_uri)

        if access_token.target_identity is None and not self.populate_token_target_id(
            target_uri, access_token
        ):
            logger.warning("Could not resolve target identity for %s", target_uri)
            return None

        request_url = self._personal_access_token_url(target_uri, require_compact_token)
        if request_url is None:
            return None

        body = {
            "scope": str(scope),
            "targetAccounts": [str(access_token.target_identity)],
            "displayName": f"Git: {target_uri} on {socket.gethostname()}",
        }
        logger.debug(
            "Requesting token scoped to '%s' for '%s'", scope, access_token.target_identity
        )
        response = self._send(
            "POST", request_url, headers=self._headers(access_token), json=body
        )
        if response.status_code != requests.codes.ok:
            logger.warning(
                "Personal access token request returned %s", response.status_code
            )
            return None

        value = extract_json_field(response.text, "token")
        if value is None:
            logger.warning("Personal access token response had no token field")
            return None
        logger.debug("Personal access token acquisition succeeded")
        return Token(value, TokenType.PERSONAL)

    def _personal_access_token_url(
        self, target_uri: str, require_compact_token: bool
    ) -> str | None:
        identity_service_url = self._identity_service_url(target_uri)
        if identity_service_url is None:
            logger.warning("Failed to find identity service for %s", target_uri)
            return None
        if not identity_service_url.endswith("/"):
            identity_service_url += "/"
        return identity_service_url + (
            COMPACT_TOKEN_PATH if require_compact_token else SESSION_TOKEN_PATH
        )

    def _identity_service_url(self, target_uri: str) -> str | None:
        url = authority_from_url(target_uri) + LOCATION_SERVICE_PATH
        response = self._send("GET", url, headers=self._headers())
        if response.status_code != requests.codes.ok:
            logger.warning("Location service returned %s", response.status_code)
            return None

        location = extract_json_field(response.text, "location")
        if location is not None:
            logger.debug("Parsed identity service url: %s", location)
        return location

    def populate_token_target_id(self, target_uri: str, access_token: Token) -> bool:
        """Resolve the service instance id and bind ``access_token`` to it.

        Returns:
            True if ``access_token.target_identity`` was set; False otherwise.
        """
        validate_target_uri(target_uri)
        _require_pat_source(access_token)

        response = self._connection_data(target_uri, access_token)
        if response.status_code != requests.codes.ok:
            logger.warning("Connection data returned %s", response.status_code)
            return False

        instance_id = parse_uuid(extract_json_field(response.text, "instanceId"))
        if instance_id is None:
            return False

        logger.debug("Target identity is %s", instance_id)
        access_token.target_identity = instance_id
        return True

    def validate_credentials(self, target_uri: str, credentials: Credential) -> bool:
        """Return True if ``credentials`` grant access to ``target_uri``.

        Only HTTP 200 from the connection-data endpoint counts as valid.
        """
        validate_target_uri(target_uri)
        if credentials is None:
            raise ValueError("The credentials parameter is None.")

        response = self._connection_data(target_uri, credentials)
        logger.debug("Server returned: %s", response.status_code)
        return response.status_code == requests.codes.ok

    def validate_token(self, target_uri: str, token: Token) -> bool:
        """Token validation has no defined contract with the service yet."""
        raise NotImplementedError("validate_token is not implemented.")

    def _connection_data(
        self, target_uri: str, secret: Credential | Token
    ) -> requests.Response:
        url = authority_from_url(target_uri) + CONNECTION_DATA_PATH
        return self._send("GET", url, headers=self._headers(secret))
