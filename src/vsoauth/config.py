from __future__ import annotations

from uuid import UUID

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import __version__
from .scopes import authority_from_url

DEFAULT_CLIENT_ID = "97877f11-0fc6-4aee-b1ff-febb0519dd00"
DEFAULT_RESOURCE = "499b84ac-1321-427f-aa17-267ca6975798"
DEFAULT_AUTHORITY_HOST = "https://login.microsoftonline.com"


class BrokerConfig(BaseSettings):
    """Settings shared by the authority client, detector and broker.

    This model reads environment variables automatically using the
    ``VSOAUTH_`` prefix (e.g., ``VSOAUTH_USER_AGENT``).

    Environment variables (aliases supported where noted):
        - VSOAUTH_USER_AGENT
        - VSOAUTH_AUTHORITY_HOST
        - VSOAUTH_CLIENT_ID
        - VSOAUTH_RESOURCE
        - VSOAUTH_TOKEN_SCOPE (alias: VSOAUTH_SCOPE)
    """

    model_config = SettingsConfigDict(
        env_prefix="VSOAUTH_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    user_agent: str = f"vsoauth/{__version__} (Python)"
    authority_host: str = DEFAULT_AUTHORITY_HOST
    client_id: str = DEFAULT_CLIENT_ID
    resource: str = DEFAULT_RESOURCE
    # A validation_alias bypasses env_prefix, so both env names are spelled out.
    token_scope: str = Field(
        default="vso.code_write",
        validation_alias=AliasChoices("VSOAUTH_TOKEN_SCOPE", "VSOAUTH_SCOPE"),
    )

    @field_validator("user_agent", "token_scope")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Value must not be blank.")
        return v.strip()

    @field_validator("authority_host")
    @classmethod
    def _absolute_authority(cls, v: str) -> str:
        """Reduce to scheme://host so a tenant segment can be appended."""
        return authority_from_url(v)

    @field_validator("client_id", "resource")
    @classmethod
    def _uuid_string(cls, v: str) -> str:
        try:
            return str(UUID(v))
        except (TypeError, ValueError) as e:
            raise ValueError(f"Not a valid UUID: {v!r}") from e

    def authority_url(self, tenant_id: UUID) -> str:
        """Return the login authority for a tenant.

        The empty UUID denotes a consumer (MSA) account, which signs in
        through the ``live.com`` pseudo-tenant.
        """
        if tenant_id.int == 0:
            return f"{self.authority_host}/live.com"
        return f"{self.authority_host}/{tenant_id}"
