from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID


class TokenType(str, Enum):
    """Kinds of token understood by the broker."""

    ACCESS = "Access"
    REFRESH = "Refresh"
    FEDERATED = "Federated"
    PERSONAL = "Personal"


# Tokens of these types may be exchanged for a personal access token.
PAT_SOURCE_TYPES = frozenset({TokenType.ACCESS, TokenType.FEDERATED})


@dataclass(frozen=True)
class Credential:
    """A username and secret pair, sent as HTTP basic authentication."""

    username: str
    password: str = field(repr=False)

    def __post_init__(self) -> None:
        if self.username is None or self.password is None:
            raise ValueError("Credential requires both username and password.")

    def auth_header(self) -> dict[str, str]:
        """Return the ``Authorization`` header this credential contributes."""
        raw = f"{self.username}:{self.password}".encode("utf-8")
        return {"Authorization": f"Basic {base64.b64encode(raw).decode('ascii')}"}


@dataclass
class Token:
    """A typed secret, optionally scoped to one service instance.

    ``target_identity`` is the tenant or instance UUID the token is bound
    to. It is the only mutable attribute and is filled in once, before the
    token is used to request a personal access token.
    """

    value: str = field(repr=False)
    type: TokenType
    target_identity: UUID | None = None

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError("Token value must not be blank.")
        self.type = TokenType(self.type)

    def auth_header(self) -> dict[str, str]:
        """Return the bearer ``Authorization`` header for this token."""
        if self.type is TokenType.REFRESH:
            raise ValueError("Refresh tokens cannot authorize requests.")
        return {"Authorization": f"Bearer {self.value}"}

    def to_credential(self) -> Credential:
        """Wrap the token as a credential suitable for the PAT store."""
        return Credential(username=self.type.value, password=self.value)


@dataclass(frozen=True)
class TokenPair:
    """An access token and the refresh token issued alongside it.

    ``tenant_id`` is the directory tenant that issued the pair, if known.
    It is not a target identity: the access token stays unbound until the
    service instance id is looked up.
    """

    access_token: Token
    refresh_token: Token
    tenant_id: UUID | None = None

    def __post_init__(self) -> None:
        if self.access_token.type is not TokenType.ACCESS:
            raise ValueError("access_token must be of type Access.")
        if self.refresh_token.type is not TokenType.REFRESH:
            raise ValueError("refresh_token must be of type Refresh.")
