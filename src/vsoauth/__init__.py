"""Credential broker for git remotes hosted on the managed code-hosting service.

Public API:
- get_authentication() → CredentialBroker | None
- detect_authority() (MSA vs AAD classification)
- CredentialBroker, AuthorityClient
- BrokerConfig (settings)
- Credential, Token, TokenPair, TokenType, TokenScope (value types)
- SecretCache (in-memory secret store)
"""

__version__ = "0.1.0"

from .authority import AuthorityClient
from .broker import CredentialBroker
from .cache import SecretCache
from .config import BrokerConfig
from .detection import detect_authority
from .exceptions import AuthorityTransportError, VsoAuthError
from .factory import get_authentication
from .models import Credential, Token, TokenPair, TokenType
from .scopes import TokenScope

__all__ = [
    "__version__",
    "AuthorityClient",
    "AuthorityTransportError",
    "BrokerConfig",
    "Credential",
    "CredentialBroker",
    "SecretCache",
    "Token",
    "TokenPair",
    "TokenScope",
    "TokenType",
    "VsoAuthError",
    "detect_authority",
    "get_authentication",
]
