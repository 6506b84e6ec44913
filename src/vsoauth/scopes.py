from __future__ import annotations

from dataclasses import dataclass
from typing import Final
from urllib.parse import urlparse


@dataclass(frozen=True)
class TokenScope:
    """Permission scope string understood by the service.

    The value is passed through to the service verbatim; no set algebra
    is performed on it.
    """

    value: str

    def __str__(self) -> str:
        return self.value


BUILD_ACCESS: Final[TokenScope] = TokenScope("vso.build_execute")
BUILD_READ: Final[TokenScope] = TokenScope("vso.build")
CODE_READ: Final[TokenScope] = TokenScope("vso.code")
CODE_WRITE: Final[TokenScope] = TokenScope("vso.code_write")
CODE_MANAGE: Final[TokenScope] = TokenScope("vso.code_manage")
CODE_STATUS: Final[TokenScope] = TokenScope("vso.code_status")
IDENTITY_READ: Final[TokenScope] = TokenScope("vso.identity")
PACKAGING_READ: Final[TokenScope] = TokenScope("vso.packaging")
PACKAGING_WRITE: Final[TokenScope] = TokenScope("vso.packaging_write")
PROFILE_READ: Final[TokenScope] = TokenScope("vso.profile")
PROJECT_READ: Final[TokenScope] = TokenScope("vso.project")
RELEASE_READ: Final[TokenScope] = TokenScope("vso.release")
TEST_READ: Final[TokenScope] = TokenScope("vso.test")
WORK_READ: Final[TokenScope] = TokenScope("vso.work")
WORK_WRITE: Final[TokenScope] = TokenScope("vso.work_write")


def authority_from_url(target_url: str) -> str:
    """Return the URL authority (scheme + host).

    Args:
        target_url: Absolute remote URL (e.g., "https://contoso.visualstudio.com/_git/repo").

    Returns:
        The "<scheme>://<host>" portion of the URL.

    Raises:
        ValueError: If ``target_url`` is not absolute or lacks a host.
    """
    parsed = urlparse(target_url or "")
    if not parsed.scheme or not parsed.netloc or not parsed.hostname:
        raise ValueError("target_url must be an absolute URL")
    return f"{parsed.scheme}://{parsed.netloc}"


def validate_target_uri(target_uri: str) -> None:
    """Raise ``ValueError`` unless ``target_uri`` is an absolute URL."""
    authority_from_url(target_uri)


def target_name(target_uri: str) -> str:
    """Return the secret-store key for ``target_uri`` (lower-cased scheme://host)."""
    parsed = urlparse(target_uri)
    return f"{parsed.scheme.lower()}://{parsed.hostname}"
