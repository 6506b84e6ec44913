from __future__ import annotations

import os
from types import ModuleType
from typing import Any, Iterator
from uuid import UUID

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from vsoauth import authority as authority_module
from vsoauth.cache import SecretCache

TARGET_URI = "https://contoso.visualstudio.com/_git/project"
INSTANCE_ID = UUID("5f7e4b1c-5a7b-4d0e-9c7a-3b3e2f1d0a11")
TENANT_ID = UUID("72f988bf-86f1-41af-91ab-2d7cd011db47")


@pytest.fixture(autouse=True)
def clear_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Remove environment variables to prevent cross-test leakage.

    Yields:
        Iterator[None]: Context manager semantics for pytest.
    """
    for k in list(os.environ.keys()):
        monkeypatch.delenv(k, raising=False)
    yield


class FakeResponse:
    """Minimal stand-in for :class:`requests.Response`."""

    def __init__(
        self, status_code: int = 200, text: str = "", headers: dict | None = None
    ) -> None:
        self.status_code = status_code
        self.text = text
        self.headers = CaseInsensitiveDict(headers or {})


class HttpRecorder:
    """Records outbound requests and answers them from registered routes.

    Routes match on method and a substring of the URL; the first match
    wins. A route whose answer is an exception raises it.
    """

    def __init__(self) -> None:
        self.routes: list[tuple[str, str, FakeResponse | Exception]] = []
        self.calls: list[dict[str, Any]] = []

    def add(self, method: str, url_part: str, answer: FakeResponse | Exception) -> None:
        self.routes.append((method.upper(), url_part, answer))

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method.upper(), "url": url, **kwargs})
        for route_method, url_part, answer in self.routes:
            if route_method == method.upper() and url_part in url:
                if isinstance(answer, Exception):
                    raise answer
                return answer
        return FakeResponse(404)

    def head(self, url: str, **kwargs: Any) -> FakeResponse:
        return self.request("HEAD", url, **kwargs)

    def calls_to(self, url_part: str) -> list[dict[str, Any]]:
        return [c for c in self.calls if url_part in c["url"]]


@pytest.fixture()
def http(monkeypatch: pytest.MonkeyPatch) -> HttpRecorder:
    """Replace the requests entry points used by vsoauth with a recorder."""
    recorder = HttpRecorder()
    monkeypatch.setattr(requests, "request", recorder.request)
    monkeypatch.setattr(requests, "head", recorder.head)
    return recorder


@pytest.fixture()
def stub_msal(monkeypatch: pytest.MonkeyPatch) -> type:
    """Inject a minimal msal stub so tests never reach a login authority.

    Returns:
        type: The stub PublicClientApplication; set ``result`` on it to
        control the exchange outcome and inspect ``calls`` afterwards.
    """
    mod_msal = ModuleType("msal")

    class PublicClientApplication:  # pragma: no cover - trivial stub
        result: dict[str, Any] | Exception = {}
        calls: list[dict[str, Any]] = []
        instances: list[dict[str, Any]] = []

        def __init__(
            self, client_id: str, authority: str | None = None, **kwargs: Any
        ) -> None:
            self.client_id = client_id
            self.authority = authority
            type(self).instances.append(dict(kwargs))

        def acquire_token_by_refresh_token(
            self, refresh_token: str, scopes: list[str]
        ) -> dict[str, Any]:
            type(self).calls.append(
                {
                    "client_id": self.client_id,
                    "authority": self.authority,
                    "refresh_token": refresh_token,
                    "scopes": scopes,
                }
            )
            if isinstance(type(self).result, Exception):
                raise type(self).result
            return type(self).result

    PublicClientApplication.calls = []
    PublicClientApplication.instances = []
    mod_msal.PublicClientApplication = PublicClientApplication
    monkeypatch.setattr(authority_module, "msal", mod_msal)
    return PublicClientApplication


@pytest.fixture()
def pat_store() -> SecretCache:
    return SecretCache("pat")


@pytest.fixture()
def refresh_store() -> SecretCache:
    return SecretCache("ada")


@pytest.fixture()
def ide_cache() -> SecretCache:
    return SecretCache("registry")
