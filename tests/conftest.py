"""Shared test fixtures."""

import socket

import httpx
import pytest

from loopback_oauth.providers import PROVIDERS


@pytest.fixture(autouse=True)
def clean_oauth_env(monkeypatch):
    """Remove provider credentials from the environment.

    Prevents a developer's real GITHUB_/GOOGLE_ credentials from leaking into tests.
    """
    for provider in PROVIDERS.values():
        monkeypatch.delenv(provider.client_id_env, raising=False)
        monkeypatch.delenv(provider.client_secret_env, raising=False)


@pytest.fixture
def free_port() -> int:
    """현재 비어 있는 로컬 포트."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def browser():
    """브라우저 대신 콜백 URL에 GET 요청을 보내는 함수."""

    async def _get(url: str) -> httpx.Response:
        async with httpx.AsyncClient(trust_env=False, timeout=5.0) as client:
            return await client.get(url)

    return _get


@pytest.fixture
def mock_http():
    """handler 함수로 httpx.MockTransport 클라이언트를 만드는 팩토리.

    handler는 받은 요청을 기록하고 httpx.Response를 돌려줍니다.
    """

    def _make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make
