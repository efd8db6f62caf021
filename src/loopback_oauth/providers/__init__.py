"""OAuth Providers

Provider별 설명 값. 로그인/refresh 엔진은 이 값을 받아 동작합니다.
"""

from loopback_oauth.providers.base import OAuthProvider
from loopback_oauth.providers.github import GITHUB
from loopback_oauth.providers.google import GOOGLE

PROVIDERS: dict[str, OAuthProvider] = {
    GITHUB.name: GITHUB,
    GOOGLE.name: GOOGLE,
}


def get_provider(name: str) -> OAuthProvider:
    """이름으로 provider 조회.

    Raises:
        KeyError: 알 수 없는 provider
    """
    return PROVIDERS[name.lower()]


__all__ = [
    "OAuthProvider",
    "GITHUB",
    "GOOGLE",
    "PROVIDERS",
    "get_provider",
]
