"""GitHub Provider

OAuth App 인증 (PKCE + client secret).
GitHub OAuth App 토큰은 만료되지 않으며 refresh grant를 지원하지 않습니다.
"""

from typing import Mapping

from loopback_oauth.providers.base import OAuthProvider
from loopback_oauth.types import UserInfo


def _parse_user_info(data: Mapping) -> UserInfo:
    return UserInfo(
        provider="github",
        id=str(data.get("id", "")),
        login=data.get("login"),
        email=data.get("email"),
        name=data.get("name"),
        avatar_url=data.get("avatar_url"),
        raw=dict(data),
    )


GITHUB = OAuthProvider(
    name="github",
    display_name="GitHub",
    authorization_endpoint="https://github.com/login/oauth/authorize",
    token_endpoint="https://github.com/login/oauth/access_token",
    user_info_endpoint="https://api.github.com/user",
    default_scopes=("user:email",),
    env_prefix="GITHUB",
    supports_refresh=False,
    requires_client_secret=True,
    user_info_headers={
        "Accept": "application/vnd.github+json",
        "User-Agent": "loopback-oauth",
    },
    parse_user_info=_parse_user_info,
)
