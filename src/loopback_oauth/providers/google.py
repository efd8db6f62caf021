"""Google Provider

OAuth 2.0 Authorization Code + PKCE.
- access_type=offline이면 refresh token 발급
- include_granted_scopes로 점진적 권한 부여
"""

from typing import Mapping

from loopback_oauth.providers.base import OAuthProvider
from loopback_oauth.types import AccessType, UserInfo


def _auth_params(access_type: AccessType) -> dict[str, str]:
    params = {
        "access_type": access_type.value,
        "include_granted_scopes": "true",
    }
    # refresh token을 매번 받으려면 동의 화면을 다시 띄워야 함
    if access_type is AccessType.OFFLINE:
        params["prompt"] = "consent"
    return params


def _parse_user_info(data: Mapping) -> UserInfo:
    return UserInfo(
        provider="google",
        id=str(data.get("id") or data.get("sub") or ""),
        login=data.get("email"),
        email=data.get("email"),
        name=data.get("name"),
        avatar_url=data.get("picture"),
        raw=dict(data),
    )


GOOGLE = OAuthProvider(
    name="google",
    display_name="Google",
    authorization_endpoint="https://accounts.google.com/o/oauth2/v2/auth",
    token_endpoint="https://oauth2.googleapis.com/token",
    user_info_endpoint="https://www.googleapis.com/oauth2/v2/userinfo",
    default_scopes=(
        "openid",
        "https://www.googleapis.com/auth/userinfo.email",
        "https://www.googleapis.com/auth/userinfo.profile",
    ),
    env_prefix="GOOGLE",
    supports_refresh=True,
    requires_client_secret=True,
    auth_params=_auth_params,
    parse_user_info=_parse_user_info,
)
