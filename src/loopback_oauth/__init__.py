"""Loopback OAuth - OAuth 2.0 Authorization Code + PKCE 브라우저 로그인.

로컬 콜백 서버로 authorization code를 받아 토큰으로 교환합니다.

Example:
    from loopback_oauth import Login

    with await Login.from_env("github").default_scopes().login() as token:
        print(token.scopes)
"""

from loopback_oauth.exceptions import (
    AuthenticationError,
    BindFailureError,
    CallbackTimeoutError,
    ConfigurationError,
    CsrfMismatchError,
    MalformedResponseError,
    NetworkFailureError,
    OAuthError,
    ProviderDeniedError,
    TokenExchangeRejectedError,
    UnsupportedOperationError,
)
from loopback_oauth.flows import AuthFlow, BrowserOAuth, PKCEChallenge, TokenExchanger
from loopback_oauth.login import Login, LoginConfig
from loopback_oauth.providers import GITHUB, GOOGLE, OAuthProvider, get_provider
from loopback_oauth.refresh import Refresh, RefreshConfig
from loopback_oauth.secure import SecretString
from loopback_oauth.types import AccessType, LoginRequest, TokenResponse, UserInfo
from loopback_oauth.user_info import UserInfoClient, fetch_user_info

__version__ = "0.1.0"

__all__ = [
    # Builders
    "Login",
    "LoginConfig",
    "Refresh",
    "RefreshConfig",
    # Flows
    "AuthFlow",
    "BrowserOAuth",
    "PKCEChallenge",
    "TokenExchanger",
    "UserInfoClient",
    "fetch_user_info",
    # Providers
    "OAuthProvider",
    "GITHUB",
    "GOOGLE",
    "get_provider",
    # Types
    "AccessType",
    "LoginRequest",
    "SecretString",
    "TokenResponse",
    "UserInfo",
    # Exceptions
    "AuthenticationError",
    "OAuthError",
    "ConfigurationError",
    "BindFailureError",
    "CallbackTimeoutError",
    "CsrfMismatchError",
    "ProviderDeniedError",
    "NetworkFailureError",
    "TokenExchangeRejectedError",
    "MalformedResponseError",
    "UnsupportedOperationError",
]
