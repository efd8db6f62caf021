"""OAuth Flows

Authorization Code + PKCE 플로우 구성 요소.
PKCE/state 생성, 인증 URL, 콜백 리스너, 토큰 교환, 브라우저 플로우.
"""

from loopback_oauth.flows.authorization_url import build_authorization_url
from loopback_oauth.flows.browser_oauth import AuthFlow, BrowserOAuth
from loopback_oauth.flows.callback_server import (
    CallbackListener,
    ListenerState,
    parse_callback_url,
)
from loopback_oauth.flows.pkce import (
    PKCEChallenge,
    compute_code_challenge,
    generate_pkce_challenge,
)
from loopback_oauth.flows.state import AuthorizationState, generate_state, validate_state
from loopback_oauth.flows.token_exchange import TokenExchanger, sanitize_api_error

__all__ = [
    # Browser OAuth
    "BrowserOAuth",
    "AuthFlow",
    # Building blocks
    "PKCEChallenge",
    "generate_pkce_challenge",
    "compute_code_challenge",
    "AuthorizationState",
    "generate_state",
    "validate_state",
    "build_authorization_url",
    "CallbackListener",
    "ListenerState",
    "parse_callback_url",
    "TokenExchanger",
    "sanitize_api_error",
]
