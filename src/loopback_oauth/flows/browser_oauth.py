"""Browser-based OAuth 2.0 + PKCE Authentication

로컬 HTTP 서버를 띄워 callback을 수신하는 브라우저 로그인.

플로우:
1. PKCE 챌린지 + CSRF state 생성
2. 인증 URL 생성 후 브라우저 열기 (또는 URL만 전달)
3. Callback 수신 (제한 시간 내 1회)
4. state 검증 (실패 시 토큰 교환 없음)
5. 토큰 교환 후 verifier 폐기
"""

import asyncio
import logging
import webbrowser
from typing import Callable
from urllib.parse import urlsplit

from rich.console import Console
from rich.panel import Panel

from loopback_oauth.exceptions import CallbackTimeoutError, ProviderDeniedError
from loopback_oauth.flows.authorization_url import build_authorization_url
from loopback_oauth.flows.callback_server import (
    DEFAULT_CALLBACK_PATH,
    CallbackListener,
    parse_callback_url,
)
from loopback_oauth.flows.pkce import PKCEChallenge, generate_pkce_challenge
from loopback_oauth.flows.state import AuthorizationState, validate_state
from loopback_oauth.flows.token_exchange import TokenExchanger
from loopback_oauth.providers.base import OAuthProvider
from loopback_oauth.types import (
    CallbackProviderError,
    CallbackResult,
    LoginRequest,
    TokenResponse,
)

logger = logging.getLogger(__name__)
console = Console(stderr=True)

AuthorizationUrlHandler = Callable[[str], None]
PORT_PLACEHOLDER = "{port}"


class AuthFlow:
    """수동 콜백 OAuth 플로우.

    인증 URL을 만들고, 사용자가 브라우저에서 복사한 리디렉션 URL을
    handle_callback()에 넘겨 토큰을 받습니다.
    localhost 콜백을 쓸 수 없는 환경에서 사용.

    Example:
        flow = AuthFlow(GITHUB, request)
        print(flow.authorization_url)
        token = await flow.handle_callback(input("> "))
    """

    def __init__(
        self,
        provider: OAuthProvider,
        request: LoginRequest,
        pkce: PKCEChallenge | None = None,
        exchanger: TokenExchanger | None = None,
    ):
        """초기화.

        Args:
            provider: Provider 설명
            request: 검증된 로그인 요청
            pkce: 미리 만든 PKCE 챌린지 (None이면 생성)
            exchanger: 토큰 교환기 (None이면 기본 생성)
        """
        self.provider = provider
        self.request = request
        self.pkce = pkce or generate_pkce_challenge()
        self.state = AuthorizationState.create(request.timeout, request.state)
        self.exchanger = exchanger or TokenExchanger(provider)

    @property
    def authorization_url(self) -> str:
        """인증 URL (같은 인스턴스에서는 항상 동일)."""
        return build_authorization_url(
            self.provider.authorization_endpoint,
            client_id=self.request.client_id,
            redirect_uri=self.request.redirect_uri,
            scopes=self.request.scopes,
            state=self.state.token,
            code_challenge=self.pkce.code_challenge,
            code_challenge_method=self.pkce.code_challenge_method,
            scope_separator=self.provider.scope_separator,
            extra_params=self.provider.extra_auth_params(self.request.access_type),
        )

    async def handle_callback(self, callback_url: str) -> TokenResponse:
        """리디렉션 URL로 플로우 완료.

        Raises:
            ProviderDeniedError: provider가 error 반환
            CsrfMismatchError: state 불일치
        """
        try:
            return await self.complete(parse_callback_url(callback_url))
        finally:
            self.pkce.wipe()

    async def complete(self, result: CallbackResult) -> TokenResponse:
        """콜백 결과 검증 후 토큰 교환."""
        provider = self.provider.name
        if isinstance(result, CallbackProviderError):
            logger.error("OAuth error: %s", result.error)
            message = f"Authorization denied: {result.error}"
            if result.error_description:
                message += f" - {result.error_description}"
            raise ProviderDeniedError(
                message,
                error_code=result.error,
                description=result.error_description,
                provider=provider,
            )

        validate_state(self.state.token, result.state, provider=provider)
        logger.debug("Auth code received: %s...", result.code[:8])

        return await self.exchanger.exchange(
            result.code,
            redirect_uri=self.request.redirect_uri,
            client_id=self.request.client_id,
            client_secret=self.request.client_secret,
            code_verifier=self.pkce.code_verifier,
        )


class BrowserOAuth(AuthFlow):
    """Browser-based OAuth 2.0 + PKCE 인증.

    1. 로컬 HTTP 서버 시작 (127.0.0.1:<port>)
    2. 브라우저 열기 또는 URL 전달
    3. Callback 수신
    4. 토큰 교환

    전체 과정은 request.timeout 안에 끝나야 하며, 제한 시간이 지나면
    진행 중인 토큰 교환까지 취소됩니다.
    """

    def __init__(
        self,
        provider: OAuthProvider,
        request: LoginRequest,
        pkce: PKCEChallenge | None = None,
        exchanger: TokenExchanger | None = None,
        open_browser: bool = True,
        on_authorization_url: AuthorizationUrlHandler | None = None,
    ):
        """초기화.

        Args:
            open_browser: 브라우저 자동 열기
            on_authorization_url: URL을 직접 받을 콜백 (지정 시 브라우저를 열지 않음)
        """
        super().__init__(provider, request, pkce=pkce, exchanger=exchanger)
        self.open_browser = open_browser
        self.on_authorization_url = on_authorization_url
        self.listener = CallbackListener(
            port=request.port,
            path=urlsplit(request.redirect_uri).path or DEFAULT_CALLBACK_PATH,
            app_name=provider.display_name,
        )

    async def authenticate(self) -> TokenResponse:
        """인증 수행.

        Returns:
            TokenResponse: 토큰 응답

        Raises:
            BindFailureError: 포트 바인딩 실패
            CallbackTimeoutError: 제한 시간 초과
            ProviderDeniedError / CsrfMismatchError / 토큰 교환 예외
        """
        timeout = self.request.timeout
        try:
            await self.listener.bind()
            # port 0 (ephemeral)이면 실제 바인딩된 포트로 redirect_uri 확정
            if PORT_PLACEHOLDER in self.request.redirect_uri:
                self.request.redirect_uri = self.request.redirect_uri.replace(
                    PORT_PLACEHOLDER, str(self.listener.bound_port)
                )
            self._emit_authorization_url(self.authorization_url)
            return await asyncio.wait_for(self._receive_and_exchange(), timeout)
        except asyncio.TimeoutError as e:
            logger.error("Timeout waiting for authorization: %s...", self.state.token[:8])
            raise CallbackTimeoutError(
                f"Timeout waiting for authorization after {timeout}s",
                timeout=timeout,
                provider=self.provider.name,
            ) from e
        finally:
            await self.listener.close()
            self.pkce.wipe()

    async def _receive_and_exchange(self) -> TokenResponse:
        result = await self.listener.wait()
        return await self.complete(result)

    def _emit_authorization_url(self, auth_url: str) -> None:
        """인증 URL 전달 (콜백, 브라우저, 또는 안내 출력)."""
        if self.on_authorization_url is not None:
            self.on_authorization_url(auth_url)
            return

        console.print()
        if self.open_browser:
            console.print(
                Panel.fit(
                    f"[bold cyan]Opening your browser to sign in with "
                    f"{self.provider.display_name}.[/bold cyan]\n\n"
                    f"If it does not open, visit this URL:\n"
                    f"[link={auth_url}]{auth_url}[/link]",
                    title="[AUTH] Login Required",
                    border_style="cyan",
                )
            )
            if not webbrowser.open(auth_url):
                logger.warning("Failed to open browser; URL printed for manual use")
        else:
            console.print(
                Panel.fit(
                    f"[bold cyan]Open this URL in your browser:[/bold cyan]\n\n"
                    f"[link={auth_url}]{auth_url}[/link]",
                    title="[AUTH] Login Required",
                    border_style="cyan",
                )
            )
        console.print("[dim]Waiting for the browser to complete sign-in...[/dim]")
