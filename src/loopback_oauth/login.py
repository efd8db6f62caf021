"""Login Builder

단계별 빌더로 로그인 설정을 모은 뒤 login() 한 번으로 브라우저 로그인을 수행합니다.

    token = await (
        Login.from_env("github")
        .default_scopes()
        .port(8080)
        .login()
    )

각 단계는 불변 값이며 I/O를 하지 않습니다. 잘못된 값은 기록만 해 두었다가
LoginConfig.validate() / login()에서 한꺼번에 확인합니다.
"""

import logging
from dataclasses import dataclass, replace
from typing import Iterable
from urllib.parse import urlsplit

from loopback_oauth.credentials import ClientCredentials
from loopback_oauth.exceptions import ConfigurationError
from loopback_oauth.flows.browser_oauth import (
    PORT_PLACEHOLDER,
    AuthorizationUrlHandler,
    BrowserOAuth,
)
from loopback_oauth.flows.callback_server import DEFAULT_CALLBACK_PATH, DEFAULT_PORT
from loopback_oauth.flows.pkce import PKCEChallenge
from loopback_oauth.flows.token_exchange import TokenExchanger
from loopback_oauth.providers import OAuthProvider
from loopback_oauth.secure import SecretString
from loopback_oauth.types import AccessType, LoginRequest, TokenResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300.0
# 콜백 리스너는 IPv4 loopback에만 바인딩
LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1"})


def default_redirect_uri(port: int) -> str:
    """기본 redirect URI. port 0이면 바인딩 후 채울 자리표시자 사용."""
    if port == 0:
        return f"http://127.0.0.1:{PORT_PLACEHOLDER}{DEFAULT_CALLBACK_PATH}"
    return f"http://localhost:{port}{DEFAULT_CALLBACK_PATH}"


class Login:
    """로그인 빌더 진입점."""

    @staticmethod
    def from_env(provider: "OAuthProvider | str") -> "LoginScopesStage":
        """client id/secret을 login() 시점에 환경변수에서 읽음."""
        return LoginScopesStage(ClientCredentials.for_provider(provider, from_env=True))

    @staticmethod
    def client_id(
        provider: "OAuthProvider | str", client_id: str
    ) -> "LoginClientSecretStage":
        """명시적 client id로 시작."""
        return LoginClientSecretStage(
            ClientCredentials.for_provider(provider, client_id=client_id)
        )


@dataclass(frozen=True)
class LoginClientSecretStage:
    """client secret 지정 단계."""

    credentials: ClientCredentials

    def client_secret(self, secret: "str | SecretString") -> "LoginScopesStage":
        return LoginScopesStage(
            replace(self.credentials, client_secret=SecretString.wrap(secret))
        )

    def no_secret(self) -> "LoginScopesStage":
        """secret 없이 PKCE만 사용 (provider가 허용하는 경우)."""
        return LoginScopesStage(replace(self.credentials, secret_omitted=True))


@dataclass(frozen=True)
class LoginScopesStage:
    """scope 지정 단계."""

    credentials: ClientCredentials

    def client_secret(self, secret: "str | SecretString") -> "LoginScopesStage":
        """환경변수 대신 secret을 직접 지정."""
        return replace(
            self,
            credentials=replace(self.credentials, client_secret=SecretString.wrap(secret)),
        )

    def scopes(self, scopes: Iterable[str]) -> "LoginConfig":
        config = LoginConfig(self.credentials)
        # 문자열 하나는 scope 하나
        if isinstance(scopes, str):
            scopes = [scopes]
        try:
            scopes = list(scopes)
        except TypeError:
            return config._fail("Scopes must be an iterable of strings")
        for scope in scopes:
            config = config.add_scope(scope)
        if not config.scope_list:
            return config._fail("At least one scope is required")
        return config

    def add_scope(self, scope: str) -> "LoginConfig":
        return LoginConfig(self.credentials).add_scope(scope)

    def default_scopes(self) -> "LoginConfig":
        provider = self.credentials.provider
        return LoginConfig(
            self.credentials,
            scope_list=provider.default_scopes if provider else (),
        )


@dataclass(frozen=True, eq=False)
class LoginConfig:
    """최종 로그인 설정.

    모든 setter는 새 LoginConfig를 반환합니다.

    Attributes:
        credentials: 자격증명 (login() 시점에 확정)
        scope_list: 요청 scope (순서 유지, 중복 제거)
        listen_port: 콜백 포트 (0 = ephemeral)
        redirect: redirect URI (None이면 포트로부터 기본값 생성)
        csrf_state: 고정 state (None이면 생성)
        access: access type 힌트
        deadline: 전체 제한 시간 (초)
        pkce: 미리 만든 PKCE 챌린지
        browser: 브라우저 자동 열기
        url_handler: 인증 URL 수신 콜백
        token_exchanger: 토큰 교환기 (테스트 주입용)
        error: 처음 기록된 설정 오류
    """

    credentials: ClientCredentials
    scope_list: tuple[str, ...] = ()
    listen_port: int = DEFAULT_PORT
    redirect: str | None = None
    csrf_state: str | None = None
    access: AccessType = AccessType.ONLINE
    deadline: float = DEFAULT_TIMEOUT
    pkce: PKCEChallenge | None = None
    browser: bool = True
    url_handler: AuthorizationUrlHandler | None = None
    token_exchanger: TokenExchanger | None = None
    error: ConfigurationError | None = None

    @property
    def provider(self) -> OAuthProvider | None:
        return self.credentials.provider

    @property
    def redirect_uri_value(self) -> str:
        return self.redirect or default_redirect_uri(self.listen_port)

    def _fail(self, message: str) -> "LoginConfig":
        if self.error is not None:
            return self
        return replace(
            self,
            error=ConfigurationError(message, provider=self.credentials.provider_name),
        )

    def add_scope(self, scope: str) -> "LoginConfig":
        if not isinstance(scope, str):
            return self._fail(f"Scope must be a string: {scope!r}")
        if not scope.strip():
            return self._fail("Scope must not be empty")
        if scope in self.scope_list:
            return self
        return replace(self, scope_list=self.scope_list + (scope,))

    def port(self, port: int) -> "LoginConfig":
        config = replace(self, listen_port=port)
        if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 65535:
            return config._fail(f"Invalid port: {port!r}")
        return config

    def redirect_uri(self, uri: str) -> "LoginConfig":
        return replace(self, redirect=uri)

    def state(self, state: str) -> "LoginConfig":
        config = replace(self, csrf_state=state)
        if not state:
            return config._fail("State must not be empty")
        return config

    def access_type(self, access_type: "AccessType | str") -> "LoginConfig":
        try:
            return replace(self, access=AccessType(access_type))
        except ValueError:
            return self._fail(f"Invalid access type: {access_type!r}")

    def timeout(self, seconds: float) -> "LoginConfig":
        config = replace(self, deadline=seconds)
        if not isinstance(seconds, (int, float)) or seconds <= 0:
            return config._fail(f"Timeout must be positive: {seconds!r}")
        return config

    def with_pkce_challenge(self, pkce: PKCEChallenge) -> "LoginConfig":
        return replace(self, pkce=pkce)

    def open_browser(self, enabled: bool = True) -> "LoginConfig":
        return replace(self, browser=enabled)

    def on_authorization_url(self, handler: AuthorizationUrlHandler) -> "LoginConfig":
        """인증 URL을 브라우저 대신 handler에 전달."""
        return replace(self, url_handler=handler)

    def exchanger(self, exchanger: TokenExchanger) -> "LoginConfig":
        return replace(self, token_exchanger=exchanger)

    def validate(self) -> ConfigurationError | None:
        """첫 번째 설정 오류 반환 (없으면 None). I/O 없음."""
        error = self.credentials.validate() or self.error
        if error is not None:
            return error

        provider_name = self.credentials.provider_name
        if not self.scope_list:
            return ConfigurationError("At least one scope is required", provider=provider_name)
        if self.pkce is not None and self.pkce.code_verifier.wiped:
            return ConfigurationError("PKCE challenge was already used", provider=provider_name)
        return self._validate_redirect_uri()

    def _validate_redirect_uri(self) -> ConfigurationError | None:
        provider_name = self.credentials.provider_name
        uri = self.redirect_uri_value
        if not isinstance(uri, str):
            return ConfigurationError(
                f"Redirect URI must be a string: {uri!r}", provider=provider_name
            )
        parts = urlsplit(uri.replace(PORT_PLACEHOLDER, "0"))

        if parts.scheme != "http":
            return ConfigurationError(
                f"Redirect URI must use http on loopback: {uri}", provider=provider_name
            )
        if parts.hostname not in LOOPBACK_HOSTS:
            return ConfigurationError(
                f"Redirect URI host must be loopback: {uri}", provider=provider_name
            )
        if PORT_PLACEHOLDER in uri:
            return None
        try:
            uri_port = parts.port
        except ValueError:
            return ConfigurationError(f"Invalid redirect URI: {uri}", provider=provider_name)
        if self.listen_port == 0:
            return ConfigurationError(
                f"Ephemeral port requires '{PORT_PLACEHOLDER}' in redirect URI: {uri}",
                provider=provider_name,
            )
        if uri_port != self.listen_port:
            return ConfigurationError(
                f"Redirect URI port {uri_port} does not match listener port "
                f"{self.listen_port}",
                provider=provider_name,
            )
        return None

    def build_request(
        self, client_id: str, client_secret: SecretString | None
    ) -> LoginRequest:
        return LoginRequest(
            client_id=client_id,
            redirect_uri=self.redirect_uri_value,
            scopes=list(self.scope_list),
            port=self.listen_port,
            timeout=float(self.deadline),
            access_type=self.access,
            client_secret=client_secret,
            state=self.csrf_state,
        )

    async def login(self) -> TokenResponse:
        """브라우저 로그인 수행.

        Returns:
            TokenResponse: 토큰 (with 블록으로 사용하면 종료 시 secret 폐기)

        Raises:
            ConfigurationError: 설정 오류 또는 환경변수 누락
            BindFailureError: 콜백 포트 사용 중
            CallbackTimeoutError: 제한 시간 초과
            ProviderDeniedError: 사용자가 거부
            CsrfMismatchError: state 불일치
            NetworkFailureError / TokenExchangeRejectedError / MalformedResponseError
        """
        error = self.validate()
        if error is not None:
            raise error

        client_id, client_secret = self.credentials.resolve()
        provider = self.credentials.provider
        request = self.build_request(client_id, client_secret)
        logger.info(
            "Starting %s login on port %s (scopes: %s)",
            provider.name,
            request.port,
            " ".join(request.scopes),
        )

        flow = BrowserOAuth(
            provider,
            request,
            pkce=self.pkce,
            exchanger=self.token_exchanger,
            open_browser=self.browser,
            on_authorization_url=self.url_handler,
        )
        token = await flow.authenticate()
        logger.info("%s login complete", provider.display_name)
        return token
