"""Custom authentication exceptions.

인증 관련 예외 클래스 정의.
모든 예외는 terminal 호출(login(), refresh(), fetch())에서만 발생합니다.
메시지에는 client secret, access/refresh token, PKCE verifier가 포함되지 않습니다.
"""


class AuthenticationError(Exception):
    """기본 인증 예외.

    모든 인증 관련 예외의 베이스 클래스.

    Attributes:
        provider: 인증 제공자 이름 (예: 'github', 'google')
    """

    def __init__(self, message: str, provider: str | None = None):
        self.provider = provider
        super().__init__(message)


class ConfigurationError(AuthenticationError):
    """설정 오류.

    client id/secret 누락, 빈 scope, 잘못된 port, 난수 소스 사용 불가 등.
    """


class BindFailureError(AuthenticationError):
    """콜백 포트 바인딩 실패.

    redirect URI가 provider에 고정 등록되어 있으므로 다른 포트로 재시도하지 않음.

    Attributes:
        port: 바인딩을 시도한 포트
    """

    def __init__(self, message: str, port: int, provider: str | None = None):
        self.port = port
        super().__init__(message, provider)


class CallbackTimeoutError(AuthenticationError):
    """제한 시간 내에 콜백이 도착하지 않음.

    Attributes:
        timeout: 적용된 제한 시간 (초)
    """

    def __init__(self, message: str, timeout: float, provider: str | None = None):
        self.timeout = timeout
        super().__init__(message, provider)


class UnsupportedOperationError(AuthenticationError):
    """Provider가 지원하지 않는 작업 (예: GitHub refresh)."""


class OAuthError(AuthenticationError):
    """OAuth 플로우 에러.

    OAuth 콜백 또는 토큰 교환 실패를 나타냄.

    Attributes:
        error_code: OAuth 에러 코드 (예: 'invalid_grant', 'access_denied')
        provider: 인증 제공자 이름
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        provider: str | None = None
    ):
        self.error_code = error_code
        super().__init__(message, provider)


class CsrfMismatchError(OAuthError):
    """콜백의 state가 없거나 기대값과 다름 (CSRF 의심)."""


class ProviderDeniedError(OAuthError):
    """Provider가 콜백으로 error를 반환함 (예: access_denied).

    Attributes:
        description: provider가 보낸 error_description
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        description: str | None = None,
        provider: str | None = None,
    ):
        self.description = description
        super().__init__(message, error_code, provider)


class NetworkFailureError(OAuthError):
    """일시적 네트워크/5xx 실패가 재시도 한도를 초과함.

    Attributes:
        attempts: 실제 시도 횟수
    """

    def __init__(
        self,
        message: str,
        attempts: int = 1,
        provider: str | None = None,
    ):
        self.attempts = attempts
        super().__init__(message, provider=provider)


class TokenExchangeRejectedError(OAuthError):
    """토큰 엔드포인트가 요청을 거부함 (4xx, 재시도 불가).

    Attributes:
        status_code: HTTP 상태 코드
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        error_code: str | None = None,
        provider: str | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, error_code, provider)


class MalformedResponseError(OAuthError):
    """토큰 응답을 파싱할 수 없거나 access_token이 없음."""
