"""공용 데이터 타입

LoginRequest, TokenResponse, CallbackResult, UserInfo 등
로그인 플로우 전반에서 주고받는 값 타입.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from loopback_oauth.secure import SecretString


class AccessType(str, Enum):
    """Access type 힌트 (offline이면 refresh token 요청)."""

    ONLINE = "online"
    OFFLINE = "offline"


@dataclass
class LoginRequest:
    """검증을 마친 로그인 요청.

    LoginConfig.validate() 통과 후 login() 내부에서만 만들어집니다.
    """

    client_id: str
    redirect_uri: str
    scopes: list[str]
    port: int
    timeout: float
    access_type: AccessType = AccessType.ONLINE
    client_secret: SecretString | None = None
    state: str | None = None


@dataclass(frozen=True)
class CallbackCode:
    """콜백 성공: authorization code 수신."""

    code: str
    state: str | None
    params: Mapping[str, str] = field(default_factory=dict, repr=False)


@dataclass(frozen=True)
class CallbackProviderError:
    """콜백 실패: provider가 error 파라미터로 거부."""

    error: str
    error_description: str | None
    state: str | None
    params: Mapping[str, str] = field(default_factory=dict, repr=False)


CallbackResult = CallbackCode | CallbackProviderError


@dataclass(repr=False)
class TokenResponse:
    """토큰 교환 결과.

    모든 secret 필드는 SecretString이며 repr에서 가려집니다.
    with 블록을 벗어나거나 wipe()를 호출하면 secret 버퍼가 0으로 지워집니다.

    Example:
        with await config.login() as token:
            use(token.access_token.reveal())
    """

    access_token: SecretString
    token_type: str = "bearer"
    expires_in: int | None = None
    refresh_token: SecretString | None = None
    scope: str = ""
    id_token: SecretString | None = None

    @property
    def scopes(self) -> list[str]:
        """scope 문자열을 목록으로 (공백/쉼표 구분 모두 허용)."""
        return [s for s in self.scope.replace(",", " ").split() if s]

    def wipe(self) -> None:
        """모든 secret 필드 0으로 지우기."""
        for secret in (self.access_token, self.refresh_token, self.id_token):
            if secret is not None:
                secret.wipe()

    def __enter__(self) -> "TokenResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __repr__(self) -> str:
        return (
            f"TokenResponse(access_token={self.access_token!r}, "
            f"token_type={self.token_type!r}, expires_in={self.expires_in!r}, "
            f"refresh_token={self.refresh_token!r}, scope={self.scope!r}, "
            f"id_token={self.id_token!r})"
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TokenResponse":
        """토큰 엔드포인트 응답에서 생성.

        access_token 검사는 호출자(TokenExchanger)가 먼저 수행합니다.
        """
        expires_in = data.get("expires_in")
        return cls(
            access_token=SecretString(str(data["access_token"])),
            token_type=str(data.get("token_type") or "bearer"),
            expires_in=int(expires_in) if expires_in not in (None, "") else None,
            refresh_token=SecretString.wrap(data.get("refresh_token") or None),
            scope=str(data.get("scope") or ""),
            id_token=SecretString.wrap(data.get("id_token") or None),
        )


@dataclass(frozen=True)
class UserInfo:
    """Provider 사용자 프로필 (읽기 전용)."""

    provider: str
    id: str
    login: str | None = None
    email: str | None = None
    name: str | None = None
    avatar_url: str | None = None
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)
