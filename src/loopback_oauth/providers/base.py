"""OAuth Provider 설명

Provider별 차이(엔드포인트, 기본 scope, refresh 지원, 환경변수 이름,
인증 URL 추가 파라미터)를 값 하나로 표현합니다.
로그인 엔진은 이 값만 보고 동작하며 provider 이름으로 분기하지 않습니다.
"""

from dataclasses import dataclass, field
from typing import Callable, Mapping

from loopback_oauth.types import AccessType, UserInfo


@dataclass(frozen=True)
class OAuthProvider:
    """OAuth Provider 설명.

    Attributes:
        name: 내부 식별자 (예: 'github')
        display_name: 표시용 이름
        authorization_endpoint: 인증 엔드포인트
        token_endpoint: 토큰 엔드포인트
        user_info_endpoint: 사용자 정보 엔드포인트
        default_scopes: 기본 scope
        env_prefix: 환경변수 접두사 (<PREFIX>_CLIENT_ID / <PREFIX>_CLIENT_SECRET)
        supports_refresh: refresh_token grant 지원 여부
        requires_client_secret: 토큰 교환에 client secret이 필요한지
        scope_separator: scope 구분자
        auth_params: access_type에 따른 인증 URL 추가 파라미터 생성 함수
        user_info_headers: 사용자 정보 요청 추가 헤더
        parse_user_info: 사용자 정보 응답 -> UserInfo 변환 함수
    """

    name: str
    display_name: str
    authorization_endpoint: str
    token_endpoint: str
    user_info_endpoint: str
    default_scopes: tuple[str, ...]
    env_prefix: str
    supports_refresh: bool = True
    requires_client_secret: bool = True
    scope_separator: str = " "
    auth_params: Callable[[AccessType], Mapping[str, str]] | None = field(
        default=None, compare=False
    )
    user_info_headers: Mapping[str, str] = field(default_factory=dict, compare=False)
    parse_user_info: Callable[[Mapping], UserInfo] | None = field(
        default=None, compare=False
    )

    @property
    def client_id_env(self) -> str:
        return f"{self.env_prefix}_CLIENT_ID"

    @property
    def client_secret_env(self) -> str:
        return f"{self.env_prefix}_CLIENT_SECRET"

    def extra_auth_params(self, access_type: AccessType) -> dict[str, str]:
        """인증 URL에 붙일 provider 고유 파라미터."""
        if self.auth_params is None:
            return {}
        return dict(self.auth_params(access_type))

    def to_user_info(self, data: Mapping) -> UserInfo:
        """사용자 정보 응답 변환 (기본: 공통 필드 추출)."""
        if self.parse_user_info is not None:
            return self.parse_user_info(data)
        return UserInfo(
            provider=self.name,
            id=str(data.get("id") or data.get("sub") or ""),
            login=data.get("login"),
            email=data.get("email"),
            name=data.get("name"),
            avatar_url=data.get("avatar_url") or data.get("picture"),
            raw=dict(data),
        )
