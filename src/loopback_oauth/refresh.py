"""Refresh Builder

Refresh token으로 access token을 갱신합니다.

    token = await (
        Refresh.from_env("google")
        .token(refresh_token)
        .refresh()
    )

refresh를 지원하지 않는 provider(GitHub)는 자격증명 확인이나 네트워크 요청 전에
항상 UnsupportedOperationError를 발생시킵니다.
"""

import logging
from dataclasses import dataclass, replace

from loopback_oauth.credentials import ClientCredentials
from loopback_oauth.exceptions import ConfigurationError, UnsupportedOperationError
from loopback_oauth.flows.token_exchange import TokenExchanger
from loopback_oauth.providers import OAuthProvider
from loopback_oauth.secure import SecretString
from loopback_oauth.types import TokenResponse

logger = logging.getLogger(__name__)


class Refresh:
    """Refresh 빌더 진입점."""

    @staticmethod
    def from_env(provider: "OAuthProvider | str") -> "RefreshTokenStage":
        return RefreshTokenStage(ClientCredentials.for_provider(provider, from_env=True))

    @staticmethod
    def client_id(
        provider: "OAuthProvider | str", client_id: str
    ) -> "RefreshClientSecretStage":
        return RefreshClientSecretStage(
            ClientCredentials.for_provider(provider, client_id=client_id)
        )


@dataclass(frozen=True)
class RefreshClientSecretStage:
    credentials: ClientCredentials

    def client_secret(self, secret: "str | SecretString") -> "RefreshTokenStage":
        return RefreshTokenStage(
            replace(self.credentials, client_secret=SecretString.wrap(secret))
        )

    def no_secret(self) -> "RefreshTokenStage":
        return RefreshTokenStage(replace(self.credentials, secret_omitted=True))


@dataclass(frozen=True)
class RefreshTokenStage:
    credentials: ClientCredentials

    def token(self, refresh_token: "str | SecretString") -> "RefreshConfig":
        return RefreshConfig(self.credentials, SecretString.wrap(refresh_token))


@dataclass(frozen=True, eq=False)
class RefreshConfig:
    """Refresh 실행 설정.

    Attributes:
        credentials: 자격증명 (refresh() 시점에 확정)
        refresh_token: 갱신에 쓸 refresh token
        token_exchanger: 토큰 교환기 (테스트 주입용)
    """

    credentials: ClientCredentials
    refresh_token: SecretString | None
    token_exchanger: TokenExchanger | None = None

    def exchanger(self, exchanger: TokenExchanger) -> "RefreshConfig":
        return replace(self, token_exchanger=exchanger)

    def validate(self) -> ConfigurationError | None:
        error = self.credentials.validate()
        if error is not None:
            return error
        if not self.refresh_token:
            return ConfigurationError(
                "Refresh token is required", provider=self.credentials.provider_name
            )
        return None

    async def refresh(self) -> TokenResponse:
        """Access token 갱신.

        Raises:
            UnsupportedOperationError: provider가 refresh를 지원하지 않음
            ConfigurationError: 설정 오류 또는 환경변수 누락
            NetworkFailureError / TokenExchangeRejectedError / MalformedResponseError
        """
        provider = self.credentials.provider
        if provider is not None and not provider.supports_refresh:
            raise UnsupportedOperationError(
                f"{provider.display_name} does not support token refresh",
                provider=provider.name,
            )

        error = self.validate()
        if error is not None:
            raise error

        client_id, client_secret = self.credentials.resolve()
        exchanger = self.token_exchanger or TokenExchanger(provider)
        logger.info("Refreshing %s access token", provider.name)
        return await exchanger.refresh(
            self.refresh_token, client_id=client_id, client_secret=client_secret
        )
