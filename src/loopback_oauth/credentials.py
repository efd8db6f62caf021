"""Client credentials

빌더가 모아 둔 client id/secret을 terminal 호출 시점에 확정합니다.
환경변수는 이때 처음 읽습니다 (<PREFIX>_CLIENT_ID / <PREFIX>_CLIENT_SECRET).
"""

import logging
import os
from dataclasses import dataclass

from loopback_oauth.exceptions import ConfigurationError
from loopback_oauth.providers import OAuthProvider, get_provider
from loopback_oauth.secure import SecretString

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ClientCredentials:
    """빌더 단계에서 수집한 자격증명 (아직 검증 전).

    Attributes:
        provider: Provider 설명 (알 수 없는 이름이면 None)
        from_env: 환경변수에서 읽을지 여부
        client_id: 명시적 client id
        client_secret: 명시적 client secret
        secret_omitted: no_secret()으로 secret 없이 진행 (순수 PKCE)
        error: 진입 단계에서 기록된 첫 설정 오류
    """

    provider: OAuthProvider | None
    from_env: bool = False
    client_id: str | None = None
    client_secret: SecretString | None = None
    secret_omitted: bool = False
    error: ConfigurationError | None = None

    @classmethod
    def for_provider(
        cls, provider: "OAuthProvider | str", **kwargs
    ) -> "ClientCredentials":
        """provider 이름/값으로 생성. 알 수 없는 이름은 오류로 기록만 함."""
        if isinstance(provider, OAuthProvider):
            return cls(provider=provider, **kwargs)
        try:
            return cls(provider=get_provider(provider), **kwargs)
        except KeyError:
            return cls(
                provider=None,
                error=ConfigurationError(f"Unknown OAuth provider: {provider!r}"),
                **kwargs,
            )

    @property
    def provider_name(self) -> str | None:
        return self.provider.name if self.provider else None

    def validate(self) -> ConfigurationError | None:
        """I/O 없이 확인 가능한 오류 반환 (환경변수는 보지 않음)."""
        if self.error is not None:
            return self.error
        if self.from_env:
            return None
        if not self.client_id:
            return ConfigurationError("Missing client ID", provider=self.provider_name)
        if (
            self.provider.requires_client_secret
            and not self.client_secret
            and not self.secret_omitted
        ):
            return ConfigurationError("Missing client secret", provider=self.provider_name)
        if self.provider.requires_client_secret and self.secret_omitted:
            return ConfigurationError(
                f"{self.provider.display_name} requires a client secret",
                provider=self.provider_name,
            )
        return None

    def resolve(self) -> tuple[str, SecretString | None]:
        """(client_id, client_secret) 확정.

        Raises:
            ConfigurationError: 값 누락 또는 환경변수 미설정
        """
        error = self.validate()
        if error is not None:
            raise error

        if not self.from_env:
            return self.client_id, self.client_secret

        provider = self.provider
        client_id = os.getenv(provider.client_id_env)
        if not client_id:
            raise ConfigurationError(
                f"Environment variable not found: {provider.client_id_env}",
                provider=provider.name,
            )
        client_secret = os.getenv(provider.client_secret_env)
        if not client_secret and provider.requires_client_secret:
            raise ConfigurationError(
                f"Environment variable not found: {provider.client_secret_env}",
                provider=provider.name,
            )
        logger.debug("Loaded %s credentials from environment", provider.name)
        return client_id, SecretString.wrap(client_secret or None)
