"""User Info

Access token으로 provider의 사용자 정보를 조회합니다.
"""

import logging

import httpx

from loopback_oauth.exceptions import (
    MalformedResponseError,
    NetworkFailureError,
    OAuthError,
)
from loopback_oauth.flows.token_exchange import REQUEST_TIMEOUT, sanitize_api_error
from loopback_oauth.providers import OAuthProvider, get_provider
from loopback_oauth.secure import SecretString
from loopback_oauth.types import UserInfo

logger = logging.getLogger(__name__)


class UserInfoClient:
    """사용자 정보 엔드포인트 클라이언트.

    Example:
        info = await UserInfoClient(GITHUB).fetch(token.access_token)
        print(info.login, info.email)
    """

    def __init__(self, provider: OAuthProvider, client: httpx.AsyncClient | None = None):
        self.provider = provider
        self.client = client

    async def fetch(self, access_token: "SecretString | str") -> UserInfo:
        """사용자 정보 조회.

        Raises:
            OAuthError: 토큰 만료/무효 또는 provider 오류
            NetworkFailureError: 네트워크 오류
            MalformedResponseError: 응답이 JSON 객체가 아님
        """
        provider = self.provider.name
        access_token = SecretString.wrap(access_token)
        token_value = access_token.reveal() if access_token else ""

        headers = {
            "Authorization": f"Bearer {token_value}",
            "Accept": "application/json",
            **self.provider.user_info_headers,
        }
        try:
            response = await self._get(headers)
        except httpx.TransportError as e:
            logger.warning("User info request failed: %s", type(e).__name__)
            raise NetworkFailureError(
                f"User info request failed: {type(e).__name__}", provider=provider
            ) from e
        finally:
            headers.clear()

        if response.status_code == 401:
            raise OAuthError(
                "Invalid or expired access token",
                error_code="invalid_token",
                provider=provider,
            )
        if response.status_code != 200:
            message, error_code = sanitize_api_error(
                response.text, response.status_code, [token_value]
            )
            logger.error("User info request failed: HTTP %d", response.status_code)
            raise OAuthError(
                f"User info request failed: {message}",
                error_code=error_code,
                provider=provider,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                "User info response is not valid JSON", provider=provider
            ) from e
        if not isinstance(data, dict):
            raise MalformedResponseError(
                "User info response is not a JSON object", provider=provider
            )

        info = self.provider.to_user_info(data)
        logger.debug("Fetched %s user info for id %s", provider, info.id)
        return info

    async def _get(self, headers: dict[str, str]) -> httpx.Response:
        url = self.provider.user_info_endpoint
        if self.client is not None:
            return await self.client.get(url, headers=headers)
        async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
            return await client.get(url, headers=headers)


async def fetch_user_info(
    provider: "OAuthProvider | str",
    access_token: "SecretString | str",
    client: httpx.AsyncClient | None = None,
) -> UserInfo:
    """UserInfoClient(provider).fetch(access_token) 단축 함수."""
    if not isinstance(provider, OAuthProvider):
        provider = get_provider(provider)
    return await UserInfoClient(provider, client=client).fetch(access_token)
