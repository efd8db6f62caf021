"""Token Exchanger

authorization code / refresh token을 토큰 엔드포인트에서 교환합니다.

- 4xx: 재시도 없이 TokenExchangeRejectedError
- 네트워크 오류 / 5xx: 최대 max_retries회 재시도 (지수 backoff)
- 에러 메시지는 sanitize 후 노출 (secret, token 제거)
"""

import asyncio
import json
import logging
import re
from typing import Any, Iterable
from urllib.parse import parse_qsl

import httpx

from loopback_oauth.exceptions import (
    MalformedResponseError,
    NetworkFailureError,
    TokenExchangeRejectedError,
)
from loopback_oauth.providers.base import OAuthProvider
from loopback_oauth.secure import REDACTED, SecretString
from loopback_oauth.types import TokenResponse

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 2
DEFAULT_BACKOFF = 0.5
REQUEST_TIMEOUT = 30.0

_ERROR_MESSAGES = {
    "invalid_client": "Invalid client credentials",
    "invalid_grant": "Invalid or expired authorization grant",
    "invalid_request": "Invalid request parameters",
    "unauthorized_client": "Client not authorized for this grant type",
    "unsupported_grant_type": "Unsupported grant type",
    "invalid_scope": "Invalid scope",
    "bad_verification_code": "Invalid or expired authorization code",
    "incorrect_client_credentials": "Invalid client credentials",
    "redirect_uri_mismatch": "Redirect URI mismatch",
}

_STATUS_MESSAGES = {
    400: "Bad request - invalid OAuth parameters",
    401: "Unauthorized - invalid client credentials",
    403: "Forbidden - client not authorized",
    429: "Rate limit exceeded - please try again later",
}

# 토큰처럼 보이는 문자열 (GitHub gh*_ / Google ya29. / GOCSPX- / JWT / key=value)
_TOKEN_PATTERNS = (
    re.compile(r"\bgh[pousr]_[A-Za-z0-9]{16,}"),
    re.compile(r"\bya29\.[A-Za-z0-9._\-]+"),
    re.compile(r"\bGOCSPX-[A-Za-z0-9_\-]+"),
    re.compile(r"\beyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]*"),
    re.compile(
        r"((?<![A-Za-z_])(?:access_token|refresh_token|id_token|client_secret|code_verifier|code)"
        r"[\"']?\s*[:=]\s*[\"']?)[^\"'&\s,}]+"
    ),
)


def redact(text: str, secrets: Iterable[str] = ()) -> str:
    """알려진 secret 값과 토큰 형태 문자열 제거."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    for pattern in _TOKEN_PATTERNS:
        if pattern.groups:
            text = pattern.sub(lambda m: m.group(1) + REDACTED, text)
        else:
            text = pattern.sub(REDACTED, text)
    return text


def _error_fields(body: str) -> tuple[str | None, str | None]:
    """응답 본문에서 (error, error_description) 추출 (JSON 또는 form)."""
    try:
        data = json.loads(body)
    except ValueError:
        data = dict(parse_qsl(body)) if "=" in body else {}
    if not isinstance(data, dict):
        return None, None

    error = data.get("error")
    description = data.get("error_description")
    # {"error": {"code": 400, "status": "...", "message": "..."}} 형태 (Google API)
    if isinstance(error, dict):
        description = description or error.get("message")
        error = error.get("status") or error.get("code")
    return (
        str(error) if error is not None else None,
        str(description) if description is not None else None,
    )


def sanitize_api_error(
    body: str, status_code: int, secrets: Iterable[str] = ()
) -> tuple[str, str | None]:
    """Provider 에러 응답을 안전한 메시지로 변환.

    Args:
        body: 원본 응답 본문
        status_code: HTTP 상태 코드
        secrets: 메시지에서 지워야 할 값 (client secret, verifier 등)

    Returns:
        tuple[str, str | None]: (안전한 메시지, provider error 코드)
    """
    error, _ = _error_fields(body)
    if error:
        error = redact(error, secrets)
        message = _ERROR_MESSAGES.get(error, "OAuth authentication failed")
        return f"{message} ({error})", error

    if 500 <= status_code <= 599:
        return "OAuth service temporarily unavailable", None
    return _STATUS_MESSAGES.get(status_code, "OAuth authentication failed"), None


class TokenExchanger:
    """토큰 엔드포인트 클라이언트.

    Example:
        exchanger = TokenExchanger(GOOGLE)
        token = await exchanger.exchange(
            code, redirect_uri, client_id,
            client_secret=secret, code_verifier=pkce.code_verifier,
        )
    """

    def __init__(
        self,
        provider: OAuthProvider,
        client: httpx.AsyncClient | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff: float = DEFAULT_BACKOFF,
    ):
        """초기화.

        Args:
            provider: Provider 설명
            client: 재사용할 httpx.AsyncClient (None이면 요청마다 생성)
            max_retries: 일시적 실패 재시도 횟수
            backoff: 첫 재시도 대기 시간 (초, 이후 2배씩)
        """
        self.provider = provider
        self.client = client
        self.max_retries = max_retries
        self.backoff = backoff

    async def exchange(
        self,
        code: str,
        redirect_uri: str,
        client_id: str,
        client_secret: SecretString | str | None = None,
        code_verifier: SecretString | str | None = None,
    ) -> TokenResponse:
        """Authorization code를 토큰으로 교환.

        Raises:
            TokenExchangeRejectedError: 4xx 또는 본문에 error 포함
            NetworkFailureError: 재시도 한도 초과
            MalformedResponseError: 응답 파싱 실패 / access_token 없음
        """
        client_secret = SecretString.wrap(client_secret)
        code_verifier = SecretString.wrap(code_verifier)

        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
            "client_id": client_id,
        }
        sensitive = [code]
        if client_secret:
            data["client_secret"] = client_secret.reveal()
            sensitive.append(data["client_secret"])
        if code_verifier:
            data["code_verifier"] = code_verifier.reveal()
            sensitive.append(data["code_verifier"])

        try:
            payload = await self._post(data, sensitive)
        finally:
            data.clear()
            sensitive.clear()
        return self._parse(payload)

    async def refresh(
        self,
        refresh_token: SecretString | str,
        client_id: str,
        client_secret: SecretString | str | None = None,
    ) -> TokenResponse:
        """Refresh token으로 access token 갱신."""
        refresh_token = SecretString.wrap(refresh_token)
        client_secret = SecretString.wrap(client_secret)

        data = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token.reveal(),
            "client_id": client_id,
        }
        sensitive = [data["refresh_token"]]
        if client_secret:
            data["client_secret"] = client_secret.reveal()
            sensitive.append(data["client_secret"])

        try:
            payload = await self._post(data, sensitive)
        finally:
            data.clear()
            sensitive.clear()
        return self._parse(payload)

    async def _post(self, data: dict[str, str], sensitive: list[str]) -> dict[str, Any]:
        """폼 POST + 재시도. 성공 시 파싱된 본문 반환."""
        provider = self.provider.name
        attempts = 0
        while True:
            attempts += 1
            try:
                response = await self._send(data)
            except httpx.TransportError as e:
                logger.warning(
                    "Token request to %s failed (attempt %d): %s",
                    provider, attempts, type(e).__name__,
                )
                if attempts > self.max_retries:
                    raise NetworkFailureError(
                        f"Token request failed after {attempts} attempts: {type(e).__name__}",
                        attempts=attempts,
                        provider=provider,
                    ) from e
                await asyncio.sleep(self.backoff * 2 ** (attempts - 1))
                continue

            status = response.status_code
            if 500 <= status <= 599:
                message, _ = sanitize_api_error(response.text, status, sensitive)
                logger.warning(
                    "Token endpoint returned %d (attempt %d)", status, attempts
                )
                if attempts > self.max_retries:
                    raise NetworkFailureError(
                        f"{message} (HTTP {status}) after {attempts} attempts",
                        attempts=attempts,
                        provider=provider,
                    )
                await asyncio.sleep(self.backoff * 2 ** (attempts - 1))
                continue

            if status >= 400:
                message, error_code = sanitize_api_error(response.text, status, sensitive)
                logger.error("Token request rejected: HTTP %d %s", status, error_code or "")
                raise TokenExchangeRejectedError(
                    f"Token exchange failed: {message}",
                    status_code=status,
                    error_code=error_code,
                    provider=provider,
                )

            payload = self._decode(response)
            # GitHub은 실패도 200 + {"error": ...}로 응답
            if "error" in payload and "access_token" not in payload:
                message, error_code = sanitize_api_error(response.text, 400, sensitive)
                logger.error("Token request rejected: %s", error_code)
                raise TokenExchangeRejectedError(
                    f"Token exchange failed: {message}",
                    status_code=status,
                    error_code=error_code,
                    provider=provider,
                )
            return payload

    async def _send(self, data: dict[str, str]) -> httpx.Response:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/x-www-form-urlencoded",
        }
        if self.client is not None:
            return await self.client.post(
                self.provider.token_endpoint, data=data, headers=headers
            )
        async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
            return await client.post(
                self.provider.token_endpoint, data=data, headers=headers
            )

    def _decode(self, response: httpx.Response) -> dict[str, Any]:
        """JSON 또는 form-encoded 본문 디코딩."""
        content_type = response.headers.get("content-type", "")
        text = response.text
        if "application/x-www-form-urlencoded" in content_type:
            return dict(parse_qsl(text))
        try:
            payload = json.loads(text)
        except ValueError as e:
            raise MalformedResponseError(
                f"Token response is not valid JSON (HTTP {response.status_code})",
                provider=self.provider.name,
            ) from e
        if not isinstance(payload, dict):
            raise MalformedResponseError(
                "Token response is not a JSON object", provider=self.provider.name
            )
        return payload

    def _parse(self, payload: dict[str, Any]) -> TokenResponse:
        if not payload.get("access_token"):
            raise MalformedResponseError(
                "Token response missing 'access_token' field",
                provider=self.provider.name,
            )
        try:
            token = TokenResponse.from_dict(payload)
        except (TypeError, ValueError) as e:
            raise MalformedResponseError(
                f"Token response has invalid field types: {type(e).__name__}",
                provider=self.provider.name,
            ) from e
        finally:
            payload.clear()
        logger.info("Token exchange succeeded (%s)", self.provider.name)
        return token
