"""CSRF state 생성 및 검증."""

import hmac
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from loopback_oauth.exceptions import ConfigurationError, CsrfMismatchError

logger = logging.getLogger(__name__)

STATE_ENTROPY_BYTES = 32


def generate_state() -> str:
    """URL-safe 랜덤 state 생성 (32 bytes 엔트로피)."""
    try:
        return secrets.token_urlsafe(STATE_ENTROPY_BYTES)
    except (NotImplementedError, OSError) as e:
        raise ConfigurationError(
            f"Secure random source unavailable: {type(e).__name__}"
        ) from e


@dataclass
class AuthorizationState:
    """진행 중인 로그인 한 건의 state.

    Attributes:
        token: CSRF state 값 (로그인 1회용)
        timeout: 플로우 제한 시간 (초)
    """

    token: str
    timeout: float
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def create(cls, timeout: float, token: str | None = None) -> "AuthorizationState":
        """state 생성. token이 주어지면 그대로 사용."""
        return cls(token=token if token is not None else generate_state(), timeout=timeout)

    @property
    def expires_at(self) -> datetime:
        return self.created_at + timedelta(seconds=self.timeout)

    def is_expired(self) -> bool:
        return datetime.now() >= self.expires_at


def validate_state(
    expected: str, received: str | None, provider: str | None = None
) -> None:
    """콜백 state 검증 (fail closed).

    Args:
        expected: 이 로그인 시도에서 생성한 state
        received: 콜백으로 돌아온 state

    Raises:
        CsrfMismatchError: state가 없거나 기대값과 다른 경우
    """
    if not received:
        logger.error("Callback missing state parameter")
        raise CsrfMismatchError(
            "Missing state parameter in callback - possible CSRF attack",
            provider=provider,
        )
    if not hmac.compare_digest(received.encode("utf-8"), expected.encode("utf-8")):
        logger.error("State mismatch: expected %s..., got %s...", expected[:8], received[:8])
        raise CsrfMismatchError(
            "Invalid state parameter - possible CSRF attack",
            provider=provider,
        )
