"""PKCE (RFC 7636)

code_verifier / code_challenge 생성과 검증.
verifier는 URL에 절대 포함되지 않고, 토큰 교환 시 한 번만 전송됩니다.
"""

import base64
import hashlib
import logging
import secrets
import string
from dataclasses import dataclass

from loopback_oauth.exceptions import ConfigurationError
from loopback_oauth.secure import SecretString

logger = logging.getLogger(__name__)

# RFC 3986 unreserved = ALPHA / DIGIT / "-" / "." / "_" / "~"
UNRESERVED_CHARACTERS = string.ascii_letters + string.digits + "-._~"
VERIFIER_LENGTH = 128
MIN_VERIFIER_LENGTH = 43
MAX_VERIFIER_LENGTH = 128
CHALLENGE_METHOD = "S256"


@dataclass(repr=False)
class PKCEChallenge:
    """PKCE (Proof Key for Code Exchange) 챌린지."""

    code_verifier: SecretString
    code_challenge: str
    code_challenge_method: str = CHALLENGE_METHOD

    @classmethod
    def from_verifier(cls, verifier: str) -> "PKCEChallenge":
        """기존 verifier로 챌린지 생성 (테스트/외부 관리용).

        Raises:
            ConfigurationError: 길이 또는 문자 집합이 RFC 7636 위반
        """
        validate_code_verifier(verifier)
        return cls(
            code_verifier=SecretString(verifier),
            code_challenge=compute_code_challenge(verifier),
        )

    def wipe(self) -> None:
        """verifier 폐기."""
        self.code_verifier.wipe()

    def __repr__(self) -> str:
        return (
            f"PKCEChallenge(code_verifier={self.code_verifier!r}, "
            f"code_challenge={self.code_challenge!r}, "
            f"code_challenge_method={self.code_challenge_method!r})"
        )


def compute_code_challenge(verifier: str) -> str:
    """code_challenge = BASE64URL-NOPAD(SHA256(ASCII(verifier)))."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def validate_code_verifier(verifier: str) -> None:
    """verifier 형식 검증.

    Raises:
        ConfigurationError: 43-128자가 아니거나 unreserved 외 문자 포함
    """
    length = len(verifier)
    if length < MIN_VERIFIER_LENGTH or length > MAX_VERIFIER_LENGTH:
        raise ConfigurationError(
            f"Code verifier length {length} is invalid "
            f"(must be {MIN_VERIFIER_LENGTH}-{MAX_VERIFIER_LENGTH} characters)"
        )
    for ch in verifier:
        if ch not in UNRESERVED_CHARACTERS:
            raise ConfigurationError(
                "Code verifier contains a character outside the unreserved set"
            )


def generate_pkce_challenge() -> PKCEChallenge:
    """PKCE 챌린지 생성.

    128자 verifier를 OS 보안 난수로 생성합니다.

    Returns:
        PKCEChallenge: code_verifier와 code_challenge 포함

    Raises:
        ConfigurationError: 보안 난수 소스를 사용할 수 없는 경우
    """
    try:
        verifier = "".join(
            secrets.choice(UNRESERVED_CHARACTERS) for _ in range(VERIFIER_LENGTH)
        )
    except (NotImplementedError, OSError) as e:
        raise ConfigurationError(
            f"Secure random source unavailable: {type(e).__name__}"
        ) from e

    challenge = PKCEChallenge(
        code_verifier=SecretString(verifier),
        code_challenge=compute_code_challenge(verifier),
    )
    del verifier
    logger.debug("Generated PKCE challenge: %s...", challenge.code_challenge[:8])
    return challenge
