"""Secure secret handle

client secret, access/refresh token, PKCE verifier를 감싸는 핸들.
- 수명이 끝나면 (with 블록 종료, wipe(), GC) 내부 버퍼를 0으로 덮어씀
- repr/str/format은 항상 [REDACTED] 출력
- 복사/pickle 불가 (추가 사본 방지)
"""

import hmac

REDACTED = "[REDACTED]"


class SecretString:
    """0으로 지워지는 문자열 핸들.

    값은 bytearray에 UTF-8로 보관하며, wipe()는 같은 버퍼를 제자리에서
    0으로 덮어씁니다.

    Example:
        with SecretString("gho_xxx") as token:
            headers = {"Authorization": f"Bearer {token.reveal()}"}
        # 여기서 버퍼는 이미 0으로 지워짐
    """

    __slots__ = ("_buffer", "_wiped")

    def __init__(self, value: str | bytes | bytearray):
        if isinstance(value, str):
            self._buffer = bytearray(value.encode("utf-8"))
        else:
            self._buffer = bytearray(value)
        self._wiped = False

    @classmethod
    def wrap(cls, value: "str | SecretString | None") -> "SecretString | None":
        """None/str/SecretString을 SecretString (또는 None)으로 정규화."""
        if value is None or isinstance(value, SecretString):
            return value
        return cls(value)

    @property
    def wiped(self) -> bool:
        return self._wiped

    def reveal(self) -> str:
        """원문 반환.

        Raises:
            ValueError: 이미 wipe된 경우
        """
        if self._wiped:
            raise ValueError("secret has been wiped")
        return self._buffer.decode("utf-8")

    def wipe(self) -> None:
        """버퍼를 0으로 덮어쓰기 (멱등)."""
        buffer = getattr(self, "_buffer", None)
        if buffer is None:
            return
        for i in range(len(buffer)):
            buffer[i] = 0
        self._wiped = True

    def __len__(self) -> int:
        return 0 if self._wiped else len(self._buffer)

    def __bool__(self) -> bool:
        return not self._wiped and len(self._buffer) > 0

    def __enter__(self) -> "SecretString":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __del__(self):
        self.wipe()

    def __repr__(self) -> str:
        return f"SecretString('{REDACTED}')"

    def __str__(self) -> str:
        return REDACTED

    def __format__(self, format_spec: str) -> str:
        return format(REDACTED, format_spec)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SecretString):
            if self._wiped or other._wiped:
                return False
            return hmac.compare_digest(bytes(self._buffer), bytes(other._buffer))
        if isinstance(other, str):
            if self._wiped:
                return False
            return hmac.compare_digest(bytes(self._buffer), other.encode("utf-8"))
        return NotImplemented

    __hash__ = None

    def __copy__(self):
        raise TypeError("SecretString cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("SecretString cannot be copied")

    def __reduce__(self):
        raise TypeError("SecretString cannot be pickled")
