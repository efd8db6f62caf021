"""SecretString / TokenResponse 폐기 테스트."""

import copy
import pickle

import pytest

from loopback_oauth.secure import REDACTED, SecretString
from loopback_oauth.types import TokenResponse


class TestSecretString:
    """SecretString 핸들 테스트."""

    def test_reveal_returns_value(self):
        secret = SecretString("gho_abc123")
        assert secret.reveal() == "gho_abc123"
        assert len(secret) == 10
        assert secret

    def test_redacted_representations(self):
        """repr/str/format에 원문이 나오지 않음."""
        secret = SecretString("super-secret-value")

        assert "super-secret-value" not in repr(secret)
        assert str(secret) == REDACTED
        assert f"{secret}" == REDACTED
        assert "super-secret-value" not in f"{secret!r} {secret:>30}"

    def test_wipe_zeroes_buffer_in_place(self):
        """wipe() 후 같은 버퍼가 0으로 채워짐."""
        secret = SecretString("tok123")
        buffer = secret._buffer

        secret.wipe()

        assert buffer == bytearray(6)
        assert secret.wiped
        assert not secret
        assert len(secret) == 0

    def test_reveal_after_wipe_raises(self):
        secret = SecretString("tok123")
        secret.wipe()
        with pytest.raises(ValueError):
            secret.reveal()

    def test_wipe_is_idempotent(self):
        secret = SecretString("tok123")
        secret.wipe()
        secret.wipe()
        assert secret.wiped

    def test_context_manager_wipes_on_exit(self):
        """with 블록 종료 시 버퍼 0."""
        with SecretString("tok123") as secret:
            buffer = secret._buffer
            assert secret.reveal() == "tok123"
        assert buffer == bytearray(6)

    def test_context_manager_wipes_on_error(self):
        """예외로 빠져나가도 버퍼 0."""
        with pytest.raises(RuntimeError):
            with SecretString("tok123") as secret:
                buffer = secret._buffer
                raise RuntimeError("boom")
        assert buffer == bytearray(6)

    def test_drop_wipes_buffer(self):
        """참조가 사라지면 버퍼 0."""
        secret = SecretString("tok123")
        buffer = secret._buffer
        del secret
        assert buffer == bytearray(6)

    def test_equality(self):
        """같은 값끼리만 같음 (str과도 비교 가능)."""
        assert SecretString("a") == SecretString("a")
        assert SecretString("a") != SecretString("b")
        assert SecretString("a") == "a"
        assert SecretString("a") != "b"

    def test_wiped_never_equal(self):
        secret = SecretString("a")
        secret.wipe()
        assert secret != "a"
        assert secret != SecretString("a")

    def test_not_hashable(self):
        with pytest.raises(TypeError):
            hash(SecretString("a"))

    @pytest.mark.parametrize("duplicate", [copy.copy, copy.deepcopy, pickle.dumps])
    def test_cannot_duplicate(self, duplicate):
        """복사/pickle 금지."""
        with pytest.raises(TypeError):
            duplicate(SecretString("a"))

    def test_wrap(self):
        existing = SecretString("a")
        assert SecretString.wrap(None) is None
        assert SecretString.wrap(existing) is existing
        assert SecretString.wrap("b") == "b"


class TestTokenResponse:
    """TokenResponse 테스트."""

    def test_from_dict(self):
        token = TokenResponse.from_dict(
            {
                "access_token": "tok123",
                "token_type": "Bearer",
                "expires_in": "3599",
                "refresh_token": "1//refresh",
                "scope": "openid email",
            }
        )

        assert token.access_token == "tok123"
        assert token.token_type == "Bearer"
        assert token.expires_in == 3599
        assert token.refresh_token == "1//refresh"
        assert token.scopes == ["openid", "email"]
        assert token.id_token is None

    def test_from_dict_defaults(self):
        token = TokenResponse.from_dict({"access_token": "tok123"})

        assert token.token_type == "bearer"
        assert token.expires_in is None
        assert token.refresh_token is None
        assert token.scope == ""
        assert token.scopes == []

    def test_comma_separated_scopes(self):
        """GitHub은 scope를 쉼표로 구분."""
        token = TokenResponse.from_dict({"access_token": "t", "scope": "repo,user:email"})
        assert token.scopes == ["repo", "user:email"]

    def test_repr_is_redacted(self):
        token = TokenResponse.from_dict(
            {"access_token": "tok123", "refresh_token": "ref456", "id_token": "id789"}
        )
        text = repr(token)
        assert "tok123" not in text
        assert "ref456" not in text
        assert "id789" not in text
        assert REDACTED in text

    def test_context_manager_wipes_all_secrets(self):
        """with 블록 종료 시 모든 secret 버퍼 0."""
        token = TokenResponse.from_dict(
            {"access_token": "tok123", "refresh_token": "ref456", "id_token": "id789"}
        )
        buffers = [
            token.access_token._buffer,
            token.refresh_token._buffer,
            token.id_token._buffer,
        ]

        with token as t:
            assert t.access_token.reveal() == "tok123"

        assert all(buffer == bytearray(len(buffer)) for buffer in buffers)
        assert token.access_token.wiped
        assert token.refresh_token.wiped
        assert token.id_token.wiped

    def test_drop_wipes_access_token(self):
        """TokenResponse가 사라지면 access token 버퍼 0."""
        token = TokenResponse.from_dict({"access_token": "tok123"})
        buffer = token.access_token._buffer
        del token
        assert buffer == bytearray(6)
