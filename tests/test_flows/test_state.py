"""CSRF state 테스트."""

from datetime import datetime, timedelta

import pytest

from loopback_oauth.exceptions import CsrfMismatchError
from loopback_oauth.flows.state import AuthorizationState, generate_state, validate_state


class TestGenerateState:
    """state 생성 테스트."""

    def test_url_safe_and_long(self):
        state = generate_state()
        assert len(state) >= 43
        assert all(c.isalnum() or c in "-_" for c in state)

    def test_unique(self):
        assert len({generate_state() for _ in range(50)}) == 50


class TestAuthorizationState:
    """AuthorizationState 테스트."""

    def test_create_uses_given_token(self):
        state = AuthorizationState.create(timeout=300, token="fixed-state")
        assert state.token == "fixed-state"

    def test_create_generates_token(self):
        assert AuthorizationState.create(timeout=300).token

    def test_expiry(self):
        state = AuthorizationState.create(timeout=300)
        assert state.expires_at == state.created_at + timedelta(seconds=300)
        assert not state.is_expired()

        state.created_at = datetime.now() - timedelta(seconds=301)
        assert state.is_expired()


class TestValidateState:
    """state 검증 테스트."""

    def test_match(self):
        validate_state("abc", "abc")

    @pytest.mark.parametrize("received", [None, "", "abd", "abc "])
    def test_mismatch_raises(self, received):
        with pytest.raises(CsrfMismatchError) as exc_info:
            validate_state("abc", received, provider="github")
        assert exc_info.value.provider == "github"
