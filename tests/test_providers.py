"""Provider 설명 테스트."""

import pytest

from loopback_oauth.providers import GITHUB, GOOGLE, PROVIDERS, get_provider
from loopback_oauth.types import AccessType


class TestProviders:
    """Provider 값 테스트."""

    def test_registry(self):
        assert PROVIDERS == {"github": GITHUB, "google": GOOGLE}
        assert get_provider("GitHub") is GITHUB

    def test_unknown_provider(self):
        with pytest.raises(KeyError):
            get_provider("gitlab")

    def test_github(self):
        assert GITHUB.authorization_endpoint == "https://github.com/login/oauth/authorize"
        assert GITHUB.token_endpoint == "https://github.com/login/oauth/access_token"
        assert GITHUB.default_scopes == ("user:email",)
        assert GITHUB.client_id_env == "GITHUB_CLIENT_ID"
        assert GITHUB.client_secret_env == "GITHUB_CLIENT_SECRET"
        assert not GITHUB.supports_refresh
        assert GITHUB.extra_auth_params(AccessType.OFFLINE) == {}

    def test_google(self):
        assert GOOGLE.authorization_endpoint == "https://accounts.google.com/o/oauth2/v2/auth"
        assert GOOGLE.token_endpoint == "https://oauth2.googleapis.com/token"
        assert "openid" in GOOGLE.default_scopes
        assert GOOGLE.client_id_env == "GOOGLE_CLIENT_ID"
        assert GOOGLE.supports_refresh

    def test_google_auth_params(self):
        assert GOOGLE.extra_auth_params(AccessType.ONLINE) == {
            "access_type": "online",
            "include_granted_scopes": "true",
        }
        assert GOOGLE.extra_auth_params(AccessType.OFFLINE)["prompt"] == "consent"

    def test_provider_is_frozen(self):
        with pytest.raises(AttributeError):
            GITHUB.supports_refresh = True
