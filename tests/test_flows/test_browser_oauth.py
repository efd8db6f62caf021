"""AuthFlow / BrowserOAuth 테스트."""

import asyncio
from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qsl, urlsplit

import pytest

from loopback_oauth.exceptions import (
    CallbackTimeoutError,
    CsrfMismatchError,
    ProviderDeniedError,
)
from loopback_oauth.flows.browser_oauth import AuthFlow, BrowserOAuth
from loopback_oauth.flows.callback_server import ListenerState
from loopback_oauth.flows.pkce import PKCEChallenge
from loopback_oauth.flows.token_exchange import TokenExchanger
from loopback_oauth.providers import GITHUB, GOOGLE
from loopback_oauth.types import AccessType, LoginRequest, TokenResponse

RFC_VERIFIER = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
RFC_CHALLENGE = "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


def _query(url: str) -> dict[str, str]:
    return dict(parse_qsl(urlsplit(url).query))


@pytest.fixture
def request_():
    """테스트용 로그인 요청."""
    return LoginRequest(
        client_id="abc",
        redirect_uri="http://localhost:8080/cb",
        scopes=["read"],
        port=8080,
        timeout=5.0,
        state="fixed-state",
    )


@pytest.fixture
def exchanger():
    """토큰 교환 spy."""
    spy = AsyncMock(spec=TokenExchanger)
    spy.exchange.return_value = TokenResponse.from_dict({"access_token": "tok123"})
    return spy


class TestAuthFlow:
    """수동 콜백 플로우 테스트."""

    def test_authorization_url(self, request_, exchanger):
        flow = AuthFlow(
            GITHUB, request_, pkce=PKCEChallenge.from_verifier(RFC_VERIFIER), exchanger=exchanger
        )

        url = flow.authorization_url
        query = _query(url)

        assert url.startswith(GITHUB.authorization_endpoint + "?")
        assert query == {
            "response_type": "code",
            "client_id": "abc",
            "redirect_uri": "http://localhost:8080/cb",
            "scope": "read",
            "state": "fixed-state",
            "code_challenge": RFC_CHALLENGE,
            "code_challenge_method": "S256",
        }
        assert RFC_VERIFIER not in url
        assert flow.authorization_url == url

    def test_generated_state_and_pkce(self, request_, exchanger):
        request_.state = None
        flow = AuthFlow(GOOGLE, request_, exchanger=exchanger)
        query = _query(flow.authorization_url)

        assert query["state"] == flow.state.token
        assert query["code_challenge"] == flow.pkce.code_challenge
        assert query["access_type"] == "online"
        assert query["include_granted_scopes"] == "true"

    def test_offline_access(self, request_, exchanger):
        request_.access_type = AccessType.OFFLINE
        flow = AuthFlow(GOOGLE, request_, exchanger=exchanger)
        assert _query(flow.authorization_url)["access_type"] == "offline"

    @pytest.mark.asyncio
    async def test_handle_callback(self, request_, exchanger):
        """state 검증 후 토큰 교환, verifier 폐기."""
        flow = AuthFlow(GITHUB, request_, exchanger=exchanger)
        verifier = flow.pkce.code_verifier

        token = await flow.handle_callback(
            "http://localhost:8080/cb?code=xyz&state=fixed-state"
        )

        assert token.access_token == "tok123"
        exchanger.exchange.assert_awaited_once()
        call = exchanger.exchange.await_args
        assert call.args[0] == "xyz"
        assert call.kwargs["redirect_uri"] == "http://localhost:8080/cb"
        assert call.kwargs["client_id"] == "abc"
        assert call.kwargs["code_verifier"] is verifier
        assert verifier.wiped

    @pytest.mark.asyncio
    async def test_csrf_mismatch_skips_exchange(self, request_, exchanger):
        flow = AuthFlow(GITHUB, request_, exchanger=exchanger)

        with pytest.raises(CsrfMismatchError):
            await flow.handle_callback("http://localhost:8080/cb?code=xyz&state=other")

        exchanger.exchange.assert_not_awaited()
        assert flow.pkce.code_verifier.wiped

    @pytest.mark.asyncio
    async def test_missing_state_skips_exchange(self, request_, exchanger):
        flow = AuthFlow(GITHUB, request_, exchanger=exchanger)

        with pytest.raises(CsrfMismatchError):
            await flow.handle_callback("http://localhost:8080/cb?code=xyz")

        exchanger.exchange.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provider_denied(self, request_, exchanger):
        flow = AuthFlow(GITHUB, request_, exchanger=exchanger)

        with pytest.raises(ProviderDeniedError) as exc_info:
            await flow.handle_callback(
                "http://localhost:8080/cb?error=access_denied"
                "&error_description=The+user+has+denied+your+application+access."
            )

        assert exc_info.value.error_code == "access_denied"
        assert exc_info.value.description.startswith("The user has denied")
        assert exc_info.value.provider == "github"
        exchanger.exchange.assert_not_awaited()


class TestBrowserOAuth:
    """BrowserOAuth 테스트."""

    @pytest.mark.asyncio
    async def test_ephemeral_port_fills_redirect_uri(self, exchanger, browser):
        """port 0이면 바인딩된 포트로 redirect_uri 확정."""
        request = LoginRequest(
            client_id="abc",
            redirect_uri="http://127.0.0.1:{port}/callback",
            scopes=["read"],
            port=0,
            timeout=5.0,
        )
        tasks = []

        def on_url(url):
            query = _query(url)
            tasks.append(
                asyncio.create_task(
                    browser(f"{query['redirect_uri']}?code=xyz&state={query['state']}")
                )
            )

        flow = BrowserOAuth(GITHUB, request, exchanger=exchanger, on_authorization_url=on_url)
        token = await flow.authenticate()

        assert token.access_token == "tok123"
        assert "{port}" not in request.redirect_uri
        assert request.redirect_uri == exchanger.exchange.await_args.kwargs["redirect_uri"]
        assert (await tasks[0]).status_code == 200

    @pytest.mark.asyncio
    async def test_opens_browser(self, exchanger, browser):
        """URL 콜백이 없으면 브라우저를 염."""
        request = LoginRequest(
            client_id="abc",
            redirect_uri="http://127.0.0.1:{port}/callback",
            scopes=["read"],
            port=0,
            timeout=5.0,
        )
        tasks = []

        def fake_open(url):
            query = _query(url)
            tasks.append(
                asyncio.create_task(
                    browser(f"{query['redirect_uri']}?code=xyz&state={query['state']}")
                )
            )
            return True

        with patch(
            "loopback_oauth.flows.browser_oauth.webbrowser.open", side_effect=fake_open
        ) as mock_open:
            token = await BrowserOAuth(GITHUB, request, exchanger=exchanger).authenticate()

        mock_open.assert_called_once()
        assert token.access_token == "tok123"
        await tasks[0]

    @pytest.mark.asyncio
    async def test_deadline_leaves_listener_timed_out(self, exchanger):
        """전체 제한 시간 초과 후 리스너는 TIMED_OUT."""
        request = LoginRequest(
            client_id="abc",
            redirect_uri="http://127.0.0.1:{port}/callback",
            scopes=["read"],
            port=0,
            timeout=0.2,
        )
        flow = BrowserOAuth(
            GITHUB, request, exchanger=exchanger, on_authorization_url=lambda url: None
        )

        with pytest.raises(CallbackTimeoutError):
            await flow.authenticate()

        assert flow.listener.state is ListenerState.TIMED_OUT
        assert not flow.listener.is_serving
        exchanger.exchange.assert_not_awaited()

    def test_emit_without_browser(self, request_, exchanger):
        """open_browser=False면 URL만 출력."""
        flow = BrowserOAuth(GITHUB, request_, exchanger=exchanger, open_browser=False)

        with patch("loopback_oauth.flows.browser_oauth.webbrowser.open") as mock_open, patch(
            "loopback_oauth.flows.browser_oauth.console"
        ) as mock_console:
            flow._emit_authorization_url("https://example.com/auth")

        mock_open.assert_not_called()
        assert mock_console.print.called
