"""Callback Listener

127.0.0.1 로컬 HTTP 엔드포인트에서 provider redirect를 단 한 번 수신합니다.

상태 전이:
    IDLE -> BOUND -> AWAITING -> RECEIVED | TIMED_OUT
    IDLE -> BIND_FAILED

- 콜백 경로로 들어온 첫 GET만 유효하며, 처리 직후 소켓을 닫습니다.
- 대기는 asyncio Future + wait_for (폴링 없음).
"""

import asyncio
import logging
from enum import Enum
from urllib.parse import parse_qs, urlsplit

from loopback_oauth.exceptions import BindFailureError, CallbackTimeoutError
from loopback_oauth.flows.templates import error_page, http_response, success_page
from loopback_oauth.types import CallbackCode, CallbackProviderError, CallbackResult

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
DEFAULT_CALLBACK_PATH = "/callback"
# 요청 헤드 최대 크기 (OAuth 콜백에는 8KB면 충분)
MAX_REQUEST_SIZE = 8192


class ListenerState(str, Enum):
    """Callback Listener 상태."""

    IDLE = "idle"
    BOUND = "bound"
    AWAITING = "awaiting"
    RECEIVED = "received"
    TIMED_OUT = "timed_out"
    BIND_FAILED = "bind_failed"


def parse_callback_params(params: dict[str, str]) -> CallbackResult:
    """콜백 쿼리 파라미터를 CallbackResult로 변환.

    error가 있으면 code보다 우선합니다.
    """
    state = params.get("state")
    if "error" in params:
        return CallbackProviderError(
            error=params["error"],
            error_description=params.get("error_description"),
            state=state,
            params=params,
        )
    code = params.get("code")
    if not code:
        return CallbackProviderError(
            error="missing_code",
            error_description="No authorization code found in callback",
            state=state,
            params=params,
        )
    return CallbackCode(code=code, state=state, params=params)


def parse_callback_url(callback_url: str) -> CallbackResult:
    """브라우저에서 복사한 콜백 URL 파싱."""
    query = urlsplit(callback_url.strip()).query
    return parse_callback_params(_first_values(query))


def _first_values(query: str) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(query).items()}


class CallbackListener:
    """단발성 OAuth 콜백 HTTP 서버.

    Example:
        async with CallbackListener(port=8080, path="/callback") as listener:
            open_browser(auth_url)
            result = await listener.wait(timeout=300)
    """

    def __init__(
        self,
        port: int = DEFAULT_PORT,
        path: str = DEFAULT_CALLBACK_PATH,
        host: str = DEFAULT_HOST,
        app_name: str = "Application",
    ):
        """초기화.

        Args:
            port: 바인딩할 포트 (0이면 ephemeral)
            path: redirect URI 경로
            host: 바인딩 주소
            app_name: 응답 페이지 제목
        """
        self.port = port
        self.path = path or "/"
        self.host = host
        self.app_name = app_name
        self.bound_port: int | None = None
        self._state = ListenerState.IDLE
        self._server: asyncio.AbstractServer | None = None
        self._result: asyncio.Future | None = None
        self._claimed = False
        self._connections: set[asyncio.StreamWriter] = set()

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def is_serving(self) -> bool:
        return self._server is not None and self._server.is_serving()

    async def bind(self) -> None:
        """포트 바인딩.

        Raises:
            BindFailureError: 포트 사용 중 또는 권한 없음
        """
        if self._state is not ListenerState.IDLE:
            raise RuntimeError(f"Listener cannot bind from state {self._state.value}")

        self._result = asyncio.get_running_loop().create_future()
        try:
            self._server = await asyncio.start_server(
                self._handle_connection,
                self.host,
                self.port,
                limit=MAX_REQUEST_SIZE,
            )
        except OSError as e:
            self._state = ListenerState.BIND_FAILED
            reason = e.strerror or str(e)
            logger.error("Failed to bind to %s:%d: %s", self.host, self.port, reason)
            raise BindFailureError(
                f"Failed to bind to {self.host}:{self.port}: {reason}", port=self.port
            ) from e

        self.bound_port = self._server.sockets[0].getsockname()[1]
        self._state = ListenerState.BOUND
        logger.info("Callback listener bound to %s:%d", self.host, self.bound_port)

    async def wait(self, timeout: float | None = None) -> CallbackResult:
        """콜백 수신까지 대기.

        Args:
            timeout: 제한 시간 (초, None이면 무제한)

        Returns:
            CallbackResult: 파싱된 콜백 파라미터

        Raises:
            CallbackTimeoutError: 제한 시간 초과
        """
        if self._state is not ListenerState.BOUND:
            raise RuntimeError(f"Listener cannot wait from state {self._state.value}")

        self._state = ListenerState.AWAITING
        logger.debug("Waiting for callback (timeout: %s)", timeout)
        try:
            result = await asyncio.wait_for(self._result, timeout)
        except asyncio.TimeoutError as e:
            self._state = ListenerState.TIMED_OUT
            logger.error("Timeout waiting for callback after %ss", timeout)
            raise CallbackTimeoutError(
                f"Timeout waiting for authorization after {timeout}s", timeout=timeout
            ) from e
        except asyncio.CancelledError:
            # 상위 제한 시간(BrowserOAuth)에 의한 취소
            self._state = ListenerState.TIMED_OUT
            raise
        finally:
            await self.close()

        self._state = ListenerState.RECEIVED
        return result

    async def close(self) -> None:
        """서버 소켓 닫기 (멱등)."""
        server, self._server = self._server, None
        if server is None:
            return
        server.close()
        # 헤드를 보내지 않은 채 열린 연결(브라우저 preconnect 등)도 정리
        for writer in list(self._connections):
            writer.close()
        await server.wait_closed()
        logger.debug("Callback listener closed")

    async def __aenter__(self) -> "CallbackListener":
        await self.bind()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        """연결 1건 처리. 결과가 이미 정해졌으면 응답 없이 닫음."""
        self._connections.add(writer)
        try:
            if self._claimed or self._result is None or self._result.done():
                logger.debug("Dropping connection after callback was handled")
                return

            try:
                head = await reader.readuntil(b"\r\n\r\n")
            except asyncio.LimitOverrunError:
                logger.warning("Callback request too large")
                await self._respond(writer, 431, "Request Header Fields Too Large")
                return
            except asyncio.IncompleteReadError:
                logger.debug("Connection closed before a full request arrived")
                return

            request_line = head.split(b"\r\n", 1)[0].decode("latin-1")
            parts = request_line.split()
            if len(parts) != 3:
                await self._respond(writer, 400, "Bad Request")
                return

            method, target, _ = parts
            parsed = urlsplit(target)
            logger.debug("Received request: %s %s", method, parsed.path)

            # favicon.ico 등 다른 경로는 무시 (콜백 1회 기회를 소모하지 않음)
            if parsed.path != self.path:
                await self._respond(writer, 404, "Not Found")
                return
            if method != "GET":
                await self._respond(writer, 405, "Method Not Allowed")
                return
            if self._claimed or self._result.done():
                return

            self._claimed = True
            result = parse_callback_params(_first_values(parsed.query))
            logger.debug("Callback params: %s", sorted(result.params))

            if isinstance(result, CallbackCode):
                body = success_page(self.app_name)
            else:
                body = error_page(result.error_description or result.error, self.app_name)

            try:
                await self._respond(writer, 200, "OK", body)
            finally:
                if not self._result.done():
                    self._result.set_result(result)
        except ConnectionError as e:
            logger.debug("Callback connection error: %s", e)
        finally:
            self._connections.discard(writer)
            writer.close()
            try:
                await writer.wait_closed()
            except ConnectionError as e:
                logger.debug("Error closing callback connection: %s", e)

    @staticmethod
    async def _respond(
        writer: asyncio.StreamWriter, status: int, reason: str, body: str = ""
    ) -> None:
        writer.write(http_response(status, reason, body))
        await writer.drain()
