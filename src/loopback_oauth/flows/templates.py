"""콜백 응답 페이지

브라우저에 돌려줄 정적 HTML과 보안 헤더.
페이지 내용은 호출자에게 노출되는 계약이 아닙니다.
"""

import html

SECURITY_HEADERS: tuple[tuple[str, str], ...] = (
    ("Content-Type", "text/html; charset=utf-8"),
    ("X-Frame-Options", "DENY"),
    ("X-Content-Type-Options", "nosniff"),
    ("Content-Security-Policy", "default-src 'none'; style-src 'unsafe-inline'; script-src 'unsafe-inline'"),
    ("Referrer-Policy", "no-referrer"),
    ("Cache-Control", "no-cache, no-store, must-revalidate"),
    ("Pragma", "no-cache"),
    ("Expires", "0"),
    ("Connection", "close"),
)

_PAGE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{title}</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI',
                         Roboto, sans-serif;
            display: flex;
            justify-content: center;
            align-items: center;
            height: 100vh;
            margin: 0;
            background: {background};
            color: white;
        }}
        .container {{
            text-align: center;
            padding: 40px;
            background: rgba(255,255,255,0.1);
            border-radius: 16px;
        }}
        h1 {{ font-size: 40px; margin-bottom: 16px; }}
        p {{ font-size: 18px; opacity: 0.9; }}
    </style>
</head>
<body>
    <div class="container">
        <h1>{heading}</h1>
        <p>{message}</p>
    </div>
    {script}
</body>
</html>
"""

_SUCCESS_BACKGROUND = "linear-gradient(135deg, #667eea 0%, #764ba2 100%)"
_ERROR_BACKGROUND = "linear-gradient(135deg, #ff6b6b 0%, #ee5a24 100%)"


def success_page(app_name: str = "Application") -> str:
    """로그인 완료 페이지."""
    return _PAGE.format(
        title=html.escape(f"{app_name} - Login complete"),
        background=_SUCCESS_BACKGROUND,
        heading="Login complete",
        message="You may close this window and return to the application.",
        script="<script>setTimeout(() => window.close(), 3000);</script>",
    )


def error_page(message: str, app_name: str = "Application") -> str:
    """로그인 실패 페이지. message는 HTML escape 처리."""
    return _PAGE.format(
        title=html.escape(f"{app_name} - Login failed"),
        background=_ERROR_BACKGROUND,
        heading="Login failed",
        message=html.escape(message),
        script="",
    )


def http_response(status: int, reason: str, body: str = "", headers=SECURITY_HEADERS) -> bytes:
    """HTTP/1.1 응답 바이트 생성."""
    payload = body.encode("utf-8")
    lines = [f"HTTP/1.1 {status} {reason}"]
    lines.extend(f"{name}: {value}" for name, value in headers)
    lines.append(f"Content-Length: {len(payload)}")
    head = "\r\n".join(lines) + "\r\n\r\n"
    return head.encode("ascii") + payload
