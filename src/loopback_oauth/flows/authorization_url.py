"""Authorization URL 생성

I/O 없는 순수 함수. 같은 입력이면 항상 같은 URL을 만듭니다.
"""

from typing import Iterable, Mapping
from urllib.parse import quote, urlencode, urlsplit


def build_authorization_url(
    authorization_endpoint: str,
    client_id: str,
    redirect_uri: str,
    scopes: Iterable[str],
    state: str,
    code_challenge: str,
    code_challenge_method: str = "S256",
    scope_separator: str = " ",
    extra_params: Mapping[str, str] | None = None,
) -> str:
    """인증 URL 생성.

    파라미터 순서는 고정이며, scope는 입력 순서를 유지한 채
    scope_separator로 이어 붙입니다. extra_params(access_type, prompt 등)는
    삽입 순서대로 뒤에 붙습니다.

    Returns:
        str: percent-encoding된 인증 URL
    """
    params: list[tuple[str, str]] = [
        ("response_type", "code"),
        ("client_id", client_id),
        ("redirect_uri", redirect_uri),
        ("scope", scope_separator.join(scopes)),
        ("state", state),
        ("code_challenge", code_challenge),
        ("code_challenge_method", code_challenge_method),
    ]
    if extra_params:
        reserved = {name for name, _ in params}
        params.extend(
            (name, value) for name, value in extra_params.items() if name not in reserved
        )

    query = urlencode(params, quote_via=quote, safe="")
    if authorization_endpoint.endswith(("?", "&")):
        separator = ""
    elif urlsplit(authorization_endpoint).query:
        separator = "&"
    else:
        separator = "?"
    return f"{authorization_endpoint}{separator}{query}"
