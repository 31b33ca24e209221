import pytest
from starlette.requests import ClientDisconnect

from core.builder import RequestBuilder, build_upstream_headers, build_upstream_url, read_body
from core.exceptions import RequestConstructionError, RequestTooLarge

BASE = "https://api.openai.com"


def test_url_with_query():
    url = build_upstream_url(BASE, "chat/completions", "foo=bar")
    assert url == "https://api.openai.com/v1/chat/completions?foo=bar"


def test_url_without_query_has_no_question_mark():
    assert build_upstream_url(BASE, "models", "") == "https://api.openai.com/v1/models"


def test_url_tail_is_not_decoded():
    url = build_upstream_url(BASE + "/", "files/a%2Fb", "")
    assert url == "https://api.openai.com/v1/files/a%2Fb"


def test_invalid_url_is_internal_error():
    with pytest.raises(RequestConstructionError) as exc_info:
        build_upstream_url(BASE, "chat\ncompletions", "")
    assert exc_info.value.status_code == 500


def test_headers_replace_caller_authorization():
    headers, dropped = build_upstream_headers(
        [(b"authorization", b"Bearer caller"), (b"content-type", b"application/json")],
        "sk-upstream",
    )

    assert headers == [
        (b"content-type", b"application/json"),
        (b"authorization", b"Bearer sk-upstream"),
    ]
    assert dropped == []


@pytest.mark.parametrize("api_key", ["sk-ünicode", "sk-line\nbreak"])
def test_unrepresentable_credential_is_internal_error(api_key):
    with pytest.raises(RequestConstructionError) as exc_info:
        build_upstream_headers([], api_key)
    assert exc_info.value.status_code == 500
    assert api_key not in exc_info.value.message


def test_builder_prepares_request():
    builder = RequestBuilder(BASE, "sk-upstream")
    prepared, dropped = builder.build(
        "POST",
        "chat/completions",
        "",
        [(b"host", b"proxy.local"), (b"x-bad", b"\x00")],
        b"{}",
    )

    assert prepared.method == "POST"
    assert prepared.url == "https://api.openai.com/v1/chat/completions"
    assert prepared.headers == [(b"authorization", b"Bearer sk-upstream")]
    assert prepared.body == b"{}"
    assert dropped == ["x-bad"]


async def _chunks(*parts, error=None):
    for part in parts:
        yield part
    if error is not None:
        raise error


@pytest.mark.asyncio
async def test_read_body_joins_chunks():
    assert await read_body(_chunks(b"ab", b"", b"cd"), max_size=10) == b"abcd"


@pytest.mark.asyncio
async def test_read_body_enforces_limit():
    with pytest.raises(RequestTooLarge) as exc_info:
        await read_body(_chunks(b"x" * 6, b"x" * 6), max_size=10)
    assert exc_info.value.status_code == 413


@pytest.mark.asyncio
async def test_read_body_client_disconnect_is_bad_request():
    with pytest.raises(RequestConstructionError) as exc_info:
        await read_body(_chunks(b"partial", error=ClientDisconnect()), max_size=100)
    assert exc_info.value.status_code == 400
