from core.headers import (
    copy_headers_filtered,
    copy_response_headers_filtered,
    is_cors_header,
    is_hop_by_hop,
    is_valid_header_value,
)


def test_hop_by_hop_names_match_case_insensitively():
    for name in ("Connection", "TE", "Transfer-Encoding", "upgrade", b"HOST", "Proxy-Authorization"):
        assert is_hop_by_hop(name)
    assert not is_hop_by_hop("content-type")
    assert not is_hop_by_hop("authorization")


def test_cors_header_names():
    assert is_cors_header("Access-Control-Allow-Origin")
    assert is_cors_header(b"access-control-request-headers")
    assert not is_cors_header("access-control-unknown")
    assert not is_cors_header("origin")


def test_header_value_validity():
    assert is_valid_header_value(b"application/json; charset=utf-8")
    assert is_valid_header_value(b"tab\tseparated")
    assert is_valid_header_value("café".encode("latin-1"))
    assert not is_valid_header_value(b"bad\r\nvalue")
    assert not is_valid_header_value(b"nul\x00")
    assert not is_valid_header_value(b"del\x7f")


def test_request_copy_skips_hop_by_hop_and_authorization():
    src = [
        (b"Host", b"proxy.local"),
        (b"Authorization", b"Bearer caller"),
        (b"Connection", b"keep-alive"),
        (b"Content-Type", b"application/json"),
        (b"X-Trace", b"abc"),
    ]
    dst = []
    dropped = copy_headers_filtered(src, dst)

    assert dst == [(b"content-type", b"application/json"), (b"x-trace", b"abc")]
    assert dropped == []


def test_request_copy_drops_invalid_values_and_reports_them():
    dst = []
    dropped = copy_headers_filtered([(b"x-ok", b"1"), (b"x-bad", b"a\nb")], dst)

    assert dst == [(b"x-ok", b"1")]
    assert dropped == ["x-bad"]


def test_response_copy_strips_cors_and_keeps_repeated_headers():
    src = [
        (b"Set-Cookie", b"a=1"),
        (b"Access-Control-Allow-Origin", b"https://upstream.example"),
        (b"Transfer-Encoding", b"chunked"),
        (b"Set-Cookie", b"b=2"),
        (b"Authorization", b"kept on responses"),
    ]
    dst = []
    copy_response_headers_filtered(src, dst)

    assert dst == [
        (b"set-cookie", b"a=1"),
        (b"set-cookie", b"b=2"),
        (b"authorization", b"kept on responses"),
    ]
