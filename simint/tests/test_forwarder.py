from __future__ import annotations

import gzip
import io
import json
import logging

import httpx
from fastapi.testclient import TestClient

from simint.api.forwarder import (
    BodyKind,
    build_target_url,
    clean_response_headers,
    forward_request_headers,
    interpret_json_body,
)
from simint.api.server import ProxyConfig, config_from_env, create_app

UPSTREAM = "https://upstream.test/api/v1"


def _client(handler) -> TestClient:
    app = create_app(
        ProxyConfig(upstream_base_url=UPSTREAM), transport=httpx.MockTransport(handler)
    )
    return TestClient(app)


def test_build_target_url_joins_pieces_and_keeps_query() -> None:
    assert build_target_url(UPSTREAM, ["sectors", "42"], "a=1&b=2") == (
        "https://upstream.test/api/v1/sectors/42?a=1&b=2"
    )
    assert build_target_url(UPSTREAM + "/", "users/me") == "https://upstream.test/api/v1/users/me"


def test_request_headers_drop_hop_headers_and_force_json_accept() -> None:
    out = forward_request_headers(
        [
            ("Host", "dashboard.local"),
            ("Connection", "keep-alive"),
            ("Content-Length", "12"),
            ("Accept", "*/*"),
            ("Authorization", "Bearer t0k"),
            ("Accept-Language", "fr"),
        ]
    )
    names = [k for k, _ in out]
    assert "host" not in names
    assert "connection" not in names
    assert "content-length" not in names
    assert ("accept", "application/json") in out
    assert names.count("accept") == 1
    assert ("authorization", "Bearer t0k") in out
    assert ("accept-language", "fr") in out


def test_response_headers_drop_transport_headers() -> None:
    out = clean_response_headers(
        [
            ("Content-Encoding", "gzip"),
            ("Content-Length", "10"),
            ("Transfer-Encoding", "chunked"),
            ("Content-Type", "application/json"),
            ("Set-Cookie", "a=1"),
            ("Set-Cookie", "b=2"),
        ]
    )
    assert out == [
        ("content-type", "application/json"),
        ("set-cookie", "a=1"),
        ("set-cookie", "b=2"),
    ]


def test_json_body_interpretation_distinguishes_empty_and_malformed() -> None:
    assert interpret_json_body(b"").kind is BodyKind.EMPTY
    assert interpret_json_body(b"  \n").kind is BodyKind.EMPTY

    bad = interpret_json_body(b"{not json")
    assert bad.kind is BodyKind.MALFORMED
    assert bad.content is None

    ok = interpret_json_body(b'{"name":"X"}')
    assert ok.kind is BodyKind.JSON
    assert json.loads(ok.content) == {"name": "X"}


def test_get_is_forwarded_with_path_query_and_auth() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        return httpx.Response(200, json={"data": [{"id": "1", "name": "Tech"}]})

    client = _client(handler)
    r = client.get(
        "/api/proxy/sectors?skip=0&limit=10",
        headers={"Authorization": "Bearer abc", "Accept": "text/html"},
    )

    assert r.status_code == 200
    assert r.json() == {"data": [{"id": "1", "name": "Tech"}]}
    assert seen["method"] == "GET"
    assert seen["url"] == "https://upstream.test/api/v1/sectors?skip=0&limit=10"
    assert seen["headers"]["authorization"] == "Bearer abc"
    assert seen["headers"]["accept"] == "application/json"
    # Host is the upstream's, never the dashboard's.
    assert seen["headers"]["host"] == "upstream.test"


def test_json_body_is_reserialized() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["content"] = request.content
        seen["content_length"] = request.headers.get("content-length")
        return httpx.Response(201, json={"data": {"id": "9", "name": "X"}})

    client = _client(handler)
    r = client.post(
        "/api/proxy/sectors",
        content=b'{"name":"X"}',
        headers={"Content-Type": "application/json"},
    )

    assert r.status_code == 201
    assert json.loads(seen["content"]) == {"name": "X"}
    assert seen["content_length"] == str(len(seen["content"]))


def test_malformed_json_body_is_dropped() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["content"] = request.content
        return httpx.Response(422, json={"message": "body required"})

    client = _client(handler)
    r = client.put(
        "/api/proxy/sectors/1",
        content=b"{oops",
        headers={"Content-Type": "application/json"},
    )

    assert r.status_code == 422
    assert r.json() == {"message": "body required"}
    assert seen["content"] == b""


def test_multipart_body_is_relayed_with_its_boundary() -> None:
    seen = {}
    png = b"\x89PNG\r\n\x1a\n" + bytes(range(64))

    def handler(request: httpx.Request) -> httpx.Response:
        seen["content_type"] = request.headers["content-type"]
        seen["content"] = request.content
        return httpx.Response(201, json={"data": {"id": "a1"}})

    client = _client(handler)
    r = client.post(
        "/api/proxy/interviews/assets",
        files={"image": ("bg.png", io.BytesIO(png), "image/png")},
        data={"name": "Office", "country_code": "FR"},
    )

    assert r.status_code == 201
    assert seen["content_type"].startswith("multipart/form-data; boundary=")
    boundary = seen["content_type"].split("boundary=", 1)[1].encode()
    assert boundary in seen["content"]
    assert b'name="image"; filename="bg.png"' in seen["content"]
    assert png in seen["content"]
    assert b"Office" in seen["content"]


def test_other_content_types_are_forwarded_raw() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["content"] = request.content
        return httpx.Response(204)

    client = _client(handler)
    r = client.patch(
        "/api/proxy/settings/voice",
        content=b"plain text value",
        headers={"Content-Type": "text/plain"},
    )

    assert r.status_code == 204
    assert seen["content"] == b"plain text value"


def test_binary_response_passes_through_byte_for_byte() -> None:
    blob = bytes(range(256)) * 4

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            418, content=blob, headers={"Content-Type": "application/octet-stream"}
        )

    client = _client(handler)
    r = client.delete("/api/proxy/jobs/7")

    assert r.status_code == 418
    assert r.content == blob
    assert r.headers["content-type"] == "application/octet-stream"


def test_transport_response_headers_are_recomputed() -> None:
    payload = b'{"data": {"kpis": {}}}'

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            content=gzip.compress(payload),
            headers=[
                ("Content-Type", "application/json"),
                ("Content-Encoding", "gzip"),
                ("Set-Cookie", "a=1"),
                ("Set-Cookie", "b=2"),
            ],
        )

    client = _client(handler)
    r = client.get("/api/proxy/dashboard/admin")

    assert r.status_code == 200
    assert r.content == payload
    assert "content-encoding" not in r.headers
    assert "transfer-encoding" not in r.headers
    assert r.headers["content-length"] == str(len(payload))
    assert r.headers.get_list("set-cookie") == ["a=1", "b=2"]


def test_upstream_errors_are_relayed_verbatim() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "Token expired"})

    client = _client(handler)
    r = client.post("/api/proxy/sectors", json={"name": "X"})

    assert r.status_code == 401
    assert r.json() == {"message": "Token expired"}


def test_connection_failure_becomes_proxy_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    r = client.get("/api/proxy/sectors")

    assert r.status_code == 502
    assert r.json() == {"error": "Proxy Error", "details": "connection refused"}


def test_request_id_is_propagated_upstream() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["rid"] = request.headers.get("x-request-id")
        return httpx.Response(200, json={})

    client = _client(handler)
    r = client.get("/api/proxy/users/me", headers={"X-Request-ID": "rid-123"})

    assert r.status_code == 200
    assert seen["rid"] == "rid-123"
    assert r.headers["x-request-id"] == "rid-123"


def test_unsupported_method_is_not_forwarded() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200)

    client = _client(handler)
    r = client.options("/api/proxy/sectors")

    assert r.status_code == 405
    assert calls == []


def test_health_reports_upstream() -> None:
    client = _client(lambda request: httpx.Response(200))
    r = client.get("/health")

    assert r.status_code == 200
    assert r.json() == {"ok": True, "upstream": UPSTREAM, "mount_path": "/api/proxy"}


def test_request_headers_drop_accept_encoding() -> None:
    out = forward_request_headers([("Accept-Encoding", "gzip, deflate, br, zstd")])
    assert "accept-encoding" not in [k for k, _ in out]


def test_browser_accept_encoding_is_not_relayed() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["accept_encoding"] = request.headers.get("accept-encoding", "")
        return httpx.Response(200, json={"data": []})

    client = _client(handler)
    r = client.get(
        "/api/proxy/sectors",
        headers={"Accept-Encoding": "gzip, deflate, br, zstd, x-exotic-codec"},
    )

    assert r.status_code == 200
    assert r.json() == {"data": []}
    # httpx negotiates its own encodings, ones it is able to decode
    assert "x-exotic-codec" not in seen["accept_encoding"]
    assert seen["accept_encoding"] != "gzip, deflate, br, zstd, x-exotic-codec"


def test_access_log_records_body_kind_and_upstream_status(caplog) -> None:
    caplog.set_level(logging.INFO, logger="simint.api")
    client = _client(lambda request: httpx.Response(404, json={"message": "Not found"}))

    r = client.post("/api/proxy/sectors", json={"name": "X"})
    assert r.status_code == 404

    records = [rec for rec in caplog.records if rec.getMessage() == "api_request"]
    assert len(records) == 1
    assert records[0].body_kind == "json"
    assert records[0].upstream_status == 404
    assert records[0].status_code == 404
    assert records[0].proxied is True


def test_access_log_for_proxy_error_has_no_upstream_status(caplog) -> None:
    caplog.set_level(logging.INFO, logger="simint.api")

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    r = _client(handler).get("/api/proxy/sectors")
    assert r.status_code == 502

    rec = [rec for rec in caplog.records if rec.getMessage() == "api_request"][0]
    assert rec.body_kind == "none"
    assert rec.upstream_status is None


def test_follow_redirects_env_accepts_words(monkeypatch) -> None:
    monkeypatch.setenv("SIMINT_API_URL", UPSTREAM)
    monkeypatch.setenv("SIMINT_PROXY_FOLLOW_REDIRECTS", "false")
    assert config_from_env().follow_redirects is False

    monkeypatch.setenv("SIMINT_PROXY_FOLLOW_REDIRECTS", "True")
    assert config_from_env().follow_redirects is True

    monkeypatch.setenv("SIMINT_PROXY_FOLLOW_REDIRECTS", "0")
    assert config_from_env().follow_redirects is False

    monkeypatch.setenv("SIMINT_PROXY_FOLLOW_REDIRECTS", "sometimes")
    assert config_from_env().follow_redirects is True
