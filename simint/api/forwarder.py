"""Same-origin reverse proxy to the upstream admin API.

Each inbound request is relayed once: same method, same path below the mount
point, same query string, same body. The upstream answer comes back with its
status code and body bytes untouched; only transport headers are recomputed.

Security notes:
- The Authorization header is forwarded as-is; the forwarder never inspects
  or logs it.
- Upstream bodies are opaque bytes; they are never parsed.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import httpx
from starlette.requests import ClientDisconnect, Request
from starlette.responses import JSONResponse, Response

from .models import ProxyErrorOut

log = logging.getLogger("simint.api")

FORWARDED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]

# Recomputed by the outgoing request. transfer-encoding is dropped too since
# the body is re-sent with a fixed length. accept-encoding is left to httpx so
# upstream only answers with encodings it can decode.
REQUEST_HOP_HEADERS = frozenset(
    {"host", "connection", "content-length", "transfer-encoding", "accept-encoding"}
)

# Recomputed by the outer HTTP layer; httpx has already decoded the body.
RESPONSE_HOP_HEADERS = frozenset({"content-encoding", "content-length", "transfer-encoding"})

HeaderItems = List[Tuple[str, str]]


class BodyKind(str, Enum):
    """How an inbound request body was interpreted."""

    NONE = "none"  # GET/HEAD, or the body could not be read
    JSON = "json"  # valid JSON, re-serialized
    EMPTY = "empty"  # JSON content type, empty body
    MALFORMED = "malformed"  # JSON content type, invalid JSON
    MULTIPART = "multipart"  # multipart/form-data, relayed untouched
    RAW = "raw"  # any other content type


@dataclass(frozen=True, slots=True)
class ForwardBody:
    """Result of reading the inbound body. `content` is None when no body is sent."""

    kind: BodyKind
    content: Optional[bytes] = None


def build_target_url(base_url: str, path: Union[str, Sequence[str]], query: str = "") -> str:
    """Join path pieces below the upstream base and re-attach the query string."""

    pieces = path.split("/") if isinstance(path, str) else list(path)
    joined = "/".join(p for p in pieces if p != "")
    url = base_url.rstrip("/") + "/" + joined
    if query:
        url += "?" + query
    return url


def forward_request_headers(
    items: Iterable[Tuple[str, str]], *, request_id: Optional[str] = None
) -> HeaderItems:
    """Copy inbound headers minus hop headers and force a JSON Accept."""

    out: HeaderItems = []
    for k, v in items:
        lk = k.lower()
        if lk in REQUEST_HOP_HEADERS or lk == "accept":
            continue
        if request_id and lk == "x-request-id":
            continue
        out.append((lk, v))
    out.append(("accept", "application/json"))
    if request_id:
        out.append(("x-request-id", request_id))
    return out


def clean_response_headers(items: Iterable[Tuple[str, str]]) -> HeaderItems:
    """Copy upstream headers minus the ones the outer layer must recompute.

    Multi-valued headers (set-cookie) are kept as separate items.
    """

    return [(k.lower(), v) for k, v in items if k.lower() not in RESPONSE_HOP_HEADERS]


def interpret_json_body(raw: bytes) -> ForwardBody:
    """Re-serialize a JSON body; empty and malformed bodies forward nothing."""

    if not raw.strip():
        return ForwardBody(BodyKind.EMPTY)
    try:
        parsed = json.loads(raw)
    except ValueError:
        return ForwardBody(BodyKind.MALFORMED)
    return ForwardBody(BodyKind.JSON, json.dumps(parsed).encode("utf-8"))


async def read_forward_body(request: Request) -> ForwardBody:
    """Read the inbound body according to its Content-Type.

    A client that disconnects mid-body yields no body rather than an error.
    """

    if request.method.upper() in ("GET", "HEAD"):
        return ForwardBody(BodyKind.NONE)

    content_type = (request.headers.get("content-type") or "").lower()
    try:
        raw = await request.body()
    except ClientDisconnect:
        return ForwardBody(BodyKind.NONE)

    if "application/json" in content_type:
        return interpret_json_body(raw)
    if "multipart/form-data" in content_type:
        # Bytes and boundary travel together, so the Content-Type header stays valid.
        return ForwardBody(BodyKind.MULTIPART, raw)
    return ForwardBody(BodyKind.RAW, raw if raw else None)


async def forward(
    request: Request,
    path: str,
    *,
    upstream_base_url: str,
    timeout: Optional[float] = 30.0,
    follow_redirects: bool = True,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Response:
    """Relay one request upstream and return the upstream answer.

    Never raises: any failure before a full upstream response is read becomes
    a 502 with `{"error": "Proxy Error", "details": ...}`.
    """

    method = request.method.upper()
    url = build_target_url(upstream_base_url, path, request.url.query)
    rid = getattr(request.state, "request_id", None)

    try:
        headers = forward_request_headers(request.headers.items(), request_id=rid)
        body = await read_forward_body(request)
        request.state.body_kind = body.kind.value

        log.debug(
            "proxy_forward",
            extra={"request_id": rid, "method": method, "url": url, "body_kind": body.kind.value},
        )

        async with httpx.AsyncClient(
            transport=transport, timeout=timeout, follow_redirects=follow_redirects
        ) as client:
            upstream = await client.request(method, url, headers=headers, content=body.content)

        request.state.upstream_status = upstream.status_code
        payload = upstream.content
        response_headers = clean_response_headers(upstream.headers.multi_items())
    except Exception as e:
        log.error(
            "proxy_error",
            extra={"request_id": rid, "method": method, "url": url, "error": str(e)},
        )
        err = ProxyErrorOut(details=str(e) or e.__class__.__name__)
        return JSONResponse(err.model_dump(), status_code=502)

    response = Response(content=payload, status_code=upstream.status_code)
    for k, v in response_headers:
        response.headers.append(k, v)
    return response
