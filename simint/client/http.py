"""HTTP client for the SIMINT admin API.

Every call goes through one pipeline: build URL + headers + body, send once,
parse the response, raise ApiError on non-2xx. A 401 terminates the session
before the error reaches the caller.

Security notes:
- Treat server responses as untrusted input.
- Never log tokens or request/response bodies.
"""
from __future__ import annotations

import json
import logging
import mimetypes
import os
from typing import IO, Any, Dict, List, Mapping, Optional, Tuple, Union

import httpx

from simint.utils.json_safe import to_jsonable

from .environment import Environment, resolve_environment
from .errors import ApiError, NetworkError, error_message
from .session import Session, SessionExpired
from .storage import TokenStore

log = logging.getLogger("simint.client")

DEFAULT_TIMEOUT_SEC = 30.0
DEFAULT_MAX_UPLOAD_BYTES = 25 * 1024 * 1024

ParamValue = Union[str, int, float, bool, None]
Params = Mapping[str, ParamValue]
FileInput = Union[
    str,
    os.PathLike,
    bytes,
    IO[bytes],
    Tuple[str, Union[bytes, IO[bytes]]],
    Tuple[str, Union[bytes, IO[bytes]], str],
]


def _param_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def clean_params(params: Optional[Params]) -> Dict[str, str]:
    """Drop None and empty-string values; stringify the rest."""

    out: Dict[str, str] = {}
    for key, value in (params or {}).items():
        if value is None or value == "":
            continue
        out[str(key)] = _param_str(value)
    return out


def parse_body(text: str) -> Any:
    """Parse a response body as JSON, falling back to the raw text.

    An empty body parses to None.
    """

    if not text or not text.strip():
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


def _read_file_bounded(path: str, max_bytes: int) -> bytes:
    """Read file bytes up to a maximum."""

    st = os.stat(path)
    if st.st_size > max_bytes:
        raise ValueError(f"file too large for client upload cap: {st.st_size} > {max_bytes}")
    with open(path, "rb") as f:
        data = f.read()
    if len(data) > max_bytes:
        raise ValueError("file too large for client upload cap")
    return data


def _content_type_for(filename: str) -> str:
    return mimetypes.guess_type(filename)[0] or "application/octet-stream"


class ApiClient:
    """Typed client for the admin API.

    Args:
      environment: hosting context; decides the base URL and what happens on
        session expiry
      session: owner of the bearer token (a fresh in-memory one by default)
      timeout: per-request timeout in seconds (None disables)
      transport: optional httpx transport (tests inject httpx.MockTransport)
      http_client: pre-built httpx.Client to send through (overrides timeout
        and transport; the caller keeps ownership)

    Calls are single-shot: no retries, no backoff, no cancellation.

    Security notes:
    - Enforces a max upload size for every file input (path, bytes, file
      object); file objects are read at most one byte past the cap.
    - Does NOT disable TLS verification.

    """

    def __init__(
        self,
        environment: Environment,
        session: Optional[Session] = None,
        *,
        timeout: Optional[float] = DEFAULT_TIMEOUT_SEC,
        transport: Optional[httpx.BaseTransport] = None,
        http_client: Optional[httpx.Client] = None,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    ):
        self.environment = environment
        self.base_url = environment.base_url
        self.session = session if session is not None else Session()
        self.max_upload_bytes = int(max_upload_bytes)
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(
            transport=transport, timeout=timeout, follow_redirects=True
        )

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def set_token(self, token: Optional[str]) -> None:
        self.session.set_token(token)

    # -- request building -------------------------------------------------

    def build_url(self, endpoint: str, params: Optional[Params] = None) -> str:
        """Resolve an endpoint against the base URL and append query params.

        Absolute endpoints are used as-is. A query string already present on
        the endpoint is kept and extended.
        """

        if endpoint.startswith(("http://", "https://")):
            url = httpx.URL(endpoint)
        else:
            url = httpx.URL(self.base_url + "/" + endpoint.lstrip("/"))
        cleaned = clean_params(params)
        if cleaned:
            url = url.copy_merge_params(cleaned)
        return str(url)

    def build_headers(
        self, *, json_body: bool, extra: Optional[Mapping[str, str]] = None
    ) -> Dict[str, str]:
        """Headers for one call. The token is read now, not at send time."""

        headers: Dict[str, str] = {}
        if json_body:
            headers["Content-Type"] = "application/json"
        token = self.session.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if self.session.locale:
            headers["Accept-Language"] = self.session.locale
        if extra:
            headers.update(extra)
        return headers

    # -- verbs ------------------------------------------------------------

    def request(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        *,
        params: Optional[Params] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Send a JSON request and return the parsed response body."""

        method = method.upper()
        url = self.build_url(endpoint, params)
        hdrs = self.build_headers(json_body=True, extra=headers)
        content = None
        if body is not None:
            content = json.dumps(body, default=to_jsonable).encode("utf-8")
        return self._send(method, url, headers=hdrs, content=content)

    def get(
        self,
        endpoint: str,
        *,
        params: Optional[Params] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return self.request("GET", endpoint, params=params, headers=headers)

    def post(
        self,
        endpoint: str,
        body: Any = None,
        *,
        params: Optional[Params] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return self.request("POST", endpoint, body, params=params, headers=headers)

    def put(
        self,
        endpoint: str,
        body: Any = None,
        *,
        params: Optional[Params] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return self.request("PUT", endpoint, body, params=params, headers=headers)

    def patch(
        self,
        endpoint: str,
        body: Any = None,
        *,
        params: Optional[Params] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return self.request("PATCH", endpoint, body, params=params, headers=headers)

    def delete(
        self,
        endpoint: str,
        body: Any = None,
        *,
        params: Optional[Params] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return self.request("DELETE", endpoint, body, params=params, headers=headers)

    def upload(
        self,
        endpoint: str,
        file: FileInput,
        field_name: str = "file",
        extra_fields: Optional[Mapping[str, Any]] = None,
        method: str = "POST",
        *,
        params: Optional[Params] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Send a multipart/form-data request.

        The primary file is always appended under `field_name`. Auxiliary
        fields: bytes values are sent as file parts, None is skipped, anything
        else is sent as a string field.

        No Content-Type header is set here; httpx writes the multipart one
        with its boundary.
        """

        files: List[Tuple[str, Tuple[str, Any, str]]] = [
            (field_name, self._file_part(file, default_name=field_name))
        ]
        data: Dict[str, str] = {}
        for name, value in (extra_fields or {}).items():
            if value is None:
                continue
            if isinstance(value, (bytes, bytearray)):
                files.append((name, (name, bytes(value), "application/octet-stream")))
            else:
                data[name] = _param_str(value)

        extra = {k: v for k, v in (headers or {}).items() if k.lower() != "content-type"}
        hdrs = self.build_headers(json_body=False, extra=extra)
        url = self.build_url(endpoint, params)
        return self._send(method.upper(), url, headers=hdrs, files=files, data=data or None)

    # -- internals --------------------------------------------------------

    def _bounded(self, content: Any) -> bytes:
        """Return upload bytes, reading file objects at most one byte past the cap."""

        if hasattr(content, "read"):
            content = content.read(self.max_upload_bytes + 1)
        data = bytes(content)
        if len(data) > self.max_upload_bytes:
            raise ValueError("file too large for client upload cap")
        return data

    def _file_part(self, file: FileInput, *, default_name: str) -> Tuple[str, Any, str]:
        """Normalize the supported file inputs to an httpx file tuple."""

        if isinstance(file, tuple):
            if len(file) == 3:
                filename, content, ctype = file
            else:
                filename, content = file
                ctype = _content_type_for(filename)
            return (filename, self._bounded(content), ctype)
        if isinstance(file, (bytes, bytearray)):
            return (default_name, self._bounded(file), "application/octet-stream")
        if isinstance(file, (str, os.PathLike)):
            path = os.fspath(file)
            filename = os.path.basename(path)
            data = _read_file_bounded(path, self.max_upload_bytes)
            return (filename, data, _content_type_for(filename))
        if hasattr(file, "read"):
            filename = os.path.basename(str(getattr(file, "name", "") or default_name))
            return (filename, self._bounded(file), _content_type_for(filename))
        raise TypeError(f"unsupported file input: {type(file)!r}")

    def _send(self, method: str, url: str, **kwargs: Any) -> Any:
        log.debug("api_call", extra={"method": method, "url": url})
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise NetworkError(f"network error: {e}") from e
        return self._handle_response(method, url, response)

    def _handle_response(self, method: str, url: str, response: httpx.Response) -> Any:
        body = parse_body(response.text)
        if response.is_success:
            return body

        message = error_message(body, response.reason_phrase)
        if response.status_code == 401:
            event = SessionExpired(method=method, url=url, status=401, message=message)
            self.session.expire(event)
            self.environment.on_session_expired(event)
        raise ApiError(response.status_code, body, message)


def create_client(
    *,
    browser: bool = False,
    store: Optional[TokenStore] = None,
    locale: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    **kwargs: Any,
) -> ApiClient:
    """Build a client for the current process and restore stored credentials."""

    environment = resolve_environment(browser=browser, env=env)
    session = Session(store, locale=locale)
    session.restore()
    return ApiClient(environment, session, **kwargs)
