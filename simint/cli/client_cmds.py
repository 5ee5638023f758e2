from __future__ import annotations

import argparse
import getpass
import json
import os
import sys
from typing import Dict, List, Optional

from simint.client.errors import ApiClientError, ApiError
from simint.client.http import ApiClient, create_client
from simint.client.storage import ACCESS_TOKEN_KEY, JsonFileTokenStore
from simint.services import AuthService, DashboardService, SectorService, SettingsService
from simint.utils.json_safe import to_jsonable


def _print_json(obj: object) -> None:
    """Print JSON to stdout."""
    print(json.dumps(to_jsonable(obj), indent=2, sort_keys=True, ensure_ascii=False))


def _print_error(e: Exception) -> int:
    """Report a failed call on stderr. Returns the CLI exit code."""

    if isinstance(e, ApiError):
        body = e.body if e.body is not None else e.message
        text = body if isinstance(body, str) else json.dumps(body, ensure_ascii=False)
        print(f"error: HTTP {e.status}: {text}", file=sys.stderr)
    else:
        print(f"error: {e}", file=sys.stderr)
    return 2


def _parse_pairs(pairs: Optional[List[str]], what: str) -> Dict[str, str]:
    """Parse repeated key=value options."""

    out: Dict[str, str] = {}
    for item in pairs or []:
        if "=" not in item:
            raise SystemExit(f"error: {what} must be key=value, got {item!r}")
        k, v = item.split("=", 1)
        out[k.strip()] = v
    return out


def _store(args: argparse.Namespace) -> JsonFileTokenStore:
    if args.credentials:
        return JsonFileTokenStore(os.path.expanduser(args.credentials))
    return JsonFileTokenStore.from_env()


def _client(args: argparse.Namespace) -> ApiClient:
    """Build a client from CLI flags; stored credentials are restored."""

    return create_client(browser=bool(args.via_proxy), store=_store(args), locale=args.locale)


def cmd_login(args: argparse.Namespace) -> int:
    """POST /auth/login and persist the returned tokens.

    Security notes:
    - The password is read from SIMINT_PASSWORD or prompted, never taken
      from argv (shell history).

    """
    password = os.environ.get("SIMINT_PASSWORD") or getpass.getpass("Password: ")
    with _client(args) as c:
        try:
            out = AuthService(c).login(args.email, password)
        except ApiClientError as e:
            return _print_error(e)
    _print_json({"logged_in": True, "role": out.role, "token_type": out.token_type})
    return 0


def cmd_logout(args: argparse.Namespace) -> int:
    with _client(args) as c:
        AuthService(c).logout()
    _print_json({"logged_in": False})
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Show which base URL would be used and whether credentials are stored."""
    store = _store(args)
    with _client(args) as c:
        _print_json(
            {
                "base_url": c.base_url,
                "credentials": str(store.path),
                "logged_in": store.get(ACCESS_TOKEN_KEY) is not None,
            }
        )
    return 0


def cmd_request(args: argparse.Namespace) -> int:
    """Send one JSON request and print the parsed response."""
    body = None
    if args.data is not None:
        try:
            body = json.loads(args.data)
        except ValueError as e:
            print(f"error: --data is not valid JSON: {e}", file=sys.stderr)
            return 2
    with _client(args) as c:
        try:
            res = c.request(
                args.method,
                args.path,
                body,
                params=_parse_pairs(args.param, "--param"),
                headers=_parse_pairs(args.header, "--header"),
            )
        except ApiClientError as e:
            return _print_error(e)
    _print_json(res)
    return 0


def cmd_upload(args: argparse.Namespace) -> int:
    """Upload a local file as multipart/form-data."""
    with _client(args) as c:
        try:
            res = c.upload(
                args.path,
                args.file,
                args.field,
                _parse_pairs(args.extra, "--extra"),
                method=args.method,
            )
        except (ApiClientError, OSError, ValueError) as e:
            return _print_error(e)
    _print_json(res)
    return 0


def cmd_sectors_list(args: argparse.Namespace) -> int:
    with _client(args) as c:
        try:
            sectors = SectorService(c).list(skip=args.skip, limit=args.limit)
        except ApiClientError as e:
            return _print_error(e)
    _print_json(sectors)
    return 0


def cmd_sectors_create(args: argparse.Namespace) -> int:
    with _client(args) as c:
        try:
            sector = SectorService(c).create(
                args.name, description=args.description, is_active=not args.inactive
            )
        except ApiClientError as e:
            return _print_error(e)
    _print_json(sector)
    return 0


def cmd_sectors_delete(args: argparse.Namespace) -> int:
    with _client(args) as c:
        try:
            SectorService(c).delete(args.sector_id)
        except ApiClientError as e:
            return _print_error(e)
    _print_json({"deleted": args.sector_id})
    return 0


def cmd_settings_list(args: argparse.Namespace) -> int:
    with _client(args) as c:
        try:
            items = SettingsService(c).get_all()
        except ApiClientError as e:
            return _print_error(e)
    _print_json(items)
    return 0


def cmd_settings_set(args: argparse.Namespace) -> int:
    with _client(args) as c:
        try:
            item = SettingsService(c).update(args.key, args.value)
        except ApiClientError as e:
            return _print_error(e)
    _print_json(item)
    return 0


def cmd_dashboard(args: argparse.Namespace) -> int:
    with _client(args) as c:
        try:
            stats = DashboardService(c).get_stats()
        except ApiClientError as e:
            return _print_error(e)
    _print_json(stats)
    return 0


def _add_client_options(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--via-proxy",
        action="store_true",
        help="Route calls through the dashboard forwarder (SIMINT_DASHBOARD_URL)",
    )
    p.add_argument("--locale", default=None, help="Accept-Language sent with every call")
    p.add_argument(
        "--credentials", default=None, help="Credentials file (default ~/.simint/credentials.json)"
    )


def register_client_commands(sub: argparse._SubParsersAction) -> None:
    """Register the API client commands."""

    li = sub.add_parser("login", help="Log in and store the access token")
    li.add_argument("--email", required=True, help="Admin e-mail")
    _add_client_options(li)
    li.set_defaults(func=cmd_login)

    lo = sub.add_parser("logout", help="Forget stored credentials")
    _add_client_options(lo)
    lo.set_defaults(func=cmd_logout)

    st = sub.add_parser("status", help="Show base URL and login state")
    _add_client_options(st)
    st.set_defaults(func=cmd_status)

    rq = sub.add_parser("request", help="Send a raw JSON request to the API")
    rq.add_argument("method", choices=["GET", "POST", "PUT", "PATCH", "DELETE"], type=str.upper)
    rq.add_argument("path", help="Endpoint path, e.g. /sectors")
    rq.add_argument("--param", action="append", help="Query parameter key=value (repeatable)")
    rq.add_argument("--header", action="append", help="Extra header key=value (repeatable)")
    rq.add_argument("--data", default=None, help="JSON request body")
    _add_client_options(rq)
    rq.set_defaults(func=cmd_request)

    up = sub.add_parser("upload", help="Upload a file (multipart/form-data)")
    up.add_argument("path", help="Endpoint path, e.g. /interviews/assets")
    up.add_argument("file", help="Path to local file")
    up.add_argument("--field", default="file", help="Form field name of the file")
    up.add_argument("--extra", action="append", help="Extra form field key=value (repeatable)")
    up.add_argument("--method", default="POST", type=str.upper, help="HTTP method")
    _add_client_options(up)
    up.set_defaults(func=cmd_upload)

    sec = sub.add_parser("sectors", help="Manage business sectors")
    ssub = sec.add_subparsers(dest="sectors_cmd", required=True)
    sl = ssub.add_parser("list", help="List sectors")
    sl.add_argument("--skip", type=int, default=0)
    sl.add_argument("--limit", type=int, default=100)
    _add_client_options(sl)
    sl.set_defaults(func=cmd_sectors_list)
    sc = ssub.add_parser("create", help="Create a sector")
    sc.add_argument("name")
    sc.add_argument("--description", default=None)
    sc.add_argument("--inactive", action="store_true", help="Create the sector disabled")
    _add_client_options(sc)
    sc.set_defaults(func=cmd_sectors_create)
    sd = ssub.add_parser("delete", help="Delete a sector")
    sd.add_argument("sector_id")
    _add_client_options(sd)
    sd.set_defaults(func=cmd_sectors_delete)

    se = sub.add_parser("settings", help="Read or change platform settings")
    sesub = se.add_subparsers(dest="settings_cmd", required=True)
    sel = sesub.add_parser("list", help="List all settings")
    _add_client_options(sel)
    sel.set_defaults(func=cmd_settings_list)
    ses = sesub.add_parser("set", help="Update one setting")
    ses.add_argument("key")
    ses.add_argument("value")
    _add_client_options(ses)
    ses.set_defaults(func=cmd_settings_set)

    db = sub.add_parser("dashboard", help="Show admin dashboard KPIs")
    _add_client_options(db)
    db.set_defaults(func=cmd_dashboard)
