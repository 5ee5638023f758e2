from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from typing import List

from simint.cli.client_cmds import register_client_commands


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the forwarder.

    Security notes:
    - Bind to 127.0.0.1 by default (safer than 0.0.0.0).

    """

    try:
        import uvicorn
    except Exception as e:
        print(f"error: uvicorn is required to serve the proxy: {e}", file=sys.stderr)
        return 2

    from simint.api.server import config_from_env, create_app

    cfg = config_from_env()
    if args.upstream:
        cfg = replace(cfg, upstream_base_url=args.upstream.rstrip("/"))
    app = create_app(cfg)
    uvicorn.run(app, host=args.host, port=int(args.port), log_level=args.log_level)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="simint", description="SIMINT admin API tools")
    sub = p.add_subparsers(dest="cmd", required=True)

    # --- forwarder ---
    sv = sub.add_parser("serve", help="Run the same-origin API forwarder")
    sv.add_argument("--host", default="127.0.0.1", help="Bind host (default: 127.0.0.1)")
    sv.add_argument("--port", type=int, default=8080, help="Bind port (default: 8080)")
    sv.add_argument("--upstream", default=None, help="Override the upstream API base URL")
    sv.add_argument("--log-level", default="info", help="Uvicorn log level")
    sv.set_defaults(func=cmd_serve)

    # --- API client ---
    register_client_commands(sub)

    return p


def main(argv: List[str] | None = None) -> int:
    """CLI entry."""
    logging.basicConfig(
        level=os.environ.get("SIMINT_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
