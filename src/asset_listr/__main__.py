from __future__ import annotations

import argparse
import json
import os

from .config import get_settings
from .controllers.listing import ListingController
from .exceptions import AssetListrError, ConfigurationError
from .gateway import SQLiteGateway, get_gateway
from .log import configure_logging
from .search.filters import PRICE_FILTERS, TYPE_FILTERS, FilterCriteria, price_band_options


def _cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run("asset_listr.api.app:app", host=args.host, port=int(args.port))
    return 0


def _cmd_list(args) -> int:
    settings = get_settings()
    email = args.email or os.getenv("ASSET_LISTR_EMAIL", "")
    password = args.password or os.getenv("ASSET_LISTR_PASSWORD", "")
    if not email or not password:
        raise AssetListrError("list requires --email and --password (or ASSET_LISTR_EMAIL/ASSET_LISTR_PASSWORD)")

    gateway = get_gateway(settings)
    try:
        gateway.sign_in(email, password)
        controller = ListingController(
            gateway,
            FilterCriteria(
                search_query=args.query or "",
                type_filter=args.type,
                price_filter=args.price,
            ),
        )
        controller.activate()
        payload = controller.state.to_dict()
        payload["ok"] = controller.state.error_status is None
    finally:
        gateway.close()

    print(json.dumps(payload))
    return 0 if payload["ok"] else 1


def _cmd_add_agent(args) -> int:
    settings = get_settings()
    if settings.backend != "sqlite":
        raise AssetListrError("add-agent only works with ASSET_LISTR_BACKEND=sqlite")
    gateway = SQLiteGateway(args.db or settings.sqlite_path)
    try:
        profile = gateway.create_agent(
            args.email,
            args.password,
            full_name=args.full_name,
            phone=args.phone,
        )
    finally:
        gateway.close()
    print(json.dumps({"ok": True, "profile": profile.model_dump()}))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="asset_listr", description="Property listing manager")
    parser.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, etc.)")
    parser.add_argument("--log-json", action="store_true", help="Emit JSON log lines")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_serve = sub.add_parser("serve", help="Run the web API")
    p_serve.add_argument("--host", default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=8000)

    p_list = sub.add_parser("list", help="Sign in and print the filtered listings")
    p_list.add_argument("--email", default=None)
    p_list.add_argument("--password", default=None)
    p_list.add_argument("--query", default="", help="Match title or location")
    p_list.add_argument("--type", choices=TYPE_FILTERS, default="all")
    p_list.add_argument("--price", choices=PRICE_FILTERS, default="all")

    p_agent = sub.add_parser("add-agent", help="Create an agent in the local SQLite backend")
    p_agent.add_argument("--db", default=None, help="SQLite path (defaults to ASSET_LISTR_SQLITE_PATH)")
    p_agent.add_argument("--email", required=True)
    p_agent.add_argument("--password", required=True)
    p_agent.add_argument("--full-name", default=None)
    p_agent.add_argument("--phone", default=None)

    sub.add_parser("price-bands", help="Print the price band registry")

    args = parser.parse_args(argv)

    if args.cmd == "price-bands":
        print(json.dumps({"price_bands": price_band_options()}))
        return 0

    # Missing configuration is fatal before any command runs.
    settings = get_settings()
    configure_logging(
        args.log_level or settings.log_level,
        json_lines=args.log_json or settings.log_json,
    )

    if args.cmd == "serve":
        return _cmd_serve(args)
    if args.cmd == "list":
        return _cmd_list(args)
    if args.cmd == "add-agent":
        return _cmd_add_agent(args)

    parser.error("Unknown command")
    return 2


def run() -> None:
    try:
        code = main()
    except SystemExit:
        raise
    except ConfigurationError as exc:
        print(json.dumps({"error": str(exc), "fatal": True}))
        raise SystemExit(2)
    except AssetListrError as exc:
        print(json.dumps({"error": str(exc)}))
        raise SystemExit(1)
    raise SystemExit(code)


if __name__ == "__main__":
    run()
