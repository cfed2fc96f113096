#!/usr/bin/env python3
"""
Classifieds -- operator command line.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8000
  python main.py serve --reload
  python main.py init-db
  python main.py init-db --database-url sqlite:///classifieds.db

Environment variables:
  SECRET_KEY    Required for `serve`. At least 32 characters.
  DATABASE_URL  Store connection target (default: sqlite:///classifieds.db).
"""

import argparse
from typing import Optional

import uvicorn

from auth.store import AccountStore
from listings.store import ListingStore


def init_db(database_url: str) -> None:
    """Create the accounts and listings tables if they do not exist yet.

    Constructing a store runs metadata.create_all(), which is idempotent.
    """
    accounts = AccountStore(database_url)
    listings = ListingStore(database_url)
    accounts.close()
    listings.close()
    print(f"  Database ready at {database_url}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="classifieds",
        description="Classifieds listing service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  SECRET_KEY=... python main.py serve --port 8000
  python main.py init-db --database-url sqlite:///classifieds.db
        """,
    )
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")

    init = subparsers.add_parser("init-db", help="Create database tables")
    init.add_argument(
        "--database-url",
        metavar="URL",
        default=None,
        help="SQLAlchemy URL; defaults to DATABASE_URL from the environment",
    )

    args = parser.parse_args(argv)

    if args.command == "serve":
        uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    elif args.command == "init-db":
        database_url = args.database_url
        if database_url is None:
            # Imported here so init-db with an explicit URL does not need SECRET_KEY.
            from core.config import get_settings

            database_url = get_settings().database_url
        init_db(database_url)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
