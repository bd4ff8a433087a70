"""
Manage API clients (client_credentials) from the command line.

Usage:
  python scripts/api_clients.py list
  python scripts/api_clients.py create --client-id shop-sync --secret '...' [--name "Shop sync"] [--lifetime 3600]
  python scripts/api_clients.py update 3 [--name ...] [--secret ...] [--active/--inactive] [--lifetime N]
  python scripts/api_clients.py delete 3
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.storeapi.clients import ClientService
from scripts._db_utils import resolve_database_url, script_session


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Manage store API clients.")
    p.add_argument("--database-url", default=None, help="Defaults to DATABASE_URL.")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List all clients.")

    c = sub.add_parser("create", help="Create a client.")
    c.add_argument("--client-id", required=True)
    c.add_argument("--secret", required=True)
    c.add_argument("--name", default="")
    c.add_argument("--lifetime", type=int, default=None, help="Access token lifetime in seconds.")

    u = sub.add_parser("update", help="Update a client by numeric id.")
    u.add_argument("id", type=int)
    u.add_argument("--name", default=None)
    u.add_argument("--secret", default=None)
    u.add_argument("--lifetime", type=int, default=None)
    active = u.add_mutually_exclusive_group()
    active.add_argument("--active", dest="is_active", action="store_true", default=None)
    active.add_argument("--inactive", dest="is_active", action="store_false")

    d = sub.add_parser("delete", help="Delete a client by numeric id.")
    d.add_argument("id", type=int)
    return p


def run(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    db_url = resolve_database_url(args.database_url)

    try:
        with script_session(db_url) as s:
            svc = ClientService(s)
            if args.command == "list":
                for c in svc.get_all_clients():
                    state = "active" if c.is_active else "inactive"
                    print(f"{c.id}\t{c.client_id}\t{c.name}\t{state}\t{c.access_token_lifetime or '-'}")
            elif args.command == "create":
                new_id = svc.insert_client(
                    client_id=args.client_id,
                    client_secret=args.secret,
                    name=args.name,
                    access_token_lifetime=args.lifetime,
                )
                print(f"Created API client {args.client_id} (id={new_id})")
            elif args.command == "update":
                c = svc.update_client(
                    args.id,
                    name=args.name,
                    client_secret=args.secret,
                    is_active=args.is_active,
                    access_token_lifetime=args.lifetime,
                )
                print(f"Updated API client {c.client_id} (id={c.id})")
            elif args.command == "delete":
                svc.delete_client(args.id)
                print(f"Deleted API client id={args.id}")
    except (ValueError, LookupError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
