#!/usr/bin/env python3
"""
Passport admin CLI -- manage administrator accounts and the session cache.

Usage:
  python main.py create-admin --name admin --password 'secret123'
  python main.py create-admin --name ops --password 'pw' --nickname "Ops Team" --disabled
  python main.py set-status --name ops --enable
  python main.py set-status --name ops --disable
  python main.py purge-cache

Environment variables:
  SECRET_KEY, PASSWORD_SALT   Required unless DEBUG=true (see core/config.py).
  AUTH_DB_URL, CACHE_DB_PATH  Override the default SQLite locations.
"""

import argparse
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.credentials import client_digest, generate_salt, hash_password
from auth.models import Admin
from auth.store import AdminStore
from cache.store import TokenCache
from core.config import get_settings


def create_admin(store: AdminStore, name: str, password: str, nickname: str = "", enabled: bool = True) -> int:
    """Create an admin whose password matches what the login form will send.

    The login form submits md5(plaintext), so the stored digest is built from
    that, not from the plaintext itself.
    """
    settings = get_settings()
    salt = generate_salt(settings.password_hash_rounds)
    admin = Admin(
        name=name,
        nickname=nickname or name,
        password=hash_password(client_digest(password), salt, settings.password_salt),
        password_salt=salt,
        status=enabled,
    )
    return store.create_admin(admin)


def _cmd_create_admin(args: argparse.Namespace) -> int:
    store = AdminStore(db_url=get_settings().auth_db_url)
    try:
        admin_id = create_admin(store, args.name, args.password, args.nickname or "", not args.disabled)
    except IntegrityError:
        print(f"  [!] An admin named '{args.name}' already exists.")
        return 1
    finally:
        store.close()
    print(f"  Created admin '{args.name}' (id={admin_id}).")
    return 0


def _cmd_set_status(args: argparse.Namespace) -> int:
    store = AdminStore(db_url=get_settings().auth_db_url)
    try:
        admin = store.get_by_name(args.name)
        if admin is None:
            print(f"  [!] No admin named '{args.name}'.")
            return 1
        store.update_admin(admin.id, status=args.enable)
    finally:
        store.close()
    print(f"  Admin '{args.name}' {'enabled' if args.enable else 'disabled'}.")
    return 0


def _cmd_purge_cache(args: argparse.Namespace) -> int:
    cache = TokenCache(get_settings().cache_db_path)
    try:
        removed = cache.purge_expired()
    finally:
        cache.close()
    print(f"  Removed {removed} expired cache entr{'y' if removed == 1 else 'ies'}.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="passport",
        description="Manage passport administrator accounts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py create-admin --name admin --password 'secret123'
  python main.py set-status --name admin --disable
  python main.py purge-cache
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    create = sub.add_parser("create-admin", help="Create an administrator account")
    create.add_argument("--name", required=True, help="Login name (unique)")
    create.add_argument("--password", required=True, help="Plaintext password")
    create.add_argument("--nickname", default=None, help="Display name (defaults to the login name)")
    create.add_argument("--disabled", action="store_true", help="Create the account disabled")
    create.set_defaults(handler=_cmd_create_admin)

    status = sub.add_parser("set-status", help="Enable or disable an account")
    status.add_argument("--name", required=True, help="Login name")
    toggle = status.add_mutually_exclusive_group(required=True)
    toggle.add_argument("--enable", dest="enable", action="store_true", help="Allow the account to log in")
    toggle.add_argument("--disable", dest="enable", action="store_false", help="Block the account")
    status.set_defaults(handler=_cmd_set_status)

    purge = sub.add_parser("purge-cache", help="Delete expired denylist and captcha entries")
    purge.set_defaults(handler=_cmd_purge_cache)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "handler", None):
        parser.print_help()
        return 1
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
