#!/usr/bin/env python3
"""
Reset a user's password in the EventHub SQLite database.

This script does not read or reveal the existing password.  It stores a
new hash (PBKDF2-HMAC-SHA256, format "salthex$hashhex") for the given
e-mail address and logs the user out everywhere by deleting their
sessions.

Usage:
    python reset_password.py --db ./eventhub.db --email user@example.com --password "NewStrongPass!234"

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import asyncio
import getpass
import os
import sys

from eventhub_api.app.core.config import settings
from eventhub_api.app.core.errors import NotFoundError
from eventhub_api.app.services.user_service import UserService


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Reset an EventHub user's password (SQLite).")
    ap.add_argument("--db", help="Path to an existing SQLite DB file (default: $DATABASE_URL or ./eventhub.db)")
    ap.add_argument("--email", required=True, help="User email to update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    return ap.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    if args.db:
        if not os.path.exists(args.db):
            print(f"[!] DB not found: {args.db}", file=sys.stderr)
            return 1
        settings.database_url = os.path.abspath(args.db)

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if len(new_password) < 8:
        print("[!] Password must be at least 8 characters.", file=sys.stderr)
        return 1

    try:
        user = asyncio.run(UserService.set_password(args.email, new_password))
    except NotFoundError:
        print(f"[!] No user found with email: {args.email}", file=sys.stderr)
        return 2
    print(f"[+] Password updated for user: {user.email}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
