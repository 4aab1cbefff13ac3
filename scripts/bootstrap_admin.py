#!/usr/bin/env python3
"""Create an ADMIN account, or promote an existing user to ADMIN.

    python scripts/bootstrap_admin.py --email ops@example.com --name "Ops" --password "..."

Passing an already-hashed bcrypt value as --password stores it as is.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from app.core.config import DEV_BOOTSTRAP_ALLOW, IS_DEV  # noqa: E402
from app.core.database import SessionLocal, engine  # noqa: E402
from app.services.admin_bootstrap import ensure_users_table, upsert_admin_user  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create or promote an ADMIN user.")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", required=True)
    parser.add_argument("--password", help="required when the account does not exist yet")
    parser.add_argument("--force", action="store_true", help="run even when DEV_BOOTSTRAP_ALLOW is not set")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if not (DEV_BOOTSTRAP_ALLOW or args.force):
        print("Admin bootstrap is disabled. Set DEV_BOOTSTRAP_ALLOW=1 or pass --force.")
        return 1

    try:
        ensure_users_table(engine)
    except RuntimeError as exc:
        print(exc)
        return 1

    db = SessionLocal()
    try:
        admin, created = upsert_admin_user(db, email=args.email, name=args.name, password=args.password)
    except ValueError as exc:
        print(exc)
        return 1
    finally:
        db.close()

    print(f"Admin {'created' if created else 'updated'}: id={admin.id} email={admin.email}")
    if IS_DEV and args.password:
        print(f"Sign in with POST /auth/login as {admin.email}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
