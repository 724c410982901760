"""Database maintenance CLI: Alembic migrations, table bootstrap and admin promotion.

Usage:
  news-agg-db upgrade [REVISION]
  news-agg-db downgrade REVISION
  news-agg-db revision -m "add column"
  news-agg-db create-tables
  news-agg-db promote alice@newsmail.io
"""
import argparse
import subprocess
import sys
from pathlib import Path

from sqlmodel import select

from news_agg.config import Settings
from news_agg.db.models import Role, User
from news_agg.db.sessions import create_db_engine, init_db, session_scope
from news_agg.utils import normalize_email, utcnow

# Project root: .../src/news_agg/db/cli.py -> project root
_PROJECT_ROOT = Path(__file__).resolve().parents[3]


def _run_alembic(*args: str) -> int:
    """Run alembic from the project root (where alembic.ini lives)."""
    completed = subprocess.run(
        [sys.executable, "-m", "alembic", *args],
        cwd=_PROJECT_ROOT,
        check=False,
    )
    return completed.returncode


def cmd_upgrade(args: argparse.Namespace) -> int:
    return _run_alembic("upgrade", args.revision)


def cmd_downgrade(args: argparse.Namespace) -> int:
    return _run_alembic("downgrade", args.revision)


def cmd_revision(args: argparse.Namespace) -> int:
    return _run_alembic("revision", "--autogenerate", "-m", args.message)


def cmd_create_tables(_: argparse.Namespace) -> int:
    engine = create_db_engine(Settings.from_env())
    init_db(engine)
    print("Tables created")
    return 0


def cmd_promote(args: argparse.Namespace) -> int:
    engine = create_db_engine(Settings.from_env())
    email = normalize_email(args.email)
    with session_scope(engine) as session:
        user = session.exec(select(User).where(User.email == email)).first()
        if user is None:
            print(f"No user with email {email}", file=sys.stderr)
            return 1
        user.role = Role.USER if args.demote else Role.ADMIN
        user.updated_at = utcnow()
        session.add(user)
        print(f"{email} -> {user.role}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="news-agg-db", description=__doc__.splitlines()[0])
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("upgrade", help="Apply migrations (default: head)")
    p.add_argument("revision", nargs="?", default="head")
    p.set_defaults(func=cmd_upgrade)

    p = sub.add_parser("downgrade", help="Revert migrations down to REVISION")
    p.add_argument("revision")
    p.set_defaults(func=cmd_downgrade)

    p = sub.add_parser("revision", help="Autogenerate a migration from the models")
    p.add_argument("-m", "--message", required=True)
    p.set_defaults(func=cmd_revision)

    p = sub.add_parser("create-tables", help="Create missing tables without Alembic")
    p.set_defaults(func=cmd_create_tables)

    p = sub.add_parser("promote", help="Grant (or with --demote revoke) the admin role")
    p.add_argument("email")
    p.add_argument("--demote", action="store_true")
    p.set_defaults(func=cmd_promote)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
