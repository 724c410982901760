"""Generate, validate and back up the signing secrets kept in .env.

Usage:
  news-agg-secrets generate          # fill in missing or placeholder secrets
  news-agg-secrets force             # regenerate every secret
  news-agg-secrets validate          # report missing and weak secrets
  news-agg-secrets backup            # copy .env to .env.backup.<timestamp>

Pass --env-file to work on a file other than ./.env.
"""
import argparse
import secrets
import shutil
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from dotenv import dotenv_values, set_key

MIN_SECRET_LENGTH = 32
STRONG_SECRET_LENGTH = 64
PLACEHOLDER_MARKERS = ("your_", "change_this", "placeholder")


@dataclass(frozen=True)
class SecretSpec:
    key: str
    nbytes: int
    description: str


SECRETS = (
    SecretSpec("JWT_SECRET", 64, "Access token signing secret"),
    SecretSpec("JWT_REFRESH_SECRET", 64, "Refresh token signing secret"),
    SecretSpec("SESSION_SECRET", 32, "OAuth handshake session cookie secret"),
)


@dataclass
class ValidationReport:
    missing: list[str] = field(default_factory=list)
    weak: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.missing


def is_usable_secret(value: str | None) -> bool:
    """Long enough and not an example placeholder."""
    if not value:
        return False
    value = value.strip()
    return len(value) >= MIN_SECRET_LENGTH and not any(m in value for m in PLACEHOLDER_MARKERS)


def ensure_env_file(env_path: Path) -> Path:
    if not env_path.exists():
        env_path.write_text("# News Aggregator environment\n", encoding="utf-8")
    return env_path


def generate_secrets(env_path: Path, *, force: bool = False) -> list[str]:
    """Write a fresh hex secret for every key that is missing or unusable.

    Returns the keys that were written. With ``force`` every key is rewritten.
    """
    ensure_env_file(env_path)
    current = dotenv_values(env_path)
    written = []
    for spec in SECRETS:
        if force or not is_usable_secret(current.get(spec.key)):
            set_key(str(env_path), spec.key, secrets.token_hex(spec.nbytes), quote_mode="never")
            written.append(spec.key)
    return written


def validate_secrets(env_path: Path) -> ValidationReport:
    report = ValidationReport()
    if not env_path.exists():
        report.missing = [spec.key for spec in SECRETS]
        return report
    current = dotenv_values(env_path)
    for spec in SECRETS:
        value = current.get(spec.key)
        if not is_usable_secret(value):
            report.missing.append(spec.key)
        elif len(value.strip()) < STRONG_SECRET_LENGTH:
            report.weak.append(spec.key)
    return report


def backup_env(env_path: Path, now: datetime | None = None) -> Path:
    """Copy the env file next to itself with a timestamp suffix."""
    if not env_path.exists():
        raise FileNotFoundError(env_path)
    stamp = (now or datetime.now()).strftime("%Y%m%d%H%M%S")
    target = env_path.with_name(f"{env_path.name}.backup.{stamp}")
    shutil.copy2(env_path, target)
    return target


def _print_written(written: list[str]) -> None:
    descriptions = {spec.key: spec.description for spec in SECRETS}
    if not written:
        print("All secrets already present; nothing changed")
        return
    for key in written:
        print(f"  {key}: {descriptions[key]}")
    print("Secrets saved. Never commit the .env file.")


def cmd_generate(args: argparse.Namespace) -> int:
    _print_written(generate_secrets(args.env_file))
    return 0


def cmd_force(args: argparse.Namespace) -> int:
    backup = backup_env(args.env_file) if args.env_file.exists() else None
    if backup is not None:
        print(f"Previous values backed up to {backup}")
    _print_written(generate_secrets(args.env_file, force=True))
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    report = validate_secrets(args.env_file)
    for key in report.missing:
        print(f"missing: {key}")
    for key in report.weak:
        print(f"weak (< {STRONG_SECRET_LENGTH} chars): {key}")
    if report.valid and not report.weak:
        print("All secrets are valid")
    return 0 if report.valid else 1


def cmd_backup(args: argparse.Namespace) -> int:
    try:
        target = backup_env(args.env_file)
    except FileNotFoundError:
        print(f"No env file at {args.env_file}", file=sys.stderr)
        return 1
    print(f"Backed up to {target}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="news-agg-secrets", description=__doc__.splitlines()[0])
    parser.add_argument("--env-file", type=Path, default=Path(".env"))
    sub = parser.add_subparsers(dest="command", required=True)
    for name, func, help_text in (
        ("generate", cmd_generate, "Create missing secrets"),
        ("force", cmd_force, "Regenerate all secrets (backs up first)"),
        ("validate", cmd_validate, "Check required secrets"),
        ("backup", cmd_backup, "Back up the env file"),
    ):
        sub.add_parser(name, help=help_text).set_defaults(func=func)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
