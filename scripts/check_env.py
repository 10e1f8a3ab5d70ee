"""Verify the relay's environment configuration before (re)starting it.

Three checks are available:

1. ``check`` instantiates ``AppSettings`` from the given ``.env`` file so a
   missing Spotify or Telegram credential is caught before the bot starts,
   and reports whether the credential file at ``TOKENS_PATH`` is readable.
2. ``record`` does the same and stores a checksum of the ``.env`` file.
3. ``verify`` compares the ``.env`` file against that checksum to detect
   unexpected edits (for example, from an accidental ``git pull``).

Example usages::

    python -m scripts.check_env record --env-file /opt/nowplaying/.env \
        --hash-file /opt/nowplaying/.env.sha256

    python -m scripts.check_env verify --env-file /opt/nowplaying/.env \
        --hash-file /opt/nowplaying/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import json
import sys
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from nowplaying.core.config import AppSettings, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_RUNTIME_ERROR = 5


def _compute_hash(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _load_settings(env_file: Path) -> AppSettings:
    """Build settings from ``env_file``; raises ``ValidationError`` on gaps."""
    _load_env_file(str(env_file))
    return AppSettings()  # type: ignore[call-arg]


def _describe_credentials(tokens_path: Path) -> str:
    """One-line status of the credential file, without exposing any token."""
    if not tokens_path.exists():
        return f"Credential file {tokens_path} not found (no users authorized yet)."
    try:
        payload = json.loads(tokens_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        return f"Credential file {tokens_path} is unreadable: {exc}"
    if not isinstance(payload, dict):
        return f"Credential file {tokens_path} does not hold a JSON object."
    return f"Credential file {tokens_path} holds {len(payload)} authorized user(s)."


def _record_checksum(env_file: Path, hash_file: Path) -> int:
    checksum = _compute_hash(env_file)
    hash_file.write_text(f"{checksum}\n", encoding="utf-8")
    print(f"Recorded checksum to {hash_file} ({checksum})")
    return EXIT_OK


def _verify_checksum(env_file: Path, hash_file: Path) -> int:
    if not hash_file.exists():
        print(
            f"Expected checksum file {hash_file} is missing. "
            "Run the 'record' command first to establish a baseline.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _compute_hash(env_file)
    if expected == actual:
        print("Environment checksum OK.")
        return EXIT_OK

    print(
        "Environment checksum mismatch!\n"
        f"  expected: {expected}\n"
        f"  actual:   {actual}\n"
        "Review the change before restarting the bot.",
        file=sys.stderr,
    )
    return EXIT_CHECKSUM_ERROR


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate relay settings and detect .env drift."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text, needs_hash in (
        ("check", "Validate settings and report on the credential file.", False),
        ("record", "Validate settings and store the checksum baseline.", True),
        ("verify", "Validate settings and compare against the baseline.", True),
    ):
        subparser = subparsers.add_parser(name, help=help_text)
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env).",
        )
        if needs_hash:
            subparser.add_argument(
                "--hash-file",
                required=True,
                type=Path,
                help="Location of the checksum baseline.",
            )

    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.exists():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        settings = _load_settings(env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    handlers: dict[str, Callable[[], int]] = {
        "check": lambda: EXIT_OK,
        "record": lambda: _record_checksum(env_file, args.hash_file),
        "verify": lambda: _verify_checksum(env_file, args.hash_file),
    }
    print(_describe_credentials(Path(settings.tokens_path)))
    return handlers[args.command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
