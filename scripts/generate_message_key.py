#!/usr/bin/env python3
"""Generate an AES-256 message encryption key for Orbit deployments."""

from __future__ import annotations

import argparse
import os
import re
import secrets
import sys
from pathlib import Path

KEY_BYTES = 32
ENV_VAR_NAME = "MESSAGE_ENCRYPTION_KEY"


def generate_key() -> str:
    """Return 32 random bytes as 64 lowercase hex characters."""
    return secrets.token_hex(KEY_BYTES)


def write_env_key(path: Path, key: str, *, force: bool = False) -> bool:
    """Store the key in an env-style file.

    An existing key is left alone unless ``force`` is set, since rotating it
    makes every stored message unreadable. Returns whether the file changed.
    """
    entry = f"{ENV_VAR_NAME}={key}"
    pattern = re.compile(rf"^{re.escape(ENV_VAR_NAME)}=")

    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = [entry]
    else:
        lines = path.read_text(encoding="utf-8").splitlines()
        index = next((i for i, line in enumerate(lines) if pattern.match(line)), None)
        if index is None:
            lines.append(entry)
        elif force:
            lines[index] = entry
        else:
            return False

    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    try:
        os.chmod(path, 0o600)
    except OSError:
        pass
    return True


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--update-env",
        type=Path,
        metavar="PATH",
        help="Write the generated key into the specified env file.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Replace a key already present in the env file.",
    )
    parser.add_argument(
        "--silent",
        action="store_true",
        help="Do not print the key to stdout.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    key = generate_key()

    if args.update_env:
        if not write_env_key(args.update_env, key, force=args.force):
            print(
                f"{args.update_env} already defines {ENV_VAR_NAME}; pass --force to rotate it.",
                file=sys.stderr,
            )
            return 1
        print(f"Updated {args.update_env} with {ENV_VAR_NAME}.", file=sys.stderr)

    if not args.silent:
        print(key)

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
