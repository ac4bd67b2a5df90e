"""Print a bcrypt hash for the ``[login] pass`` entry of the server config.

Usage:
    plantcare-passhash PASSWORD
    plantcare-passhash --cost 14 PASSWORD
"""

from __future__ import annotations

import argparse
import sys

from plantcare.security.basic_auth import hash_password


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate a bcrypt password hash")
    parser.add_argument("password", help="Clear text password")
    parser.add_argument("-c", "--cost", type=int, default=12, help="bcrypt cost factor (4-31)")
    args = parser.parse_args(argv)

    if not 4 <= args.cost <= 31:
        parser.error("cost must be between 4 and 31")

    print(hash_password(args.password, rounds=args.cost))
    return 0


if __name__ == "__main__":
    sys.exit(main())
