#!/usr/bin/env python3
"""
Video Manager • Credential Generator
====================================

Prints a fresh JWT secret and `USER_<n>=username:bcrypt-hash` lines ready to
paste into `.env`.

Examples
--------
1) New secret plus one user (prompted password):
    python scripts/generate_password.py admin

2) Several users, starting at USER_3:
    python scripts/generate_password.py alice bob --start-index 3

3) Hash only, password from stdin (CI):
    echo "s3cret" | python scripts/generate_password.py alice --stdin --no-secret
"""

import argparse
import getpass
import secrets
import sys
from typing import List

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def make_jwt_secret(nbytes: int = 32) -> str:
    return secrets.token_hex(nbytes)


def user_line(index: int, username: str, password: str) -> str:
    return f"USER_{index}={username}:{pwd_context.hash(password)}"


def _read_password(username: str, from_stdin: bool) -> str:
    if from_stdin:
        return sys.stdin.readline().rstrip("\n")
    first = getpass.getpass(f"Password for {username}: ")
    second = getpass.getpass("Repeat: ")
    if first != second:
        print("Passwords do not match", file=sys.stderr)
        sys.exit(2)
    return first


def main(argv: List[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description="Generate JWT secret and USER_<n> entries")
    ap.add_argument("usernames", nargs="*", help="Usernames to create entries for")
    ap.add_argument("--start-index", type=int, default=1, help="First USER_<n> index")
    ap.add_argument("--stdin", action="store_true", help="Read one password per user from stdin")
    ap.add_argument("--no-secret", action="store_true", help="Skip printing a JWT secret")
    args = ap.parse_args(argv)

    if not args.no_secret:
        print(f"JWT_SECRET_KEY={make_jwt_secret()}")

    for offset, username in enumerate(args.usernames):
        if ":" in username:
            print(f"Username may not contain ':': {username}", file=sys.stderr)
            sys.exit(2)
        password = _read_password(username, args.stdin)
        if not password:
            print(f"Empty password for {username}", file=sys.stderr)
            sys.exit(2)
        print(user_line(args.start_index + offset, username, password))


if __name__ == "__main__":
    main()
