import argparse

import uvicorn

from signpad.config import settings
from signpad.utils.security import generate_token, hash_admin_token


def main(argv=None):
    parser = argparse.ArgumentParser(prog="signpad", description="Signature form backend")
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("serve", help="Run the HTTP server (default)")
    hash_cmd = commands.add_parser("hash-token", help="Print an admin token and its SIGNPAD_ADMIN_TOKEN_HASH value")
    hash_cmd.add_argument("--token", "-t", help="Token to hash; a random one is generated when omitted")
    args = parser.parse_args(argv)

    if args.command == "hash-token":
        token = args.token or generate_token()
        print(f"token: {token}")
        print(f"SIGNPAD_ADMIN_TOKEN_HASH={hash_admin_token(token)}")
        return 0

    uvicorn.run("signpad.main:app", host=settings.host, port=settings.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
