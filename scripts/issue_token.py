"""
Issue a development bearer token.

Example:
    python scripts/issue_token.py --user mgr-1 --name "Grace" --role Manager --branch MAGANJO
"""

import argparse
import sys
from datetime import timedelta
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from produce_trading.api.auth import create_access_token
from produce_trading.config import load_settings
from produce_trading.domain.principal import HEAD_OFFICE, Principal, Role


def main() -> int:
    parser = argparse.ArgumentParser(description="Sign a bearer token with JWT_SECRET")
    parser.add_argument("--user", required=True, help="User id (token subject)")
    parser.add_argument("--name", help="Display name recorded as sales agent")
    parser.add_argument("--role", required=True, choices=[r.value for r in Role])
    parser.add_argument("--branch", default=HEAD_OFFICE, help="MAGANJO, MATUGGA or 'Head Office'")
    parser.add_argument("--hours", type=int, default=8, help="Token lifetime in hours")
    args = parser.parse_args()

    settings = load_settings()
    try:
        principal = Principal(user_id=args.user, role=Role(args.role), branch=args.branch, name=args.name)
        secret = settings.require_jwt_secret()
    except (RuntimeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(create_access_token(principal, secret, settings.jwt_algorithm, timedelta(hours=args.hours)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
