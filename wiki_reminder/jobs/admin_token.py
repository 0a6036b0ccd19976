"""
Admin Token: mint a bearer token for the admin API.

The admin API has no login of its own. Whoever can read SECRET_KEY on the
server issues tokens with this command:

    wiki-reminder-admin-token admin@example.com --expires-minutes 60
"""

import argparse
import logging
from datetime import timedelta

from ..core.config import get_settings
from ..core.security import create_access_token
from ..services.settings_service import is_valid_email

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point; prints the token to stdout."""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Issue an admin API bearer token")
    parser.add_argument("email", help="Administrator email, recorded as the audit actor")
    parser.add_argument(
        "--expires-minutes",
        type=int,
        default=settings.access_token_expire_minutes,
        help="Token lifetime in minutes (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)",
    )

    args = parser.parse_args(argv)

    email = args.email.strip().lower()
    if not is_valid_email(email):
        parser.error(f"invalid email address: {args.email}")
    if args.expires_minutes < 1:
        parser.error("--expires-minutes must be at least 1")

    token = create_access_token(email, expires_delta=timedelta(minutes=args.expires_minutes))
    logger.info(f"Issued admin token for {email}, valid {args.expires_minutes} minutes")
    print(token)


if __name__ == "__main__":
    main()
