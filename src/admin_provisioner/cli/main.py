"""
Command-line entry point for administrator provisioning.

Usage:
    admin-provisioner <email> <username> <password>

Pass "-" as the password to be prompted for it without echo, which keeps
it out of shell history.
"""

import argparse
import getpass
import logging
import sys
from collections.abc import Sequence

from pydantic import ValidationError

from admin_provisioner.adapters.repository.postgres import (
    PostgresAccountStore,
    open_pool,
    run_migrations,
)
from admin_provisioner.cli.models import AccountPayload, ErrorPayload
from admin_provisioner.config.settings import Settings, get_settings
from admin_provisioner.domain.exceptions import AccountStoreError, StoreUnreachable
from admin_provisioner.domain.hashing import BcryptSecretHasher
from admin_provisioner.domain.models import Candidate, ProvisionResult
from admin_provisioner.domain.policy import PolicyValidator
from admin_provisioner.domain.ports import ErrorKind
from admin_provisioner.domain.provisioning import ProvisioningService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1

PROMPT_SENTINEL = "-"


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    requirements = PolicyValidator(settings.min_password_length).requirements()
    parser = argparse.ArgumentParser(
        prog="admin-provisioner",
        description="Create an administrator account directly in the database "
        "when signup is disabled.",
        epilog="Password Requirements:\n"
        + "\n".join(f"  - {line}" for line in requirements)
        + "\n\nExample:\n  admin-provisioner admin@example.com admin 'SecurePass123!@#'",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("email", help="Email address of the new administrator")
    parser.add_argument("username", help="Username (3-20 letters, numbers, _ or -)")
    parser.add_argument("password", help=f"Password, or '{PROMPT_SENTINEL}' to prompt for it")
    parser.add_argument(
        "--database-url",
        dest="database_url",
        default=None,
        help="PostgreSQL connection URL (defaults to DATABASE_URL)",
    )
    parser.add_argument(
        "--min-password-length",
        dest="min_password_length",
        type=int,
        default=None,
        help=f"Minimum password length (defaults to MIN_PASSWORD_LENGTH, "
        f"currently {settings.min_password_length})",
    )
    parser.add_argument(
        "--bcrypt-cost",
        dest="bcrypt_cost",
        type=int,
        default=None,
        help=f"bcrypt work factor (defaults to BCRYPT_COST, currently {settings.bcrypt_cost})",
    )
    parser.add_argument(
        "--migrate",
        action="store_true",
        help="Apply the bundled schema migrations before provisioning",
    )
    parser.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        help="Print the result as JSON",
    )
    return parser


def prompt_for_password() -> str | None:
    password = getpass.getpass("Password: ")
    confirm = getpass.getpass("Confirm password: ")
    if password != confirm:
        return None
    return password


def resolve_settings(args: argparse.Namespace) -> Settings:
    overrides = {
        name: value
        for name, value in (
            ("database_url", args.database_url),
            ("min_password_length", args.min_password_length),
            ("bcrypt_cost", args.bcrypt_cost),
        )
        if value is not None
    }
    return Settings(**overrides)


def provision(
    candidate: Candidate, settings: Settings, migrate: bool = False
) -> ProvisionResult:
    """Run one provisioning attempt against the configured database."""
    validator = PolicyValidator(min_secret_length=settings.min_password_length)
    hasher = BcryptSecretHasher(rounds=settings.bcrypt_cost)

    with open_pool(settings) as pool:
        if migrate:
            logger.info("Running database migrations...")
            try:
                run_migrations(pool)
            except AccountStoreError as exc:
                kind = (
                    ErrorKind.STORE_UNAVAILABLE
                    if isinstance(exc, StoreUnreachable)
                    else ErrorKind.UNKNOWN_STORE_ERROR
                )
                return ProvisionResult.failed(kind, "Database migration failed", cause=str(exc))

        service = ProvisioningService(
            store=PostgresAccountStore(pool), validator=validator, hasher=hasher
        )
        return service.provision(candidate)


def report(result: ProvisionResult, settings: Settings, as_json: bool) -> None:
    if result.ok:
        payload = AccountPayload.from_account(result.account)
        print(payload.model_dump_json(indent=2) if as_json else payload.render())
        return

    error = ErrorPayload.from_failure(result.failure, settings.database_url)
    if as_json:
        print(error.model_dump_json(indent=2))
    else:
        print(error.render(), file=sys.stderr)


def main(argv: Sequence[str] | None = None) -> int:
    try:
        defaults = get_settings()
    except ValidationError:
        # Reported below, after command-line overrides have been applied.
        defaults = Settings.model_construct()
    parser = build_parser(defaults)
    args = parser.parse_args(argv)

    try:
        settings = resolve_settings(args)
    except ValidationError as exc:
        parser.error(str(exc))

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    password = args.password
    if password == PROMPT_SENTINEL:
        password = prompt_for_password()
        if password is None:
            print("Error: Passwords do not match", file=sys.stderr)
            return EXIT_FAILURE

    candidate = Candidate.from_input(args.email, args.username, password)

    logger.info("Creating admin user %s...", candidate.email)
    result = provision(candidate, settings, migrate=args.migrate)
    report(result, settings, args.as_json)
    return EXIT_OK if result.ok else EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
