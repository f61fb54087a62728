"""
Unit tests for the command-line front end.

The PostgreSQL pool and store are replaced by an in-memory store so the
full pipeline runs without a database.
"""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from unittest.mock import MagicMock

import pytest

from admin_provisioner.adapters.repository.memory import InMemoryAccountStore
from admin_provisioner.cli import main as cli
from admin_provisioner.cli.models import ErrorPayload, mask_database_url, remediation_hint
from admin_provisioner.domain.exceptions import SchemaNotFound, StoreUnreachable
from admin_provisioner.domain.models import ProvisioningFailure
from admin_provisioner.domain.ports import ErrorKind

FAST = ["--bcrypt-cost", "4"]


@pytest.fixture(autouse=True)
def fresh_settings() -> Iterator[None]:
    """Re-read the environment for every test."""
    cli.get_settings.cache_clear()
    yield
    cli.get_settings.cache_clear()


@pytest.fixture
def pool() -> MagicMock:
    return MagicMock()


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch, pool: MagicMock) -> InMemoryAccountStore:
    """Wire the CLI to an in-memory store instead of PostgreSQL."""
    memory_store = InMemoryAccountStore()

    @contextmanager
    def fake_open_pool(settings):
        yield pool

    monkeypatch.setattr(cli, "open_pool", fake_open_pool)
    monkeypatch.setattr(cli, "PostgresAccountStore", lambda _pool: memory_store)
    return memory_store


class TestSuccess:
    """Tests for successful provisioning output."""

    def test_creates_admin_and_exits_zero(
        self, store: InMemoryAccountStore, capsys: pytest.CaptureFixture
    ) -> None:
        """Valid arguments create one account and print its details."""
        exit_code = cli.main(["admin@example.com", "admin", "SecurePass123!", *FAST])

        out = capsys.readouterr().out
        assert exit_code == cli.EXIT_OK
        assert len(store) == 1
        assert "Admin user created successfully!" in out
        assert "Email:    admin@example.com" in out
        assert "Role:     ADMIN" in out
        assert "SecurePass123!" not in out

    def test_json_output(self, store: InMemoryAccountStore, capsys: pytest.CaptureFixture) -> None:
        """--json prints the account payload as JSON."""
        exit_code = cli.main(["Admin@Example.com", "Admin", "SecurePass123!", "--json", *FAST])

        payload = json.loads(capsys.readouterr().out)
        assert exit_code == cli.EXIT_OK
        assert payload["email"] == "admin@example.com"
        assert payload["username"] == "Admin"
        assert payload["role"] == "ADMIN"
        assert payload["is_active"] is True
        assert set(payload) == {"id", "email", "username", "role", "is_active", "created_at"}

    def test_password_prompt(
        self, store: InMemoryAccountStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """'-' reads the password from a no-echo prompt."""
        monkeypatch.setattr(cli.getpass, "getpass", lambda prompt: "SecurePass123!")

        assert cli.main(["admin@example.com", "admin", "-", *FAST]) == cli.EXIT_OK
        assert len(store) == 1


class TestFailures:
    """Tests for failure reporting and exit codes."""

    def test_validation_failure_exits_one(
        self, store: InMemoryAccountStore, capsys: pytest.CaptureFixture
    ) -> None:
        """Policy violations print the rule message to stderr."""
        exit_code = cli.main(["admin@example.com", "admin", "short1!", *FAST])

        err = capsys.readouterr().err
        assert exit_code == cli.EXIT_FAILURE
        assert "Error: Password must be at least 8 characters" in err
        assert len(store) == 0

    def test_min_password_length_option(
        self, store: InMemoryAccountStore, capsys: pytest.CaptureFixture
    ) -> None:
        """--min-password-length tightens the policy."""
        exit_code = cli.main(
            ["admin@example.com", "admin", "Secure123!", "--min-password-length", "12", *FAST]
        )

        assert exit_code == cli.EXIT_FAILURE
        assert "at least 12 characters" in capsys.readouterr().err

    def test_duplicate_exits_one(
        self, store: InMemoryAccountStore, capsys: pytest.CaptureFixture
    ) -> None:
        """Provisioning the same identity twice fails the second time."""
        cli.main(["admin@example.com", "admin", "SecurePass123!", *FAST])
        capsys.readouterr()

        exit_code = cli.main(["ADMIN@example.com", "admin2", "SecurePass123!", *FAST])

        err = capsys.readouterr().err
        assert exit_code == cli.EXIT_FAILURE
        assert "already exists" in err
        assert len(store) == 1

    def test_json_failure(self, store: InMemoryAccountStore, capsys: pytest.CaptureFixture) -> None:
        """--json prints the error payload with its stable kind."""
        cli.main(["admin@example.com", "ab", "SecurePass123!", "--json", *FAST])

        payload = json.loads(capsys.readouterr().out)
        assert payload["kind"] == "invalid_username_length"
        assert payload["hint"] is None

    def test_mismatched_prompt_exits_one(
        self, store: InMemoryAccountStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Mismatched password confirmation aborts before provisioning."""
        answers = iter(["SecurePass123!", "SecurePass124!"])
        monkeypatch.setattr(cli.getpass, "getpass", lambda prompt: next(answers))

        assert cli.main(["admin@example.com", "admin", "-", *FAST]) == cli.EXIT_FAILURE
        assert len(store) == 0

    def test_missing_arguments_is_usage_error(self, capsys: pytest.CaptureFixture) -> None:
        """Fewer than three positional arguments exits with usage status 2."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["admin@example.com", "admin"])

        assert exc_info.value.code == 2

    def test_invalid_bcrypt_cost_is_usage_error(self, store: InMemoryAccountStore) -> None:
        """Out-of-range configuration is rejected as a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["admin@example.com", "admin", "SecurePass123!", "--bcrypt-cost", "2"])

        assert exc_info.value.code == 2

    def test_help_lists_password_requirements(self, capsys: pytest.CaptureFixture) -> None:
        """--help shows the password requirements."""
        with pytest.raises(SystemExit):
            cli.main(["--help"])

        out = capsys.readouterr().out
        assert "Password Requirements:" in out
        assert "At least one special character" in out


class TestEnvironmentErrors:
    """Tests for invalid values coming from the environment."""

    def test_invalid_env_bcrypt_cost_is_usage_error(
        self, store: InMemoryAccountStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An out-of-range BCRYPT_COST exits with usage status 2, not a traceback."""
        monkeypatch.setenv("BCRYPT_COST", "3")

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["admin@example.com", "admin", "SecurePass123!"])

        assert exc_info.value.code == 2
        assert len(store) == 0

    def test_help_works_with_invalid_env(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
    ) -> None:
        """--help still prints usage when the environment is invalid."""
        monkeypatch.setenv("MIN_PASSWORD_LENGTH", "0")

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--help"])

        assert exc_info.value.code == 0
        assert "Password Requirements:" in capsys.readouterr().out

    def test_option_overrides_invalid_env(
        self, store: InMemoryAccountStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A valid command-line option replaces the bad environment value."""
        monkeypatch.setenv("BCRYPT_COST", "3")

        assert cli.main(["admin@example.com", "admin", "SecurePass123!", *FAST]) == cli.EXIT_OK
        assert len(store) == 1

    def test_unknown_log_level_is_usage_error(
        self,
        store: InMemoryAccountStore,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture,
    ) -> None:
        """An unknown LOG_LEVEL exits with usage status 2 before provisioning."""
        monkeypatch.setenv("LOG_LEVEL", "verbose")

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["admin@example.com", "admin", "SecurePass123!", *FAST])

        assert exc_info.value.code == 2
        assert "log_level" in capsys.readouterr().err
        assert len(store) == 0


class TestMigrations:
    """Tests for --migrate."""

    def test_migrate_runs_before_provisioning(
        self, store: InMemoryAccountStore, pool: MagicMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """--migrate applies migrations on the same pool first."""
        calls = []
        monkeypatch.setattr(cli, "run_migrations", lambda p: calls.append(p))

        exit_code = cli.main(["admin@example.com", "admin", "SecurePass123!", "--migrate", *FAST])

        assert exit_code == cli.EXIT_OK
        assert calls == [pool]

    def test_migration_failure_reported(
        self,
        store: InMemoryAccountStore,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture,
    ) -> None:
        """An unreachable database during migration is a STORE_UNAVAILABLE failure."""

        def failing(pool):
            raise StoreUnreachable("connection refused")

        monkeypatch.setattr(cli, "run_migrations", failing)

        exit_code = cli.main(
            ["admin@example.com", "admin", "SecurePass123!", "--migrate", "--json", *FAST]
        )

        payload = json.loads(capsys.readouterr().out)
        assert exit_code == cli.EXIT_FAILURE
        assert payload["kind"] == "store_unavailable"
        assert payload["cause"] == "connection refused"
        assert len(store) == 0

    def test_schema_missing_suggests_migrate(
        self,
        monkeypatch: pytest.MonkeyPatch,
        pool: MagicMock,
        capsys: pytest.CaptureFixture,
    ) -> None:
        """A missing schema is reported with a --migrate hint."""
        broken = MagicMock()
        broken.find_by_email_or_username.side_effect = SchemaNotFound("relation missing")

        @contextmanager
        def fake_open_pool(settings):
            yield pool

        monkeypatch.setattr(cli, "open_pool", fake_open_pool)
        monkeypatch.setattr(cli, "PostgresAccountStore", lambda _pool: broken)

        exit_code = cli.main(["admin@example.com", "admin", "SecurePass123!", *FAST])

        err = capsys.readouterr().err
        assert exit_code == cli.EXIT_FAILURE
        assert "--migrate" in err
        assert "relation missing" in err


class TestErrorPayload:
    """Tests for error payload rendering."""

    def test_mask_database_url(self) -> None:
        """Passwords in connection URLs are hidden."""
        masked = mask_database_url("postgresql://admin:s3cret@db:5432/app")

        assert masked == "postgresql://admin:****@db:5432/app"

    def test_mask_database_url_without_password(self) -> None:
        """URLs without credentials are unchanged."""
        assert mask_database_url("postgresql://db/app") == "postgresql://db/app"

    def test_store_unavailable_hint_masks_url(self) -> None:
        """The unreachable-store hint shows the masked URL."""
        hint = remediation_hint(ErrorKind.STORE_UNAVAILABLE, "postgresql://u:pw@db/app")

        assert "DATABASE_URL" in hint
        assert "pw@" not in hint

    def test_render_includes_cause(self) -> None:
        """Rendered text includes message, cause and hint lines."""
        failure = ProvisioningFailure(
            kind=ErrorKind.UNKNOWN_STORE_ERROR, message="Unexpected account store error", cause="boom"
        )
        text = ErrorPayload.from_failure(failure, "postgresql://db/app").render()

        assert text.startswith("Error: Unexpected account store error")
        assert "Cause: boom" in text

    def test_mask_conninfo_password(self) -> None:
        """Passwords in key/value conninfo strings are hidden."""
        masked = mask_database_url("host=db user=app password=s3cret dbname=app")

        assert masked == "host=db user=app password=**** dbname=app"

    def test_mask_quoted_conninfo_password(self) -> None:
        """Quoted conninfo passwords containing spaces are hidden entirely."""
        masked = mask_database_url("host=db password='s3 cret' dbname=app")

        assert masked == "host=db password=**** dbname=app"

    def test_mask_query_parameter_password(self) -> None:
        """Passwords passed as URL query parameters are hidden."""
        masked = mask_database_url("postgresql://db/app?user=app&password=s3cret&sslmode=require")

        assert masked == "postgresql://db/app?user=app&password=****&sslmode=require"

    def test_store_unavailable_hint_masks_conninfo(self) -> None:
        """The unreachable-store hint never prints a conninfo password."""
        hint = remediation_hint(
            ErrorKind.STORE_UNAVAILABLE, "host=db user=app password=s3cret dbname=app"
        )

        assert "s3cret" not in hint
        assert "password=****" in hint

    def test_hints_follow_error_categories(self) -> None:
        """Validation kinds get no hint; conflict and infrastructure kinds always do."""
        for kind in ErrorKind:
            hint = remediation_hint(kind, "postgresql://db/app")
            if kind.is_validation:
                assert hint is None
            else:
                assert hint
