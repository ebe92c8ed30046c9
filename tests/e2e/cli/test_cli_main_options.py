"""End-to-end CLI tests for the logging options of the top-level ``agora`` command.

Each test runs a real ``agora db`` command against a SQLite file and checks
what reaches the console and the flight recorder under the verbosity flags,
logger-level overrides, debug formatting and flight recorder options.

``agora db`` logs the upgrade at INFO and the connection check at DEBUG;
alembic logs each migration at INFO. An unreachable database produces a
WARNING, which is what makes the flight recorder write its buffer.
"""

import re

import pytest

from agora.entrypoints.cli.main import agora

# pylint: disable=unused-argument,redefined-outer-name

UPGRADING = r"Upgrading sqlite:///"
CHECKING = r"Checking connection to sqlite:///"
UNREACHABLE = r"Cannot reach database sqlite:///"
MIGRATION = r"Running upgrade\s+-> 3f9c2a7d51e0"


def assert_in_output(pattern: str, output: str) -> None:
    if not re.search(pattern, output, re.MULTILINE):
        raise AssertionError(f"Pattern '{pattern}' not found in output:\n{output}")


def assert_not_in_output(pattern: str, output: str) -> None:
    if re.search(pattern, output, re.MULTILINE):
        raise AssertionError(f"Pattern '{pattern}' found in output:\n{output}")


@pytest.fixture
def upgrade(runner, db_url):
    """Run ``agora [options] db upgrade --force`` on a fresh database."""

    def _run(*options, env=None):
        env = {"AGORA_DB_URL": db_url, "AGORA_FLIGHT_RECORDER": "0", **(env or {})}
        result = runner.invoke(agora, [*options, "db", "upgrade", "--force"], env=env)
        assert result.exit_code == 0, result.output
        assert "Upgrade complete!" in result.output
        return result.output

    return _run


@pytest.fixture
def status_unreachable(runner, unreachable_url, log_path):
    """Run ``agora [options] db status`` against a database that cannot be opened."""

    def _run(*options, env=None):
        env = {"AGORA_DB_URL": unreachable_url, **(env or {})}
        cli = ["--log-path", str(log_path), *options, "db", "status"]
        result = runner.invoke(agora, cli, env=env)
        assert result.exit_code == 1, result.output
        assert "Cannot connect to database" in result.output
        return result.output

    return _run


class TestConsoleVerbosity:
    """-v/-q move the console threshold away from WARNING."""

    @staticmethod
    def test_default_hides_info(upgrade):
        output = upgrade()
        assert_not_in_output(UPGRADING, output)
        assert_not_in_output(r"agora \d+\.\d+\.\d+: console=", output)

    @staticmethod
    def test_default_shows_warning(status_unreachable):
        assert_in_output(UNREACHABLE, status_unreachable())

    @staticmethod
    def test_verbose_shows_info(upgrade):
        output = upgrade("-v")
        assert_in_output(UPGRADING, output)
        assert_in_output(r"agora \d+\.\d+\.\d+: console=INFO", output)
        assert_not_in_output(CHECKING, output)

    @staticmethod
    def test_vv_shows_debug(upgrade):
        output = upgrade("-vv")
        assert_in_output(CHECKING, output)
        assert_in_output(r"Python: \d+\.\d+\.\d+", output)

    @staticmethod
    def test_quiet_suppresses_warning(status_unreachable):
        assert_not_in_output(UNREACHABLE, status_unreachable("-q"))


class TestLoggerLevels:
    """-L NAME=LEVEL and AGORA_LOGGER_LEVELS apply per logger."""

    @staticmethod
    def test_alembic_is_quiet_by_default(upgrade):
        assert_not_in_output(MIGRATION, upgrade("-v"))

    @staticmethod
    @pytest.mark.parametrize(
        "env, options",
        [
            ({}, ["-v", "-L", "alembic=INFO"]),
            ({"AGORA_LOGGER_LEVELS": "alembic=INFO"}, ["-v"]),
        ],
        ids=["cli-flag", "env-var"],
    )
    def test_alembic_override(upgrade, env, options):
        output = upgrade(*options, env=env)
        assert_in_output(MIGRATION, output)
        assert_in_output(r"\[alembic\]", output)

    @staticmethod
    def test_override_silences_project_logger(upgrade):
        output = upgrade("-vv", "-L", "agora.entrypoints.cli.db=INFO")
        assert_not_in_output(CHECKING, output)
        assert_in_output(UPGRADING, output)


class TestDebugMode:
    """--debug adds logger names and source locations."""

    @staticmethod
    def test_debug_mode_shows_paths(upgrade):
        output = upgrade("--debug")
        assert_in_output(r"db\.py:\d+\b", output)
        assert_in_output(r"agora\.entrypoints\.cli\.db:", output)

    @staticmethod
    def test_debug_mode_is_off_by_default(upgrade):
        assert_not_in_output(r"db\.py:\d+\b", upgrade("-vv"))


class TestFlightRecorder:
    """The DEBUG ring buffer written to --log-path."""

    @staticmethod
    def test_flush_on_warning(status_unreachable, log_path):
        status_unreachable()
        content = log_path.read_text(encoding="utf-8")
        assert_in_output(r"DEBUG agora\.entrypoints\.cli\.db:\d+: " + CHECKING, content)
        assert_in_output(r"WARNING agora\.entrypoints\.cli\.db:\d+: " + UNREACHABLE, content)
        assert_in_output(r"Python: \d+\.\d+\.\d+", content)

    @staticmethod
    def test_logger_override_applies_to_recorder(status_unreachable, log_path):
        status_unreachable("-L", "agora.entrypoints.cli.db=WARNING")
        content = log_path.read_text(encoding="utf-8")
        assert_not_in_output(CHECKING, content)
        assert_in_output(UNREACHABLE, content)

    @staticmethod
    def test_nothing_written_without_warning(runner, db_url, log_path):
        result = runner.invoke(
            agora,
            ["--log-path", str(log_path), "db", "heads"],
            env={"AGORA_DB_URL": db_url},
        )
        assert result.exit_code == 0, result.output
        assert not log_path.exists()

    @staticmethod
    @pytest.mark.parametrize(
        "env, options",
        [({}, ["--force-flush"]), ({"AGORA_FORCE_FLUSH_FLIGHT_RECORDER": "true"}, [])],
        ids=["cli-flag", "env-var"],
    )
    def test_force_flush(runner, db_url, log_path, env, options):
        result = runner.invoke(
            agora,
            ["--log-path", str(log_path), *options, "db", "upgrade", "--force"],
            env={"AGORA_DB_URL": db_url, **env},
        )
        assert result.exit_code == 0, result.output
        content = log_path.read_text(encoding="utf-8")
        assert_in_output(UPGRADING, content)
        assert_in_output(CHECKING, content)

    @staticmethod
    @pytest.mark.parametrize(
        "env, options",
        [({}, ["--no-flight-recorder"]), ({"AGORA_FLIGHT_RECORDER": "0"}, [])],
        ids=["cli-flag", "env-var"],
    )
    def test_can_be_disabled(status_unreachable, log_path, env, options):
        status_unreachable(*options, env=env)
        assert not log_path.exists()

    @staticmethod
    def test_file_is_truncated_between_runs(status_unreachable, log_path):
        status_unreachable()
        first = log_path.read_text(encoding="utf-8").splitlines()
        status_unreachable()
        second = log_path.read_text(encoding="utf-8").splitlines()
        assert len(first) == len(second)

    @staticmethod
    def test_startup_summary(runner, db_url, log_path):
        result = runner.invoke(
            agora,
            ["--log-path", str(log_path), "--force-flush", "db", "heads"],
            env={"AGORA_DB_URL": db_url, "AGORA_LOGGER_LEVELS": "alembic=INFO"},
        )
        assert result.exit_code == 0, result.output
        content = log_path.read_text(encoding="utf-8")
        assert_in_output(r"agora \d+\.\d+\.\d+: console=WARNING, flight-recorder=ON", content)
        assert_in_output(r"Alembic: \d+\.\d+\.\d+", content)
        assert_in_output(r"SQLAlchemy: \d+\.\d+\.\d+", content)
        assert_in_output(r"Handlers: \['RichHandler', 'MemoryHandler'\]", content)
        assert_in_output(
            r"Flight recorder: path=\S+flight_recorder\.log, capacity=2000, "
            r"flush_on_close=True",
            content,
        )
        assert_in_output(
            r"Per-logger overrides: {'sqlalchemy': 'WARNING', 'alembic': 'INFO'}",
            content,
        )
