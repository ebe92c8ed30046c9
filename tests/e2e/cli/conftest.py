"""Fixtures for end-to-end runs of the ``agora`` command.

Every test gets a CliRunner inside an isolated directory and an
``AGORA_DB_URL`` pointing at a SQLite file there. ``unreachable_url`` names a
database whose directory does not exist, which makes ``agora db`` log a
WARNING before it gives up.
"""

import logging
from pathlib import Path

import pytest
from click.testing import CliRunner

# pylint: disable=redefined-outer-name


@pytest.fixture(autouse=True)
def restore_logger_levels():
    """Undo -L overrides, which outlive a CliRunner invocation."""
    names = ("agora.entrypoints.cli.db", "alembic", "sqlalchemy")
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


@pytest.fixture
def runner():
    """Return a Click CliRunner for invoking CLI commands in tests."""
    return CliRunner()


@pytest.fixture
def workdir(runner):
    """Run the test inside an isolated directory and return its path."""
    with runner.isolated_filesystem() as path:
        yield Path(path)


@pytest.fixture
def db_url(workdir: Path) -> str:
    return f"sqlite:///{workdir / 'agora.db'}"


@pytest.fixture
def unreachable_url(workdir: Path) -> str:
    return f"sqlite:///{workdir / 'no-such-dir' / 'agora.db'}"


@pytest.fixture
def log_path(workdir: Path) -> Path:
    return workdir / "logs" / "flight_recorder.log"
