"""Pytest fixtures for repository contract tests.

Provided fixtures
-----------------
- **make_uow**: Parametrized factory returning a fresh unit of work per call.
  Every unit of work made by one factory shares the same backing store, so a
  test can write in one ``with`` block and read back in the next.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from agora.adapters.repositories.memory_store import InMemoryData
from agora.adapters.unit_of_work import InMemoryUnitOfWork, SqlAlchemyUnitOfWork
from agora.interfaces.unit_of_work import AbstractUnitOfWork

_ENGINE_FIXTURES = {
    "sql_memory": "sqlite_engine_memory",
    "sql_file": "sqlite_engine_file",
    "postgres": "postgres_engine",
}


@pytest.fixture(params=["memory", "sql_memory", "sql_file", "postgres"])
def make_uow(request: pytest.FixtureRequest) -> Callable[[], AbstractUnitOfWork]:
    """Return a unit of work factory for the requested backend.

    Current params:
      - `"memory"` → `InMemoryUnitOfWork` over one shared `InMemoryData`
      - `"sql_memory"` → in-memory SQLite, tables from `metadata.create_all()`
      - `"sql_file"` → file-based SQLite migrated with Alembic
      - `"postgres"` → PostgreSQL in a Testcontainer, migrated with Alembic

    Engines are requested lazily so only the selected backend is built.
    """
    if request.param == "memory":
        data = InMemoryData()
        return lambda: InMemoryUnitOfWork(data)
    if request.param not in _ENGINE_FIXTURES:
        raise ValueError(f"unknown backend: {request.param}")
    engine = request.getfixturevalue(_ENGINE_FIXTURES[request.param])
    return lambda: SqlAlchemyUnitOfWork(engine)
