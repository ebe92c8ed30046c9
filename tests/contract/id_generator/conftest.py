"""Fixtures for id_generator contract tests."""

from collections.abc import Iterable

import pytest

from agora.adapters.id_generators import (
    SequentialIdGenerator,
    ULIDGenerator,
    UUIDv4Generator,
)
from agora.interfaces.id_generator import IdGenerator


@pytest.fixture(params=["ulid", "uuid4", "sequential"])
def id_generator(
    request: pytest.FixtureRequest,
) -> Iterable[IdGenerator]:
    """Return a fresh IdGenerator instance for the requested backend.

    Supported params:
      - `"ulid"` → ULIDGenerator
      - `"uuid4"` → UUIDv4Generator
      - `"sequential"` → SequentialIdGenerator

    Each invocation yields a brand-new IdGenerator instance for isolation.
    """

    match request.param:
        case "ulid":
            yield ULIDGenerator()
        case "uuid4":
            yield UUIDv4Generator()
        case "sequential":
            yield SequentialIdGenerator(prefix="id", width=6)
        case _:
            raise ValueError(f"unknown id generator type: {request.param}")


@pytest.fixture(params=["ulid", "sequential"])
def monotonic_id_generators(request: pytest.FixtureRequest) -> Iterable[IdGenerator]:
    """Yield instances of IdGenerators that promise monotonic ID order."""
    match request.param:
        case "ulid":
            yield ULIDGenerator()
        case "sequential":
            # wide enough that lexicographic and numeric order agree
            yield SequentialIdGenerator(width=8)
        case _:
            raise ValueError(f"unknown monotonic id generator type: {request.param}")
