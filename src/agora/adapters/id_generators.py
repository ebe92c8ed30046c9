"""ID generators for agora aggregates."""

import threading
import uuid

from ulid import monotonic

from agora.interfaces.id_generator import IdGenerator

# pylint: disable=too-few-public-methods


class ULIDGenerator(IdGenerator):
    """Thread-safe monotonic ULID generator (the default).

    ULIDs sort by creation time, so rows inserted by one process come back in
    creation order when ordered by ID. This generator uses the `ulid-py`
    library's monotonic mode, which keeps IDs ordered within one millisecond.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def new_id(self) -> str:
        """Generate a new ULID (serialized across threads)."""
        with self._lock:
            return str(monotonic.new())


class UUIDv4Generator(IdGenerator):
    """Random UUIDv4 generator, for stores that expect UUID-shaped keys."""

    def new_id(self) -> str:
        """Generate a new UUID."""
        return str(uuid.uuid4())


class SequentialIdGenerator(IdGenerator):
    """Predictable IDs such as ``post-0001`` for tests and demos.

    Note:
        Not suitable for production use: the counter lives in memory.
    """

    def __init__(self, prefix: str = "", width: int = 4) -> None:
        self._lock = threading.Lock()
        self._counter = 0
        self._prefix = prefix
        self._width = width

    def new_id(self) -> str:
        """Generate the next identifier in the sequence."""
        with self._lock:
            self._counter += 1
            number = f"{self._counter:0{self._width}d}"
        return f"{self._prefix}-{number}" if self._prefix else number
