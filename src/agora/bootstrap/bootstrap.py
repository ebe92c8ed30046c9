"""Bootstrap the message bus with handlers, unit of work and ID generator."""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from agora import config
from agora.adapters.db.engine import make_engine
from agora.adapters.id_generators import ULIDGenerator
from agora.adapters.unit_of_work import InMemoryUnitOfWork, SqlAlchemyUnitOfWork
from agora.service_layer.handlers import COMMAND_HANDLERS, EVENT_HANDLERS
from agora.service_layer.messagebus import MessageBus

if TYPE_CHECKING:
    from agora.adapters.repositories.memory_store import InMemoryData
    from agora.domain.events import DomainEvent
    from agora.interfaces.id_generator import IdGenerator
    from agora.interfaces.unit_of_work import AbstractUnitOfWork
    from agora.service_layer.commands import Command


@dataclass(frozen=True)
class AppContainer:
    """A class to hold application wiring constants."""

    message_bus: MessageBus

    @property
    def uow(self) -> AbstractUnitOfWork:
        return self.message_bus.uow


def build_write_uow(url: str) -> AbstractUnitOfWork:
    """Build a new unit of work for write operations."""
    engine = make_engine(url)
    return SqlAlchemyUnitOfWork(engine)


def build_message_bus(
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
    command_handlers: Mapping[type[Command], Callable[..., object]],
    event_handlers: Mapping[type[DomainEvent], list[Callable[..., None]]],
) -> MessageBus:
    """Build a message bus with injected dependencies."""
    dependencies = {"uow": uow, "id_generator": id_generator}
    injected_command_handlers = {
        command_type: inject_dependencies(handler, dependencies)
        for command_type, handler in command_handlers.items()
    }
    injected_event_handlers = {
        event_type: [inject_dependencies(handler, dependencies) for handler in handlers]
        for event_type, handlers in event_handlers.items()
    }

    return MessageBus(
        uow,
        command_handlers=injected_command_handlers,
        event_handlers=injected_event_handlers,
    )


def bootstrap(
    uow: AbstractUnitOfWork | None = None,
    id_generator: IdGenerator | None = None,
) -> AppContainer:
    """Bootstrap the message bus with handlers and unit of work.

    Args:
        uow: Unit of work to use. Defaults to a SQLAlchemy unit of work on the
            database named by ``AGORA_DB_URL``.
        id_generator: ID generator to use. Defaults to ULIDs.

    Raises:
        DatabaseUrlNotSetError: If no *uow* is given and ``AGORA_DB_URL`` is unset.
    """
    if uow is None:
        uow = build_write_uow(config.get_db_url())
    message_bus = build_message_bus(
        uow,
        id_generator or ULIDGenerator(),
        COMMAND_HANDLERS,
        EVENT_HANDLERS,
    )

    return AppContainer(
        message_bus=message_bus,
    )


def bootstrap_in_memory(
    data: InMemoryData | None = None, id_generator: IdGenerator | None = None
) -> AppContainer:
    """Bootstrap on an in-memory store. Nothing outlives the process."""
    return bootstrap(uow=InMemoryUnitOfWork(data), id_generator=id_generator)


def inject_dependencies(
    handler: Callable, dependencies: Mapping[str, object]
) -> Callable:
    """Inject dependencies into a handler function based on its parameters."""
    params = inspect.signature(handler).parameters
    deps = {
        name: dependency for name, dependency in dependencies.items() if name in params
    }
    return functools.partial(handler, **deps)
