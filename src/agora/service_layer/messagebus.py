"""Message bus implementation for handling commands and events."""

import logging
from collections import deque
from collections.abc import Callable

from agora.domain.events import DomainEvent
from agora.interfaces.unit_of_work import AbstractUnitOfWork

from .commands import Command

logger = logging.getLogger(__name__)

# pylint: disable=too-few-public-methods


class NoHandlerForCommand(LookupError):
    """Exception raised when no handler is found for a command."""

    def __init__(self, cmd: Command) -> None:
        super().__init__(f"No handler found for command {type(cmd).__name__}")


class MessageBus:
    """A simple message bus for handling commands and the events they raise.

    Commands go to exactly one handler; its return value (a new ID, a query
    result, or None) is handed back to the caller. Once the command handler
    returns, the domain events queued by the aggregates its unit of work has
    seen are dispatched to every subscribed event handler, and so are the
    events those handlers raise in turn.

    Args:
        uow: An instance of AbstractUnitOfWork for managing transactional operations.
            The same uow is injected into the handlers; the bus uses it to collect
            the events they raise.
        command_handlers: A mapping of command types to their handlers.
            Handlers are callables that accept a single command argument; other
            dependencies are bound beforehand (see ``agora.bootstrap``).
        event_handlers: A mapping of event types to the handlers subscribed to them.

    Note:
        Event handlers run after the command's transaction has committed. A
        failing event handler is logged and skipped: the command has already
        succeeded and its caller is not told.
    """

    def __init__(
        self,
        uow: AbstractUnitOfWork,
        command_handlers: dict[type[Command], Callable[..., object]],
        event_handlers: dict[type[DomainEvent], list[Callable[..., None]]]
        | None = None,
    ) -> None:
        self.uow = uow
        self._command_handlers = command_handlers
        self._event_handlers = event_handlers or {}

    def handle(self, cmd: Command) -> object:
        """Handle a command by dispatching it to the appropriate handler.

        Args:
            cmd: The command to handle.

        Returns:
            Whatever the command handler returned.

        Raises:
            NoHandlerForCommand: If no handler is found for the command type.
            Exception: If the handler raises an exception.
        """

        if handler := self._command_handlers.get(type(cmd)):
            handler_name = self._get_handler_name(handler)
            logger.debug("Handling command %s with handler %s", cmd, handler_name)
            try:
                result = handler(cmd)
            except Exception:  # pylint: disable=broad-except
                logger.exception(
                    "Exception handling command %s with handler %s", cmd, handler_name
                )
                # Drop the events of the failed attempt.
                deque(self.uow.collect_new_events(), maxlen=0)
                raise
        else:
            logger.error("No handler found for command %s", type(cmd).__name__)
            raise NoHandlerForCommand(cmd)

        self._dispatch_events()
        return result

    def _dispatch_events(self) -> None:
        queue: deque[DomainEvent] = deque(self.uow.collect_new_events())
        while queue:
            event = queue.popleft()
            for handler in self._event_handlers.get(type(event), []):
                handler_name = self._get_handler_name(handler)
                logger.debug("Handling event %s with handler %s", event, handler_name)
                try:
                    handler(event)
                except Exception:  # pylint: disable=broad-except
                    logger.exception(
                        "Exception handling event %s with handler %s",
                        event,
                        handler_name,
                    )
                    # Drop the events of the failed handler.
                    deque(self.uow.collect_new_events(), maxlen=0)
                    continue
                queue.extend(self.uow.collect_new_events())

    @staticmethod
    def _get_handler_name(fn: Callable[..., object]) -> str:
        if hasattr(fn, "__name__"):
            return fn.__name__
        if hasattr(fn, "func") and hasattr(fn.func, "__name__"):
            return fn.func.__name__
        return repr(fn)
