"""Unit tests for the MessageBus"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial

import pytest

from agora.adapters.unit_of_work import InMemoryUnitOfWork
from agora.domain import events
from agora.interfaces.unit_of_work import AbstractUnitOfWork
from agora.service_layer.commands import Command
from agora.service_layer.messagebus import MessageBus, NoHandlerForCommand

# pylint: disable=unused-argument, too-few-public-methods, magic-value-comparison


# --- Fakes ---


class FakeUoW(AbstractUnitOfWork):
    """A fake unit of work with no repositories, so it never yields events."""

    def commit(self):
        """Fake commit method."""

    def rollback(self):
        """Fake rollback method."""


@dataclass(frozen=True)
class CommandA(Command):
    """A simple fake command for testing purposes."""

    x: int = 0


@dataclass(frozen=True)
class CommandB(Command):
    """A simple fake command for testing purposes."""

    msg: str = "hi"


# --- Assert Helpers ---


def assert_log_message(records, message, level: str) -> None:
    """Assert that a log message is in the log records."""
    log_msgs = [rec.getMessage() for rec in records if rec.levelname == level]
    assert message in log_msgs


# --- Command dispatch ---


def test_dispatches_to_specific_handler_once(caplog):
    """Test that MessageBus dispatches to the correct handler once.
    and that it logs the handling action.
    """

    calls: list[Command] = []

    def handle_a(cmd: CommandA) -> None:
        calls.append(cmd)

    def handle_b(cmd: CommandB) -> None:
        calls.append(cmd)

    bus = MessageBus(
        FakeUoW(), command_handlers={CommandA: handle_a, CommandB: handle_b}
    )
    a = CommandA(42)

    with caplog.at_level("DEBUG"):
        bus.handle(a)

    # Assert that proper handler was called once
    assert calls == [a]

    # Assert that log contains handling message
    assert_log_message(
        caplog.records,
        f"Handling command {a} with handler {handle_a.__name__}",
        "DEBUG",
    )


def test_returns_handler_result():
    """Whatever the command handler returns is handed back to the caller."""
    bus = MessageBus(FakeUoW(), command_handlers={CommandA: lambda cmd: cmd.x * 2})
    assert bus.handle(CommandA(21)) == 42


def test_message_bus_no_handler_logs_error(caplog):
    """Test that MessageBus logs an error and raises when no handler is found."""
    bus = MessageBus(FakeUoW(), command_handlers={})
    with caplog.at_level("ERROR"):
        with pytest.raises(
            NoHandlerForCommand,
            match="No handler found for command CommandA",
        ):
            cmd = CommandA()
            bus.handle(cmd)

    assert_log_message(
        caplog.records,
        "No handler found for command CommandA",
        "ERROR",
    )


def test_message_bus_handler_exception_logs(caplog):
    """Test that MessageBus logs an exception raised by a handler and reraises."""

    def faulty_handler(cmd: CommandA):
        raise RuntimeError("Handler error")

    handlers: dict[type[Command], Callable[..., None]] = {
        CommandA: faulty_handler,
    }

    bus = MessageBus(FakeUoW(), command_handlers=handlers)
    with caplog.at_level("ERROR"):
        with pytest.raises(RuntimeError):
            cmd = CommandA()
            bus.handle(cmd)
    assert_log_message(
        caplog.records,
        f"Exception handling command {cmd} with handler {faulty_handler.__name__}",
        "ERROR",
    )


def test_handler_name_falls_back_to_repr(caplog):
    """Test that handler name is correctly extracted when __name__ is missing."""

    class CallableObj:
        """A callable object without a __name__ attribute."""

        def __call__(self, x):
            pass

    bus = MessageBus(FakeUoW(), command_handlers={CommandA: CallableObj()})
    with caplog.at_level("DEBUG"):
        bus.handle(cmd=CommandA())
    logs = " ".join(rec.message for rec in caplog.records)
    pattern = r"Handling command CommandA\(x=0\) with handler <.*>"
    assert re.search(pattern, logs), f"Expected log pattern not found: {pattern}"


def test_handler_name_with_closure(caplog):
    """Test that handler name is correctly extracted from a closure."""

    def record_handler(cmd: CommandA, sink: list[CommandA]) -> None:
        """Test handler that records commands to a sink."""
        sink.append(cmd)

    sink: list[CommandA] = []
    injected_handler = partial(record_handler, sink=sink)
    bus = MessageBus(FakeUoW(), command_handlers={CommandA: injected_handler})
    with caplog.at_level("DEBUG"):
        cmd = CommandA(0)
        bus.handle(cmd)
    assert sink == [cmd]
    assert_log_message(
        caplog.records,
        f"Handling command {cmd} with handler {injected_handler.func.__name__}",  # pylint: disable=no-member
        "DEBUG",
    )


def test_message_bus_exposes_uow():
    """Test that MessageBus exposes the unit of work instance."""
    uow = FakeUoW()
    bus = MessageBus(uow, command_handlers={})
    assert bus.uow is uow


# --- Event dispatch ---


@pytest.fixture
def uow():
    return InMemoryUnitOfWork()


def _add_community(uow, make_community):
    def handler(cmd: CommandA) -> str:
        with uow:
            community = make_community(aggregate_id="community-1")
            uow.communities.add(community)
            uow.commit()
        return community.id

    return handler


def test_events_reach_every_subscriber(uow, make_community):
    """Each queued event is delivered to all of its handlers, in order."""
    seen: list[tuple[str, str]] = []
    bus = MessageBus(
        uow,
        command_handlers={CommandA: _add_community(uow, make_community)},
        event_handlers={
            events.CommunityCreated: [
                lambda e: seen.append(("first", e.community_id)),
                lambda e: seen.append(("second", e.community_id)),
            ]
        },
    )
    assert bus.handle(CommandA()) == "community-1"
    assert seen == [("first", "community-1"), ("second", "community-1")]


def test_events_raised_by_event_handlers_are_dispatched(uow, make_community):
    """An event handler's own events join the queue."""
    seen: list[str] = []

    def archive_it(event: events.CommunityCreated) -> None:
        with uow:
            uow.communities.archive(event.community_id)
            uow.commit()

    bus = MessageBus(
        uow,
        command_handlers={CommandA: _add_community(uow, make_community)},
        event_handlers={
            events.CommunityCreated: [archive_it],
            events.CommunityArchived: [lambda e: seen.append(e.community_id)],
        },
    )
    bus.handle(CommandA())
    assert seen == ["community-1"]


def test_failing_event_handler_is_logged_and_skipped(uow, make_community, caplog):
    """The command still succeeds and later subscribers still run."""
    seen: list[str] = []

    def broken(event):
        raise RuntimeError("boom")

    bus = MessageBus(
        uow,
        command_handlers={CommandA: _add_community(uow, make_community)},
        event_handlers={
            events.CommunityCreated: [broken, lambda e: seen.append(e.community_id)]
        },
    )
    with caplog.at_level("ERROR"):
        assert bus.handle(CommandA()) == "community-1"
    assert seen == ["community-1"]
    assert any(
        rec.getMessage().startswith("Exception handling event") for rec in caplog.records
    )


def test_failed_command_drops_its_events(uow, make_community):
    """Events queued before a command fails are never dispatched."""
    seen: list[str] = []

    def half_done(cmd: CommandA) -> None:
        with uow:
            uow.communities.add(make_community(aggregate_id="community-1"))
            raise RuntimeError("no commit")

    bus = MessageBus(
        uow,
        command_handlers={CommandA: half_done, CommandB: lambda cmd: None},
        event_handlers={events.CommunityCreated: [lambda e: seen.append("created")]},
    )
    with pytest.raises(RuntimeError):
        bus.handle(CommandA())
    bus.handle(CommandB())
    assert not seen


def test_failing_event_handler_events_are_dropped(uow, make_community):
    """Events queued by an event handler that then fails are never dispatched."""
    seen: list[str] = []

    def archive_then_fail(event: events.CommunityCreated) -> None:
        with uow:
            uow.communities.archive(event.community_id)
            raise RuntimeError("no commit")

    bus = MessageBus(
        uow,
        command_handlers={CommandA: _add_community(uow, make_community)},
        event_handlers={
            events.CommunityCreated: [archive_then_fail],
            events.CommunityArchived: [lambda e: seen.append(e.community_id)],
        },
    )
    assert bus.handle(CommandA()) == "community-1"
    assert not seen
    with uow:
        assert uow.communities.get("community-1") is not None
