"""Service layer handlers."""

from collections.abc import Callable

from .communities import COMMAND_HANDLERS as COMMUNITY_COMMAND_HANDLERS
from .courses import COMMAND_HANDLERS as COURSE_COMMAND_HANDLERS
from .dashboard import COMMAND_HANDLERS as DASHBOARD_COMMAND_HANDLERS
from .notifications import COMMAND_HANDLERS as NOTIFICATION_COMMAND_HANDLERS
from .notifications import EVENT_HANDLERS as NOTIFICATION_EVENT_HANDLERS
from .payments import COMMAND_HANDLERS as PAYMENT_COMMAND_HANDLERS
from .posts import COMMAND_HANDLERS as POST_COMMAND_HANDLERS
from .posts import EVENT_HANDLERS as POST_EVENT_HANDLERS
from .spaces import COMMAND_HANDLERS as SPACE_COMMAND_HANDLERS

__all__ = ["COMMAND_HANDLERS", "EVENT_HANDLERS"]

COMMAND_HANDLERS: dict[type, Callable[..., object]] = {
    **COMMUNITY_COMMAND_HANDLERS,
    **POST_COMMAND_HANDLERS,
    **COURSE_COMMAND_HANDLERS,
    **SPACE_COMMAND_HANDLERS,
    **PAYMENT_COMMAND_HANDLERS,
    **NOTIFICATION_COMMAND_HANDLERS,
    **DASHBOARD_COMMAND_HANDLERS,
}


def _merge(
    *tables: dict[type, list[Callable[..., None]]],
) -> dict[type, list[Callable[..., None]]]:
    merged: dict[type, list[Callable[..., None]]] = {}
    for table in tables:
        for event_type, handlers in table.items():
            merged.setdefault(event_type, []).extend(handlers)
    return merged


EVENT_HANDLERS: dict[type, list[Callable[..., None]]] = _merge(
    POST_EVENT_HANDLERS,
    NOTIFICATION_EVENT_HANDLERS,
)
