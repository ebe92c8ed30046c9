"""Column types used by the agora schema.

Aggregates hand over aware UTC datetimes, Enum members and tuples. These types
make every supported backend give the same values back.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import DateTime, TypeDecorator

if TYPE_CHECKING:
    from sqlalchemy.engine.interfaces import Dialect

__all__ = ["PORTABLE_JSON", "StringEnum", "UTCDateTime"]

# pylint: disable=too-many-ancestors,abstract-method

#: JSON on SQLite, JSONB on PostgreSQL. Used for list columns such as
#: tier features and completed lesson IDs.
PORTABLE_JSON = JSON(none_as_null=True).with_variant(
    JSONB(none_as_null=True), "postgresql"
)


class UTCDateTime(TypeDecorator[datetime]):
    """Timezone-aware UTC datetime.

    Naive values are taken to be UTC. SQLite has no timezone support, so values
    are written there as naive UTC and declared UTC again on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> Any:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Any, dialect: Dialect) -> datetime | None:
        if not isinstance(value, datetime):
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_literal_param(self, value: datetime | None, dialect: Dialect) -> Any:
        return self.process_bind_param(value, dialect)

    @property
    def python_type(self) -> type[datetime]:
        return datetime


class StringEnum(TypeDecorator[Enum]):
    """Store an Enum member as its string value (e.g. ``"TIER_GATED"``).

    Plain strings keep the stored values readable and avoid native ENUM types,
    which need their own migrations whenever a member is added.
    """

    impl = String
    cache_ok = True

    def __init__(self, enum_type: type[Enum], length: int = 32) -> None:
        super().__init__(length)
        self.enum_type = enum_type

    def process_bind_param(self, value: Enum | str | None, dialect: Dialect) -> Any:
        if value is None:
            return None
        return self.enum_type(value).value

    def process_result_value(self, value: Any, dialect: Dialect) -> Enum | None:
        if value is None:
            return None
        return self.enum_type(value)

    def process_literal_param(self, value: Enum | str | None, dialect: Dialect) -> Any:
        return self.process_bind_param(value, dialect)

    @property
    def python_type(self) -> type[Enum]:
        return self.enum_type
