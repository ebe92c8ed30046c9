"""Domain layer utilities."""

import re
from collections.abc import Callable, Mapping
from dataclasses import MISSING, fields, is_dataclass
from datetime import datetime, timezone
from enum import Enum, auto
from types import NoneType, UnionType
from typing import Any, TypeVar, Union, cast, get_args, get_origin, get_type_hints
from urllib.parse import urlsplit

from agora.domain.errors import ValidationError

D = TypeVar("D")

_HTML_TAG = re.compile(r"<[^>]*>")


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def strip_html_tags(text: str) -> str:
    """Remove anything that looks like an HTML tag from *text*."""
    return _HTML_TAG.sub("", text)


def is_int(value: object) -> bool:
    """True for ints, excluding bools."""
    return isinstance(value, int) and not isinstance(value, bool)


def check_text_length(
    value: str, label: str, *, minimum: int, maximum: int, strip: bool = True
) -> None:
    """Validate a required text field against inclusive length bounds.

    Args:
        value: The text to check.
        label: Field name used in the messages, e.g. ``"Course title"``.
        minimum: Minimum number of characters.
        maximum: Maximum number of characters.
        strip: Measure the length after stripping surrounding whitespace.

    Raises:
        ValidationError: ``"<label> is required"``, ``"<label> must be at least
            N characters"`` or ``"<label> must not exceed N characters"``.
    """
    if not value or not value.strip():
        raise ValidationError(f"{label} is required")
    measured = value.strip() if strip else value
    if len(measured) < minimum:
        raise ValidationError(f"{label} must be at least {minimum} characters")
    if len(measured) > maximum:
        raise ValidationError(f"{label} must not exceed {maximum} characters")


def is_web_url(url: str, schemes: tuple[str, ...] = ("http", "https")) -> bool:
    """Return True if *url* parses as an absolute URL with one of *schemes*."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in schemes and bool(parts.netloc)


def is_absolute_url(url: str) -> bool:
    """Return True if *url* has a scheme and something after it."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc or parts.path)


class Unset(Enum):
    """Marker for keyword arguments where None is a meaningful value."""

    UNSET = auto()


UNSET = Unset.UNSET


def dataclass_from_mapping(dc_type: type[D], values: Mapping[str, Any]) -> D:
    """Build a dataclass instance from a flat mapping (e.g. a database row).

    Args:
        dc_type: The dataclass type to build.
        values: The mapping containing the data.

    Returns:
        An instance of dc_type populated with data from values.

    Note:
        - Keys in values that are not fields of dc_type are ignored.
        - All fields without defaults must be present in values.
        - Plain strings are coerced into the field's Enum type (also for
          ``SomeEnum | None``) and lists into tuples for ``tuple[...]`` fields,
          which is what storage backends hand back for those columns.
    """

    if not is_dataclass(dc_type):
        raise TypeError(f"{dc_type} is not a dataclass type")
    type_hints = get_type_hints(dc_type)
    kwargs = {}
    for field in fields(dc_type):
        if not field.init:
            continue
        if field.name in values:
            field_type = type_hints.get(field.name, field.type)
            kwargs[field.name] = _coerce(field_type, values[field.name])
        elif field.default is not MISSING:
            kwargs[field.name] = field.default
        elif field.default_factory is not MISSING:
            factory = cast(Callable[[], Any], field.default_factory)
            kwargs[field.name] = factory()
        else:
            raise KeyError(f"Missing required field '{field.name}'")
    return cast(D, dc_type(**kwargs))


def _coerce(field_type: Any, value: Any) -> Any:
    if value is None:
        return None
    target = _strip_optional(field_type)
    if isinstance(target, type) and issubclass(target, Enum):
        return value if isinstance(value, target) else target(value)
    if get_origin(target) is tuple and isinstance(value, list):
        return tuple(value)
    return value


def _strip_optional(field_type: Any) -> Any:
    if get_origin(field_type) in (Union, UnionType):
        args = [arg for arg in get_args(field_type) if arg is not NoneType]
        if len(args) == 1:
            return args[0]
    return field_type
