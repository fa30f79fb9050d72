"""Parsing of enum tokens supplied by clients."""

import re
from enum import Enum
from typing import TypeVar

from leakwatch.services.exceptions import ValidationError

E = TypeVar("E", bound=Enum)

_SEPARATORS = re.compile(r"[\s\-]+")


def normalize_token(value: str) -> str:
    """'Water Quality Problem' / 'in-progress' -> 'WATER_QUALITY_PROBLEM' / 'IN_PROGRESS'."""
    return _SEPARATORS.sub("_", value.strip()).upper()


def parse_enum(enum_cls: type[E], value: E | str, field: str) -> E:
    """
    Parse a client-supplied token into an enum member.

    Raises:
        ValidationError: If the token is not a member of the enum.
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(normalize_token(value))
        except ValueError:
            pass

    allowed = ", ".join(member.value for member in enum_cls)
    raise ValidationError(
        f"Invalid {field}: must be one of {allowed}",
        fields=[field],
        details={"value": str(value)},
    )
