"""Name conversions shared by the compiler stages."""

from __future__ import annotations

import re

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def to_underscore(name: str) -> str:
    """Convert camelCase / PascalCase to snake_case (e.g., AccountContact -> account_contact)."""
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


def ucfirst(name: str) -> str:
    return name[:1].upper() + name[1:]


def lcfirst(name: str) -> str:
    return name[:1].lower() + name[1:]


def compose(field_name: str, part: str, naming: str) -> str:
    """Name of a composite field's physical part.

    ``prefix`` naming gives ``<part><FieldName>`` (firstName), anything else
    gives ``<fieldName><Part>`` (addressCity).
    """
    if naming == "prefix":
        return part + ucfirst(field_name)
    return field_name + ucfirst(part)
