"""Custom exceptions for entityforge.

Exceptions follow the same shape everywhere:
- A message that says what went wrong AND how to fix it
- A JSON-serializable context dict for tooling
"""

from __future__ import annotations

from typing import Any


class EntityForgeError(Exception):
    """Base exception for all entityforge errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class MalformedEntityDefinitionError(EntityForgeError):
    """Entity metadata is empty, missing or cannot be read."""

    def __init__(self, entity_type: str, reason: str) -> None:
        message = (
            f"Entity '{entity_type}' metadata cannot be converted into a storage schema: {reason}"
        )
        super().__init__(message, {"entity_type": entity_type, "reason": reason})
        self.entity_type = entity_type
        self.reason = reason


class ConfigurationError(EntityForgeError):
    """Definitions violate a contract the compiler relies on."""

    pass


class InvalidLinkError(ConfigurationError):
    """A link declaration is missing a required parameter."""

    def __init__(self, entity_type: str, link_name: str, missing: str) -> None:
        message = (
            f"Link '{link_name}' on '{entity_type}' has no '{missing}'. "
            f"Declare '{missing}' or mark the link with skipOrmDefs."
        )
        super().__init__(
            message,
            {"entity_type": entity_type, "link_name": link_name, "missing": missing},
        )
        self.entity_type = entity_type
        self.link_name = link_name
        self.missing = missing


class UnknownLinkTypeError(ConfigurationError):
    """A link declares a relation kind the compiler does not know."""

    def __init__(self, entity_type: str, link_name: str, link_type: str, valid: list[str]) -> None:
        message = (
            f"Link '{link_name}' on '{entity_type}' has unknown type '{link_type}'. "
            f"Valid types: {', '.join(valid)}"
        )
        super().__init__(
            message,
            {
                "entity_type": entity_type,
                "link_name": link_name,
                "link_type": link_type,
                "valid_types": valid,
            },
        )
        self.entity_type = entity_type
        self.link_name = link_name
        self.link_type = link_type


class CapabilityProbeError(EntityForgeError):
    """The storage backend could not be asked about its capabilities."""

    def __init__(self, table_name: str, reason: str) -> None:
        message = f"Cannot probe full-text support for table '{table_name}': {reason}"
        super().__init__(message, {"table_name": table_name, "reason": reason})
        self.table_name = table_name
        self.reason = reason
