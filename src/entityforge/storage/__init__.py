"""Storage capability probes for entityforge."""

from entityforge.storage.capabilities import (
    CapabilityProbe,
    SqlAlchemyCapabilityProbe,
    StaticCapabilityProbe,
    engine_supports_full_text,
)

__all__ = [
    "CapabilityProbe",
    "SqlAlchemyCapabilityProbe",
    "StaticCapabilityProbe",
    "engine_supports_full_text",
]
