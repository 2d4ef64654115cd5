"""Definition sources and diagnostics sinks."""

from entityforge.sources.definitions import DefinitionSource, MetadataSnapshot, SnapshotCache
from entityforge.sources.diagnostics import CollectingDiagnostics, DiagnosticsSink, LoggingDiagnostics

__all__ = [
    "DefinitionSource",
    "MetadataSnapshot",
    "SnapshotCache",
    "DiagnosticsSink",
    "LoggingDiagnostics",
    "CollectingDiagnostics",
]
