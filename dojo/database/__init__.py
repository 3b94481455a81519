"""
Dojo Database
-------------

Local store for projects, people, entries, commitments and reflections.

Exports:
    - DojoDB: engine, sessions, import transaction and entity managers
    - ExportManager: snapshot export
    - LegacyEntryNormalizer, NormalizationReport: legacy entry cleanup
"""
from .export_manager import ExportManager
from .legacy_normalizer import LegacyEntryNormalizer, NormalizationReport
from .manager import DojoDB

__all__ = [
    "DojoDB",
    "ExportManager",
    "LegacyEntryNormalizer",
    "NormalizationReport",
]
