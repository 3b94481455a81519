"""Declarative configurations for the snapshot import pipeline."""
from .entity_import_configs import (
    COMMIT_ORDER,
    CONFIG_BY_KIND,
    IMPORT_CONFIGS,
    EntityImportConfig,
    ReferenceConfig,
)

__all__ = [
    "COMMIT_ORDER",
    "CONFIG_BY_KIND",
    "IMPORT_CONFIGS",
    "EntityImportConfig",
    "ReferenceConfig",
]
