"""Declarative configurations for database exports."""
from .snapshot_export_configs import EXPORT_CONFIGS, EntityExportConfig, iso

__all__ = ["EXPORT_CONFIGS", "EntityExportConfig", "iso"]
