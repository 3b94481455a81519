#!/usr/bin/env python3
"""
settings.py
-----------
Import settings loaded from an optional YAML file.

Example dojo.yaml:

    default_timeout: 30
    normalize_legacy_on_startup: true
    fingerprint_case_sensitive: true

Absent file → defaults. Unknown keys are rejected so that typos do not
silently fall back to defaults.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .exceptions import ConfigError


@dataclass(frozen=True)
class ImportSettings:
    """
    Tunables for the snapshot import engine.

    Attributes:
        default_timeout: Overall import timeout in seconds (None = no limit)
        normalize_legacy_on_startup: Run the legacy entry cleanup when the store opens
        fingerprint_case_sensitive: Exact (True) or case-folded (False) fingerprint matching
    """

    default_timeout: Optional[float] = None
    normalize_legacy_on_startup: bool = True
    fingerprint_case_sensitive: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImportSettings":
        """Build settings from a mapping, validating keys and types."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown settings: {', '.join(unknown)}")

        timeout = data.get("default_timeout")
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                raise ConfigError("default_timeout must be a number of seconds")
            if timeout <= 0:
                raise ConfigError("default_timeout must be positive")

        for flag in ("normalize_legacy_on_startup", "fingerprint_case_sensitive"):
            if flag in data and not isinstance(data[flag], bool):
                raise ConfigError(f"{flag} must be true or false")

        return cls(**data)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "ImportSettings":
        """
        Load settings from a YAML file.

        Args:
            path: Settings file; a missing file yields the defaults

        Returns:
            ImportSettings instance

        Raises:
            ConfigError: If the file is not valid YAML or holds invalid settings
        """
        if path is None:
            return cls()

        path = Path(path).expanduser()
        if not path.exists():
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Settings file {path} must contain a mapping")

        return cls.from_dict(data)
