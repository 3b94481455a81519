#!/usr/bin/env python3
"""
validators.py
--------------------
Data validation and normalization utilities for all Dojo operations.

Provides type-safe conversion, validation, and normalization functions
used across database operations and the snapshot import pipeline.

Normalizers never raise on malformed optional input: they return None
(or the supplied default) so callers can apply documented defaults.
"""
from __future__ import annotations

from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from .exceptions import ValidationError

E = TypeVar("E", bound=Enum)


class DataValidator:
    """Centralized data validation for database and import operations."""

    @staticmethod
    def validate_required_fields(
        data: Dict[str, Any], required_fields: List[str]
    ) -> None:
        """
        Validate that required fields are present and non-empty.

        Args:
            data: Data dictionary to validate
            required_fields: List of required field names

        Raises:
            ValidationError: If validation fails
        """
        for field in required_fields:
            if field not in data or data[field] is None or data[field] == "":
                raise ValidationError(f"Required field '{field}' missing or empty")

    @staticmethod
    def normalize_string(value: Any) -> Optional[str]:
        """
        Normalize string value.

        Strips surrounding whitespace; empty strings become None.

        Args:
            value: Value to normalize

        Returns:
            Normalized string or None
        """
        if value is None:
            return None
        if not isinstance(value, str):
            value = str(value)
        value = value.strip()
        return value or None

    @staticmethod
    def normalize_bool(value: Any, default: Optional[bool] = None) -> Optional[bool]:
        """
        Convert various inputs to boolean.

        Args:
            value: Value to convert
            default: Returned when the value cannot be interpreted

        Returns:
            Boolean value or default
        """
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            if value in (0, 1):
                return bool(value)
            return default
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("true", "1", "yes", "on"):
                return True
            if lowered in ("false", "0", "no", "off"):
                return False
        return default

    @staticmethod
    def normalize_int(value: Any) -> Optional[int]:
        """
        Convert value to integer safely.

        Args:
            value: Value to convert

        Returns:
            Integer value or None
        """
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if value.is_integer() else None
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                return None
        return None

    @staticmethod
    def normalize_rating(
        value: Any, default: Optional[int] = 3, low: int = 1, high: int = 5
    ) -> Optional[int]:
        """
        Convert value to an integer rating clamped to [low, high].

        Args:
            value: Value to convert
            default: Returned when the value is absent or not an integer
            low: Lower bound (inclusive)
            high: Upper bound (inclusive)

        Returns:
            Clamped integer or default
        """
        number = DataValidator.normalize_int(value)
        if number is None:
            return default
        return max(low, min(high, number))

    @staticmethod
    def as_utc(value: Optional[datetime]) -> Optional[datetime]:
        """
        Make a datetime timezone-aware in UTC.

        SQLite hands timestamps back without tzinfo; they are stored in UTC,
        so naive values are tagged as UTC rather than converted.
        """
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @staticmethod
    def normalize_datetime(value: Any) -> Optional[datetime]:
        """
        Normalize ISO-8601 strings, dates and datetimes to aware UTC datetimes.

        Accepts a trailing 'Z', fractional seconds and bare dates.

        Args:
            value: Timestamp string, date, or datetime

        Returns:
            UTC datetime or None when absent or unparseable
        """
        if isinstance(value, datetime):
            return DataValidator.as_utc(value)
        if isinstance(value, date):
            return datetime.combine(value, time.min, tzinfo=timezone.utc)
        if not isinstance(value, str):
            return None

        text = value.strip()
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            try:
                parsed = datetime.combine(
                    date.fromisoformat(text), time.min, tzinfo=timezone.utc
                )
            except ValueError:
                return None
        return DataValidator.as_utc(parsed)

    @staticmethod
    def normalize_enum(
        value: Any, enum_class: Type[E], default: Optional[E] = None
    ) -> Optional[E]:
        """
        Convert a raw value to an enum member.

        Matching is on the member value, case-insensitive. Unknown values
        fall back to the default instead of failing.

        Args:
            value: Raw value (string or enum member)
            enum_class: Target enum class
            default: Returned for absent or unknown values

        Returns:
            Enum member or default
        """
        if isinstance(value, enum_class):
            return value
        if not isinstance(value, str):
            return default
        lowered = value.strip().lower()
        for member in enum_class:
            if member.value == lowered:
                return member
        return default

    @staticmethod
    def normalize_string_list(value: Any) -> List[str]:
        """
        Normalize a list of strings, dropping empty and non-scalar items.

        Args:
            value: Raw list value

        Returns:
            List of stripped strings (possibly empty)
        """
        if not isinstance(value, list):
            return []
        result = []
        for item in value:
            if isinstance(item, (dict, list)):
                continue
            normalized = DataValidator.normalize_string(item)
            if normalized:
                result.append(normalized)
        return result
