#!/usr/bin/env python3
"""
exceptions.py
--------------------
Custom exception classes for the Dojo project.

This module defines the hierarchy of exceptions used by the local store
and the snapshot import engine.

Exception Hierarchy:
    Exception (built-in)
    └── DojoError - Base for all project errors
        ├── ParseError - Snapshot text rejected before any store access
        ├── ValidationError - Entity data fails validation
        ├── ReferentialError - Foreign key does not resolve
        ├── ConfigError - Settings file unreadable or invalid
        └── DatabaseError - Base for all database-related errors
            └── StorageError - Persistence rejected a write during import
                └── ImportTimeoutError - Import exceeded its time budget

Propagation:
    ParseError and StorageError are terminal: they abort the whole import.
    ValidationError and ReferentialError are recovered per entity by the
    import pipeline and reported as skips.

Usage:
    from dojo.core.exceptions import ParseError, StorageError

    try:
        result = importer.import_snapshot(raw_text)
    except ParseError as e:
        logger.error(f"Snapshot rejected: {e}")
    except StorageError as e:
        logger.error(f"Import rolled back: {e}")
"""


class DojoError(Exception):
    """Base exception for all Dojo errors."""

    pass


class ParseError(DojoError):
    """
    Exception for snapshot payloads that cannot be imported at all.

    Raised by the snapshot parser when the raw text:
    - is not valid JSON
    - is not a JSON object
    - omits the schema version marker
    - declares a schema version newer than supported

    Nothing is ever written to the store when this is raised.

    Examples:
        >>> raise ParseError("Invalid JSON at line 1 column 2")
        >>> raise ParseError("Unsupported schema version 7 (max 2)")
    """

    pass


class ValidationError(DojoError):
    """
    Exception for data validation failures.

    Raised when input data fails validation checks:
    - Missing required fields
    - Deprecated values that may not be written
    - Type mismatches
    - Constraint violations

    During an import this never aborts the operation; the offending
    entity is skipped and a warning is recorded.

    Examples:
        >>> raise ValidationError("Required field 'name' missing or empty")
        >>> raise ValidationError("Entry kind 'commitment' is legacy-only")
    """

    pass


class ReferentialError(DojoError):
    """
    Exception for foreign keys that do not resolve.

    Raised when an entity references another entity that is neither in
    the snapshot being imported nor in the local store, or that was
    skipped earlier in the same import.

    Examples:
        >>> raise ReferentialError("projectId 'p-42' not found")
    """

    pass


class ConfigError(DojoError):
    """Exception for unreadable or invalid settings files."""

    pass


class DatabaseError(DojoError):
    """
    Base exception for database-related errors.

    Raised when database operations fail due to connection issues,
    query errors, integrity violations, or other database problems.

    Examples:
        >>> raise DatabaseError("Connection to database failed")
        >>> raise DatabaseError("Integrity constraint violation: duplicate entry")
    """

    pass


class StorageError(DatabaseError):
    """
    Exception for persistence failures during the merge transaction.

    The import transaction is rolled back before this propagates, so the
    store holds exactly what it held before the import started.

    Examples:
        >>> raise StorageError("Write rejected: disk I/O error")
    """

    pass


class ImportTimeoutError(StorageError):
    """Exception raised when an import exceeds its overall time budget."""

    pass
