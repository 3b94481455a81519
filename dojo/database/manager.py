#!/usr/bin/env python3
"""
manager.py
--------------------
Database manager for the Dojo local store.

Provides the DojoDB class for interacting with the SQLite database.
Handles:
    - Initialization of the database engine and sessionmaker
    - Transaction management with automatic rollback
    - The exclusive import transaction used by snapshot imports
    - Entity managers bound to the active session
    - The one-time legacy entry cleanup at startup
    - Store statistics and a content digest for integrity checks

Notes
==============
- All datetime fields are stored in UTC
- Tables use SQLite AUTOINCREMENT, so ids are never reused
- Foreign keys are enforced on every connection
- Logs are rotated automatically to prevent disk bloat
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import hashlib
import json
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

# --- Third party ---
from sqlalchemy import Engine, create_engine, event, func, inspect, select
from sqlalchemy.orm import Session, sessionmaker

# --- Local imports ---
from dojo.core.exceptions import DatabaseError
from dojo.core.logging_manager import DojoLogger, safe_logger
from dojo.core.settings import ImportSettings

from .export_manager import ExportManager
from .legacy_normalizer import LegacyEntryNormalizer, NormalizationReport
from .managers import (
    CommitmentManager,
    EntryManager,
    PersonManager,
    ProjectManager,
    ReflectionManager,
)
from .models import Base, Commitment, Entry, Person, Project, Reflection

MANAGER_CLASSES = {
    "projects": ProjectManager,
    "people": PersonManager,
    "entries": EntryManager,
    "commitments": CommitmentManager,
    "reflections": ReflectionManager,
}

MODEL_BY_KIND = {
    "project": Project,
    "person": Person,
    "entry": Entry,
    "commitment": Commitment,
    "reflection": Reflection,
}


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ----- Main Database Manager -----
class DojoDB:
    """
    Main database manager for the Dojo local store.

    Attributes:
        - db_path (Path): Filesystem path to the SQLite database file.
        - engine (Engine): SQLAlchemy engine instance.
        - SessionLocal (sessionmaker): SQLAlchemy session factory.
        - settings (ImportSettings): Import tunables.
        - logger (DojoLogger | None): Logger for database operations.

    Usage:
        db = DojoDB("~/path/to/dojo.db")
        with db.session_scope() as session:
            projects = db.projects.get_all()
    """

    # ---- Initialization ----
    def __init__(
        self,
        db_path: Union[str, Path],
        log_dir: Optional[Union[str, Path]] = None,
        settings: Optional[ImportSettings] = None,
        normalize_legacy: Optional[bool] = None,
    ) -> None:
        """
        Initialize database engine and session factory.

        Args:
            db_path (str | Path): Path to the SQLite file.
            log_dir (str | Path): Directory for log files (optional)
            settings (ImportSettings): Import tunables (defaults when omitted)
            normalize_legacy (bool): Run the legacy entry cleanup once now;
                defaults to settings.normalize_legacy_on_startup
        """
        self.db_path = Path(db_path).expanduser().resolve()
        self.settings = settings or ImportSettings()

        # --- Logging ---
        if log_dir:
            self.log_dir: Optional[Path] = Path(log_dir).expanduser().resolve()
            self.logger: Optional[DojoLogger] = DojoLogger(
                self.log_dir, component_name="database"
            )
        else:
            self.log_dir = None
            self.logger = None

        self.export_manager = ExportManager(self.logger)

        # One import at a time per store
        self._import_lock = threading.RLock()

        # Entity managers bound per thread by session_scope
        self._bound = threading.local()

        self._setup_engine()

        self.last_normalization: Optional[NormalizationReport] = None
        if normalize_legacy is None:
            normalize_legacy = self.settings.normalize_legacy_on_startup
        if normalize_legacy:
            self.last_normalization = self.normalize_legacy_entries()

    def _setup_engine(self) -> None:
        """Initialize database engine and session factory."""
        logger = safe_logger(self.logger)
        try:
            logger.log_operation("database_init_start", {"db_path": str(self.db_path)})

            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self.engine: Engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                future=True,
                pool_pre_ping=True,
            )
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

            self.SessionLocal: sessionmaker = sessionmaker(
                bind=self.engine,
                autoflush=True,
                expire_on_commit=False,
                future=True,
            )

            self.initialize_schema()

            logger.log_operation("database_init_complete", {"success": True})

        except DatabaseError:
            raise
        except Exception as e:
            logger.log_error(e, {"operation": "database_init"})
            raise DatabaseError(f"Database initialization failed: {e}") from e

    def initialize_schema(self) -> None:
        """
        Create any missing tables from the ORM models.

        Existing tables are left as they are; the only schema-shape fixup
        this store performs is the legacy entry cleanup.
        """
        try:
            existing = inspect(self.engine).get_table_names()
            Base.metadata.create_all(bind=self.engine)
            if existing:
                safe_logger(self.logger).log_operation(
                    "existing_database_opened", {"table_count": len(existing)}
                )
            else:
                safe_logger(self.logger).log_operation(
                    "fresh_database_created",
                    {"tables_created": len(Base.metadata.tables)},
                )
        except Exception as e:
            raise DatabaseError(f"Could not initialize database: {e}") from e

    # ---- Session Management ----
    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Provide a transactional scope around operations with logging.

        Also binds the entity managers to the session for the calling
        thread; they are available via properties (db.projects, db.people,
        ...) inside the block. Scopes on other threads bind their own
        managers, and a nested scope restores the outer binding on exit.

        Usage:
            with db.session_scope() as session:
                project = db.projects.create({"name": "Platform"})
        """
        session = self.SessionLocal()
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        logger = safe_logger(self.logger)

        outer = getattr(self._bound, "managers", None)
        self._bound.managers = self.managers_for(session)
        logger.log_debug("session_start", {"session_id": session_id})

        try:
            yield session
            session.commit()
            logger.log_debug("session_commit", {"session_id": session_id})

        except Exception as e:
            session.rollback()
            logger.log_error(
                e, {"operation": "session_rollback", "session_id": session_id}
            )
            raise
        finally:
            self._bound.managers = outer
            session.close()
            logger.log_debug("session_close", {"session_id": session_id})

    @contextmanager
    def import_transaction(self) -> Iterator[Session]:
        """
        Exclusive transaction for snapshot imports.

        Holds the store's import lock for the whole transaction so that two
        imports on the same store run one after the other. Everything done
        inside the block commits together or rolls back together.
        """
        with self._import_lock:
            safe_logger(self.logger).log_debug("import_lock_acquired")
            try:
                with self.session_scope() as session:
                    yield session
            finally:
                safe_logger(self.logger).log_debug("import_lock_released")

    @property
    def import_lock(self) -> threading.RLock:
        """Reentrant lock serializing imports on this store."""
        return self._import_lock

    def get_session(self) -> Session:
        """Create and return a new SQLAlchemy session."""
        return self.SessionLocal()

    def managers_for(self, session: Session) -> Dict[str, Any]:
        """
        Build entity managers bound to a given session.

        Returns:
            {property name: manager}, e.g. {"projects": ProjectManager, ...}
        """
        return {
            name: manager_class(session, self.logger)
            for name, manager_class in MANAGER_CLASSES.items()
        }

    # -------------------------------------------------------------------------
    # Entity Manager Properties
    # -------------------------------------------------------------------------

    def _require(self, attr: str, name: str) -> Any:
        managers = getattr(self._bound, "managers", None)
        if managers is None:
            raise DatabaseError(
                f"{name} requires active session. "
                "Use within session_scope: "
                "with db.session_scope() as session: ..."
            )
        return managers[attr]

    @property
    def projects(self) -> ProjectManager:
        """
        Access ProjectManager for project operations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        return self._require("projects", "ProjectManager")

    @property
    def people(self) -> PersonManager:
        """
        Access PersonManager for person operations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        return self._require("people", "PersonManager")

    @property
    def entries(self) -> EntryManager:
        """
        Access EntryManager for timeline entry operations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        return self._require("entries", "EntryManager")

    @property
    def commitments(self) -> CommitmentManager:
        """
        Access CommitmentManager for commitment operations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        return self._require("commitments", "CommitmentManager")

    @property
    def reflections(self) -> ReflectionManager:
        """
        Access ReflectionManager for reflection operations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        return self._require("reflections", "ReflectionManager")

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def normalize_legacy_entries(self) -> NormalizationReport:
        """Run the legacy entry cleanup pass."""
        return LegacyEntryNormalizer(self, self.logger).run()

    def get_stats(self) -> Dict[str, Dict[str, int]]:
        """
        Count entities per kind.

        Returns:
            {kind: {"active": n, "deleted": m}}
        """
        stats: Dict[str, Dict[str, int]] = {}
        with self.session_scope() as session:
            for kind, model in MODEL_BY_KIND.items():
                total = session.scalar(select(func.count()).select_from(model)) or 0
                deleted = (
                    session.scalar(
                        select(func.count())
                        .select_from(model)
                        .where(model.deleted_at.is_not(None))
                    )
                    or 0
                )
                stats[kind] = {"active": total - deleted, "deleted": deleted}
        return stats

    def content_digest(self) -> str:
        """
        SHA-256 digest over every row of every table, in primary key order.

        Two stores with the same digest hold exactly the same data.
        """
        digest = hashlib.sha256()
        with self.engine.connect() as conn:
            for table in Base.metadata.sorted_tables:
                digest.update(table.name.encode("utf-8"))
                query = select(table).order_by(*table.primary_key.columns)
                for row in conn.execute(query):
                    digest.update(
                        json.dumps(list(row), default=str, sort_keys=True).encode(
                            "utf-8"
                        )
                    )
        return digest.hexdigest()

    def dispose(self) -> None:
        """Release pooled connections and close log files."""
        self.engine.dispose()
        if self.logger is not None:
            self.logger.close()

    # ----- Context Manager Support -----
    def __enter__(self) -> "DojoDB":
        """Support for context manager usage."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Cleanup on context manager exit."""
        del exc_type, exc_val, exc_tb
        self.dispose()
