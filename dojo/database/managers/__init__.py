#!/usr/bin/env python3
"""
managers package
--------------------
Entity managers for the Dojo database.

Each manager handles CRUD operations for one entity type and inherits
from BaseManager.

Available Managers:
    BaseManager: Abstract base class with common utilities
    ProjectManager: Manages Project entities
    PersonManager: Manages Person entities
    EntryManager: Manages Entry entities and participants
    CommitmentManager: Manages Commitment entities (done / reopen)
    ReflectionManager: Manages Reflection entities

Usage:
    from dojo.database.managers import ProjectManager

    project_mgr = ProjectManager(session, logger)
"""
from .base_manager import BaseManager
from .entry_manager import EntryManager
from .person_manager import PersonManager
from .project_manager import ProjectManager
from .tracking_manager import CommitmentManager, ReflectionManager

__all__ = [
    "BaseManager",
    "ProjectManager",
    "PersonManager",
    "EntryManager",
    "CommitmentManager",
    "ReflectionManager",
]
