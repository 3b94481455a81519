"""
Enumeration Types
------------------

Enum classes for the Dojo database models.

Enums:
    - ProjectType, ProjectStatus
    - RelationshipType
    - EntryKind (open enum with a legacy case), DecisionStakes, DecisionOutcome
    - CommitmentDirection, CommitmentStatus
    - ReflectionType, ReflectionPeriodType, ReflectionMood

Values match the wire values used in snapshots, so `Enum(value)` and
`member.value` round-trip through JSON unchanged.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from enum import Enum
from typing import Any, List


class ProjectType(str, Enum):
    """Kind of thing a project tracks."""

    PROJECT = "project"
    RELATIONSHIP = "relationship"
    AREA = "area"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available project type choices."""
        return [t.value for t in cls]

    @property
    def display_name(self) -> str:
        """Get human-readable display name."""
        return self.value.title()


class ProjectStatus(str, Enum):
    """Lifecycle status of a project."""

    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    ARCHIVED = "archived"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available project status choices."""
        return [s.value for s in cls]

    @property
    def display_name(self) -> str:
        """Get human-readable display name."""
        return self.value.replace("_", " ").title()


class RelationshipType(str, Enum):
    """
    Enumeration of working relationship categories.

    Grouped as internal hierarchy, leadership/governance,
    investment/advisory and external; OTHER catches anything else.
    """

    MANAGER = "manager"
    DIRECT_REPORT = "direct_report"
    SKIP_LEVEL = "skip_level"
    PEER = "peer"
    CROSS_FUNCTIONAL = "cross_functional"
    STAKEHOLDER = "stakeholder"
    BOARD_MEMBER = "board_member"
    EXECUTIVE = "executive"
    FOUNDER = "founder"
    PORTFOLIO_FOUNDER = "portfolio_founder"
    INVESTOR = "investor"
    ADVISOR = "advisor"
    MENTOR = "mentor"
    MENTEE = "mentee"
    CLIENT = "client"
    VENDOR = "vendor"
    PARTNER = "partner"
    CANDIDATE = "candidate"
    OTHER = "other"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available relationship type choices."""
        return [r.value for r in cls]

    @property
    def group_name(self) -> str:
        """Group name for UI organization."""
        internal = {
            self.MANAGER, self.DIRECT_REPORT, self.SKIP_LEVEL, self.PEER,
            self.CROSS_FUNCTIONAL, self.STAKEHOLDER, self.EXECUTIVE, self.FOUNDER,
        }
        advisory = {
            self.PORTFOLIO_FOUNDER, self.INVESTOR, self.ADVISOR,
            self.MENTOR, self.MENTEE, self.BOARD_MEMBER,
        }
        external = {self.CLIENT, self.VENDOR, self.PARTNER, self.CANDIDATE}
        if self in internal:
            return "Internal"
        if self in advisory:
            return "Investment & Advisory"
        if self in external:
            return "External"
        return "Other"

    @property
    def display_name(self) -> str:
        """Get human-readable display name."""
        return self.value.replace("_", " ").title()


class EntryKind(str, Enum):
    """
    Timeline entry kinds.

    LEGACY_COMMITMENT is the kind older clients used before commitments
    became their own model. It only ever appears in historical data:
    nothing may create an entry with it, and the legacy cleanup pass
    deletes any that remain.
    """

    MEETING = "meeting"
    UPDATE = "update"
    DECISION = "decision"
    NOTE = "note"
    PREP = "prep"
    REFLECTION = "reflection"
    LEGACY_COMMITMENT = "commitment"

    @classmethod
    def active_cases(cls) -> List["EntryKind"]:
        """Kinds that may be used for new entries."""
        return [k for k in cls if k is not cls.LEGACY_COMMITMENT]

    @classmethod
    def choices(cls) -> List[str]:
        """Get the writable entry kind values."""
        return [k.value for k in cls.active_cases()]

    @classmethod
    def from_raw(cls, value: Any) -> "EntryKind":
        """
        Decode a wire value.

        Unknown or absent values decode to NOTE; the legacy value decodes
        to LEGACY_COMMITMENT so callers can recognise and reject it.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            for kind in cls:
                if kind.value == lowered:
                    return kind
        return cls.NOTE

    @property
    def is_legacy(self) -> bool:
        """Check if this kind is the deprecated legacy kind."""
        return self is EntryKind.LEGACY_COMMITMENT

    @property
    def supports_ai_summary(self) -> bool:
        """Whether this entry type supports AI summarization."""
        return self in (EntryKind.MEETING, EntryKind.UPDATE, EntryKind.DECISION)

    @property
    def display_name(self) -> str:
        """Get human-readable display name."""
        return self.value.title()


class DecisionStakes(str, Enum):
    """Stakes level for a decision."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DecisionOutcome(str, Enum):
    """Outcome status for a decision after review."""

    PENDING = "pending"
    VALIDATED = "validated"
    INVALIDATED = "invalidated"
    MIXED = "mixed"
    SUPERSEDED = "superseded"


class CommitmentDirection(str, Enum):
    """Who owes whom."""

    I_OWE = "i_owe"
    WAITING_FOR = "waiting_for"

    @property
    def display_name(self) -> str:
        """Get human-readable display name."""
        return {self.I_OWE: "I Owe", self.WAITING_FOR: "Waiting For"}[self]


class CommitmentStatus(str, Enum):
    """Commitment status."""

    OPEN = "open"
    DONE = "done"
    BLOCKED = "blocked"
    DROPPED = "dropped"

    @property
    def is_active(self) -> bool:
        """Open and blocked commitments still need attention."""
        return self in (CommitmentStatus.OPEN, CommitmentStatus.BLOCKED)


class ReflectionType(str, Enum):
    """Scope and prompting strategy of a reflection."""

    QUICK = "quick"
    PERIODIC = "periodic"
    PROJECT = "project"
    RELATIONSHIP = "relationship"


class ReflectionPeriodType(str, Enum):
    """Period covered by a periodic reflection."""

    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"


class ReflectionMood(str, Enum):
    """Mood captured during a reflection."""

    CONFIDENT = "confident"
    UNCERTAIN = "uncertain"
    ENERGIZED = "energized"
    DRAINED = "drained"
    NEUTRAL = "neutral"
