"""Default label definitions for issue workflows.

This module centralizes the starter taxonomy used when a workflow document is
generated for a new repository, along with the documented fallbacks that the
evaluators use when a document leaves a value unset.

Labels are grouped into five categories:
- status: where the issue sits on the board (operator-controlled)
- priority: urgency, with an SLA window per level
- type: what kind of work the issue is
- area: which part of the project it touches (depends on project type)
- workflow: process markers such as blocked or needs-info
"""

from typing import NotRequired, TypedDict


class LabelConfig(TypedDict):
    """Configuration for a tracker label."""

    color: str
    description: str
    sla_hours: NotRequired[int]


class ColumnConfig(TypedDict):
    """Configuration for a board column."""

    name: str
    maps_to: str


# Category names in canonical order; this order drives all_labels() and serialization
CATEGORIES: tuple[str, ...] = ("status", "priority", "type", "area", "workflow")

# Categories the inference engine may suggest, in tie-break order
INFERRED_CATEGORIES: tuple[str, ...] = ("type", "priority", "area")

PROJECT_TYPES: tuple[str, ...] = ("backend", "frontend", "fullstack", "library")


# Label name constants for type-safe references throughout the codebase
class Labels:
    """Short names the engine refers to directly."""

    BACKLOG = "backlog"
    SECURITY = "security"
    BLOCKED = "blocked"

    TOP_PRIORITY = "P0"
    # Used for issues with no (or an unknown) priority label
    DEFAULT_PRIORITY = "P3"


DEFAULT_PREFIXES: dict[str, str] = {category: f"{category}/" for category in CATEGORIES}

# Fallback SLA windows when neither blocked_detection.sla nor the priority
# label itself configures one
DEFAULT_SLA_HOURS: dict[str, int] = {
    "P0": 4,
    "P1": 24,
    "P2": 72,
    "P3": 168,
}

# Share of the SLA window, counted back from the deadline, that reports a warning
DEFAULT_WARNING_RATIO = 0.2

# (from_priority, to_priority, after_days); P0 has no further rule
DEFAULT_ESCALATION_LADDER: tuple[tuple[str, str, int], ...] = (
    ("P3", "P2", 30),
    ("P2", "P1", 14),
    ("P1", "P0", 3),
)

DEFAULT_STATUS_LABELS: dict[str, LabelConfig] = {
    "backlog": {"color": "ededed", "description": "Waiting to be picked up"},
    "in-progress": {"color": "0e8a16", "description": "Work in progress"},
    "review": {"color": "fbca04", "description": "Under review"},
    "testing": {"color": "1d76db", "description": "Being tested"},
    "done": {"color": "0e8a16", "description": "Completed"},
}

DEFAULT_PRIORITY_LABELS: dict[str, LabelConfig] = {
    "P0": {"color": "d93f0b", "description": "Critical", "sla_hours": 4},
    "P1": {"color": "e99695", "description": "High", "sla_hours": 24},
    "P2": {"color": "fbca04", "description": "Medium", "sla_hours": 72},
    "P3": {"color": "c5def5", "description": "Low", "sla_hours": 168},
}

DEFAULT_TYPE_LABELS: dict[str, LabelConfig] = {
    "bug": {"color": "d73a4a", "description": "Something is broken"},
    "feature": {"color": "0e8a16", "description": "New functionality"},
    "docs": {"color": "0075ca", "description": "Documentation"},
    "refactor": {"color": "fbca04", "description": "Code restructuring"},
    "test": {"color": "1d76db", "description": "Tests"},
    "security": {"color": "d93f0b", "description": "Security issue"},
}

DEFAULT_WORKFLOW_LABELS: dict[str, LabelConfig] = {
    "blocked": {"color": "d93f0b", "description": "Blocked"},
    "needs-info": {"color": "fbca04", "description": "Needs more information"},
    "needs-review": {"color": "0075ca", "description": "Needs code review"},
    "duplicate": {"color": "cccccc", "description": "Duplicate issue"},
}

AREA_LABELS_BY_TYPE: dict[str, dict[str, LabelConfig]] = {
    "backend": {
        "api": {"color": "c2e0c6", "description": "API"},
        "database": {"color": "f9d0c4", "description": "Database"},
        "auth": {"color": "fef2c0", "description": "Authentication and authorization"},
        "performance": {"color": "e99695", "description": "Performance"},
    },
    "frontend": {
        "ui": {"color": "d4c5f9", "description": "User interface"},
        "ux": {"color": "bfdadc", "description": "User experience"},
        "performance": {"color": "e99695", "description": "Performance"},
        "responsive": {"color": "c2e0c6", "description": "Responsive layout"},
    },
    "fullstack": {
        "api": {"color": "c2e0c6", "description": "API"},
        "ui": {"color": "d4c5f9", "description": "User interface"},
        "database": {"color": "f9d0c4", "description": "Database"},
        "auth": {"color": "fef2c0", "description": "Authentication and authorization"},
    },
    "library": {
        "api": {"color": "c2e0c6", "description": "Public API"},
        "docs": {"color": "0075ca", "description": "Documentation"},
        "examples": {"color": "1d76db", "description": "Example code"},
        "compatibility": {"color": "fbca04", "description": "Compatibility"},
    },
}

DEFAULT_BOARD_NAME = "Issue Workflow Board"

# One column per status label, in board order
DEFAULT_BOARD_COLUMNS: list[ColumnConfig] = [
    {"name": "Backlog", "maps_to": "backlog"},
    {"name": "In Progress", "maps_to": "in-progress"},
    {"name": "Review", "maps_to": "review"},
    {"name": "Testing", "maps_to": "testing"},
    {"name": "Done", "maps_to": "done"},
]
