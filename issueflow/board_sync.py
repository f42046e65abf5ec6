"""Reconcile workflow labels and board columns with the tracker.

The planners compare the desired state from a WorkflowConfig with a snapshot
of what exists remotely and return what to create, update or leave alone.
They are additive only: remote labels and columns the workflow does not know
about never appear in a plan.

The status-sync helpers work on single issues and keep the status label and
the board column of an issue in agreement.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from issueflow.interfaces import Issue, RemoteColumn, RemoteLabel
from issueflow.labels import Labels
from issueflow.logger import get_logger
from issueflow.workflow_config import BoardColumn, LabelSpec, WorkflowConfig

logger = get_logger(__name__)

T = TypeVar("T")

# Action types produced by calculate_sync_actions() and resolve_conflicts()
CREATE_CARD = "create_card"
MOVE_CARD = "move_card"
ADD_LABEL = "add_label"
REMOVE_LABEL = "remove_label"


@dataclass(frozen=True)
class SyncPlan(Generic[T]):
    """Diff between desired and remote state.

    Attributes:
        created: Desired items missing remotely
        updated: Desired items present remotely with different attributes
        skipped: Desired items already up to date
        changes: For each updated item name, the attributes that differ
    """

    created: tuple[T, ...] = ()
    updated: tuple[T, ...] = ()
    skipped: tuple[T, ...] = ()
    changes: dict[str, tuple[str, ...]] = field(default_factory=dict)

    @property
    def has_changes(self) -> bool:
        return bool(self.created or self.updated)


@dataclass(frozen=True)
class SyncAction:
    """One change needed to bring an issue's label and board column in line."""

    type: str
    issue_number: int
    reason: str
    label: str | None = None
    from_column: str | None = None
    to_column: str | None = None


def normalize_color(color: str | None) -> str:
    return (color or "").strip().lstrip("#").lower()


def plan_label_sync(
    config_labels: Iterable[LabelSpec], remote_labels: Iterable[RemoteLabel]
) -> SyncPlan[LabelSpec]:
    """Plan label creation and updates.

    Names match exactly (case-sensitive). Colors compare case-insensitively
    with any leading '#' ignored; a missing remote description equals "".
    A name listed more than once is planned for its first occurrence only.

    Args:
        config_labels: Desired labels, typically WorkflowConfig.all_labels()
        remote_labels: Labels currently on the repository

    Returns:
        SyncPlan of LabelSpec values
    """
    remote: dict[str, RemoteLabel] = {}
    for label in remote_labels:
        remote.setdefault(label.name, label)

    created: list[LabelSpec] = []
    updated: list[LabelSpec] = []
    skipped: list[LabelSpec] = []
    changes: dict[str, tuple[str, ...]] = {}
    seen: set[str] = set()

    for spec in config_labels:
        if spec.name in seen:
            continue
        seen.add(spec.name)

        existing = remote.get(spec.name)
        if existing is None:
            created.append(spec)
            continue

        differs: list[str] = []
        if normalize_color(existing.color) != normalize_color(spec.color):
            differs.append("color")
        if (existing.description or "") != (spec.description or ""):
            differs.append("description")

        if differs:
            updated.append(spec)
            changes[spec.name] = tuple(differs)
        else:
            skipped.append(spec)

    logger.info(
        f"Label sync plan: {len(created)} to create, {len(updated)} to update, "
        f"{len(skipped)} unchanged"
    )
    return SyncPlan(
        created=tuple(created), updated=tuple(updated), skipped=tuple(skipped), changes=changes
    )


def plan_column_sync(
    config_columns: Iterable[BoardColumn], remote_columns: Iterable[RemoteColumn]
) -> SyncPlan[BoardColumn]:
    """Plan board column creation.

    Columns are identified by exact name and are never updated: a column that
    exists remotely is skipped.
    """
    remote_names = {column.name for column in remote_columns}

    created: list[BoardColumn] = []
    skipped: list[BoardColumn] = []
    seen: set[str] = set()
    for column in config_columns:
        if column.name in seen:
            continue
        seen.add(column.name)
        if column.name in remote_names:
            skipped.append(column)
        else:
            created.append(column)

    logger.info(f"Column sync plan: {len(created)} to create, {len(skipped)} existing")
    return SyncPlan(created=tuple(created), skipped=tuple(skipped))


# =============================================================================
# Per-issue status sync
# =============================================================================


def _category_labels(issue: Issue, config: WorkflowConfig, category: str) -> list[str]:
    """Full labels of a category on the issue, in the workflow's definition order."""
    category_config = config.labels.category(category)
    order = list(category_config.labels)
    found: list[tuple[int, str]] = []
    for label in issue.labels:
        short_name = category_config.match(label)
        if short_name is not None:
            found.append((order.index(short_name), label))
    return [label for _, label in sorted(found)]


def status_label(issue: Issue, config: WorkflowConfig) -> str | None:
    """The issue's status label; the earliest in workflow order if it has several."""
    labels = _category_labels(issue, config, "status")
    return labels[0] if labels else None


def calculate_sync_actions(
    issue: Issue,
    current_column: str | None,
    config: WorkflowConfig,
    direction: str | None = None,
) -> list[SyncAction]:
    """Work out what keeps an issue's status label and board column in agreement.

    Args:
        issue: Issue snapshot
        current_column: Name of the column holding the issue's card, None if
                        the issue is not on the board
        config: Parsed workflow config
        direction: label-to-board, board-to-label or both; defaults to
                   automation.status_sync.direction

    Returns:
        Actions to apply, possibly empty
    """
    direction = direction or config.automation.status_sync.direction
    actions: list[SyncAction] = []
    label = status_label(issue, config)

    if direction in ("label-to-board", "both") and label is not None:
        status = config.match_label("status", label)
        expected = config.find_column_by_status(status) if status else None
        if expected is not None:
            if current_column is None:
                actions.append(
                    SyncAction(
                        type=CREATE_CARD,
                        issue_number=issue.number,
                        to_column=expected.name,
                        reason=f"label {label} places the issue in {expected.name}",
                    )
                )
            elif current_column != expected.name:
                actions.append(
                    SyncAction(
                        type=MOVE_CARD,
                        issue_number=issue.number,
                        from_column=current_column,
                        to_column=expected.name,
                        reason=f"label {label} places the issue in {expected.name}",
                    )
                )

    if direction in ("board-to-label", "both") and current_column is not None:
        status = config.find_status_by_column(current_column)
        expected_label = config.full_label("status", status) if status else None
        if expected_label is not None and expected_label != label:
            if label is not None:
                actions.append(
                    SyncAction(
                        type=REMOVE_LABEL,
                        issue_number=issue.number,
                        label=label,
                        reason=f"replaced by {expected_label}",
                    )
                )
            actions.append(
                SyncAction(
                    type=ADD_LABEL,
                    issue_number=issue.number,
                    label=expected_label,
                    reason=f"card is in column {current_column}",
                )
            )

    return actions


def check_label_conflicts(issue: Issue, config: WorkflowConfig) -> list[str]:
    """Describe each category where the issue carries more than one status or priority label."""
    conflicts = []
    for category in ("status", "priority"):
        labels = _category_labels(issue, config, category)
        if len(labels) > 1:
            conflicts.append(
                f"Issue #{issue.number} has multiple {category} labels: {', '.join(labels)}"
            )
    return conflicts


def resolve_conflicts(
    issue: Issue, config: WorkflowConfig, strategy: str | None = None
) -> list[SyncAction]:
    """Plan label removals that leave one status and one priority label.

    Labels are ordered by the workflow's definition order. keep-first keeps
    the earliest (for priorities, the most urgent); keep-last keeps the latest
    (for statuses, the furthest along the board).

    Args:
        issue: Issue snapshot
        config: Parsed workflow config
        strategy: keep-first or keep-last; defaults to
                  automation.status_sync.conflict_resolution
    """
    strategy = strategy or config.automation.status_sync.conflict_resolution
    if strategy not in ("keep-first", "keep-last"):
        raise ValueError(f"Unknown conflict resolution strategy: {strategy}")

    actions: list[SyncAction] = []
    for category in ("status", "priority"):
        labels = _category_labels(issue, config, category)
        if len(labels) <= 1:
            continue
        kept = labels[0] if strategy == "keep-first" else labels[-1]
        for label in labels:
            if label == kept:
                continue
            actions.append(
                SyncAction(
                    type=REMOVE_LABEL,
                    issue_number=issue.number,
                    label=label,
                    reason=f"conflicting {category} labels, keeping {kept} ({strategy})",
                )
            )
    return actions


def backlog_column(config: WorkflowConfig) -> BoardColumn | None:
    """The column new issues land in: mapped to the backlog status, or named Backlog."""
    column = config.find_column_by_status(Labels.BACKLOG)
    if column is not None:
        return column
    for column in config.board.columns:
        if column.name.lower() == Labels.BACKLOG:
            return column
    return None


def should_add_to_backlog(issue: Issue, config: WorkflowConfig) -> bool:
    """True when new issues go to the backlog and this one has no status label yet."""
    if not config.automation.new_issue_defaults.auto_add_to_backlog:
        return False
    return status_label(issue, config) is None
