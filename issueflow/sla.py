"""SLA tracking and priority escalation.

Two independent evaluations over open issues:

- evaluate_blocked() ages each issue since its last update against the SLA of
  its priority and classifies it as ok, warning or blocked.
- escalate_priorities() proposes priority upgrades: security issues jump
  straight to the top priority, everything else climbs the aging ladder.

Neither function mutates anything; decisions are applied by the caller.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from issueflow.inference import SECURITY_PATTERN
from issueflow.interfaces import Issue, RemoteLabel
from issueflow.labels import DEFAULT_ESCALATION_LADDER, Labels
from issueflow.logger import get_logger
from issueflow.workflow_config import EscalationRule, WorkflowConfig

logger = get_logger(__name__)

SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400


class BlockedStatus(Enum):
    """SLA state of an issue, most urgent first."""

    BLOCKED = "blocked"
    WARNING = "warning"
    OK = "ok"


STATUS_ORDER = {BlockedStatus.BLOCKED: 0, BlockedStatus.WARNING: 1, BlockedStatus.OK: 2}


@dataclass(frozen=True)
class BlockedIssue:
    """SLA evaluation of one issue.

    Attributes:
        number: Issue number
        title: Issue title
        priority: Short priority name used for the SLA
        age_hours: Hours since the issue was last touched
        sla_hours: SLA window that applied
        exceeded_by: age_hours - sla_hours (negative while inside the window)
        status: ok, warning or blocked
        reason: Human-readable summary
    """

    number: int
    title: str
    priority: str
    age_hours: float
    sla_hours: float
    exceeded_by: float
    status: BlockedStatus
    reason: str


@dataclass(frozen=True)
class EscalationDecision:
    """A proposed priority change for one issue.

    Attributes:
        issue_number: Issue number
        old_priority: Current short priority name
        new_priority: Proposed short priority name
        reason: "security auto-escalation" or "exceeded N days unresolved"
        old_label: Full label to remove, None if the issue had no priority label
        new_label: Full label to add
        label_available: False when a repository label snapshot was supplied
                         and it lacks new_label
    """

    issue_number: int
    old_priority: str
    new_priority: str
    reason: str
    old_label: str | None
    new_label: str
    label_available: bool = True


def age_hours(issue: Issue, now: datetime) -> float:
    """Hours since the issue was last touched (the later of created/updated)."""
    last_touched = max(issue.updated_at, issue.created_at)
    return (now - last_touched).total_seconds() / SECONDS_PER_HOUR


def age_days(issue: Issue, now: datetime) -> float:
    """Days since the issue was created."""
    return (now - issue.created_at).total_seconds() / SECONDS_PER_DAY


def priority_label(issue: Issue, config: WorkflowConfig) -> tuple[str, str | None]:
    """Resolve an issue's priority from its labels.

    With several priority labels the most urgent (earliest in the workflow's
    priority order) wins. No label, or only labels naming undefined
    priorities, resolves to the default priority.

    Returns:
        Tuple of (short priority name, full label name or None)
    """
    category = config.labels.priority
    order = config.priority_names()
    defined: list[tuple[str, str]] = []
    unknown: list[str] = []

    for label in sorted(issue.labels):
        short_name = category.split(label)
        if short_name is None:
            continue
        if short_name in category.labels:
            defined.append((short_name, label))
        else:
            unknown.append(label)

    if defined:
        return min(defined, key=lambda item: order.index(item[0]))

    if unknown:
        logger.warning(
            f"Issue #{issue.number} has undefined priority label(s) {', '.join(unknown)}; "
            f"treating as {Labels.DEFAULT_PRIORITY}"
        )
    return Labels.DEFAULT_PRIORITY, None


def issue_priority(issue: Issue, config: WorkflowConfig) -> str:
    return priority_label(issue, config)[0]


def resolve_sla_hours(
    priority: str, config: WorkflowConfig, threshold_hours: float | None = None
) -> float:
    """SLA window for a priority: override, blocked_detection.sla, label sla_hours, default."""
    if threshold_hours is not None:
        return threshold_hours
    configured = config.automation.blocked_detection.sla
    if priority in configured:
        return configured[priority]
    return config.sla_hours(priority)


def classify(exceeded_by: float, sla_hours: float, warning_ratio: float) -> BlockedStatus:
    """Classify an issue by how far past (or short of) its SLA it is."""
    if exceeded_by > 0:
        return BlockedStatus.BLOCKED
    if exceeded_by > -warning_ratio * sla_hours:
        return BlockedStatus.WARNING
    return BlockedStatus.OK


def _describe(status: BlockedStatus, priority: str, hours: float, sla: float, exceeded: float) -> str:
    if status is BlockedStatus.BLOCKED:
        return f"no activity for {hours:.1f}h, {exceeded:.1f}h past the {priority} SLA of {sla:g}h"
    if status is BlockedStatus.WARNING:
        return f"{-exceeded:.1f}h left of the {priority} SLA of {sla:g}h"
    return f"within the {priority} SLA of {sla:g}h"


def evaluate_blocked(
    issues: Iterable[Issue],
    config: WorkflowConfig,
    threshold_hours: float | None = None,
    now: datetime | None = None,
) -> list[BlockedIssue]:
    """Evaluate open issues against their SLA.

    Args:
        issues: Issue snapshots; closed issues are skipped
        config: Parsed workflow config
        threshold_hours: Optional SLA override applied to every priority
        now: Evaluation time (defaults to the current UTC time)

    Returns:
        One BlockedIssue per open issue, blocked first, then warning, then
        ok; within a status the furthest past its SLA comes first.
    """
    now = now or datetime.now(UTC)
    ratio = config.automation.blocked_detection.warning_ratio

    results: list[BlockedIssue] = []
    for issue in issues:
        if not issue.is_open:
            continue
        priority = issue_priority(issue, config)
        sla = resolve_sla_hours(priority, config, threshold_hours)
        hours = age_hours(issue, now)
        exceeded = hours - sla
        status = classify(exceeded, sla, ratio)
        results.append(
            BlockedIssue(
                number=issue.number,
                title=issue.title,
                priority=priority,
                age_hours=hours,
                sla_hours=sla,
                exceeded_by=exceeded,
                status=status,
                reason=_describe(status, priority, hours, sla, exceeded),
            )
        )

    results.sort(key=lambda r: (STATUS_ORDER[r.status], -r.exceeded_by))

    blocked = sum(1 for r in results if r.status is BlockedStatus.BLOCKED)
    warnings = sum(1 for r in results if r.status is BlockedStatus.WARNING)
    if blocked or warnings:
        logger.info(f"SLA check: {blocked} blocked, {warnings} warning of {len(results)} open issue(s)")
    else:
        logger.debug(f"SLA check: all {len(results)} open issue(s) within SLA")
    return results


def escalation_rules(config: WorkflowConfig) -> tuple[EscalationRule, ...]:
    """Configured escalation ladder, or the default ladder when none is configured."""
    rules = config.automation.priority_escalation.rules
    if rules:
        return rules
    return tuple(EscalationRule(*step) for step in DEFAULT_ESCALATION_LADDER)


def has_security_signal(issue: Issue, config: WorkflowConfig) -> bool:
    """True if the issue carries the security type label or mentions a security signal."""
    if any(config.match_label("type", label) == Labels.SECURITY for label in issue.labels):
        return True
    text = f"{issue.title}\n{issue.body}"
    return re.search(SECURITY_PATTERN, text, re.IGNORECASE) is not None


def _decide(
    issue: Issue, current: str, config: WorkflowConfig, now: datetime
) -> tuple[str, str] | None:

    if current != Labels.TOP_PRIORITY and has_security_signal(issue, config):
        return Labels.TOP_PRIORITY, "security auto-escalation"

    days = age_days(issue, now)
    for rule in escalation_rules(config):
        if rule.from_priority == current and days >= rule.after_days:
            return rule.to_priority, f"exceeded {rule.after_days} days unresolved"
    return None


def escalate_priorities(
    issues: Iterable[Issue],
    config: WorkflowConfig,
    repo_labels: Iterable[RemoteLabel] | None = None,
    dry_run: bool = True,
    now: datetime | None = None,
) -> list[EscalationDecision]:
    """Propose priority escalations for open issues.

    The security fast-path takes precedence over the aging ladder. Nothing is
    applied here; dry_run only changes how decisions are logged.

    Args:
        issues: Issue snapshots; closed issues are skipped
        config: Parsed workflow config
        repo_labels: Optional snapshot of the repository's labels, used to flag
                     decisions whose target label does not exist yet
        dry_run: Log decisions as previews rather than pending changes
        now: Evaluation time (defaults to the current UTC time)

    Returns:
        Decisions in input order; empty when escalation is disabled
    """
    if not config.automation.priority_escalation.enabled:
        logger.debug("Priority escalation disabled, skipping")
        return []

    now = now or datetime.now(UTC)
    available = {label.name for label in repo_labels} if repo_labels is not None else None

    decisions: list[EscalationDecision] = []
    for issue in issues:
        if not issue.is_open:
            continue
        old_priority, old_label = priority_label(issue, config)
        outcome = _decide(issue, old_priority, config, now)
        if outcome is None:
            continue

        new_priority, reason = outcome
        new_label = config.full_label("priority", new_priority)
        label_available = available is None or new_label in available

        if not label_available:
            logger.warning(
                f"Label '{new_label}' does not exist on the repository; "
                f"issue #{issue.number} cannot be escalated until it is created"
            )
        if dry_run:
            logger.info(
                f"[dry run] Would escalate #{issue.number}: {old_priority} -> {new_priority} ({reason})"
            )
        else:
            logger.info(f"Escalating #{issue.number}: {old_priority} -> {new_priority} ({reason})")

        decisions.append(
            EscalationDecision(
                issue_number=issue.number,
                old_priority=old_priority,
                new_priority=new_priority,
                reason=reason,
                old_label=old_label,
                new_label=new_label,
                label_available=label_available,
            )
        )
    return decisions
