"""Workflow health report over a snapshot of open issues."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from issueflow.interfaces import Issue
from issueflow.labels import Labels
from issueflow.logger import get_logger
from issueflow.sla import BlockedIssue, BlockedStatus, age_days, evaluate_blocked
from issueflow.workflow_config import WorkflowConfig

logger = get_logger(__name__)

UNLABELED = "unlabeled"

# Open high-priority issues above this count trigger a recommendation
CRITICAL_BACKLOG_LIMIT = 5


@dataclass
class WorkflowReport:
    """Aggregated workflow metrics for one repository."""

    total_open: int
    total_closed: int
    by_status: dict[str, int]
    by_priority: dict[str, int]
    by_type: dict[str, int]
    blocked_count: int
    average_age_days: float
    health_score: int
    generated_at: datetime
    sla_breaches: list[BlockedIssue] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


def _short_label(issue: Issue, config: WorkflowConfig, category: str) -> str:
    order = list(config.labels.category(category).labels)
    matches = [
        short_name
        for short_name in (config.match_label(category, label) for label in issue.labels)
        if short_name is not None
    ]
    if not matches:
        return UNLABELED
    return min(matches, key=order.index)


def calculate_health_score(blocked_count: int, top_priority_count: int, average_age_days: float) -> int:
    """Score workflow health from 0 to 100.

    Each blocked issue costs 5 points and each open top-priority issue 10.
    An average age above 30 days costs 20, above 14 days 10.
    """
    score = 100 - 5 * blocked_count - 10 * top_priority_count
    if average_age_days > 30:
        score -= 20
    elif average_age_days > 14:
        score -= 10
    return max(0, min(100, score))


def _recommendations(report: WorkflowReport) -> list[str]:
    recommendations = []
    if report.blocked_count:
        recommendations.append(
            f"{report.blocked_count} issue(s) are marked blocked; unblock or re-plan them"
        )
    if report.sla_breaches:
        recommendations.append(
            f"{len(report.sla_breaches)} issue(s) are past their SLA; handle them first"
        )
    if report.by_status.get(UNLABELED):
        recommendations.append(f"{report.by_status[UNLABELED]} issue(s) have no status label")
    if report.by_priority.get(UNLABELED):
        recommendations.append(
            f"{report.by_priority[UNLABELED]} issue(s) have no priority label; triage them"
        )
    critical = report.by_priority.get("P0", 0) + report.by_priority.get("P1", 0)
    if critical > CRITICAL_BACKLOG_LIMIT:
        recommendations.append(
            f"{critical} open P0/P1 issues; consider moving capacity to high-priority work"
        )
    if report.average_age_days > 30:
        recommendations.append(
            f"Average issue age is {report.average_age_days:.1f} days; review stale issues"
        )
    if report.total_open and not report.total_closed:
        recommendations.append("No issues were closed in this period; check progress")
    if not recommendations:
        recommendations.append("Workflow is healthy")
    return recommendations


def build_report(
    open_issues: Sequence[Issue],
    config: WorkflowConfig,
    closed_count: int = 0,
    now: datetime | None = None,
) -> WorkflowReport:
    """Build a health report from a snapshot of open issues.

    Args:
        open_issues: Open issue snapshots (closed ones are ignored)
        config: Parsed workflow config
        closed_count: Issues closed in the reporting period
        now: Report time (defaults to the current UTC time)

    Returns:
        WorkflowReport with distributions, health score and recommendations
    """
    now = now or datetime.now(UTC)
    issues = [issue for issue in open_issues if issue.is_open]

    by_status: dict[str, int] = {}
    by_priority: dict[str, int] = {}
    by_type: dict[str, int] = {}
    for issue in issues:
        for category, counts in (("status", by_status), ("priority", by_priority), ("type", by_type)):
            key = _short_label(issue, config, category)
            counts[key] = counts.get(key, 0) + 1

    blocked_label = None
    if Labels.BLOCKED in config.labels.workflow.labels:
        blocked_label = config.full_label("workflow", Labels.BLOCKED)
    blocked_count = sum(1 for issue in issues if blocked_label and issue.has_label(blocked_label))

    average_age = sum(age_days(issue, now) for issue in issues) / len(issues) if issues else 0.0

    breaches = [
        result
        for result in evaluate_blocked(issues, config, now=now)
        if result.status is BlockedStatus.BLOCKED
    ]

    report = WorkflowReport(
        total_open=len(issues),
        total_closed=closed_count,
        by_status=by_status,
        by_priority=by_priority,
        by_type=by_type,
        blocked_count=blocked_count,
        average_age_days=round(average_age, 1),
        health_score=calculate_health_score(
            blocked_count, by_priority.get(Labels.TOP_PRIORITY, 0), average_age
        ),
        generated_at=now,
        sla_breaches=breaches,
    )
    report.recommendations = _recommendations(report)

    logger.debug(f"Report built: {report.total_open} open, health {report.health_score}")
    return report


def _table(title: str, counts: dict[str, int]) -> list[str]:
    lines = [f"### {title}", "", "| Label | Issues |", "|---|---|"]
    for name, count in sorted(counts.items(), key=lambda item: (-item[1], item[0])):
        lines.append(f"| {name} | {count} |")
    lines.append("")
    return lines


def render_markdown(report: WorkflowReport, repo: str | None = None) -> str:
    """Render a report as Markdown."""
    heading = f"## Workflow report: {repo}" if repo else "## Workflow report"
    lines = [
        heading,
        "",
        f"Generated {report.generated_at.strftime('%Y-%m-%d %H:%M UTC')}",
        "",
        f"- Open issues: {report.total_open}",
        f"- Closed issues: {report.total_closed}",
        f"- Blocked: {report.blocked_count}",
        f"- Average age: {report.average_age_days:.1f} days",
        f"- Health score: {report.health_score}/100",
        "",
    ]
    lines += _table("By status", report.by_status)
    lines += _table("By priority", report.by_priority)
    lines += _table("By type", report.by_type)

    if report.sla_breaches:
        lines += ["### Past SLA", "", "| Issue | Priority | Hours over |", "|---|---|---|"]
        for breach in report.sla_breaches:
            lines.append(f"| #{breach.number} {breach.title} | {breach.priority} | {breach.exceeded_by:.1f} |")
        lines.append("")

    lines += ["### Recommendations", ""]
    lines += [f"- {item}" for item in report.recommendations]
    return "\n".join(lines) + "\n"
