"""Label inference from issue text.

Suggestions are driven entirely by the trigger table below: each short label
name in the type, priority and area categories maps to a list of
case-insensitive regular expressions with a weight. A trigger that matches the
title, the body or any existing label name adds its weight once; the score of
a label is min(1.0, sum of matched weights). The best-scoring label of each
category becomes that category's suggestion.

Workflows can replace the triggers of individual labels through
``automation.label_inference.triggers``; labels the workflow does not define
are never suggested.
"""

import re
from dataclasses import dataclass

from issueflow.interfaces import Issue
from issueflow.labels import INFERRED_CATEGORIES
from issueflow.logger import get_logger
from issueflow.workflow_config import Trigger, WorkflowConfig

logger = get_logger(__name__)

# Shared with the escalation fast-path in issueflow.sla
SECURITY_PATTERN = (
    r"\b(security|vulnerabilit(?:y|ies)|cve|xss|csrf|sql injection|exploit|rce)\b"
)

DEFAULT_TRIGGERS: dict[str, dict[str, tuple[Trigger, ...]]] = {
    "type": {
        "bug": (
            Trigger(r"^(fix|bug)[\s:(]", 0.9, "title prefix fix/bug"),
            Trigger(r"\b(bug|error|crash(es|ed)?|broken|exception|fail(s|ed|ure)?)\b", 0.6, "bug keywords"),
            Trigger(r"\b(regression|not working|doesn't work)\b", 0.3, "regression"),
        ),
        "feature": (
            Trigger(r"^(feat|feature)[\s:(]", 0.9, "title prefix feat"),
            Trigger(r"\b(add|implement|support|feature|enhancement|request)\b", 0.5, "feature keywords"),
            Trigger(r"\b(would be nice|it would be great|proposal)\b", 0.3, "proposal"),
        ),
        "docs": (
            Trigger(r"^docs?[\s:(]", 0.9, "title prefix docs"),
            Trigger(r"\b(docs?|documentation|readme|typo|guide|tutorial)\b", 0.6, "docs keywords"),
        ),
        "refactor": (
            Trigger(r"^(refactor|chore|perf)[\s:(]", 0.9, "title prefix refactor"),
            Trigger(r"\b(refactor|cleanup|clean up|restructure|simplify|tech(nical)? debt)\b", 0.6, "refactor keywords"),
        ),
        "test": (
            Trigger(r"^tests?[\s:(]", 0.9, "title prefix test"),
            Trigger(r"\b(tests?|testing|coverage|e2e|flaky)\b", 0.6, "test keywords"),
        ),
        "security": (
            Trigger(r"^security[\s:(]", 0.9, "title prefix security"),
            Trigger(SECURITY_PATTERN, 1.0, "security signal"),
        ),
    },
    "priority": {
        "P0": (
            Trigger(r"\b(critical|urgent|outage|production down|data loss|emergency)\b", 0.8, "critical keywords"),
            Trigger(SECURITY_PATTERN, 0.5, "security signal"),
        ),
        "P1": (
            Trigger(r"\b(high priority|important|asap|blocker|blocking|major)\b", 0.7, "high priority keywords"),
        ),
        "P2": (
            Trigger(r"\b(medium priority|moderate|normal priority)\b", 0.6, "medium priority keywords"),
        ),
        "P3": (
            Trigger(r"\b(low priority|nice to have|cosmetic|someday|trivial|minor)\b", 0.6, "low priority keywords"),
        ),
    },
    "area": {
        "api": (
            Trigger(r"\b(api|endpoints?|rest|graphql|grpc|webhooks?)\b", 0.6, "api keywords"),
        ),
        "database": (
            Trigger(r"\b(database|db|sql|migrations?|schema|query|queries)\b", 0.6, "database keywords"),
        ),
        "auth": (
            Trigger(r"\b(auth|authentication|authorization|login|logout|token|jwt|oauth|sso|password)\b", 0.6, "auth keywords"),
        ),
        "performance": (
            Trigger(r"\b(performance|slow|latency|optimi[sz]e|memory|cpu|timeouts?)\b", 0.6, "performance keywords"),
        ),
        "ui": (
            Trigger(r"\b(ui|components?|button|form|modal|layout|css)\b", 0.6, "ui keywords"),
        ),
        "ux": (
            Trigger(r"\b(ux|usability|user experience|confusing|accessibility)\b", 0.6, "ux keywords"),
        ),
        "responsive": (
            Trigger(r"\b(responsive|mobile|tablet|breakpoints?|viewport)\b", 0.6, "responsive keywords"),
        ),
        "docs": (
            Trigger(r"\b(docs?|documentation|readme|docstrings?)\b", 0.6, "docs keywords"),
        ),
        "examples": (
            Trigger(r"\b(examples?|samples?|demo)\b", 0.6, "example keywords"),
        ),
        "compatibility": (
            Trigger(r"\b(compatib(le|ility)|deprecat\w*|breaking change|backwards?)\b", 0.6, "compatibility keywords"),
        ),
    },
}


@dataclass(frozen=True)
class InferenceResult:
    """One suggested label.

    Attributes:
        category: type, priority or area
        label: Full label name (prefix + short name)
        confidence: Score in [0, 1]
        reason: "matched: " followed by the matched trigger names
    """

    category: str
    label: str
    confidence: float
    reason: str


@dataclass(frozen=True)
class LabelInference:
    """Suggestions for one issue: at most one per category."""

    by_category: dict[str, InferenceResult]
    all: tuple[InferenceResult, ...]

    @property
    def empty(self) -> bool:
        return not self.all


def trigger_table(config: WorkflowConfig, category: str) -> dict[str, tuple[Trigger, ...]]:
    """Return the effective triggers for a category, applying workflow overrides."""
    table = dict(DEFAULT_TRIGGERS.get(category, {}))
    overrides = config.automation.label_inference.triggers
    if overrides and category in overrides:
        table.update(overrides[category])
    return table


def _score(triggers: tuple[Trigger, ...], sources: list[str]) -> tuple[float, list[str]]:
    total = 0.0
    matched: list[str] = []
    for trigger in triggers:
        if any(re.search(trigger.pattern, source, re.IGNORECASE) for source in sources):
            total += trigger.weight
            matched.append(trigger.display_name)
    return min(1.0, total), matched


def _infer_category(
    issue_sources: list[str], config: WorkflowConfig, category: str
) -> InferenceResult | None:
    defined = config.labels.category(category).labels
    threshold = config.automation.label_inference.confidence_threshold

    best: tuple[str, float, list[str]] | None = None
    for short_name, triggers in trigger_table(config, category).items():
        if short_name not in defined:
            continue
        score, matched = _score(triggers, issue_sources)
        # Strict comparison keeps the earliest table entry on ties
        if score > 0 and (best is None or score > best[1]):
            best = (short_name, score, matched)

    if best is None or best[1] < threshold:
        return None

    short_name, score, matched = best
    return InferenceResult(
        category=category,
        label=config.full_label(category, short_name),
        confidence=round(score, 4),
        reason="matched: " + ", ".join(matched),
    )


def infer_labels(issue: Issue, config: WorkflowConfig) -> LabelInference:
    """Suggest type, priority and area labels for an issue.

    Args:
        issue: Issue snapshot
        config: Parsed workflow config

    Returns:
        LabelInference with at most one suggestion per category; ``all`` is
        sorted by confidence descending, ties in type, priority, area order.
        Empty when inference is disabled or the issue has no title or body.
    """
    if not config.automation.label_inference.enabled:
        logger.debug("Label inference disabled, skipping")
        return LabelInference(by_category={}, all=())

    if not issue.title.strip() and not issue.body.strip():
        return LabelInference(by_category={}, all=())

    sources = [issue.title, issue.body, *sorted(issue.labels)]

    by_category: dict[str, InferenceResult] = {}
    for category in INFERRED_CATEGORIES:
        result = _infer_category(sources, config, category)
        if result is not None:
            by_category[category] = result

    ordered = sorted(
        by_category.values(),
        key=lambda r: (-r.confidence, INFERRED_CATEGORIES.index(r.category)),
    )
    if ordered:
        logger.debug(
            f"Inferred {len(ordered)} label(s) for issue #{issue.number}: "
            f"{', '.join(r.label for r in ordered)}"
        )
    return LabelInference(by_category=by_category, all=tuple(ordered))


def check_missing_labels(issue: Issue, config: WorkflowConfig) -> list[str]:
    """Return the categories an issue is required to carry but does not.

    Status is always required; type and priority follow
    ``automation.new_issue_defaults``.
    """
    required: list[str] = []
    defaults = config.automation.new_issue_defaults
    if defaults.require_type_label:
        required.append("type")
    if defaults.require_priority_label:
        required.append("priority")
    required.append("status")

    missing = []
    for category in required:
        if not any(config.match_label(category, label) for label in issue.labels):
            missing.append(category)
    return missing


def recommended_labels(issue: Issue, config: WorkflowConfig) -> list[InferenceResult]:
    """Return inferred labels the issue does not already carry."""
    return [r for r in infer_labels(issue, config).all if r.label not in issue.labels]
