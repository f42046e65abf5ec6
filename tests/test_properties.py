"""Property-based tests using Hypothesis.

This module contains property-based tests that verify invariants and discover
edge cases across workflow document round-trips, validation, SLA
classification, escalation, sync planning, label inference and settings
file parsing.
"""

import tempfile
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from hypothesis import example, given
from hypothesis import strategies as st

from issueflow.board_sync import plan_column_sync, plan_label_sync
from issueflow.config import parse_config_file
from issueflow.inference import infer_labels
from issueflow.interfaces import Issue, RemoteColumn, RemoteLabel
from issueflow.labels import PROJECT_TYPES
from issueflow.sla import (
    STATUS_ORDER,
    BlockedStatus,
    classify,
    escalate_priorities,
    evaluate_blocked,
)
from issueflow.workflow_config import (
    LabelCategory,
    generate_default_config,
    parse_config,
    serialize_config,
    validate_config,
)

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)

# =============================================================================
# Custom Strategies
# =============================================================================

project_type_strategy = st.sampled_from(PROJECT_TYPES)

# Optional free-form project fields
identifier_strategy = st.none() | st.from_regex(r"[a-z][a-z0-9\-]{0,15}", fullmatch=True)
repo_strategy = st.none() | st.from_regex(r"[a-z][a-z0-9\-]{0,15}/[a-z][a-z0-9\-]{0,15}", fullmatch=True)

hex_color_strategy = st.from_regex(r"[0-9a-fA-F]{6}", fullmatch=True)

priority_strategy = st.sampled_from(["P0", "P1", "P2", "P3"])

# Label names on an issue: workflow labels plus arbitrary unrelated ones
issue_label_strategy = st.frozensets(
    st.sampled_from(
        [
            "priority/P0",
            "priority/P1",
            "priority/P2",
            "priority/P3",
            "status/backlog",
            "type/bug",
            "type/security",
            "workflow/blocked",
            "wontfix",
        ]
    ),
    max_size=4,
)


def make_issue(title="", body="", labels=frozenset(), hours_ago=0.0, number=1):
    created_at = NOW - timedelta(hours=hours_ago)
    return Issue(
        number=number,
        title=title,
        body=body,
        labels=frozenset(labels),
        created_at=created_at,
        updated_at=created_at,
    )


# =============================================================================
# Workflow Document Property Tests
# =============================================================================


@pytest.mark.unit
@pytest.mark.hypothesis
class TestWorkflowConfigProperties:
    """Property-based tests for serialize_config, parse_config and validate_config."""

    @given(
        project_type=project_type_strategy,
        language=identifier_strategy,
        repo=repo_strategy,
        sla_hours=st.lists(st.integers(min_value=1, max_value=10_000), min_size=4, max_size=4),
    )
    @example(project_type="backend", language=None, repo=None, sla_hours=[4, 24, 72, 168])
    @example(project_type="library", language="python", repo="acme/lib", sla_hours=[1, 1, 1, 1])
    def test_serialize_parse_roundtrip(self, project_type, language, repo, sla_hours):
        """Property: Serializing then parsing any generated config returns an equal config."""
        config = generate_default_config(project_type, language=language, repo=repo)
        priorities = LabelCategory(
            prefix=config.labels.priority.prefix,
            labels={
                name: replace(definition, sla_hours=hours)
                for (name, definition), hours in zip(
                    config.labels.priority.labels.items(), sla_hours, strict=True
                )
            },
        )
        config = replace(config, labels=replace(config.labels, priority=priorities))

        assert parse_config(serialize_config(config)) == config

    @given(project_type=project_type_strategy, language=identifier_strategy)
    def test_generated_configs_are_valid(self, project_type, language):
        """Property: Every generated default config validates without errors."""
        result = validate_config(generate_default_config(project_type, language=language))
        assert result.valid
        assert result.errors == []

    @given(
        project_type=project_type_strategy,
        category=st.sampled_from(["status", "priority", "type"]),
    )
    def test_empty_required_category_is_invalid(self, project_type, category):
        """Property: Emptying a required category always fails validation."""
        config = generate_default_config(project_type)
        emptied = replace(config.labels, **{category: LabelCategory(prefix=f"{category}/")})
        result = validate_config(replace(config, labels=emptied))

        assert not result.valid
        assert any(f"labels.{category}" in error for error in result.errors)

    @given(colors=st.lists(hex_color_strategy, min_size=1, max_size=5))
    def test_color_hash_stripped_on_parse(self, colors):
        """Property: A leading '#' is stripped and the hex digits are kept as written."""
        labels = "\n".join(
            f"    s{i}: {{color: \"#{color}\", description: x}}" for i, color in enumerate(colors)
        )
        document = (
            "project:\n  type: backend\n"
            "labels:\n"
            f"  status:\n{labels}\n"
            "  priority:\n    P0: {color: \"ff0000\"}\n"
            "  type:\n    bug: {color: \"00ff00\"}\n"
        )

        config = parse_config(document)
        parsed = [definition.color for definition in config.labels.status.labels.values()]
        assert parsed == colors


# =============================================================================
# SLA Property Tests
# =============================================================================


@pytest.mark.unit
@pytest.mark.hypothesis
class TestSlaProperties:
    """Property-based tests for classify and evaluate_blocked."""

    @given(
        first=st.floats(min_value=-1e6, max_value=1e6, allow_nan=False),
        second=st.floats(min_value=-1e6, max_value=1e6, allow_nan=False),
        sla=st.floats(min_value=0.01, max_value=1e4, allow_nan=False),
        ratio=st.floats(min_value=0.0, max_value=0.99, allow_nan=False),
    )
    @example(first=0.0, second=0.5, sla=10.0, ratio=0.2)
    def test_classification_is_monotone(self, first, second, sla, ratio):
        """Property: Being further past the SLA never gives a less urgent status."""
        low, high = sorted((first, second))
        assert STATUS_ORDER[classify(high, sla, ratio)] <= STATUS_ORDER[classify(low, sla, ratio)]

    @given(priority=priority_strategy, hours=st.integers(min_value=0, max_value=500))
    @example(priority="P0", hours=4)
    @example(priority="P0", hours=5)
    def test_blocked_exactly_when_past_sla(self, priority, hours):
        """Property: An issue is blocked if and only if its age exceeds the SLA."""
        config = generate_default_config("backend")
        issue = make_issue(labels={f"priority/{priority}"}, hours_ago=hours)

        [result] = evaluate_blocked([issue], config, now=NOW)

        assert result.priority == priority
        assert (result.status is BlockedStatus.BLOCKED) == (hours > config.sla_hours(priority))

    @given(labels=st.lists(issue_label_strategy, max_size=8))
    def test_results_are_sorted(self, labels):
        """Property: Results never put a less urgent status before a more urgent one."""
        config = generate_default_config("backend")
        issues = [
            make_issue(labels=issue_labels, hours_ago=(index * 7) % 200, number=index)
            for index, issue_labels in enumerate(labels)
        ]

        results = evaluate_blocked(issues, config, now=NOW)

        orders = [STATUS_ORDER[r.status] for r in results]
        assert orders == sorted(orders)
        assert len(results) == len(issues)


# =============================================================================
# Escalation Property Tests
# =============================================================================


@pytest.mark.unit
@pytest.mark.hypothesis
class TestEscalationProperties:
    """Property-based tests for escalate_priorities."""

    @given(
        priority=st.sampled_from(["P1", "P2", "P3"]),
        days=st.integers(min_value=0, max_value=400),
        signal=st.sampled_from(["security", "CVE", "XSS", "sql injection", "exploit"]),
    )
    def test_security_always_wins(self, priority, days, signal):
        """Property: A security signal below P0 always escalates straight to P0."""
        config = generate_default_config("backend")
        issue = make_issue(
            title=f"Report: {signal} found", labels={f"priority/{priority}"}, hours_ago=days * 24
        )

        [decision] = escalate_priorities([issue], config, now=NOW)

        assert decision.new_priority == "P0"
        assert decision.reason == "security auto-escalation"

    @given(labels=issue_label_strategy, days=st.integers(min_value=0, max_value=400))
    @example(labels=frozenset(), days=31)
    def test_escalation_only_increases_urgency(self, labels, days):
        """Property: Decisions always move toward a more urgent priority."""
        config = generate_default_config("backend")
        order = config.priority_names()
        issue = make_issue(title="Routine task", labels=labels, hours_ago=days * 24)

        for decision in escalate_priorities([issue], config, now=NOW):
            assert order.index(decision.new_priority) < order.index(decision.old_priority)
            assert decision.new_label == f"priority/{decision.new_priority}"


# =============================================================================
# Sync Planning Property Tests
# =============================================================================

remote_label_strategy = st.builds(
    RemoteLabel,
    name=st.sampled_from(["priority/P0", "status/backlog", "type/bug", "area/api", "legacy"]),
    color=hex_color_strategy,
    description=st.none() | st.sampled_from(["", "Critical", "Bug"]),
)


@pytest.mark.unit
@pytest.mark.hypothesis
class TestLabelSyncProperties:
    """Property-based tests for plan_label_sync."""

    @given(remote=st.lists(remote_label_strategy, max_size=8))
    def test_plan_partitions_desired_labels(self, remote):
        """Property: Each desired label lands in exactly one of created, updated, skipped."""
        desired = generate_default_config("backend").all_labels()
        plan = plan_label_sync(desired, remote)

        names = [spec.name for spec in plan.created + plan.updated + plan.skipped]
        assert sorted(names) == sorted(spec.name for spec in desired)
        assert set(plan.changes) == {spec.name for spec in plan.updated}

    @given(remote=st.lists(remote_label_strategy, max_size=8))
    def test_applying_plan_converges(self, remote):
        """Property: Planning again after applying a plan finds nothing to do."""
        desired = generate_default_config("backend").all_labels()
        plan = plan_label_sync(desired, remote)

        applied = {label.name: label for label in reversed(remote)}
        for spec in plan.created + plan.updated:
            applied[spec.name] = RemoteLabel(spec.name, f"#{spec.color.upper()}", spec.description)

        assert not plan_label_sync(desired, list(applied.values())).has_changes


remote_column_strategy = st.builds(
    RemoteColumn,
    name=st.sampled_from(["Backlog", "To Do", "In Progress", "Review", "Done", "Archive", "backlog"]),
)


@pytest.mark.unit
@pytest.mark.hypothesis
class TestColumnSyncProperties:
    """Property-based tests for plan_column_sync."""

    @given(project_type=project_type_strategy, remote=st.lists(remote_column_strategy, max_size=8))
    @example(project_type="backend", remote=[])
    def test_applying_plan_converges(self, project_type, remote):
        """Property: Planning again after creating the planned columns finds nothing to create."""
        desired = generate_default_config(project_type).board.columns
        plan = plan_column_sync(desired, remote)

        applied = remote + [RemoteColumn(column.name) for column in plan.created]
        again = plan_column_sync(desired, applied)

        assert again.created == ()
        assert {column.name for column in again.skipped} == {column.name for column in desired}

    @given(remote=st.lists(remote_column_strategy, max_size=8))
    def test_existing_columns_never_created(self, remote):
        """Property: No planned column already exists remotely."""
        desired = generate_default_config("backend").board.columns
        plan = plan_column_sync(desired, remote)

        assert not {column.name for column in plan.created} & {column.name for column in remote}


# =============================================================================
# Inference Property Tests
# =============================================================================


@pytest.mark.unit
@pytest.mark.hypothesis
class TestInferenceProperties:
    """Property-based tests for infer_labels."""

    @given(
        title=st.text(alphabet=" \t\n", max_size=10),
        body=st.text(alphabet=" \t\n", max_size=10),
        labels=issue_label_strategy,
    )
    def test_blank_text_gives_nothing(self, title, body, labels):
        """Property: Issues with blank title and body get no suggestions."""
        config = generate_default_config("backend")
        assert infer_labels(make_issue(title=title, body=body, labels=labels), config).empty

    @given(title=st.text(max_size=80), body=st.text(max_size=200))
    @example(title="Fix: crash in login", body="security bug, api error")
    def test_suggestions_are_defined_and_bounded(self, title, body):
        """Property: Suggestions are defined labels with confidence in (0, 1]."""
        config = generate_default_config("backend")
        defined = {spec.name for spec in config.all_labels()}
        result = infer_labels(make_issue(title=title, body=body), config)

        for suggestion in result.all:
            assert suggestion.label in defined
            assert 0 < suggestion.confidence <= 1.0
            assert result.by_category[suggestion.category] == suggestion


# =============================================================================
# Settings File Property Tests
# =============================================================================

# Strategy for valid config keys (alphanumeric and underscore, not starting with #)
config_key_strategy = st.from_regex(r"[A-Z][A-Z0-9_]{0,49}", fullmatch=True)


@pytest.mark.unit
@pytest.mark.hypothesis
class TestSettingsFileProperties:
    """Property-based tests for parse_config_file."""

    @given(
        key=config_key_strategy,
        value=st.text(
            alphabet=st.characters(
                blacklist_categories=("Cc", "Cs"),  # Exclude control chars and surrogates
                blacklist_characters="\n\r\"'",
            ),
            max_size=100,
        ),
    )
    @example(key="LOG_LEVEL", value="DEBUG")
    @example(key="WORKFLOW_CONFIG_PATH", value=".gitea/issue-workflow.yaml")
    @example(key="A", value="")
    def test_key_value_parsing_roundtrip(self, key: str, value: str):
        """Property: Written key=value pairs parse back with stripped values."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            config_file = Path(tmp_dir) / "config"
            config_file.write_text(f"{key}={value}")
            result = parse_config_file(config_file)
            assert result == {key: value.strip()}
