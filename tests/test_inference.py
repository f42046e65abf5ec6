"""Unit tests for the inference module."""

from dataclasses import replace

import pytest

from issueflow.inference import (
    DEFAULT_TRIGGERS,
    check_missing_labels,
    infer_labels,
    recommended_labels,
    trigger_table,
)
from issueflow.workflow_config import (
    LabelCategory,
    LabelDefinition,
    LabelInferenceConfig,
    NewIssueDefaultsConfig,
    Trigger,
)


def with_inference(config, **kwargs):
    automation = replace(config.automation, label_inference=LabelInferenceConfig(**kwargs))
    return replace(config, automation=automation)


@pytest.mark.unit
class TestInferLabels:
    """Tests for infer_labels()."""

    def test_bug_with_area(self, backend_config, issue_factory):
        """Test a crash report on login is a bug in the auth area."""
        issue = issue_factory(title="Fix: login crashes with an error")
        result = infer_labels(issue, backend_config)

        assert result.by_category["type"].label == "type/bug"
        assert result.by_category["type"].confidence == 1.0
        assert result.by_category["type"].reason == "matched: title prefix fix/bug, bug keywords"
        assert result.by_category["area"].label == "area/auth"
        assert result.by_category["area"].confidence == 0.6
        assert "priority" not in result.by_category
        assert [r.category for r in result.all] == ["type", "area"]

    def test_security_issue_ties_break_type_before_priority(self, backend_config, issue_factory):
        """Test equal confidences order type before priority."""
        issue = issue_factory(title="Critical security vulnerability (CVE-2024-1234)")
        result = infer_labels(issue, backend_config)

        assert result.by_category["type"].label == "type/security"
        assert result.by_category["priority"].label == "priority/P0"
        assert result.by_category["priority"].confidence == 1.0
        assert [r.label for r in result.all] == ["type/security", "priority/P0"]

    def test_score_is_sum_of_weights_clipped(self, backend_config, issue_factory):
        """Test a single trigger contributes its weight once."""
        issue = issue_factory(title="there is a bug, bug, bug", body="another bug")
        result = infer_labels(issue, backend_config)
        assert result.by_category["type"].confidence == 0.6

    def test_table_order_breaks_ties_within_category(self, backend_config, issue_factory):
        """Test equal scores pick the earlier label in the trigger table."""
        issue = issue_factory(title="documentation needs a refactor")
        result = infer_labels(issue, backend_config)
        assert result.by_category["type"].label == "type/docs"

    def test_existing_labels_are_a_text_source(self, backend_config, issue_factory):
        """Test label names feed the triggers alongside title and body."""
        issue = issue_factory(title="Question", labels=["type/docs"])
        result = infer_labels(issue, backend_config)
        assert result.by_category["type"].label == "type/docs"

    def test_empty_text_gives_empty_result(self, backend_config, issue_factory):
        """Test issues without title or body get no suggestions."""
        issue = issue_factory(title="  ", body="", labels=["type/bug"])
        result = infer_labels(issue, backend_config)

        assert result.empty
        assert result.all == ()
        assert result.by_category == {}

    def test_empty_results_are_independent(self, backend_config, issue_factory):
        """Test mutating one empty result does not leak into the next."""
        first = infer_labels(issue_factory(title=""), backend_config)
        first.by_category["type"] = "changed"

        second = infer_labels(issue_factory(title=""), backend_config)
        disabled = infer_labels(
            issue_factory(title="Fix: crash"), with_inference(backend_config, enabled=False)
        )

        assert second.by_category == {}
        assert disabled.by_category == {}
        assert second is not first

    def test_no_match_gives_empty_result(self, backend_config, issue_factory):
        """Test text with no trigger hits yields nothing."""
        result = infer_labels(issue_factory(title="Hello there"), backend_config)
        assert result.empty

    def test_confidence_threshold_filters(self, backend_config, issue_factory):
        """Test suggestions below the threshold are dropped."""
        config = with_inference(backend_config, confidence_threshold=0.7)
        issue = issue_factory(title="Fix: login crashes")
        result = infer_labels(issue, config)

        assert "type" in result.by_category
        assert "area" not in result.by_category

    def test_only_defined_labels_are_candidates(self, backend_config, issue_factory):
        """Test labels missing from the workflow are never suggested."""
        labels = replace(
            backend_config.labels,
            type=LabelCategory(prefix="type/", labels={"bug": LabelDefinition(color="d73a4a")}),
        )
        config = replace(backend_config, labels=labels)
        result = infer_labels(issue_factory(title="docs: fix typo in readme"), config)

        assert "type" not in result.by_category

    def test_area_limited_to_project_type(self, backend_config, issue_factory):
        """Test a backend workflow never suggests frontend areas."""
        result = infer_labels(issue_factory(title="Modal button is misaligned"), backend_config)
        assert "area" not in result.by_category

    def test_trigger_override_replaces_defaults(self, backend_config, issue_factory):
        """Test configured triggers replace the built-in ones for that label."""
        config = with_inference(
            backend_config,
            triggers={"type": {"bug": (Trigger(r"\bkaboom\b", 0.4, "kaboom"),)}},
        )

        result = infer_labels(issue_factory(title="Everything went kaboom"), config)
        assert result.by_category["type"].label == "type/bug"
        assert result.by_category["type"].confidence == 0.4
        assert result.by_category["type"].reason == "matched: kaboom"

        assert "type" not in infer_labels(issue_factory(title="it crashes"), config).by_category

    def test_custom_prefix_in_suggestions(self, backend_config, issue_factory):
        """Test suggested labels use the workflow's prefixes."""
        labels = replace(backend_config.labels, type=replace(backend_config.labels.type, prefix="kind:"))
        config = replace(backend_config, labels=labels)
        result = infer_labels(issue_factory(title="bug in parser"), config)
        assert result.by_category["type"].label == "kind:bug"

    def test_disabled_inference(self, backend_config, issue_factory):
        """Test disabled inference returns nothing."""
        config = with_inference(backend_config, enabled=False)
        assert infer_labels(issue_factory(title="Fix: crash"), config).empty


@pytest.mark.unit
class TestTriggerTable:
    """Tests for trigger_table()."""

    def test_defaults_without_override(self, backend_config):
        """Test the built-in table is used when nothing is overridden."""
        assert trigger_table(backend_config, "type") == DEFAULT_TRIGGERS["type"]

    def test_new_label_appended(self, backend_config):
        """Test overrides for labels absent from the defaults are added last."""
        config = with_inference(
            backend_config, triggers={"area": {"billing": (Trigger("invoice", 0.5),)}}
        )
        table = trigger_table(config, "area")
        assert list(table)[-1] == "billing"
        assert table["api"] == DEFAULT_TRIGGERS["area"]["api"]


@pytest.mark.unit
class TestCheckMissingLabels:
    """Tests for check_missing_labels()."""

    def test_unlabeled_issue(self, backend_config, issue_factory):
        """Test type and status are required by default."""
        assert check_missing_labels(issue_factory(title="x"), backend_config) == ["type", "status"]

    def test_fully_labeled_issue(self, backend_config, issue_factory):
        """Test nothing is missing when required labels are present."""
        issue = issue_factory(title="x", labels=["type/bug", "status/backlog"])
        assert check_missing_labels(issue, backend_config) == []

    def test_priority_required_when_configured(self, backend_config, issue_factory):
        """Test require_priority_label adds the priority category."""
        automation = replace(
            backend_config.automation,
            new_issue_defaults=NewIssueDefaultsConfig(
                require_type_label=False, require_priority_label=True
            ),
        )
        config = replace(backend_config, automation=automation)
        issue = issue_factory(title="x", labels=["status/backlog", "priority/P9"])
        assert check_missing_labels(issue, config) == ["priority"]


@pytest.mark.unit
class TestRecommendedLabels:
    """Tests for recommended_labels()."""

    def test_excludes_labels_already_present(self, backend_config, issue_factory):
        """Test labels on the issue are not recommended again."""
        issue = issue_factory(title="Fix: login crashes", labels=["type/bug"])
        recommended = [r.label for r in recommended_labels(issue, backend_config)]
        assert recommended == ["area/auth"]
