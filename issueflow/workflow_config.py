"""Workflow configuration model, parser and validator.

A workflow document is a YAML mapping describing the label taxonomy, the
project board layout and the automation rules for one repository:

    project:
      type: backend
      language: python
    labels:
      prefixes: {status: status/, priority: priority/, ...}
      status:
        backlog: {color: ededed, description: Waiting to be picked up}
      priority:
        P0: {color: d93f0b, description: Critical, sla_hours: 4}
    board:
      name: Issue Workflow Board
      columns:
        - {name: Backlog, maps_to: backlog}
    automation:
      blocked_detection: {enabled: true, sla: {P0: 4}}

parse_config() turns the text into a frozen WorkflowConfig or raises
ConfigParseError listing every problem found. validate_config() checks the
cross-references of an already parsed config.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import yaml

from issueflow.labels import (
    AREA_LABELS_BY_TYPE,
    CATEGORIES,
    DEFAULT_BOARD_COLUMNS,
    DEFAULT_BOARD_NAME,
    DEFAULT_ESCALATION_LADDER,
    DEFAULT_PREFIXES,
    DEFAULT_PRIORITY_LABELS,
    DEFAULT_SLA_HOURS,
    DEFAULT_STATUS_LABELS,
    DEFAULT_TYPE_LABELS,
    DEFAULT_WARNING_RATIO,
    DEFAULT_WORKFLOW_LABELS,
    INFERRED_CATEGORIES,
    PROJECT_TYPES,
    LabelConfig,
    Labels,
)
from issueflow.logger import get_logger

logger = get_logger(__name__)

HEX_COLOR_PATTERN = re.compile(r"^[0-9a-fA-F]{6}$")

SYNC_DIRECTIONS = ("label-to-board", "board-to-label", "both")
CONFLICT_RESOLUTIONS = ("keep-first", "keep-last")

# Categories that may legitimately be left empty
OPTIONAL_CATEGORIES = frozenset({"area", "workflow"})


class ConfigParseError(ValueError):
    """Raised when a workflow document is malformed.

    Attributes:
        messages: One human-readable message per problem, naming the field
                  path (or line/column for YAML syntax errors)
    """

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages)
        super().__init__("Invalid workflow config: " + "; ".join(self.messages))


# =============================================================================
# Model
# =============================================================================


@dataclass(frozen=True)
class ProjectConfig:
    type: str
    language: str | None = None
    name: str | None = None
    repo: str | None = None


@dataclass(frozen=True)
class LabelDefinition:
    color: str
    description: str = ""
    sla_hours: int | None = None


@dataclass(frozen=True)
class LabelSpec:
    """A fully-qualified label as it should exist on the tracker."""

    name: str
    category: str
    color: str
    description: str


@dataclass(frozen=True)
class LabelCategory:
    """One label category: a prefix plus short name -> definition, in order."""

    prefix: str
    labels: dict[str, LabelDefinition] = field(default_factory=dict)

    def full_name(self, short_name: str) -> str:
        return f"{self.prefix}{short_name}"

    def split(self, full_name: str) -> str | None:
        """Strip this category's prefix from a full label name.

        With a non-empty prefix any label carrying the prefix is returned,
        defined or not, so callers can tell unknown references apart from
        unrelated labels. With an empty prefix only defined names match.
        """
        if self.prefix:
            if full_name.startswith(self.prefix):
                return full_name[len(self.prefix) :]
            return None
        return full_name if full_name in self.labels else None

    def match(self, full_name: str) -> str | None:
        """Return the short name if full_name is a defined label of this category."""
        short_name = self.split(full_name)
        if short_name is not None and short_name in self.labels:
            return short_name
        return None


@dataclass(frozen=True)
class LabelsConfig:
    status: LabelCategory
    priority: LabelCategory
    type: LabelCategory
    area: LabelCategory
    workflow: LabelCategory

    def category(self, name: str) -> LabelCategory:
        if name not in CATEGORIES:
            raise KeyError(f"Unknown label category: {name}")
        return getattr(self, name)


@dataclass(frozen=True)
class BoardColumn:
    name: str
    maps_to: str


@dataclass(frozen=True)
class BoardConfig:
    name: str = DEFAULT_BOARD_NAME
    columns: tuple[BoardColumn, ...] = ()


@dataclass(frozen=True)
class Trigger:
    """One inference signal: a case-insensitive regex and the weight it adds."""

    pattern: str
    weight: float
    name: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.pattern


@dataclass(frozen=True)
class EscalationRule:
    from_priority: str
    to_priority: str
    after_days: int


@dataclass(frozen=True)
class LabelInferenceConfig:
    enabled: bool = True
    confidence_threshold: float = 0.0
    # category -> short name -> triggers; replaces the built-in triggers per label
    triggers: dict[str, dict[str, tuple[Trigger, ...]]] | None = None


@dataclass(frozen=True)
class PriorityEscalationConfig:
    enabled: bool = True
    rules: tuple[EscalationRule, ...] = ()


@dataclass(frozen=True)
class BlockedDetectionConfig:
    enabled: bool = True
    sla: dict[str, float] = field(default_factory=dict)
    warning_ratio: float = DEFAULT_WARNING_RATIO


@dataclass(frozen=True)
class StatusSyncConfig:
    enabled: bool = True
    direction: str = "both"
    conflict_resolution: str = "keep-last"


@dataclass(frozen=True)
class NewIssueDefaultsConfig:
    auto_add_to_backlog: bool = True
    require_type_label: bool = True
    require_priority_label: bool = False
    default_priority: str = "P2"


@dataclass(frozen=True)
class AutomationConfig:
    label_inference: LabelInferenceConfig = field(default_factory=LabelInferenceConfig)
    priority_escalation: PriorityEscalationConfig = field(
        default_factory=PriorityEscalationConfig
    )
    blocked_detection: BlockedDetectionConfig = field(default_factory=BlockedDetectionConfig)
    status_sync: StatusSyncConfig = field(default_factory=StatusSyncConfig)
    new_issue_defaults: NewIssueDefaultsConfig = field(default_factory=NewIssueDefaultsConfig)


@dataclass(frozen=True)
class WorkflowConfig:
    """Root of a parsed workflow document. Treat as read-only."""

    project: ProjectConfig
    labels: LabelsConfig
    board: BoardConfig = field(default_factory=BoardConfig)
    automation: AutomationConfig = field(default_factory=AutomationConfig)

    def label_prefixes(self) -> dict[str, str]:
        """Return the prefix of each of the five categories, keyed by category."""
        return {name: self.labels.category(name).prefix for name in CATEGORIES}

    def all_labels(self) -> list[LabelSpec]:
        """Flatten every category into full label specs (status, priority, type, area, workflow)."""
        specs: list[LabelSpec] = []
        for category_name in CATEGORIES:
            category = self.labels.category(category_name)
            for short_name, definition in category.labels.items():
                specs.append(
                    LabelSpec(
                        name=category.full_name(short_name),
                        category=category_name,
                        color=definition.color,
                        description=definition.description,
                    )
                )
        return specs

    def sla_hours(self, priority: str) -> int:
        """Return the SLA window for a short priority name.

        Uses the priority label's sla_hours when set, otherwise the documented
        default for that priority. Names with no documented default fall back
        to the default of the lowest-urgency priority.
        """
        definition = self.labels.priority.labels.get(priority)
        if definition is not None and definition.sla_hours is not None:
            return definition.sla_hours
        return DEFAULT_SLA_HOURS.get(priority, DEFAULT_SLA_HOURS[Labels.DEFAULT_PRIORITY])

    def priority_names(self) -> list[str]:
        """Short priority names in configured order (most urgent first)."""
        return list(self.labels.priority.labels)

    def full_label(self, category: str, short_name: str) -> str:
        return self.labels.category(category).full_name(short_name)

    def match_label(self, category: str, full_name: str) -> str | None:
        return self.labels.category(category).match(full_name)

    def resolve_column_status(self, column: BoardColumn) -> str | None:
        """Resolve a column's maps_to (short or full status name) to a status short name."""
        status = self.labels.status
        if column.maps_to in status.labels:
            return column.maps_to
        return status.match(column.maps_to)

    def find_column_by_status(self, short_name: str) -> BoardColumn | None:
        for column in self.board.columns:
            if self.resolve_column_status(column) == short_name:
                return column
        return None

    def find_status_by_column(self, column_name: str) -> str | None:
        for column in self.board.columns:
            if column.name == column_name:
                return self.resolve_column_status(column)
        return None


@dataclass
class ValidationResult:
    """Result of semantic validation.

    Errors block the automation features that depend on the config;
    warnings are informational only.
    """

    valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.valid = False

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)


# =============================================================================
# Parsing
# =============================================================================


def _describe_yaml_error(error: yaml.YAMLError) -> str:
    mark = getattr(error, "problem_mark", None)
    problem = getattr(error, "problem", None) or str(error)
    if mark is not None:
        return f"YAML syntax error at line {mark.line + 1}, column {mark.column + 1}: {problem}"
    return f"YAML syntax error: {problem}"


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _mapping(raw: Any, path: str, errors: list[str], required: bool = False) -> dict | None:
    if raw is None:
        if required:
            errors.append(f"{path}: missing required section")
        return None
    if not isinstance(raw, dict):
        errors.append(f"{path}: expected a mapping, got {type(raw).__name__}")
        return None
    return raw


def _bool(raw: dict, key: str, default: bool, path: str, errors: list[str]) -> bool:
    value = raw.get(key, default)
    if not isinstance(value, bool):
        errors.append(f"{path}.{key}: expected true or false")
        return default
    return value


def _optional_str(raw: dict, key: str, path: str, errors: list[str]) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        errors.append(f"{path}.{key}: expected a string")
        return None
    return value


def _choice(
    raw: dict, key: str, choices: tuple[str, ...], default: str, path: str, errors: list[str]
) -> str:
    value = raw.get(key, default)
    if value not in choices:
        errors.append(f"{path}.{key}: must be one of {', '.join(choices)} (got {value!r})")
        return default
    return value


def _parse_project(raw: Any, errors: list[str]) -> ProjectConfig | None:
    data = _mapping(raw, "project", errors, required=True)
    if data is None:
        return None

    project_type = data.get("type")
    if project_type is None:
        errors.append("project.type: missing required field")
        return None
    if project_type not in PROJECT_TYPES:
        errors.append(
            f"project.type: must be one of {', '.join(PROJECT_TYPES)} (got {project_type!r})"
        )
        return None

    return ProjectConfig(
        type=project_type,
        language=_optional_str(data, "language", "project", errors),
        name=_optional_str(data, "name", "project", errors),
        repo=_optional_str(data, "repo", "project", errors),
    )


def _parse_color(raw: Any, path: str, errors: list[str]) -> str | None:
    if not isinstance(raw, str):
        # Unquoted colors such as 000000 load as integers
        errors.append(f"{path}: expected a quoted 6-digit hex string")
        return None
    color = raw[1:] if raw.startswith("#") else raw
    if not HEX_COLOR_PATTERN.match(color):
        errors.append(f"{path}: {raw!r} is not a 6-digit hex color")
        return None
    return color


def _parse_category(
    category_name: str, raw: Any, prefix: str, errors: list[str]
) -> LabelCategory:
    path = f"labels.{category_name}"
    labels: dict[str, LabelDefinition] = {}
    data = _mapping(raw, path, errors)
    if data is None:
        return LabelCategory(prefix=prefix, labels=labels)

    for short_name, raw_definition in data.items():
        if not isinstance(short_name, str) or not short_name:
            errors.append(f"{path}: label names must be non-empty strings (got {short_name!r})")
            continue
        label_path = f"{path}.{short_name}"
        definition = _mapping(raw_definition, label_path, errors, required=True)
        if definition is None:
            continue

        color = _parse_color(definition.get("color"), f"{label_path}.color", errors)
        description = definition.get("description", "")
        if description is None:
            description = ""
        if not isinstance(description, str):
            errors.append(f"{label_path}.description: expected a string")
            description = ""

        sla_hours = definition.get("sla_hours")
        if sla_hours is not None:
            if category_name != "priority":
                errors.append(f"{label_path}.sla_hours: only priority labels may set sla_hours")
                sla_hours = None
            elif not isinstance(sla_hours, int) or isinstance(sla_hours, bool) or sla_hours <= 0:
                errors.append(f"{label_path}.sla_hours: expected a positive integer")
                sla_hours = None

        if color is not None:
            labels[short_name] = LabelDefinition(
                color=color, description=description, sla_hours=sla_hours
            )

    return LabelCategory(prefix=prefix, labels=labels)


def _parse_labels(raw: Any, errors: list[str]) -> LabelsConfig | None:
    data = _mapping(raw, "labels", errors, required=True)
    if data is None:
        return None

    prefixes = dict(DEFAULT_PREFIXES)
    raw_prefixes = _mapping(data.get("prefixes"), "labels.prefixes", errors)
    if raw_prefixes:
        for category_name, prefix in raw_prefixes.items():
            if category_name not in CATEGORIES:
                errors.append(f"labels.prefixes: unknown category {category_name!r}")
            elif prefix is None:
                prefixes[category_name] = ""
            elif not isinstance(prefix, str):
                errors.append(f"labels.prefixes.{category_name}: expected a string")
            else:
                prefixes[category_name] = prefix

    for key in data:
        if key != "prefixes" and key not in CATEGORIES:
            logger.warning(f"Ignoring unknown label category 'labels.{key}'")

    categories = {
        name: _parse_category(name, data.get(name), prefixes[name], errors)
        for name in CATEGORIES
    }
    return LabelsConfig(**categories)


def _parse_board(raw: Any, errors: list[str]) -> BoardConfig:
    data = _mapping(raw, "board", errors)
    if data is None:
        return BoardConfig()

    name = data.get("name", DEFAULT_BOARD_NAME)
    if not isinstance(name, str) or not name:
        errors.append("board.name: expected a non-empty string")
        name = DEFAULT_BOARD_NAME

    raw_columns = data.get("columns") or []
    if not isinstance(raw_columns, list):
        errors.append("board.columns: expected a list")
        return BoardConfig(name=name)

    columns: list[BoardColumn] = []
    for index, raw_column in enumerate(raw_columns):
        path = f"board.columns[{index}]"
        column = _mapping(raw_column, path, errors, required=True)
        if column is None:
            continue
        column_name = column.get("name")
        maps_to = column.get("maps_to")
        if not isinstance(column_name, str) or not column_name:
            errors.append(f"{path}.name: expected a non-empty string")
            continue
        if not isinstance(maps_to, str) or not maps_to:
            errors.append(f"{path}.maps_to: column {column_name!r} needs a status reference")
            continue
        columns.append(BoardColumn(name=column_name, maps_to=maps_to))

    return BoardConfig(name=name, columns=tuple(columns))


def _parse_triggers(
    raw: Any, path: str, errors: list[str]
) -> dict[str, dict[str, tuple[Trigger, ...]]] | None:
    data = _mapping(raw, path, errors)
    if data is None:
        return None

    table: dict[str, dict[str, tuple[Trigger, ...]]] = {}
    for category_name, raw_labels in data.items():
        if category_name not in INFERRED_CATEGORIES:
            errors.append(
                f"{path}.{category_name}: only {', '.join(INFERRED_CATEGORIES)} can be inferred"
            )
            continue
        labels = _mapping(raw_labels, f"{path}.{category_name}", errors) or {}
        table[category_name] = {}
        for short_name, raw_triggers in labels.items():
            label_path = f"{path}.{category_name}.{short_name}"
            if not isinstance(raw_triggers, list):
                errors.append(f"{label_path}: expected a list of triggers")
                continue
            triggers: list[Trigger] = []
            for index, raw_trigger in enumerate(raw_triggers):
                trigger_path = f"{label_path}[{index}]"
                trigger = _mapping(raw_trigger, trigger_path, errors, required=True)
                if trigger is None:
                    continue
                pattern = trigger.get("pattern")
                weight = trigger.get("weight")
                if not isinstance(pattern, str) or not pattern:
                    errors.append(f"{trigger_path}.pattern: expected a regular expression")
                    continue
                try:
                    re.compile(pattern)
                except re.error as e:
                    errors.append(f"{trigger_path}.pattern: invalid regular expression ({e})")
                    continue
                if not _is_number(weight) or weight <= 0:
                    errors.append(f"{trigger_path}.weight: expected a positive number")
                    continue
                triggers.append(
                    Trigger(
                        pattern=pattern,
                        weight=float(weight),
                        name=_optional_str(trigger, "name", trigger_path, errors),
                    )
                )
            table[category_name][str(short_name)] = tuple(triggers)
    return table


def _parse_automation(raw: Any, errors: list[str]) -> AutomationConfig:
    # A section that is present is enabled unless it says otherwise; an
    # absent section is disabled.
    data = _mapping(raw, "automation", errors) or {}

    inference_raw = _mapping(data.get("label_inference"), "automation.label_inference", errors)
    inference = LabelInferenceConfig(enabled=False)
    if inference_raw is not None:
        path = "automation.label_inference"
        threshold = inference_raw.get("confidence_threshold", 0.0)
        if not _is_number(threshold) or not 0.0 <= threshold <= 1.0:
            errors.append(f"{path}.confidence_threshold: expected a number between 0 and 1")
            threshold = 0.0
        inference = LabelInferenceConfig(
            enabled=_bool(inference_raw, "enabled", True, path, errors),
            confidence_threshold=float(threshold),
            triggers=_parse_triggers(inference_raw.get("triggers"), f"{path}.triggers", errors),
        )

    escalation_raw = _mapping(
        data.get("priority_escalation"), "automation.priority_escalation", errors
    )
    escalation = PriorityEscalationConfig(enabled=False)
    if escalation_raw is not None:
        path = "automation.priority_escalation"
        rules: list[EscalationRule] = []
        raw_rules = escalation_raw.get("rules") or []
        if not isinstance(raw_rules, list):
            errors.append(f"{path}.rules: expected a list")
            raw_rules = []
        for index, raw_rule in enumerate(raw_rules):
            rule_path = f"{path}.rules[{index}]"
            rule = _mapping(raw_rule, rule_path, errors, required=True)
            if rule is None:
                continue
            from_priority = rule.get("from_priority")
            to_priority = rule.get("to_priority")
            after_days = rule.get("after_days")
            if not isinstance(from_priority, str) or not isinstance(to_priority, str):
                errors.append(f"{rule_path}: from_priority and to_priority must be strings")
                continue
            if not isinstance(after_days, int) or isinstance(after_days, bool):
                errors.append(f"{rule_path}.after_days: expected an integer")
                continue
            rules.append(EscalationRule(from_priority, to_priority, after_days))
        escalation = PriorityEscalationConfig(
            enabled=_bool(escalation_raw, "enabled", True, path, errors),
            rules=tuple(rules),
        )

    blocked_raw = _mapping(data.get("blocked_detection"), "automation.blocked_detection", errors)
    blocked = BlockedDetectionConfig(enabled=False)
    if blocked_raw is not None:
        path = "automation.blocked_detection"
        sla: dict[str, float] = {}
        for priority, hours in (_mapping(blocked_raw.get("sla"), f"{path}.sla", errors) or {}).items():
            if not _is_number(hours) or hours <= 0:
                errors.append(f"{path}.sla.{priority}: expected a positive number of hours")
                continue
            sla[str(priority)] = hours
        ratio = blocked_raw.get("warning_ratio", DEFAULT_WARNING_RATIO)
        if not _is_number(ratio) or not 0.0 <= ratio < 1.0:
            errors.append(f"{path}.warning_ratio: expected a number in [0, 1)")
            ratio = DEFAULT_WARNING_RATIO
        blocked = BlockedDetectionConfig(
            enabled=_bool(blocked_raw, "enabled", True, path, errors),
            sla=sla,
            warning_ratio=float(ratio),
        )

    sync_raw = _mapping(data.get("status_sync"), "automation.status_sync", errors)
    status_sync = StatusSyncConfig(enabled=False)
    if sync_raw is not None:
        path = "automation.status_sync"
        status_sync = StatusSyncConfig(
            enabled=_bool(sync_raw, "enabled", True, path, errors),
            direction=_choice(sync_raw, "direction", SYNC_DIRECTIONS, "both", path, errors),
            conflict_resolution=_choice(
                sync_raw, "conflict_resolution", CONFLICT_RESOLUTIONS, "keep-last", path, errors
            ),
        )

    defaults_raw = _mapping(data.get("new_issue_defaults"), "automation.new_issue_defaults", errors)
    new_issue_defaults = NewIssueDefaultsConfig()
    if defaults_raw is not None:
        path = "automation.new_issue_defaults"
        default_priority = defaults_raw.get("default_priority", "P2")
        if not isinstance(default_priority, str):
            errors.append(f"{path}.default_priority: expected a string")
            default_priority = "P2"
        new_issue_defaults = NewIssueDefaultsConfig(
            auto_add_to_backlog=_bool(defaults_raw, "auto_add_to_backlog", True, path, errors),
            require_type_label=_bool(defaults_raw, "require_type_label", True, path, errors),
            require_priority_label=_bool(
                defaults_raw, "require_priority_label", False, path, errors
            ),
            default_priority=default_priority,
        )

    return AutomationConfig(
        label_inference=inference,
        priority_escalation=escalation,
        blocked_detection=blocked,
        status_sync=status_sync,
        new_issue_defaults=new_issue_defaults,
    )


def config_from_dict(data: dict[str, Any]) -> WorkflowConfig:
    """Build a WorkflowConfig from an already-loaded mapping.

    Raises:
        ConfigParseError: With every problem found; nothing is returned on failure
    """
    errors: list[str] = []
    project = _parse_project(data.get("project"), errors)
    labels = _parse_labels(data.get("labels"), errors)
    board = _parse_board(data.get("board"), errors)
    automation = _parse_automation(data.get("automation"), errors)

    for key in data:
        if key not in ("project", "labels", "board", "automation"):
            logger.debug(f"Ignoring unknown top-level key '{key}'")

    if errors or project is None or labels is None:
        raise ConfigParseError(errors)

    return WorkflowConfig(project=project, labels=labels, board=board, automation=automation)


def parse_config(text: str) -> WorkflowConfig:
    """Parse a YAML workflow document.

    Args:
        text: Raw document contents

    Returns:
        The parsed, immutable WorkflowConfig

    Raises:
        ConfigParseError: If the YAML is malformed or the document has the wrong shape
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigParseError([_describe_yaml_error(e)]) from e

    if not isinstance(data, dict):
        raise ConfigParseError(["workflow config must be a mapping at the top level"])

    return config_from_dict(data)


# =============================================================================
# Serialization
# =============================================================================


def _definition_to_dict(definition: LabelDefinition) -> dict[str, Any]:
    data: dict[str, Any] = {"color": definition.color, "description": definition.description}
    if definition.sla_hours is not None:
        data["sla_hours"] = definition.sla_hours
    return data


def config_to_dict(config: WorkflowConfig) -> dict[str, Any]:
    """Convert a WorkflowConfig into plain YAML-ready data."""
    project: dict[str, Any] = {"type": config.project.type}
    for key in ("language", "name", "repo"):
        value = getattr(config.project, key)
        if value is not None:
            project[key] = value

    labels: dict[str, Any] = {"prefixes": config.label_prefixes()}
    for category_name in CATEGORIES:
        category = config.labels.category(category_name)
        labels[category_name] = {
            short_name: _definition_to_dict(definition)
            for short_name, definition in category.labels.items()
        }

    automation = config.automation
    label_inference: dict[str, Any] = {
        "enabled": automation.label_inference.enabled,
        "confidence_threshold": automation.label_inference.confidence_threshold,
    }
    if automation.label_inference.triggers is not None:
        label_inference["triggers"] = {
            category_name: {
                short_name: [
                    {"pattern": t.pattern, "weight": t.weight}
                    | ({"name": t.name} if t.name is not None else {})
                    for t in triggers
                ]
                for short_name, triggers in labels_table.items()
            }
            for category_name, labels_table in automation.label_inference.triggers.items()
        }

    return {
        "project": project,
        "labels": labels,
        "board": {
            "name": config.board.name,
            "columns": [{"name": c.name, "maps_to": c.maps_to} for c in config.board.columns],
        },
        "automation": {
            "label_inference": label_inference,
            "priority_escalation": {
                "enabled": automation.priority_escalation.enabled,
                "rules": [
                    {
                        "from_priority": rule.from_priority,
                        "to_priority": rule.to_priority,
                        "after_days": rule.after_days,
                    }
                    for rule in automation.priority_escalation.rules
                ],
            },
            "blocked_detection": {
                "enabled": automation.blocked_detection.enabled,
                "sla": dict(automation.blocked_detection.sla),
                "warning_ratio": automation.blocked_detection.warning_ratio,
            },
            "status_sync": {
                "enabled": automation.status_sync.enabled,
                "direction": automation.status_sync.direction,
                "conflict_resolution": automation.status_sync.conflict_resolution,
            },
            "new_issue_defaults": {
                "auto_add_to_backlog": automation.new_issue_defaults.auto_add_to_backlog,
                "require_type_label": automation.new_issue_defaults.require_type_label,
                "require_priority_label": automation.new_issue_defaults.require_priority_label,
                "default_priority": automation.new_issue_defaults.default_priority,
            },
        },
    }


def serialize_config(config: WorkflowConfig) -> str:
    """Serialize a WorkflowConfig to YAML; the inverse of parse_config()."""
    return yaml.safe_dump(
        config_to_dict(config),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=120,
    )


# =============================================================================
# Validation
# =============================================================================


def validate_config(config: WorkflowConfig) -> ValidationResult:
    """Check cross-references and completeness of a parsed config.

    Args:
        config: A parsed WorkflowConfig

    Returns:
        ValidationResult; valid is False when any error was found
    """
    result = ValidationResult()
    priorities = config.labels.priority.labels

    for category_name in CATEGORIES:
        if config.labels.category(category_name).labels:
            continue
        if category_name in OPTIONAL_CATEGORIES:
            result.add_warning(f"labels.{category_name} is empty")
        else:
            result.add_error(f"labels.{category_name} must define at least one label")

    seen_names: dict[str, str] = {}
    for spec in config.all_labels():
        if spec.name in seen_names:
            result.add_warning(
                f"label {spec.name!r} is defined by both {seen_names[spec.name]} "
                f"and {spec.category}"
            )
        else:
            seen_names[spec.name] = spec.category

    if not config.board.columns:
        result.add_warning("board.columns is empty; no board columns will be synced")
    seen_columns: set[str] = set()
    for column in config.board.columns:
        if column.name in seen_columns:
            result.add_warning(f"board column {column.name!r} is listed more than once")
        seen_columns.add(column.name)
        if config.resolve_column_status(column) is None:
            result.add_error(
                f"board column {column.name!r} maps_to {column.maps_to!r}, "
                "which is not a labels.status entry"
            )
    if config.board.columns and config.find_column_by_status(Labels.BACKLOG) is None:
        if not any(c.name.lower() == Labels.BACKLOG for c in config.board.columns):
            result.add_warning("board has no Backlog column")

    blocked = config.automation.blocked_detection
    for priority in blocked.sla:
        if priority not in priorities:
            result.add_error(
                f"automation.blocked_detection.sla references undefined priority {priority!r}"
            )
    if blocked.enabled:
        for priority, definition in priorities.items():
            if priority not in blocked.sla and definition.sla_hours is None:
                result.add_warning(
                    f"priority {priority!r} has no SLA configured; "
                    f"using the default of {config.sla_hours(priority)} hours"
                )

    for index, rule in enumerate(config.automation.priority_escalation.rules):
        path = f"automation.priority_escalation.rules[{index}]"
        for key in ("from_priority", "to_priority"):
            value = getattr(rule, key)
            if value not in priorities:
                result.add_error(f"{path}.{key} references undefined priority {value!r}")
        if rule.after_days <= 0:
            result.add_warning(f"{path}.after_days is {rule.after_days}; rule fires immediately")

    default_priority = config.automation.new_issue_defaults.default_priority
    if priorities and default_priority not in priorities:
        result.add_warning(
            f"automation.new_issue_defaults.default_priority {default_priority!r} "
            "is not a defined priority"
        )

    logger.debug(
        f"Validated config: {len(result.errors)} error(s), {len(result.warnings)} warning(s)"
    )
    return result


# =============================================================================
# Default generation
# =============================================================================


def _category_from_table(prefix: str, table: dict[str, LabelConfig]) -> LabelCategory:
    return LabelCategory(
        prefix=prefix,
        labels={
            short_name: LabelDefinition(
                color=entry["color"],
                description=entry["description"],
                sla_hours=entry.get("sla_hours"),
            )
            for short_name, entry in table.items()
        },
    )


def generate_default_config(
    project_type: str,
    language: str | None = None,
    name: str | None = None,
    repo: str | None = None,
) -> WorkflowConfig:
    """Build the canonical starter config for a project type.

    Args:
        project_type: One of backend, frontend, fullstack, library
        language: Optional primary language, recorded as-is
        name: Optional project name
        repo: Optional 'owner/repo'

    Returns:
        A fresh WorkflowConfig; identical inputs always give equal configs

    Raises:
        ValueError: If project_type is not recognized
    """
    if project_type not in PROJECT_TYPES:
        raise ValueError(
            f"Unknown project type: {project_type}. Expected one of: {', '.join(PROJECT_TYPES)}"
        )

    labels = LabelsConfig(
        status=_category_from_table(DEFAULT_PREFIXES["status"], DEFAULT_STATUS_LABELS),
        priority=_category_from_table(DEFAULT_PREFIXES["priority"], DEFAULT_PRIORITY_LABELS),
        type=_category_from_table(DEFAULT_PREFIXES["type"], DEFAULT_TYPE_LABELS),
        area=_category_from_table(DEFAULT_PREFIXES["area"], AREA_LABELS_BY_TYPE[project_type]),
        workflow=_category_from_table(DEFAULT_PREFIXES["workflow"], DEFAULT_WORKFLOW_LABELS),
    )

    return WorkflowConfig(
        project=ProjectConfig(type=project_type, language=language, name=name, repo=repo),
        labels=labels,
        board=BoardConfig(
            name=DEFAULT_BOARD_NAME,
            columns=tuple(BoardColumn(c["name"], c["maps_to"]) for c in DEFAULT_BOARD_COLUMNS),
        ),
        automation=AutomationConfig(
            label_inference=LabelInferenceConfig(enabled=True),
            priority_escalation=PriorityEscalationConfig(
                enabled=True,
                rules=tuple(EscalationRule(*step) for step in DEFAULT_ESCALATION_LADDER),
            ),
            blocked_detection=BlockedDetectionConfig(
                enabled=True,
                sla={},
            ),
            status_sync=StatusSyncConfig(enabled=True),
            new_issue_defaults=NewIssueDefaultsConfig(),
        ),
    )
