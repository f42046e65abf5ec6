"""Command-line interface for issueflow.

Every command works on local files only: the YAML workflow document plus
JSON snapshots (issues, labels, columns) exported from the tracker. Plans and
decisions are printed; applying them is left to the tracker client.
"""

import argparse
import json
import sys
from dataclasses import asdict
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from issueflow import __version__
from issueflow.board_sync import plan_column_sync, plan_label_sync
from issueflow.config import Settings, load_settings
from issueflow.inference import check_missing_labels, recommended_labels
from issueflow.interfaces import (
    Issue,
    RemoteColumn,
    RemoteLabel,
    issue_from_dict,
    remote_column_from_dict,
    remote_label_from_dict,
)
from issueflow.labels import PROJECT_TYPES
from issueflow.logger import get_logger, is_debug_mode, set_repo_context, setup_logging
from issueflow.report import build_report, render_markdown
from issueflow.sla import BlockedStatus, escalate_priorities, evaluate_blocked
from issueflow.workflow_config import (
    ConfigParseError,
    WorkflowConfig,
    generate_default_config,
    parse_config,
    serialize_config,
    validate_config,
)

logger = get_logger(__name__)

STATUS_MARKERS = {
    BlockedStatus.BLOCKED: "BLOCKED",
    BlockedStatus.WARNING: "WARNING",
    BlockedStatus.OK: "ok",
}


class CommandError(Exception):
    """A command could not complete; the message is shown to the user."""


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, frozenset | set):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=_json_default, ensure_ascii=False))


def load_json(path: str) -> Any:
    """Read a JSON snapshot file.

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
    """
    with open(path) as f:
        return json.load(f)


def _records(data: Any, key: str, path: str) -> list:
    # Accept a bare list or an object wrapping the list under `key`
    if isinstance(data, dict) and isinstance(data.get(key), list):
        return data[key]
    if isinstance(data, list):
        return data
    raise CommandError(f"{path}: expected a JSON list of {key}")


def load_issues(path: str) -> list[Issue]:
    issues = []
    for index, raw in enumerate(_records(load_json(path), "issues", path)):
        try:
            issues.append(issue_from_dict(raw))
        except (KeyError, TypeError, ValueError) as e:
            raise CommandError(f"{path}: issue at index {index} is malformed ({e})") from e
    return issues


def load_labels(path: str) -> list[RemoteLabel]:
    labels = []
    for index, raw in enumerate(_records(load_json(path), "labels", path)):
        try:
            labels.append(remote_label_from_dict(raw))
        except (AttributeError, KeyError, TypeError) as e:
            raise CommandError(f"{path}: label at index {index} is malformed ({e})") from e
    return labels


def load_columns(path: str) -> list[RemoteColumn]:
    columns = []
    for index, raw in enumerate(_records(load_json(path), "columns", path)):
        try:
            columns.append(remote_column_from_dict(raw))
        except (AttributeError, KeyError, TypeError) as e:
            raise CommandError(f"{path}: column at index {index} is malformed ({e})") from e
    return columns



def load_workflow(path: str) -> WorkflowConfig:
    """Read and parse the workflow document.

    Raises:
        FileNotFoundError: If the document does not exist
        ConfigParseError: If the document is malformed
    """
    logger.debug(f"Loading workflow config from {path}")
    config = parse_config(Path(path).read_text())
    set_repo_context(config.project.repo)
    return config


def load_valid_workflow(path: str) -> WorkflowConfig:
    """Load the workflow document and refuse to continue if it has validation errors."""
    config = load_workflow(path)
    result = validate_config(config)
    for warning in result.warnings:
        logger.warning(f"Config warning: {warning}")
    if not result.valid:
        raise CommandError(
            f"{path} has validation errors; run 'issueflow validate' for details:\n  "
            + "\n  ".join(result.errors)
        )
    return config


def _config_path(args: argparse.Namespace, settings: Settings) -> str:
    return args.config or settings.workflow_config_path


def cmd_init(args: argparse.Namespace, settings: Settings) -> None:
    """Write a starter workflow document."""
    output = Path(args.output or _config_path(args, settings))
    if output.exists() and not args.force:
        raise CommandError(f"{output} already exists; use --force to overwrite")

    config = generate_default_config(args.type, language=args.language, repo=args.repo)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(serialize_config(config))
    logger.info(f"Generated default {args.type} workflow at {output}")

    if args.json:
        print_json({"path": str(output), "labels": len(config.all_labels())})
    else:
        print(f"Created {output}")


def cmd_validate(args: argparse.Namespace, settings: Settings) -> None:
    """Parse and validate the workflow document."""
    path = _config_path(args, settings)
    result = validate_config(load_workflow(path))

    if args.json:
        print_json(asdict(result))
    else:
        for error in result.errors:
            print(f"error: {error}")
        for warning in result.warnings:
            print(f"warning: {warning}")
        if result.valid:
            logger.info(f"Valid config: {path}")
            print(f"{path}: OK ({len(result.warnings)} warning(s))")

    if not result.valid:
        sys.exit(1)


def cmd_infer(args: argparse.Namespace, settings: Settings) -> None:
    """Print label suggestions and missing categories per issue."""
    config = load_valid_workflow(_config_path(args, settings))
    if not config.automation.label_inference.enabled:
        logger.warning("Label inference is disabled in the workflow config; skipping")
        return

    issues = load_issues(args.issues)
    if args.number is not None:
        issues = [i for i in issues if i.number == args.number]
        if not issues:
            raise CommandError(f"Issue #{args.number} not found in {args.issues}")
        if not issues[0].is_open:
            raise CommandError(f"Issue #{args.number} is closed")
    else:
        issues = [i for i in issues if i.is_open]

    output = []
    for issue in issues:
        output.append(
            {
                "number": issue.number,
                "title": issue.title,
                "recommended": [asdict(r) for r in recommended_labels(issue, config)],
                "missing": check_missing_labels(issue, config),
            }
        )

    if args.json:
        print_json(output)
        return
    if not output:
        print("No open issues.")
    for entry in output:
        print(f"#{entry['number']} {entry['title']}")
        for suggestion in entry["recommended"]:
            print(
                f"  + {suggestion['label']} ({suggestion['confidence']:.2f}) {suggestion['reason']}"
            )
        if entry["missing"]:
            print(f"  missing: {', '.join(entry['missing'])}")


def cmd_check_blocked(args: argparse.Namespace, settings: Settings) -> None:
    """Print the SLA status of every open issue."""
    config = load_valid_workflow(_config_path(args, settings))
    if not config.automation.blocked_detection.enabled:
        logger.warning("Blocked detection is disabled in the workflow config; skipping")
        return

    threshold = args.threshold if args.threshold is not None else settings.sla_threshold_hours
    results = evaluate_blocked(load_issues(args.issues), config, threshold_hours=threshold)

    if args.json:
        print_json([asdict(r) for r in results])
        return
    if not results:
        print("No open issues.")
        return
    print(f"{'Status':<8} {'Issue':<8} {'Priority':<9} {'Age (h)':>8} {'SLA (h)':>8} {'Over (h)':>9}  Title")
    for r in results:
        print(
            f"{STATUS_MARKERS[r.status]:<8} #{r.number:<7} {r.priority:<9} "
            f"{r.age_hours:>8.1f} {r.sla_hours:>8g} {r.exceeded_by:>9.1f}  {r.title}"
        )


def cmd_escalate(args: argparse.Namespace, settings: Settings) -> None:
    """Print proposed priority escalations."""
    config = load_valid_workflow(_config_path(args, settings))
    repo_labels = None
    if args.labels:
        repo_labels = load_labels(args.labels)

    decisions = escalate_priorities(
        load_issues(args.issues), config, repo_labels=repo_labels, dry_run=not args.apply
    )

    if args.json:
        print_json({"apply": args.apply, "decisions": [asdict(d) for d in decisions]})
        return
    if not decisions:
        print("No escalations needed.")
        return
    verb = "Apply" if args.apply else "Would apply"
    for d in decisions:
        note = "" if d.label_available else f" (label {d.new_label} missing)"
        print(f"{verb}: #{d.issue_number} {d.old_priority} -> {d.new_priority}: {d.reason}{note}")


def cmd_plan_labels(args: argparse.Namespace, settings: Settings) -> None:
    """Print the label sync plan against a remote label snapshot."""
    config = load_valid_workflow(_config_path(args, settings))
    remote = load_labels(args.labels)
    plan = plan_label_sync(config.all_labels(), remote)

    if args.json:
        print_json(asdict(plan))
        return
    for spec in plan.created:
        print(f"create  {spec.name} #{spec.color}")
    for spec in plan.updated:
        print(f"update  {spec.name} ({', '.join(plan.changes[spec.name])})")
    print(f"{len(plan.created)} to create, {len(plan.updated)} to update, {len(plan.skipped)} unchanged")


def cmd_plan_board(args: argparse.Namespace, settings: Settings) -> None:
    """Print the board column sync plan against a remote column snapshot."""
    config = load_valid_workflow(_config_path(args, settings))
    remote = load_columns(args.columns)
    plan = plan_column_sync(config.board.columns, remote)

    if args.json:
        print_json(asdict(plan))
        return
    for column in plan.created:
        print(f"create  {column.name} -> {column.maps_to}")
    print(f"{len(plan.created)} to create, {len(plan.skipped)} existing")


def cmd_report(args: argparse.Namespace, settings: Settings) -> None:
    """Print the workflow health report."""
    config = load_valid_workflow(_config_path(args, settings))
    report = build_report(load_issues(args.issues), config, closed_count=args.closed)

    if args.json:
        print_json(asdict(report))
    else:
        print(render_markdown(report, args.repo or config.project.repo), end="")


COMMANDS = {
    "init": cmd_init,
    "validate": cmd_validate,
    "infer": cmd_infer,
    "check-blocked": cmd_check_blocked,
    "escalate": cmd_escalate,
    "plan-labels": cmd_plan_labels,
    "plan-board": cmd_plan_board,
    "report": cmd_report,
}


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        metavar="PATH",
        help="Workflow document (default: WORKFLOW_CONFIG_PATH or .gitea/issue-workflow.yaml)",
    )
    common.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable JSON; only warnings and errors are logged",
    )

    parser = argparse.ArgumentParser(
        prog="issueflow",
        description="Issue workflow rule engine: labels, SLAs, escalation and board sync",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"issueflow {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init", parents=[common], help="Generate a starter workflow document"
    )
    init_parser.add_argument("--type", required=True, choices=PROJECT_TYPES, help="Project type")
    init_parser.add_argument("--language", help="Primary language, recorded in the document")
    init_parser.add_argument("--repo", help="Repository in owner/repo format")
    init_parser.add_argument("--output", "-o", metavar="PATH", help="Where to write the document")
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing document")

    subparsers.add_parser("validate", parents=[common], help="Validate the workflow document")

    infer_parser = subparsers.add_parser(
        "infer", parents=[common], help="Suggest labels for issues"
    )
    infer_parser.add_argument("issues", metavar="ISSUES_JSON", help="Issue snapshot file")
    infer_parser.add_argument("--number", "-n", type=int, help="Only this issue number")

    blocked_parser = subparsers.add_parser(
        "check-blocked", parents=[common], help="Check open issues against their SLA"
    )
    blocked_parser.add_argument("issues", metavar="ISSUES_JSON", help="Issue snapshot file")
    blocked_parser.add_argument(
        "--threshold", type=float, metavar="HOURS", help="SLA override for every priority"
    )

    escalate_parser = subparsers.add_parser(
        "escalate", parents=[common], help="Propose priority escalations"
    )
    escalate_parser.add_argument("issues", metavar="ISSUES_JSON", help="Issue snapshot file")
    escalate_parser.add_argument(
        "--labels", metavar="LABELS_JSON", help="Repository label snapshot, to flag missing labels"
    )
    escalate_parser.add_argument(
        "--apply", action="store_true", help="Mark decisions as to be applied (default: dry run)"
    )

    labels_parser = subparsers.add_parser(
        "plan-labels", parents=[common], help="Plan label creation and updates"
    )
    labels_parser.add_argument("labels", metavar="LABELS_JSON", help="Repository label snapshot")

    board_parser = subparsers.add_parser(
        "plan-board", parents=[common], help="Plan board column creation"
    )
    board_parser.add_argument("columns", metavar="COLUMNS_JSON", help="Board column snapshot")

    report_parser = subparsers.add_parser(
        "report", parents=[common], help="Print a workflow health report"
    )
    report_parser.add_argument("issues", metavar="ISSUES_JSON", help="Open issue snapshot file")
    report_parser.add_argument("--repo", help="Repository name for the report heading")
    report_parser.add_argument(
        "--closed", type=int, default=0, metavar="N", help="Issues closed in the reporting period"
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the issueflow CLI."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(
        log_file=settings.log_file or None,
        log_size=settings.log_size,
        log_backups=settings.log_backups,
        quiet=args.json,
    )

    try:
        COMMANDS[args.command](args, settings)
    except ConfigParseError as e:
        print("Workflow config error:", file=sys.stderr)
        for message in e.messages:
            print(f"  {message}", file=sys.stderr)
        sys.exit(1)
    except FileNotFoundError as e:
        print(f"File not found: {e.filename}", file=sys.stderr)
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"Invalid JSON: {e}", file=sys.stderr)
        sys.exit(1)
    except CommandError as e:
        if is_debug_mode():
            logger.exception("Command failed")
        print(str(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
