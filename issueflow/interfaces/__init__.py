"""Data types exchanged with the external tracker client."""

from issueflow.interfaces.tracker import (
    Issue,
    RemoteColumn,
    RemoteLabel,
    issue_from_dict,
    parse_timestamp,
    remote_column_from_dict,
    remote_label_from_dict,
)

__all__ = [
    "Issue",
    "RemoteColumn",
    "RemoteLabel",
    "issue_from_dict",
    "parse_timestamp",
    "remote_column_from_dict",
    "remote_label_from_dict",
]
