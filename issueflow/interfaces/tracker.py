"""Snapshot data types supplied by the external tracker client.

The engine never fetches anything itself. Callers build these values from
whatever their tracker API returns (or use the ``*_from_dict`` helpers on
tracker-shaped JSON) and pass them in.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class Issue:
    """Read-only view of a tracker issue.

    Attributes:
        number: Issue number within the repository
        title: Issue title
        body: Issue body text (empty string when the tracker returns none)
        labels: Full label names currently on the issue
        created_at: When the issue was opened (timezone-aware)
        updated_at: When the issue was last touched (timezone-aware)
        state: "open" or "closed"
    """

    number: int
    title: str
    body: str
    labels: frozenset[str]
    created_at: datetime
    updated_at: datetime
    state: str = "open"

    @property
    def is_open(self) -> bool:
        return self.state.lower() == "open"

    def has_label(self, name: str) -> bool:
        return name in self.labels


@dataclass(frozen=True)
class RemoteLabel:
    """A label as it currently exists on the tracker."""

    name: str
    color: str
    description: str | None = None
    id: int | None = None


@dataclass(frozen=True)
class RemoteColumn:
    """A board column as it currently exists on the tracker."""

    name: str
    id: int | None = None


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC.

    Args:
        value: ISO-8601 string (a trailing 'Z' is accepted) or datetime

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If the string is not a valid ISO-8601 timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _label_names(raw_labels: Any) -> frozenset[str]:
    names: set[str] = set()
    for raw in raw_labels or []:
        if isinstance(raw, str):
            names.add(raw)
        elif isinstance(raw, dict) and raw.get("name"):
            names.add(str(raw["name"]))
    return frozenset(names)


def issue_from_dict(data: dict[str, Any]) -> Issue:
    """Build an Issue from tracker JSON.

    Labels may be plain strings or objects with a "name" key. A missing
    updated_at falls back to created_at.

    Raises:
        KeyError: If number or created_at is missing
        ValueError: If a timestamp is malformed
    """
    created_at = parse_timestamp(data["created_at"])
    updated_raw = data.get("updated_at")
    updated_at = parse_timestamp(updated_raw) if updated_raw else created_at
    return Issue(
        number=int(data["number"]),
        title=data.get("title") or "",
        body=data.get("body") or "",
        labels=_label_names(data.get("labels")),
        created_at=created_at,
        updated_at=updated_at,
        state=data.get("state") or "open",
    )


def remote_label_from_dict(data: dict[str, Any]) -> RemoteLabel:
    """Build a RemoteLabel from tracker JSON."""
    return RemoteLabel(
        name=data["name"],
        color=data.get("color") or "",
        description=data.get("description"),
        id=data.get("id"),
    )


def remote_column_from_dict(data: dict[str, Any] | str) -> RemoteColumn:
    """Build a RemoteColumn from tracker JSON (a name string, or an object with name/title)."""
    if isinstance(data, str):
        return RemoteColumn(name=data)
    name = data.get("name") or data.get("title")
    if not name:
        raise KeyError("column entry has neither 'name' nor 'title'")
    return RemoteColumn(name=name, id=data.get("id"))
