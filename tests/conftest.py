"""Pytest configuration and shared fixtures."""

import logging
import os
from datetime import UTC, datetime, timedelta

import pytest
from hypothesis import settings

from issueflow.interfaces import Issue
from issueflow.logger import clear_repo_context
from issueflow.workflow_config import generate_default_config

# Configure Hypothesis profiles for different environments
settings.register_profile("ci", max_examples=100, deadline=None)
settings.register_profile("dev", max_examples=50, deadline=None)
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "dev"))

# Fixed evaluation time used across SLA, escalation and report tests
NOW = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "unit: fast tests with no I/O beyond temporary files",
    )
    config.addinivalue_line(
        "markers",
        "hypothesis: marks property-based tests using Hypothesis",
    )


def make_issue(
    number: int = 1,
    title: str = "",
    body: str = "",
    labels: tuple[str, ...] | list[str] | frozenset[str] = (),
    created_hours_ago: float = 0,
    updated_hours_ago: float | None = None,
    state: str = "open",
    now: datetime = NOW,
) -> Issue:
    """Build an Issue with timestamps relative to ``now``."""
    created_at = now - timedelta(hours=created_hours_ago)
    if updated_hours_ago is None:
        updated_at = created_at
    else:
        updated_at = now - timedelta(hours=updated_hours_ago)
    return Issue(
        number=number,
        title=title,
        body=body,
        labels=frozenset(labels),
        created_at=created_at,
        updated_at=updated_at,
        state=state,
    )


@pytest.fixture
def now():
    """Fixture providing the fixed evaluation time."""
    return NOW


@pytest.fixture
def backend_config():
    """Fixture providing the generated backend workflow config."""
    return generate_default_config("backend", language="python")


@pytest.fixture(autouse=True)
def reset_logging_state():
    """Leave the root logger and repo context as they were after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    clear_repo_context()


@pytest.fixture
def issue_factory():
    """Fixture providing make_issue for building issue snapshots."""
    return make_issue
