"""Runtime settings for the issueflow command line.

Settings come from the .issueflow/config file (KEY=value format) when it
exists, with fallback to environment variables. These settings say where the
workflow document lives and how to log; the workflow policy itself is the
YAML document parsed by issueflow.workflow_config.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from issueflow.logger import get_logger

logger = get_logger(__name__)

# Default paths relative to the working directory
ISSUEFLOW_DIR = ".issueflow"
CONFIG_FILE = "config"
DEFAULT_WORKFLOW_PATH = ".gitea/issue-workflow.yaml"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Settings:
    """Runtime settings.

    Attributes:
        workflow_config_path: Path of the YAML workflow document
        log_level: Root log level name
        log_file: Log file path; empty disables file logging
        log_size: Max log file size in bytes before rotation
        log_backups: Number of rotated log files to keep
        sla_threshold_hours: Optional SLA override applied to every priority
    """

    workflow_config_path: str = DEFAULT_WORKFLOW_PATH
    log_level: str = "INFO"
    log_file: str = ""
    log_size: int = 10 * 1024 * 1024  # 10MB default
    log_backups: int = 5
    sla_threshold_hours: float | None = None


def parse_config_file(config_path: Path) -> dict[str, str]:
    """Parse a KEY=value config file.

    Blank lines and lines starting with '#' are skipped; values may be
    wrapped in single or double quotes.

    Args:
        config_path: Path to the config file

    Returns:
        Dictionary of key-value pairs
    """
    config = {}
    with open(config_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if (value.startswith('"') and value.endswith('"')) or (
                    value.startswith("'") and value.endswith("'")
                ):
                    value = value[1:-1]
                config[key] = value
    return config


def _settings_from_mapping(data: Mapping[str, str], source: str) -> Settings:
    """Build Settings from raw string values, collecting every invalid key.

    Raises:
        ValueError: If any value is invalid; the message names each bad key
    """
    invalid: list[str] = []

    def parse_int(key: str, default: int) -> int:
        raw = data.get(key, "").strip()
        if not raw:
            return default
        try:
            value = int(raw)
        except ValueError:
            invalid.append(f"{key}={raw!r} (expected an integer)")
            return default
        if value < 0:
            invalid.append(f"{key}={raw!r} (must not be negative)")
            return default
        return value

    log_level = data.get("LOG_LEVEL", "").strip().upper() or "INFO"
    if log_level not in LOG_LEVELS:
        invalid.append(f"LOG_LEVEL={log_level!r} (expected one of {', '.join(LOG_LEVELS)})")
        log_level = "INFO"

    sla_threshold_hours = None
    raw_threshold = data.get("SLA_THRESHOLD_HOURS", "").strip()
    if raw_threshold:
        try:
            sla_threshold_hours = float(raw_threshold)
        except ValueError:
            invalid.append(f"SLA_THRESHOLD_HOURS={raw_threshold!r} (expected a number)")
        else:
            if sla_threshold_hours <= 0:
                invalid.append(f"SLA_THRESHOLD_HOURS={raw_threshold!r} (must be positive)")
                sla_threshold_hours = None

    settings = Settings(
        workflow_config_path=data.get("WORKFLOW_CONFIG_PATH", "").strip() or DEFAULT_WORKFLOW_PATH,
        log_level=log_level,
        log_file=data.get("LOG_FILE", "").strip(),
        log_size=parse_int("LOG_SIZE", 10 * 1024 * 1024),
        log_backups=parse_int("LOG_BACKUPS", 5),
        sla_threshold_hours=sla_threshold_hours,
    )

    if invalid:
        raise ValueError(f"Invalid configuration in {source}: {', '.join(invalid)}")
    return settings


def load_settings_from_file(config_path: Path) -> Settings:
    """Load settings from a KEY=value config file.

    Args:
        config_path: Path to the config file

    Returns:
        Settings populated from the file

    Raises:
        ValueError: If any value is invalid
        FileNotFoundError: If the config file doesn't exist
    """
    settings = _settings_from_mapping(parse_config_file(config_path), str(config_path))
    os.environ["LOG_LEVEL"] = settings.log_level  # Set for logger module
    return settings


def load_settings_from_env() -> Settings:
    """Load settings from environment variables."""
    return _settings_from_mapping(os.environ, "environment")


def load_settings() -> Settings:
    """Load settings from the config file or environment variables.

    Priority:
    1. Config file at .issueflow/config
    2. Environment variables

    Raises:
        ValueError: If any value is invalid
    """
    config_path = Path.cwd() / ISSUEFLOW_DIR / CONFIG_FILE

    if config_path.exists():
        return load_settings_from_file(config_path)
    return load_settings_from_env()
