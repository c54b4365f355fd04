"""
Timestamped print logging for the connectivity test.

A test run is bracketed by start/complete lines in the Lambda's log stream,
with progress lines for the target host, database and credential fetch.
"""

from datetime import datetime, UTC
from typing import Optional


def _utc_timestamp() -> str:
    return datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")


def log_section_start(section: str) -> None:
    """
    Log that a test run began, e.g. 'MongoDB Connectivity Test'.

    Args:
        section (str): Name of the test run.
    """
    print(f"[{_utc_timestamp()}] Starting: {section}")


def log_section_complete(section: str, details: Optional[str] = None) -> None:
    """
    Log that a test run succeeded.

    Args:
        section (str): Name of the test run.
        details (Optional[str]): What the run found, such as the collection count.
    """
    suffix = f" - {details}" if details else ""
    print(f"[{_utc_timestamp()}] Completed: {section}{suffix}")


def log_progress(section: str, message: str) -> None:
    print(f"[{_utc_timestamp()}] {section}: {message}")


def log_error(section: str, error: Exception | str) -> None:
    """
    Log a configuration, credential or connection failure.

    Args:
        section (str): Where it failed, e.g. 'Configuration Validation'.
        error (Exception | str): Driver, AWS or credential error, or its message.
    """
    print(f"[{_utc_timestamp()}] Error in {section}: {error}")
