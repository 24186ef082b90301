"""
Concert Platform Global Constants

Centralized location for all system-wide constants used across the application.
"""

from datetime import datetime, timezone


# Timestamp Functions
def get_current_timestamp() -> datetime:
    """Get current timestamp with UTC timezone.

    Returns:
        datetime: Current UTC timestamp
    """
    return datetime.now(timezone.utc)


# Application Constants
APP_NAME = "Concert Platform"
APP_VERSION = "1.0.0"
