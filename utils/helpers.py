"""
============================================================================
TRICKLE MONITOR - HELPERS UTILITY
============================================================================
Small time helpers shared by the engine, the front door and main.
============================================================================
"""

import time
from datetime import datetime, timezone


# ============================================================================
# TIME UTILITIES
# ============================================================================

class TimeHelper:
    """
    Time and date manipulation utilities.
    """

    @staticmethod
    def epoch_seconds() -> int:
        """Current wall-clock time as whole seconds since the epoch."""
        return int(time.time())

    @staticmethod
    def format_epoch(seconds: int) -> str:
        """Render epoch seconds as an ISO-8601 UTC timestamp."""
        return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()
