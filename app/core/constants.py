"""
Fixed layout and scheduling constants.
"""

# ---------------------------------------------------------------------------
# Geometry (distance units, metres on the lot plan)
# ---------------------------------------------------------------------------

SPACE_WIDTH = 2.5
SPACE_DEPTH = 5.0
AISLE_WIDTH = 6.0
MERGED_AISLE_WIDTH = 0.1

# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------

# Used when a time-of-day string cannot be parsed.
FALLBACK_HOUR = 8
FALLBACK_MINUTE = 0

DAILY_STEP_DAYS = 1
WEEKLY_STEP_DAYS = 7
