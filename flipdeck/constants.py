"""
Scheduling constants.

Static values for the interval scheduler and answer scoring. No runtime
configuration here - pure constants only.
"""
from typing import Tuple

# Review intervals in days, looked up by position (difficulty - 1).
# Only difficulties 1..3 exist today, so the last three entries are never
# selected; they are kept as-is.
REVIEW_INTERVALS_DAYS: Tuple[int, ...] = (1, 3, 7, 14, 30, 90)

# Interval used when a difficulty has no entry in the table.
DEFAULT_INTERVAL_DAYS: int = 1

# Answers rated at or below this difficulty count as correct.
CORRECT_DIFFICULTY_THRESHOLD: int = 2

SECONDS_PER_DAY: int = 24 * 60 * 60
