"""Shared application constants.

Centralizes values used by the cycle calculator, the tracker and the
display helpers so we can document and adjust them in one place.
"""

# Days in one weekly cycle
DAYS_PER_CYCLE = 7

# Default goal: 40 hours a week starting on Monday
DEFAULT_GOAL_TITLE = "Weekly Focus"
DEFAULT_WEEKLY_TARGET_MINUTES = 2400

# Shown instead of a time when a clock field is empty
NOT_CLOCKED = "Not clocked"

# Clock session states (derived from clock fields, never stored)
CLOCK_NONE = "NONE"
CLOCK_IN = "CLOCKED_IN"
CLOCK_OUT = "CLOCKED_OUT"
