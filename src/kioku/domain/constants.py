"""Centralized constants for the kioku scheduling engine.

All magic numbers and scheduling defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Time ----------
MINUTES_PER_DAY = 24 * 60  # 1440
ONE_MINUTE = 1 / MINUTES_PER_DAY
TEN_MINUTES = 10 / MINUTES_PER_DAY
STEP_ZERO_CUTOFF = 5 / MINUTES_PER_DAY  # learning intervals below this are step 0

# ---------- Ease factor ----------
MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5
AGAIN_EASE_PENALTY = 0.2
HARD_FAIL_EASE_PENALTY = 0.1

# Initial ease by historical correct rate (percent), checked top-down.
INITIAL_EASE_BY_CORRECT_RATE = [
    (80, 2.7),
    (60, 2.5),
    (40, 2.3),
]
INITIAL_EASE_FLOOR = 2.0

# ---------- Graduation ----------
GRADUATING_INTERVAL = 1  # days, Good on learning step 1
EASY_INTERVAL = 4  # days, Easy on any learning step
YOUNG_GOOD_MIN_INTERVAL = 4
YOUNG_EASY_BONUS = 3.0
MATURE_EASY_BONUS = 1.3
MATURE_HARD_MULTIPLIER = 1.2
MAX_INTERVAL = 36500  # days, ceiling for graduated growth and due times

# ---------- Lapses ----------
LAPSE_NEW_INTERVAL_PERCENT = 0.5  # 30-day card lapses -> re-graduates at 15 days

# ---------- Goals / quotas ----------
MASTERED_REPETITION = 3
DEFAULT_GOAL_WEIGHT = 1.0
MIN_DAILY_QUOTA = 5

# ---------- Queue tiers ----------
TIER_PRIORITY_AND_WEAK = 3
TIER_PRIORITY = 2
TIER_WEAK = 1
TIER_NONE = 0

# ---------- Statistics ----------
DEFAULT_DAILY_STATS_DAYS = 30
DEFAULT_HEATMAP_DAYS = 84
