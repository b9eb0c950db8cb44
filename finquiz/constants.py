"""Application-wide constants and configuration values.

This module centralizes the gamification rules and other hardcoded values
used throughout the application, making them easier to maintain and adjust.
"""
from fractions import Fraction

# Streak Scoring
BASE_POINTS_PER_CORRECT = 10
"""Points awarded for a correct answer before any streak multiplier."""

STREAK_BAND_SIZE = 5
"""Consecutive correct answers per multiplier band; also the milestone interval."""

STREAK_BAND_MULTIPLIER = Fraction(6, 5)
"""Multiplier applied once per completed streak band (1.2x, kept exact)."""

# Lesson Completion
PASS_RATIO = Fraction(3, 4)
"""Minimum score ratio (75%) that completes a lesson and unlocks the next one."""

MIN_XP_PAYOUT_RATIO = Fraction(1, 2)
"""Share of a lesson's XP reward paid out for any finished attempt."""

# XP Display Level
XP_LEVEL_SCALE = 1_000_000
"""XP scale of the display-level curve: level = floor(sqrt(xp / scale) + 0.5) + 1."""

MIN_DISPLAY_LEVEL = 1
"""Lowest display level."""

MAX_DISPLAY_LEVEL = 999
"""Highest display level."""

# Level Table
DEFAULT_LEVELS = [
    {"id": 0, "name": "Analyst I", "required_points": 0},
    {"id": 1, "name": "Analyst II", "required_points": 200},
    {"id": 2, "name": "Senior Analyst", "required_points": 600},
    {"id": 3, "name": "Associate", "required_points": 1200},
    {"id": 4, "name": "VP", "required_points": 2400},
    {"id": 5, "name": "Director", "required_points": 4000},
    {"id": 6, "name": "MD", "required_points": 6500},
]
"""Point thresholds for each level, ascending. Index 0 must require 0 points."""

# Cookie Configuration
COOKIE_NAME = "fq_uid"
"""Name of the cookie used to store the learner id."""

LEARNER_ID_PREFIX = "fq_"
"""Prefix for generated learner ids."""

# Rate Limiting
DEFAULT_RATE_LIMIT = "100/minute"
"""Default request allowance per client IP."""

SESSION_START_RATE_LIMIT = "20/minute"
"""Maximum number of lesson session starts allowed per minute per client."""

ANSWER_SUBMISSION_RATE_LIMIT = "60/minute"
"""Maximum number of answer submissions allowed per minute per client."""

LESSON_COMPLETION_RATE_LIMIT = "20/minute"
"""Maximum number of lesson completions allowed per minute per client."""

# Engine Registry
DEFAULT_MAX_CACHED_ENGINES = 1000
"""Learner engines kept in memory before least recently used ones are evicted."""

# Logging
DEFAULT_LOG_LEVEL = "INFO"
"""Default logging level for the application."""
