"""
SM-2 scheduling constants.

Pure constants only; runtime configuration lives in vocabcore.config.
"""

# Easiness factor assigned to a freshly created card.
DEFAULT_EASINESS_FACTOR: float = 2.5

# Lower bound of the easiness factor.
MINIMUM_EASINESS_FACTOR: float = 1.3

# Interval (days) of a new card and of any card after a lapse.
DEFAULT_INTERVAL: int = 1

# Interval (days) after the second consecutive correct recall.
SECOND_INTERVAL: int = 6

# Ratings at or above this value count as a correct recall.
CORRECT_RATING_THRESHOLD: int = 3

# Cards per study session when the caller does not ask for a size.
DEFAULT_SESSION_SIZE: int = 10

# Category given to cards created without one.
DEFAULT_CATEGORY: str = "General"
