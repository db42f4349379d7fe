"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_HISTORY_LIMIT = 15
DEFAULT_RECENT_WRITES = 10
DEFAULT_NFC_TIMEOUT_SECONDS = 10
DEFAULT_CONNECTIVITY_TIMEOUT_SECONDS = 3.0
DEFAULT_RESET_TOKEN_MAX_AGE = 24 * 60 * 60
MIN_PASSWORD_LENGTH = 6

# Legacy card key; every card written so far is encrypted with it.
LEGACY_CARD_KEY = "V4Nz8xR2pQ7bJkL1sH9mC6yT3fD5gE0Z"

STUDENT_PHOTO_CATEGORY = "student_photos"

TIME_FORMAT = "%H:%M"
SESSION_ID_DATE_FORMAT = "%Y%m%d"
WRITE_STAMP_FORMAT = "%Y-%m-%d %H:%M"

ALL_FILTER = "All"
ALL_SUBJECTS_FILTER = "All Subjects"
