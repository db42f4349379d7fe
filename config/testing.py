import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "nfc_attendance_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

IDENTIFIER_FIELD = "matric_no"

CARD_KEY = "V4Nz8xR2pQ7bJkL1sH9mC6yT3fD5gE0Z"
CARD_RANDOM_IV = False

NFC_POLL_TIMEOUT_SECONDS = 1.0
NFC_READER_INDEX = 0
CHECK_CONNECTIVITY = False

PHOTO_ROOT = os.getenv("PHOTO_ROOT", "photos_test")
PHOTO_BASE_URL = "/photos"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

MAIL_USERNAME = ""
MAIL_PASSWORD = ""
RESET_TOKEN_MAX_AGE = 60 * 60
RESET_LINK_BASE = "http://localhost/reset-password"
