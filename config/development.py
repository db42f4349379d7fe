import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "nfc_attendance"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Column a card identifier is matched against: matric_no | ic | staff_number
IDENTIFIER_FIELD = os.getenv("IDENTIFIER_FIELD", "matric_no")

# 32-byte AES key shared with every card already in circulation.
CARD_KEY = os.getenv("CARD_KEY", "V4Nz8xR2pQ7bJkL1sH9mC6yT3fD5gE0Z")
CARD_RANDOM_IV = bool(int(os.getenv("CARD_RANDOM_IV", "0")))

NFC_POLL_TIMEOUT_SECONDS = float(os.getenv("NFC_POLL_TIMEOUT_SECONDS", "10"))
NFC_READER_INDEX = int(os.getenv("NFC_READER_INDEX", "0"))
CHECK_CONNECTIVITY = bool(int(os.getenv("CHECK_CONNECTIVITY", "1")))

PHOTO_ROOT = os.getenv("PHOTO_ROOT", "photos")
PHOTO_BASE_URL = os.getenv("PHOTO_BASE_URL", "/photos")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo users on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

# Password reset / first-time password links (Flask-Mail). Without a username
# and password the link is only written to the log.
MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
MAIL_PORT = int(os.getenv("MAIL_PORT", "465"))
MAIL_USE_SSL = os.getenv("MAIL_USE_SSL", "True") == "True"
MAIL_USERNAME = os.getenv("MAIL_USERNAME", "")
MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", "")
MAIL_SENDER = os.getenv("MAIL_SENDER", "")
RESET_TOKEN_MAX_AGE = int(os.getenv("RESET_TOKEN_MAX_AGE", str(24 * 60 * 60)))
RESET_LINK_BASE = os.getenv("RESET_LINK_BASE", "http://localhost:5000/reset-password")
