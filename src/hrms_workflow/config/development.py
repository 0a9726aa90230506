import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hrms_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

# Check-ins strictly after this time of day are late
LATE_THRESHOLD = os.getenv("LATE_THRESHOLD", "09:15")
MIN_SESSION_MINUTES = int(os.getenv("MIN_SESSION_MINUTES", "1"))

# 'calendar' counts every day in the window, 'business' skips weekends
LEAVE_DAY_COUNT_RULE = os.getenv("LEAVE_DAY_COUNT_RULE", "calendar")
DEFAULT_LEAVE_BALANCE = float(os.getenv("DEFAULT_LEAVE_BALANCE", "15"))
