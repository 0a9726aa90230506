import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hrms_db"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

LATE_THRESHOLD = os.getenv("LATE_THRESHOLD", "09:15")
MIN_SESSION_MINUTES = int(os.getenv("MIN_SESSION_MINUTES", "1"))
LEAVE_DAY_COUNT_RULE = os.getenv("LEAVE_DAY_COUNT_RULE", "calendar")
DEFAULT_LEAVE_BALANCE = float(os.getenv("DEFAULT_LEAVE_BALANCE", "15"))
