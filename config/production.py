import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "session_attendance"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

SESSION_STORE = os.getenv("SESSION_STORE", "mysql")

AUTO_LOCK_MINUTES = int(os.getenv("AUTO_LOCK_MINUTES", "20"))
AUTO_LOCK_SWEEP_SECONDS = float(os.getenv("AUTO_LOCK_SWEEP_SECONDS", "60"))
MARK_ABSENT_ON_LOCK = bool(int(os.getenv("MARK_ABSENT_ON_LOCK", "0")))
STATS_USE_INDEX = bool(int(os.getenv("STATS_USE_INDEX", "1")))
