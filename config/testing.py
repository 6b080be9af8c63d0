import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "session_attendance_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

SESSION_STORE = os.getenv("SESSION_STORE", "memory")

AUTO_LOCK_MINUTES = int(os.getenv("AUTO_LOCK_MINUTES", "20"))
# The sweeper thread is never started under tests.
AUTO_LOCK_SWEEP_SECONDS = 0
MARK_ABSENT_ON_LOCK = False
STATS_USE_INDEX = True
