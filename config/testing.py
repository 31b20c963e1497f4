import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "cohort_attendance_test"),
}
DB_CONNECT_TIMEOUT = 5
DB_QUERY_TIMEOUT = 5

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

CODE_VALIDITY_MINUTES = 120

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
