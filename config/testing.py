import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "punch_clock_test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_JSON = False

TOKEN_MAX_AGE = 3600
HISTORY_LIMIT = 30

CLIENT_ENDPOINTS = ["http://primary.test", "http://fallback.test"]
CLIENT_PROBE_TIMEOUT = 1.0
CLIENT_REQUEST_TIMEOUT = 2.0
CLIENT_STATE_DIR = os.getenv("CLIENT_STATE_DIR", ".punch_clock_test")
CLIENT_SYNC_INTERVAL = 1.0
