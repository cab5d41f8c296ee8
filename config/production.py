import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "punch_clock"),
}

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = bool(int(os.getenv("LOG_JSON", "1")))

TOKEN_MAX_AGE = int(os.getenv("TOKEN_MAX_AGE", str(7 * 24 * 3600)))
HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", "30"))

CLIENT_ENDPOINTS = [u.strip() for u in os.getenv("CLIENT_ENDPOINTS", "").split(",") if u.strip()]
CLIENT_PROBE_TIMEOUT = float(os.getenv("CLIENT_PROBE_TIMEOUT", "3"))
CLIENT_REQUEST_TIMEOUT = float(os.getenv("CLIENT_REQUEST_TIMEOUT", "10"))
CLIENT_STATE_DIR = os.getenv("CLIENT_STATE_DIR", "/var/lib/punch_clock")
CLIENT_SYNC_INTERVAL = float(os.getenv("CLIENT_SYNC_INTERVAL", "60"))
