# config.py
from __future__ import annotations
import os
import logging.config
from pathlib import Path

from domain import PayPeriodPolicy

# =========================
# Time zone (payroll is computed in local dates)
# =========================
TZ_NAME = os.getenv("PAYROLL_TZ", "America/New_York")

# =========================
# Persistence (local SQLite fallback for development only)
# =========================
def data_dir() -> Path:
    """$TIMECLOCK_DATA_DIR, else ~/.timeclock, else the working directory."""
    override = os.getenv("TIMECLOCK_DATA_DIR")
    candidates = [Path(override)] if override else []
    candidates.append(Path.home() / ".timeclock")

    for p in candidates:
        try:
            p.mkdir(parents=True, exist_ok=True)
        except OSError:
            continue
        if os.access(p, os.W_OK):
            return p
    return Path.cwd()

def default_database_url() -> str:
    return f"sqlite:///{(data_dir() / 'timeclock.db').as_posix()}"

DB_URL = os.getenv("DATABASE_URL") or None  # resolved lazily by the CLI

# =========================
# Payroll policy
# =========================
DEFAULT_POLICY = PayPeriodPolicy()
PUNCH_REMINDER_BUFFER_MIN = int(os.getenv("PUNCH_REMINDER_BUFFER_MIN", "10"))

# =========================
# Logging
# =========================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE")
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s'

def logging_config(level: str = LOG_LEVEL, log_file: str | None = LOG_FILE) -> dict:
    handlers = {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
            'level': level,
        },
    }
    if log_file:
        handlers['file'] = {
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'standard',
            'filename': log_file,
            'maxBytes': 1024 * 1024 * 5,  # 5 MB
            'backupCount': 5,
            'level': level,
            'encoding': 'utf-8',
        }
    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {'format': LOG_FORMAT},
        },
        'handlers': handlers,
        'root': {
            'handlers': list(handlers),
            'level': level,
        },
    }

def setup_logging(level: str = LOG_LEVEL, log_file: str | None = LOG_FILE) -> None:
    logging.config.dictConfig(logging_config(level, log_file))
