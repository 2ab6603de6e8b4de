# app/config.py

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./consultations.db")
DB_TIMEOUT_SECONDS = float(os.getenv("DB_TIMEOUT_SECONDS", "10"))
READ_RETRY_ATTEMPTS = int(os.getenv("READ_RETRY_ATTEMPTS", "3"))

# Tokens
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-later")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

# Single institutional timezone, used for "today" and past-slot checks
INSTITUTION_TIMEZONE = os.getenv("INSTITUTION_TIMEZONE", "America/New_York")

# Weekly time grid: first boundary, last boundary, slot width
GRID_DAY_START = os.getenv("GRID_DAY_START", "07:00")
GRID_DAY_END = os.getenv("GRID_DAY_END", "20:45")
GRID_INTERVAL_MINUTES = int(os.getenv("GRID_INTERVAL_MINUTES", "75"))

# Booking notification function (unset = notifications skipped)
NOTIFY_FUNCTION_URL = os.getenv("NOTIFY_FUNCTION_URL")
NOTIFY_FUNCTION_TOKEN = os.getenv("NOTIFY_FUNCTION_TOKEN")
NOTIFY_TIMEOUT_SECONDS = float(os.getenv("NOTIFY_TIMEOUT_SECONDS", "5"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
