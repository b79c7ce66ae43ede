"""
Configuration settings for the reminders occurrence service.
All constants and configuration values centralized here.
"""

from pathlib import Path
import os

from dotenv import load_dotenv

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
LOGS_DIR = PROJECT_ROOT / "logs"

# Environment overrides live in .env next to the project root
load_dotenv(PROJECT_ROOT / ".env")

DB_PATH = Path(os.getenv("REMINDERS_DB_PATH", str(DATA_DIR / "reminders.db")))

# Ensure directories exist
DATA_DIR.mkdir(exist_ok=True)
LOGS_DIR.mkdir(exist_ok=True)

# Logging
APP_LOGGER_NAME = "reminders"
LOG_FILE_NAME = "reminders.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10MB
LOG_FILE_BACKUP_COUNT = 5

# Scan Configuration
SCAN_INTERVAL_SECONDS = int(os.getenv("SCAN_INTERVAL_SECONDS", "60"))

# Scheduler Configuration
SCHEDULER_MISFIRE_GRACE_TIME = 300  # Seconds (5 minutes)
SCHEDULER_COALESCE = True  # Merge multiple pending executions
SCHEDULER_MAX_INSTANCES = 1  # Never overlap two scans in one process

# System Configuration
DEBUG_MODE = os.getenv("DEBUG", "false").lower() == "true"
