"""Configuration management for the kitchen application."""
import os
from typing import Final
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

# Application Settings
APP_HOST: Final[str] = os.getenv('APP_HOST', '0.0.0.0')
APP_PORT: Final[int] = int(os.getenv('APP_PORT', '8000'))
DEBUG: Final[bool] = os.getenv('DEBUG', 'False').lower() == 'true'
LOG_LEVEL: Final[str] = os.getenv('LOG_LEVEL', 'INFO')

# Storage
BASE_DIR: Final[Path] = Path(__file__).parent.parent
DATA_DIR: Final[Path] = Path(os.getenv('KITCHEN_DATA_DIR', str(BASE_DIR / 'data')))

# Meal planning calendar (Python weekday numbers: Monday=0 .. Sunday=6)
WEEK_START_WEEKDAY: Final[int] = int(os.getenv('WEEK_START_WEEKDAY', '5'))
LUNCH_START_HOUR: Final[int] = int(os.getenv('LUNCH_START_HOUR', '11'))
DINNER_START_HOUR: Final[int] = int(os.getenv('DINNER_START_HOUR', '17'))

# Remote document store (empty URL disables mirroring)
REMOTE_STORE_URL: Final[str] = os.getenv('REMOTE_STORE_URL', '')
REMOTE_STORE_TOKEN: Final[str] = os.getenv('REMOTE_STORE_TOKEN', '')
REMOTE_TIMEOUT_SECONDS: Final[float] = float(os.getenv('REMOTE_TIMEOUT_SECONDS', '10'))
