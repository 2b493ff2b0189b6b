"""Configuration management for the catering engine."""
import os
from typing import Final
from pathlib import Path

# Load environment variables from .env file if it exists
try:
    from dotenv import load_dotenv
    env_path = Path(__file__).parent.parent / '.env'
    if env_path.exists():
        load_dotenv(env_path)
except ImportError:
    pass  # dotenv not installed, using defaults

# Remote services
CART_API_BASE_URL: Final[str] = os.getenv('CART_API_BASE_URL', 'http://localhost:3000')
CATALOG_API_BASE_URL: Final[str] = os.getenv('CATALOG_API_BASE_URL', CART_API_BASE_URL)
API_TOKEN: Final[str] = os.getenv('API_TOKEN', '')
REQUEST_TIMEOUT_SECONDS: Final[float] = float(os.getenv('REQUEST_TIMEOUT_SECONDS', '30'))

# Application Settings
APP_HOST: Final[str] = os.getenv('APP_HOST', '0.0.0.0')
APP_PORT: Final[int] = int(os.getenv('APP_PORT', '8000'))
LOG_LEVEL: Final[str] = os.getenv('LOG_LEVEL', 'INFO').upper()
DEBUG: Final[bool] = os.getenv('DEBUG', 'False').lower() == 'true'

# Pricing
DEFAULT_CURRENCY: Final[str] = os.getenv('DEFAULT_CURRENCY', 'AED')

# File Paths
BASE_DIR: Final[Path] = Path(__file__).parent.parent
DATA_DIR: Final[Path] = Path(os.getenv('DATA_DIR', str(BASE_DIR / 'data')))
