from pathlib import Path
from catering.utilities.config import DATA_DIR as _CONFIGURED_DATA_DIR
from catering.utilities.constants import CART_STORAGE_KEY

# Centralized paths for data files (single source of truth)
DATA_DIR = Path(_CONFIGURED_DATA_DIR).resolve()
LOCAL_CART_FILE = DATA_DIR / f'{CART_STORAGE_KEY}.json'
SERVER_CART_DIR = DATA_DIR / 'server_carts'

__all__ = ['DATA_DIR', 'LOCAL_CART_FILE', 'SERVER_CART_DIR']
