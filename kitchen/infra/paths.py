from pathlib import Path
from kitchen.utilities.config import DATA_DIR

# Centralized paths for data files (single source of truth)
STORAGE_FILE = (Path(DATA_DIR) / 'local_storage.json').resolve()

__all__ = ['DATA_DIR', 'STORAGE_FILE']
