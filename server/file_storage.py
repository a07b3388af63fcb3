"""File-based storage implementation."""

import json
import logging
import os
import re

from analytics.interfaces import Storage

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9_.-]')


class FileStorage(Storage):
    """Stores each key as a JSON file in a data directory."""

    def __init__(self, data_dir: str = None):
        self.data_dir = data_dir or os.environ.get(
            'VOCAB_DATA_DIR',
            os.path.expanduser('~/.local/share/vocab-analytics')
        )
        os.makedirs(self.data_dir, exist_ok=True)

    def _get_file(self, key: str) -> str:
        """Get the file path for a key."""
        if not key or _UNSAFE_CHARS.search(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return os.path.join(self.data_dir, f'{key}.json')

    def get(self, key: str):
        path = self._get_file(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt JSON in {path}: {e}")
            raise

    def set(self, key: str, value) -> None:
        path = self._get_file(key)
        tmp_path = f'{path}.tmp'
        try:
            with open(tmp_path, 'w') as f:
                json.dump(value, f, indent=2)
            os.replace(tmp_path, path)
        except Exception as e:
            logger.error(f"Error saving {key}: {e}")
            raise

    def list_keys(self, prefix: str = '') -> list[str]:
        keys = []
        if os.path.exists(self.data_dir):
            for filename in os.listdir(self.data_dir):
                if filename.endswith('.json') and filename.startswith(prefix):
                    keys.append(filename[:-5])  # Remove '.json'
        return sorted(keys)
