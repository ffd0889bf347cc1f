"""
Key Store
Maps each channel's item ids to the filename they were last saved under
"""

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from shared.storage.storage_manager import StorageManager

from ..errors import KeyStoreIOError

logger = logging.getLogger(__name__)


SEPARATOR = "|"


class KeyStore:
    """
    Process-wide store of `channel|itemId|filename` records.

    Loaded once at startup and saved once at shutdown. The previous file is
    kept as a `.bak` sibling on every save.
    """

    def __init__(self, path: Path):
        self._path = path
        self._backup_path = path.with_name(path.name + StorageManager.BACKUP_SUFFIX)
        self._store: Dict[str, Dict[str, str]] = {}

    @property
    def path(self) -> Path:
        return self._path

    @property
    def backup_path(self) -> Path:
        return self._backup_path

    def get(self, channel_name: str) -> Dict[str, str]:
        """Live map of item id to filename for a channel, created empty if absent."""
        return self._store.setdefault(channel_name, {})

    def channels(self) -> List[str]:
        return list(self._store.keys())

    def lookup(self, channel_name: str, item_id: str) -> Optional[str]:
        return self._store.get(channel_name, {}).get(item_id)

    def put(self, channel_name: str, item_id: str, filename: str):
        self.get(channel_name)[item_id] = filename

    def find_renamed(self, channel_name: str, item_id: str, current_filename: str) -> Optional[str]:
        """
        Filename an item was saved under when it differs from its current one.

        A result means the item is already downloaded and only needs a
        local rename; None means it is either unknown or unchanged.
        """
        previous = self.lookup(channel_name, item_id)
        if previous is None or previous == current_filename:
            return None
        return previous

    def load(self, channel_names: Iterable[str] = ()):
        """
        Loads the store, restoring the backup if the primary file is missing or empty.

        Args:
            channel_names: Registered channels; each gets an entry even without history

        Raises:
            KeyStoreIOError: If the store cannot be read
        """
        try:
            primary_empty = not self._path.exists() or self._path.stat().st_size == 0
            if primary_empty and self._backup_path.exists():
                logger.warning(f"Restoring key store from backup: {self._backup_path}")
                StorageManager.copy_file(self._backup_path, self._path)

            lines = StorageManager.read_lines(self._path) if self._path.exists() else []
        except (OSError, UnicodeDecodeError) as e:
            raise KeyStoreIOError(f"Failed to load key store: {self._path}") from e

        self._store.clear()
        for channel_name in channel_names:
            self._store.setdefault(channel_name, {})

        skipped = 0
        for line in lines:
            if not line:
                continue
            parts = re.split(r"\|+", line)
            if len(parts) != 3:
                skipped += 1
                continue
            self.put(*parts)

        if skipped:
            logger.debug(f"Skipped {skipped} malformed key store lines")
        logger.info(f"✓ Key store loaded: {sum(len(e) for e in self._store.values())} entries")

    def save(self):
        """
        Backs up the current file, then overwrites it with the flattened store.

        Raises:
            KeyStoreIOError: If the store cannot be written
        """
        lines = [
            SEPARATOR.join([channel_name, item_id, filename])
            for channel_name, entries in self._store.items()
            for item_id, filename in entries.items()
        ]

        try:
            if self._path.exists():
                StorageManager.copy_file(self._path, self._backup_path)
            StorageManager.write_lines(self._path, lines)
        except OSError as e:
            raise KeyStoreIOError(f"Failed to save key store: {self._path}") from e
        logger.info(f"✓ Key store saved: {len(lines)} entries")

    def __repr__(self) -> str:
        return f"KeyStore(path={self._path}, channels={len(self._store)})"
