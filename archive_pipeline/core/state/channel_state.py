"""
Channel State
Persisted queued / saved / blocked lists of one channel
"""

import logging
import re
from pathlib import Path
from typing import List, Optional

from shared.storage.storage_manager import StorageManager

from ..errors import StateIOError
from .state_list import StateList

logger = logging.getLogger(__name__)


DEFAULT_DATA_FILE_TYPE = "playlistItems"
STATE_FILE_FORMAT = "txt"


class ChannelState:
    """
    Manages the on-disk state of a single channel.

    Responsibilities:
    - Own the queued, saved and blocked StateLists.
    - Migrate files left behind by the previous directory layout.
    - Keep the three lists disjoint when saving.
    - Locate and invalidate the raw data cache and call log.
    """

    def __init__(self, channel_name: str, storage: StorageManager, prevent_channel_fetch: bool = False):
        """
        Initialize the ChannelState of a channel.

        Args:
            channel_name: Display name of the channel; names its cache directory and files
            storage: Storage layout the cache directory lives in
            prevent_channel_fetch: Keep data caches when a refetch is requested
        """
        self._name = channel_name
        self._storage = storage
        self._prevent_channel_fetch = prevent_channel_fetch

        self._state_location = storage.channel_cache_dir(channel_name)
        self._data_file = self._state_file("data")
        self._call_log_file = self._state_file("callLog")

        self._queued = StateList(self._state_file("queue"), "queued")
        self._saved = StateList(self._state_file("save"), "saved")
        self._blocked = StateList(self._state_file("blocked"), "blocked")

    def _state_file(self, suffix: str) -> Path:
        return self._state_location / f"{self._name}-{suffix}.{STATE_FILE_FORMAT}"

    @property
    def name(self) -> str:
        return self._name

    @property
    def state_location(self) -> Path:
        return self._state_location

    @property
    def queued(self) -> StateList:
        return self._queued

    @property
    def saved(self) -> StateList:
        return self._saved

    @property
    def blocked(self) -> StateList:
        return self._blocked

    @property
    def data_file(self) -> Path:
        return self._data_file

    @property
    def call_log_file(self) -> Path:
        return self._call_log_file

    def load(self):
        """
        Loads the queued, saved and blocked lists.

        Raises:
            StateIOError: When there is an error migrating or loading the state
        """
        self.cleanup_legacy_cache()
        for state_list in self._lists():
            state_list.load()
        logger.debug(
            f"Loaded state of {self._name}: {len(self._queued)} queued, "
            f"{len(self._saved)} saved, {len(self._blocked)} blocked"
        )

    def save(self):
        """
        Cleans the lists, makes them disjoint and writes them.

        Raises:
            StateIOError: When there is an error saving the state
        """
        for state_list in self._lists():
            state_list.clean()

        self._queued.difference_update(self._blocked)
        self._queued.difference_update(self._saved)
        self._saved.difference_update(self._blocked)
        self._blocked.difference_update(self._saved)

        try:
            for state_list in self._lists():
                state_list.save()
        except StateIOError:
            logger.error(f"Failed to save the state of channel: {self._name}")
            raise
        logger.info(f"✓ State saved for channel: {self._name}")

    def _lists(self) -> List[StateList]:
        return [self._queued, self._saved, self._blocked]

    # Data cache

    def get_data_files(self, data_type: Optional[str] = None) -> List[Path]:
        """Raw data cache files of the channel, optionally of one type."""
        if not self._state_location.exists():
            return []
        prefix = self._data_file.stem + self._data_type_suffix(data_type)
        return sorted(f for f in self._state_location.iterdir() if f.is_file() and f.name.startswith(prefix))

    def get_data_file(self, chunk: Optional[int] = None, data_type: Optional[str] = None) -> Path:
        """Path of one data cache chunk, e.g. `Name-data-videos.2.txt`."""
        chunk_suffix = f".{chunk}" if chunk is not None else ""
        return self._state_location / (
            f"{self._data_file.stem}{self._data_type_suffix(data_type)}{chunk_suffix}.{STATE_FILE_FORMAT}"
        )

    def get_cache_file(self, name: str, file_format: str = STATE_FILE_FORMAT) -> Path:
        """Path of an auxiliary per-channel cache file."""
        return self._state_location / f"{self._name}-{name}.{file_format}"

    @staticmethod
    def _data_type_suffix(data_type: Optional[str]) -> str:
        if data_type is None:
            return ""
        data_type = data_type.replace(DEFAULT_DATA_FILE_TYPE, "")
        return f"-{data_type}" if data_type.strip() else ""

    def cleanup_data(self) -> int:
        """
        Deletes the data cache and call log so the next run fetches fresh data.

        Returns:
            int: Number of files deleted
        """
        if self._prevent_channel_fetch:
            logger.info(f"Channel fetch prevented, keeping cached data for: {self._name}")
            return 0

        deleted = 0
        try:
            for path in self.get_data_files() + [self._call_log_file]:
                if self._storage.delete_file(path):
                    deleted += 1
        except OSError as e:
            raise StateIOError(f"Failed to clear cached data of channel: {self._name}", self._state_location) from e
        return deleted

    # Legacy layout

    def cleanup_legacy_cache(self):
        """
        Moves files from the previous layout into the channel directory.

        A legacy file is moved when no current file exists and deleted when
        one does. Old data chunks named `-data.txt.<n>` become `-data.<n>.txt`.
        """
        legacy_dir = self._storage.legacy_channel_cache_dir(self._name)
        try:
            if legacy_dir.resolve() != self._storage.channel_data_path.resolve() and legacy_dir.is_dir():
                self._migrate_legacy_dir(legacy_dir)

            for data_file in self.get_data_files():
                renamed = re.sub(r"\.txt\.(\d+)$", r".\1.txt", data_file.name)
                if renamed != data_file.name:
                    self._storage.move_file(data_file, data_file.with_name(renamed))
        except OSError as e:
            raise StateIOError(f"Failed to migrate legacy state of channel: {self._name}", legacy_dir) from e

    def _migrate_legacy_dir(self, legacy_dir: Path):
        state_files = [self._data_file, self._queued.path, self._saved.path, self._blocked.path, self._call_log_file]
        legacy_chunks = [
            self._state_location / f.name
            for f in legacy_dir.glob(f"{self._data_file.stem}*")
            if f.is_file()
        ]

        for state_file in state_files + [c for c in legacy_chunks if c not in state_files]:
            old_file = legacy_dir / state_file.name
            if not old_file.exists():
                continue
            if state_file.exists():
                self._storage.delete_file(old_file)
                logger.info(f"Deleted legacy state file: {old_file}")
            else:
                self._storage.move_file(old_file, state_file)

        if not any(legacy_dir.iterdir()):
            legacy_dir.rmdir()

    def __repr__(self) -> str:
        return f"ChannelState(name={self._name!r}, location={self._state_location})"
