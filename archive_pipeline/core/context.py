"""
Archive Context
Run-wide objects shared by every stage of a run
"""

import logging
from pathlib import Path
from typing import List, Optional

from shared.storage.storage_manager import StorageManager

from .channels.channel import Channel
from .channels.registry import ConfigRegistry
from .config.app_config import AppConfig
from .errors import StateIOError
from .state.key_store import KeyStore

logger = logging.getLogger(__name__)


class ArchiveContext:
    """
    Settings, storage, channel registry and key store of one run.

    Constructed once at startup and passed to whatever needs them.
    Lifecycle: start() loads the tree and key store, load_channel() /
    save_channel() bracket the processing of each channel, and
    shutdown() persists the key store.
    """

    def __init__(self, config: AppConfig, base_dir: Optional[Path] = None):
        self._config = config
        self._base_dir = (base_dir or Path.cwd()).resolve()

        self._storage = StorageManager(
            str(self._resolve(config.data_dir)),
            str(self._resolve(config.log_dir))
        )
        self._registry = ConfigRegistry(self._storage, config.prevent_channel_fetch)
        self._key_store = KeyStore(self._storage.key_store_path)

    def _resolve(self, path: str) -> Path:
        candidate = Path(path)
        return candidate if candidate.is_absolute() else self._base_dir / candidate

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def storage(self) -> StorageManager:
        return self._storage

    @property
    def registry(self) -> ConfigRegistry:
        return self._registry

    @property
    def key_store(self) -> KeyStore:
        return self._key_store

    def start(self, document: Optional[str] = None):
        """
        Builds the channel tree and loads the key store.

        Args:
            document: Channel document text; read from `channels_file` when omitted
        """
        if document is None:
            self._registry.load_file(self._resolve(self._config.channels_file))
        else:
            self._registry.build_tree(document)

        if self._config.print_channels:
            logger.info("--- Channels ---")
            for line in self._registry.render():
                logger.info(line)

        self._key_store.load(self._registry.leaf_names())

    def selected_channels(self) -> List[Channel]:
        keys = self._registry.select(self._config.channel_filter)
        return [self._registry.channel(key) for key in keys]

    def load_channel(self, channel: Channel):
        """Loads a channel's state; a failure marks the channel and propagates."""
        try:
            channel.state.load()
        except StateIOError:
            channel.error.set()
            logger.error(f"Failed to load the state of channel: {channel.canonical_key}")
            raise

    def save_channel(self, channel: Channel):
        """Saves a channel's state; a failure marks the channel and propagates."""
        try:
            channel.state.save()
        except StateIOError:
            channel.error.set()
            raise

    def shutdown(self):
        self._key_store.save()

    def __repr__(self) -> str:
        return f"ArchiveContext(base_dir={self._base_dir}, storage={self._storage!r})"
