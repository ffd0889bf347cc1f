"""
Channel Domain Model
A registered Leaf entry together with its persisted state
"""

import threading
from pathlib import Path
from typing import Dict, Optional

from ..config.app_config import Locations
from ..config.block_filter import BlockFilterConfig, select_config
from ..state.channel_state import ChannelState
from .config_node import ConfigNode, ConfigTree, SourceType


class ErrorFlag:
    """Boolean that can be set from any thread; last write wins."""

    def __init__(self):
        self._lock = threading.Lock()
        self._value = False

    def set(self):
        with self._lock:
            self._value = True

    def clear(self):
        with self._lock:
            self._value = False

    def is_set(self) -> bool:
        with self._lock:
            return self._value

    def compare_and_set(self, expected: bool, value: bool) -> bool:
        with self._lock:
            if self._value != expected:
                return False
            self._value = value
            return True


class Channel:
    """
    A downloadable source selected from the channel tree.

    Holds the Leaf node, the ChannelState and a flag recording whether
    anything failed for this channel during the run.
    """

    def __init__(self, tree: ConfigTree, node: ConfigNode, state: ChannelState):
        self._tree = tree
        self._node = node
        self._state = state
        self.error = ErrorFlag()

    @property
    def key(self) -> str:
        return self._node.key

    @property
    def name(self) -> str:
        return self._node.name

    @property
    def node(self) -> ConfigNode:
        return self._node

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def canonical_key(self) -> str:
        return self._tree.canonical_key(self._node)

    @property
    def source(self) -> Optional[str]:
        return self._tree.effective(self._node, "source")

    @property
    def source_type(self) -> Optional[SourceType]:
        return self._tree.source_type(self._node)

    @property
    def url(self) -> Optional[str]:
        return self._tree.effective(self._node, "url")

    def is_enabled(self) -> bool:
        return self._tree.is_enabled(self._node)

    def effective(self, field_name: str):
        return self._tree.effective(self._node, field_name)

    def effective_config(self) -> Dict:
        return self._tree.effective_config(self._node)

    def output_location(self, locations: Locations) -> Optional[Path]:
        return self._tree.resolve_output_location(self._node, locations)

    def playlist_file(self, locations: Locations) -> Optional[Path]:
        return self._tree.resolve_playlist_file(self._node, locations)

    def block_filter(self, global_config: Optional[BlockFilterConfig] = None) -> Optional[BlockFilterConfig]:
        return select_config(self.effective("sponsorBlock"), global_config)

    def __repr__(self) -> str:
        return f"Channel(key={self.key!r}, name={self.name!r})"
