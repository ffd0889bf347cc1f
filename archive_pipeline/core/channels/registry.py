"""
Channel Registry
Builds the channel tree and selects the channels of a run
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from shared.storage.storage_manager import StorageManager

from ..config.app_config import ChannelFilter
from ..errors import ConfigValidationError, DuplicateIdentifierError
from ..state.channel_state import ChannelState
from .channel import Channel
from .config_node import CHILDREN_FIELD, ConfigNode, ConfigTree, format_identifier, normalize_identifier

logger = logging.getLogger(__name__)


class ConfigRegistry:
    """
    Registry of every channel and channel group of the channel document.

    Responsibilities:
    - Parse the commented JSON channel document into a ConfigTree.
    - Reject entries that fail validation or reuse a key or name.
    - Construct a Channel for every registered Leaf.
    - Select the ordered channel keys for the current run.
    """

    def __init__(self, storage: StorageManager, prevent_channel_fetch: bool = False):
        self._storage = storage
        self._prevent_channel_fetch = prevent_channel_fetch
        self._tree = ConfigTree()

        self._leaves: Dict[str, ConfigNode] = {}
        self._groups: Dict[str, ConfigNode] = {}
        self._channels: Dict[str, Channel] = {}

        self._keys = set()
        self._leaf_names = set()
        self._group_names = set()

    @property
    def tree(self) -> ConfigTree:
        return self._tree

    # Document parsing

    @staticmethod
    def read_document(text: str) -> List[Dict[str, Any]]:
        """
        Parses the channel document.

        Blank lines and full-line `//` comments are dropped, and trailing
        commas before a closing bracket are tolerated.
        """
        lines = [
            line for line in text.splitlines()
            if line.strip() and not line.strip().startswith("//")
        ]
        content = re.sub(r",(\s*[\]}])", r"\1", "\n".join(lines))
        if not content.strip():
            return []

        document = json.loads(content)
        if not isinstance(document, list):
            raise ValueError("Channel document must be a JSON array of entries")
        return document

    def load_file(self, path: Path) -> ConfigNode:
        """Reads and builds the channel tree from a channel document file."""
        logger.info(f"Loading channels from: {path}")
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()
        return self.build_tree(text)

    def build_tree(self, document: Union[str, List[Dict[str, Any]]]) -> ConfigNode:
        """
        Loads every entry of a channel document under the implicit root.

        Entries that fail validation or collide with a registered key or
        name are logged and skipped; later entries still load.

        Returns:
            ConfigNode: The root group
        """
        entries = self.read_document(document) if isinstance(document, str) else document
        self._load_entries(entries, self._tree.root)
        logger.info(f"✓ Registered {len(self._leaves)} channels in {len(self._groups)} groups")
        return self._tree.root

    def _load_entries(self, entries: List[Any], parent: ConfigNode):
        for entry in entries:
            self._load_entry(entry, parent)

    def _load_entry(self, raw_entry: Any, parent: ConfigNode):
        if not isinstance(raw_entry, dict):
            logger.error(f"Could not load channel entry, expected an object: {raw_entry!r}")
            return

        node = self._tree.load(raw_entry, parent)
        try:
            self._tree.validate(node)
            self.register(node)
        except (ConfigValidationError, DuplicateIdentifierError) as e:
            logger.error(f"Could not load: {raw_entry.get('key')} ({self._tree.canonical_key(node)}): {e}")
            self._tree.detach(node)
            return

        if node.is_group:
            self._load_entries(raw_entry[CHILDREN_FIELD], node)

    # Registration

    def register(self, node: ConfigNode):
        """
        Registers a validated node by key and by name.

        Raises:
            DuplicateIdentifierError: If the key or name is already taken
        """
        kind = "Channel Group" if node.is_group else "Channel"
        names = self._group_names if node.is_group else self._leaf_names

        key = normalize_identifier(node.key)
        name = normalize_identifier(node.name)
        if key in self._keys:
            logger.warning(f"A {kind} with the key: {node.key} has already been registered")
            raise DuplicateIdentifierError(kind, "key", node.key)
        if name in names:
            logger.warning(f"A {kind} with the name: {node.name} has already been registered")
            raise DuplicateIdentifierError(kind, "name", node.name)

        self._keys.add(key)
        names.add(name)

        if node.is_group:
            self._groups[node.key] = node
            return

        self._leaves[node.key] = node
        state = ChannelState(node.name, self._storage, self._prevent_channel_fetch)
        self._channels[node.key] = Channel(self._tree, node, state)

    # Lookups

    def leaves(self) -> List[ConfigNode]:
        return list(self._leaves.values())

    def groups(self) -> List[ConfigNode]:
        return list(self._groups.values())

    def channels(self) -> List[Channel]:
        return list(self._channels.values())

    def channel(self, key: str) -> Optional[Channel]:
        return self._channels.get(key)

    def node(self, key: str) -> Optional[ConfigNode]:
        return self._leaves.get(key) or self._groups.get(key)

    def leaf_names(self) -> List[str]:
        return [channel.name for channel in self._channels.values()]

    # Selection

    def select(self, criteria: Optional[ChannelFilter] = None) -> List[str]:
        """
        Ordered keys of the channels taking part in a run.

        An explicit channel (or channel list) wins; otherwise channels are
        taken in declaration order between `start_at` and `stop_at`
        (both inclusive) and restricted to the group filter.
        """
        criteria = criteria or ChannelFilter()

        if not criteria.enable_filtering:
            selected = list(self._leaves.keys())
        elif criteria.channel_list:
            selected = [format_identifier(key) for key in criteria.channel_list]
        elif criteria.channel:
            key = format_identifier(criteria.channel)
            selected = [key] if key in self._leaves else []
        else:
            selected = self._select_range(criteria)

        return [key for key in selected if key in self._channels]

    def _select_range(self, criteria: ChannelFilter) -> List[str]:
        start_at = format_identifier(criteria.start_at)
        stop_at = format_identifier(criteria.stop_at)
        group_queries = criteria.group_list or [criteria.group]

        selected = []
        skipping = start_at is not None
        for key, node in self._leaves.items():
            if skipping and key == start_at:
                skipping = False
            if skipping:
                continue
            if any(self._tree.is_member_of_group(node, query) for query in group_queries):
                selected.append(key)
            if stop_at is not None and key == stop_at:
                break
        return selected

    def render(self) -> List[str]:
        return self._tree.render()
