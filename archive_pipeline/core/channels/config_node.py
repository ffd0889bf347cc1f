"""
Channel Configuration Tree
Hierarchical channel entries with inherited settings
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from ..config.app_config import Locations
from ..config.block_filter import BlockFilterConfig
from ..errors import ConfigValidationError

logger = logging.getLogger(__name__)


CHILDREN_FIELD = "channels"
DEFAULT_PLAYLIST_FORMAT = "m3u"

LEAF_REQUIRED_FIELDS = ["key", "source", "outputFolder"]
GROUP_REQUIRED_FIELDS = ["key", CHILDREN_FIELD]

# Effective values used when neither the node nor any ancestor sets a field
DEFAULTS: Dict[str, Any] = {
    "active": True,
    "saveAsAudio": False,
    "savePlaylist": False,
    "reversePlaylist": False,
    "ignoreGlobalLocations": False,
    "keepClean": False,
}

BOOLEAN_FIELDS = list(DEFAULTS.keys())

# Fields that belong to a single node and are never inherited
OWN_FIELDS = {"key", "name", "playlistFile", CHILDREN_FIELD}

EFFECTIVE_FIELDS = [
    "key", "active", "name", "group", "url", "source", "outputFolder", "playlistFile",
    "saveAsAudio", "savePlaylist", "reversePlaylist", "ignoreGlobalLocations", "keepClean",
    "sponsorBlock", CHILDREN_FIELD,
]

SOURCE_ALIASES = ["source", "playlistId", "channelId"]

PLACEHOLDERS = {
    "${D}": "storage_drive",
    "${V}": "video_dir",
    "${M}": "music_dir",
}


class NodeKind(Enum):
    LEAF = "leaf"
    GROUP = "group"


class SourceType(Enum):
    """Kind of upstream source a channel entry references."""
    CHANNEL = "channel"
    PLAYLIST = "playlist"
    ALBUM = "album"

    @staticmethod
    def determine(source: Optional[str]) -> Optional["SourceType"]:
        if not source or not source.strip():
            return None
        if source.startswith("U"):
            return SourceType.CHANNEL
        if source.startswith("PL"):
            return SourceType.PLAYLIST
        if source.startswith("OLAK"):
            return SourceType.ALBUM
        return None


def format_identifier(identifier: Optional[str]) -> Optional[str]:
    """Formats a key so it is safe in canonical keys and key store records."""
    if identifier is None:
        return None
    formatted = identifier.replace(".", "").replace("|", "")
    formatted = re.sub(r"\s+", "_", formatted.strip())
    return formatted or None


def to_pascal_case(text: str) -> str:
    parts = [p for p in re.split(r"[_\s\-]+", text) if p]
    return "".join(p[0].upper() + p[1:] for p in parts)


def normalize_identifier(identifier: str) -> str:
    """Lower-cases and strips non-alphanumerics; keys and names compare this way."""
    return re.sub(r"[^a-z\d]", "", identifier.lower())


def normalize_group_name(name: str) -> str:
    """Like normalize_identifier, also folding a trailing plural 's'."""
    return re.sub(r"s$", "", normalize_identifier(name))


def clean_file_path(path: str) -> str:
    cleaned = re.sub(r"[:*?\"<>|]", " - ", path)
    return re.sub(r"\s+", " ", cleaned).strip()


def normalize_source(source: Optional[str]) -> Optional[str]:
    """Channel ids (UC...) are stored as the channel's uploads playlist (UU...)."""
    if source is None or not str(source).strip():
        return None
    return re.sub(r"^UC", "UU", str(source).strip())


def determine_url(source: Optional[str]) -> Optional[str]:
    source_type = SourceType.determine(source)
    if source_type == SourceType.CHANNEL:
        return "https://www.youtube.com/channel/" + re.sub(r"^UU", "UC", source)
    if source_type == SourceType.PLAYLIST:
        return "https://www.youtube.com/playlist?list=" + source
    return None


def _parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return None


def _parse_tags(value: Any) -> List[str]:
    if value is None:
        return []
    raw_tags = value if isinstance(value, list) else re.split(r"\s*[,|]\s*", str(value))
    # a tag given as a canonical key only names its last segment
    tags = [re.sub(r".+\.", "", str(tag).strip()) for tag in raw_tags]
    return [tag for tag in tags if tag]


@dataclass
class ConfigNode:
    """
    One entry of the channel tree, either a Leaf (one source) or a Group.

    Nodes live in a ConfigTree arena; `parent` and `children` are arena
    indices, never owning references.
    """
    index: int
    kind: NodeKind
    explicit: Dict[str, Any] = field(default_factory=dict)
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)

    @property
    def key(self) -> Optional[str]:
        return self.explicit.get("key")

    @property
    def name(self) -> Optional[str]:
        return self.explicit.get("name")

    @property
    def group_tags(self) -> List[str]:
        return self.explicit.get("groupTags", [])

    @property
    def is_group(self) -> bool:
        return self.kind == NodeKind.GROUP

    @property
    def is_leaf(self) -> bool:
        return self.kind == NodeKind.LEAF

    def __repr__(self) -> str:
        return f"ConfigNode(key={self.key!r}, kind={self.kind.value})"


class ConfigTree:
    """
    Arena of ConfigNodes under an implicit root Group.

    Responsibilities:
    - Parse raw channel entries into Leaf and Group nodes.
    - Resolve effective field values by walking ancestors.
    - Validate required fields against effective values.
    - Answer canonical key and group membership queries.
    """

    ROOT_INDEX = 0

    def __init__(self):
        self._nodes: List[ConfigNode] = [ConfigNode(index=self.ROOT_INDEX, kind=NodeKind.GROUP)]

    @property
    def root(self) -> ConfigNode:
        return self._nodes[self.ROOT_INDEX]

    def node(self, index: int) -> ConfigNode:
        return self._nodes[index]

    def parent(self, node: ConfigNode) -> Optional[ConfigNode]:
        return None if node.parent is None else self._nodes[node.parent]

    def children(self, node: ConfigNode) -> List[ConfigNode]:
        return [self._nodes[i] for i in node.children]

    def is_root(self, node: ConfigNode) -> bool:
        return node.index == self.ROOT_INDEX

    # Construction

    def load(self, raw_entry: Dict[str, Any], parent: Optional[ConfigNode] = None) -> ConfigNode:
        """
        Parse a raw entry into a node and link it under its parent.

        A Group is recognised by the presence of a `channels` container,
        even an empty one. Required fields are not checked here; call
        validate() once the node is linked.
        """
        parent = parent or self.root
        kind = NodeKind.GROUP if CHILDREN_FIELD in raw_entry else NodeKind.LEAF
        node = ConfigNode(
            index=len(self._nodes),
            kind=kind,
            explicit=self._parse_fields(raw_entry, kind),
            parent=parent.index
        )
        self._nodes.append(node)
        parent.children.append(node.index)
        return node

    def detach(self, node: ConfigNode):
        """Unlinks a rejected node from its parent; its arena slot stays unused."""
        parent = self.parent(node)
        if parent is not None and node.index in parent.children:
            parent.children.remove(node.index)
        node.parent = None

    @staticmethod
    def _parse_fields(raw: Dict[str, Any], kind: NodeKind) -> Dict[str, Any]:
        explicit: Dict[str, Any] = {}

        key = format_identifier(raw.get("key")) if isinstance(raw.get("key"), str) else None
        if key:
            explicit["key"] = key

        name = raw.get("name")
        if isinstance(name, str) and re.sub(r"[.|]", "", name).strip():
            explicit["name"] = re.sub(r"[.|]", "", name).strip()
        elif key:
            explicit["name"] = to_pascal_case(key)

        tags = _parse_tags(raw.get("group"))
        if tags:
            explicit["groupTags"] = tags
            explicit["group"] = ", ".join(tags)

        source = next((raw[a] for a in SOURCE_ALIASES if raw.get(a)), None)
        source = normalize_source(source)
        if source:
            explicit["source"] = source

        url = raw.get("url")
        if isinstance(url, str) and url.strip():
            explicit["url"] = url.strip()
        elif source:
            derived = determine_url(source)
            if derived:
                explicit["url"] = derived

        output_folder = raw.get("outputFolder", raw.get("outputFolderPath"))
        if isinstance(output_folder, str) and output_folder.strip():
            explicit["outputFolder"] = clean_file_path(output_folder)

        if kind == NodeKind.LEAF:
            playlist_file = raw.get("playlistFile")
            if isinstance(playlist_file, str) and playlist_file.strip():
                explicit["playlistFile"] = clean_file_path(playlist_file)

        for flag in BOOLEAN_FIELDS:
            value = raw.get(flag)
            if value is None and flag == "saveAsAudio":
                value = raw.get("saveAsMp3")
            parsed = _parse_bool(value)
            if parsed is not None:
                explicit[flag] = parsed

        sponsor_block = raw.get("sponsorBlock")
        if isinstance(sponsor_block, dict):
            explicit["sponsorBlock"] = BlockFilterConfig.from_dict(sponsor_block)

        if kind == NodeKind.GROUP and isinstance(raw.get(CHILDREN_FIELD), list):
            explicit[CHILDREN_FIELD] = True

        return explicit

    # Resolution

    def effective(self, node: ConfigNode, field_name: str) -> Any:
        """
        Resolved value of a field: the node's explicit value, else the
        parent's effective value, else the global default.
        """
        if field_name == "outputFolder":
            return self._output_folder_path(node)
        if field_name == "playlistFile":
            return self._playlist_file_path(node)
        if field_name == CHILDREN_FIELD:
            if not node.is_group or CHILDREN_FIELD not in node.explicit:
                return None
            return [self._nodes[i].key for i in node.children]
        if field_name in OWN_FIELDS:
            return node.explicit.get(field_name)

        if field_name in node.explicit:
            return node.explicit[field_name]
        parent = self.parent(node)
        if parent is not None:
            return self.effective(parent, field_name)
        return DEFAULTS.get(field_name)

    def _output_folder_path(self, node: ConfigNode) -> Optional[str]:
        parent = self.parent(node)
        parent_path = self._output_folder_path(parent) if parent is not None else None
        raw = node.explicit.get("outputFolder")
        if raw is None:
            return parent_path
        if raw.startswith("~"):
            return (parent_path or "") + raw[1:]
        return raw

    def _playlist_file_path(self, node: ConfigNode) -> Optional[str]:
        if not node.is_leaf:
            return None
        output_folder = self._output_folder_path(node)
        raw = node.explicit.get("playlistFile")
        if raw is None:
            if output_folder is None or not self.effective(node, "savePlaylist"):
                return None
            raw = "~"
        path = (output_folder or "") + raw[1:] if raw.startswith("~") else raw
        extension = "." + DEFAULT_PLAYLIST_FORMAT
        while path.endswith(extension + extension):
            path = path[:-len(extension)]
        return path if path.endswith(extension) else path + extension

    def effective_config(self, node: ConfigNode) -> Dict[str, Any]:
        """Every effective field of a node, in document order."""
        return {name: self.effective(node, name) for name in EFFECTIVE_FIELDS}

    def validate(self, node: ConfigNode):
        """
        Check required fields against the node's effective values.

        Raises:
            ConfigValidationError: naming every missing field at once
        """
        config = self.effective_config(node)
        required = GROUP_REQUIRED_FIELDS if node.is_group else LEAF_REQUIRED_FIELDS
        missing = [name for name in required if config.get(name) is None]
        if missing:
            raise ConfigValidationError(node.key, missing, group=node.is_group)

    def is_enabled(self, node: ConfigNode) -> bool:
        """Whether the node is active and so is every Group above it."""
        if not node.explicit.get("active", DEFAULTS["active"]):
            return False
        parent = self.parent(node)
        return parent is None or self.is_enabled(parent)

    def resolve_location(self, node: ConfigNode, path: Optional[str], locations: Locations) -> Optional[Path]:
        """Substitutes location placeholders and applies the global category directory."""
        if path is None:
            return None
        for placeholder, attribute in PLACEHOLDERS.items():
            value = getattr(locations, attribute)
            if placeholder in path and value:
                path = path.replace(placeholder, value)
            elif placeholder in path:
                logger.warning(f"Location {attribute} is not configured for: {self.canonical_key(node)}")

        prefix = None
        if not self.effective(node, "ignoreGlobalLocations"):
            prefix = locations.music_dir if self.effective(node, "saveAsAudio") else locations.video_dir
        return Path(prefix) / path if prefix else Path(path)

    def resolve_output_location(self, node: ConfigNode, locations: Locations) -> Optional[Path]:
        return self.resolve_location(node, self.effective(node, "outputFolder"), locations)

    def resolve_playlist_file(self, node: ConfigNode, locations: Locations) -> Optional[Path]:
        return self.resolve_location(node, self.effective(node, "playlistFile"), locations)

    def source_type(self, node: ConfigNode) -> Optional[SourceType]:
        return SourceType.determine(self.effective(node, "source"))

    def channel_id(self, node: ConfigNode) -> Optional[str]:
        source = self.effective(node, "source")
        if source and source.startswith("UU"):
            return re.sub(r"^UU", "UC", source)
        return None

    # Structure queries

    def ancestors(self, node: ConfigNode) -> List[ConfigNode]:
        """Ancestors nearest first, excluding the implicit root."""
        result = []
        parent = self.parent(node)
        while parent is not None and not self.is_root(parent):
            result.append(parent)
            parent = self.parent(parent)
        return result

    def depth(self, node: ConfigNode) -> int:
        return 1 + len(self.ancestors(node))

    def canonical_key(self, node: ConfigNode) -> str:
        keys = [a.key for a in reversed(self.ancestors(node))] + [node.key]
        return ".".join(k for k in keys if k)

    def all_children(self, node: ConfigNode) -> Iterator[ConfigNode]:
        """Descendants in declaration (pre-)order."""
        for child in self.children(node):
            yield child
            if child.is_group:
                yield from self.all_children(child)

    def all_groups(self, node: ConfigNode) -> List[str]:
        groups = [node.key] if node.is_group and node.key else []
        groups.extend(node.group_tags)
        parent = self.parent(node)
        if parent is not None:
            groups.extend(self.all_groups(parent))
        return groups

    def is_member_of_group(self, node: ConfigNode, query: Optional[str]) -> bool:
        """
        Whether a node belongs to a group, directly or through an ancestor.

        A blank query matches everything.
        """
        if query is None or not query.strip():
            return True
        target = normalize_group_name(query)

        candidates = [node.key] + list(node.group_tags)
        if node.is_group:
            candidates.append(node.name)
        if any(c and normalize_group_name(c) == target for c in candidates):
            return True

        parent = self.parent(node)
        return parent is not None and self.is_member_of_group(parent, query)

    def render(self, node: Optional[ConfigNode] = None, indent: int = 0) -> List[str]:
        """Indented listing of a subtree; disabled entries are marked."""
        node = node or self.root
        lines = []
        if not self.is_root(node):
            label = node.key + (":" if node.is_group else "")
            if not self.is_enabled(node):
                label += " (inactive)"
            lines.append("    " * indent + label)
            indent += 1
        for child in self.children(node):
            lines.extend(self.render(child, indent))
        return lines
